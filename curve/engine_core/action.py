"""
Action System - Commands, payloads, and results.

Actions represent:
1. Setup commands (starting unit placement)
2. Turn commands (play card, attack, advance phase)
3. Targeting responses (resolve or cancel an interactive effect)

Every command returns a result instead of raising; illegal commands
leave the game state untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .board import Position


class ActionType(Enum):
    """Commands the engine accepts."""
    PLACE_STARTING_UNIT = "place_starting_unit"
    PLAY_CARD = "play_card"
    ATTACK = "attack"
    ATTACK_SPAWN_TILE = "attack_spawn_tile"
    ADVANCE_PHASE = "advance_phase"
    RESOLVE_TARGETING = "resolve_targeting"
    CANCEL_TARGETING = "cancel_targeting"

    # Accepted for completeness; always rejected
    MOVE_UNIT = "move_unit"


class ErrorCode:
    """Stable failure codes carried by ActionResult.error_code."""
    GAME_OVER = "GAME_OVER"
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    AUTOMATIC_PHASE_PENDING = "AUTOMATIC_PHASE_PENDING"
    TARGETING_ACTIVE = "TARGETING_ACTIVE"
    NO_TARGETING = "NO_TARGETING"
    INVALID_CARD_INDEX = "INVALID_CARD_INDEX"
    NOT_ENOUGH_MANA = "NOT_ENOUGH_MANA"
    INVALID_POSITION = "INVALID_POSITION"
    TILE_OCCUPIED = "TILE_OCCUPIED"
    UNKNOWN_UNIT = "UNKNOWN_UNIT"
    ALREADY_ATTACKED = "ALREADY_ATTACKED"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    TAUNT_BLOCKS = "TAUNT_BLOCKS"
    INVALID_TARGET = "INVALID_TARGET"
    MOVEMENT_FORBIDDEN = "MOVEMENT_FORBIDDEN"
    NO_SETUP_PENDING = "NO_SETUP_PENDING"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    INVALID_ACTION = "INVALID_ACTION"


@dataclass
class ActionPayload:
    """
    Parameters of a command.

    Different action types use different fields; the engine validates.
    """
    player_id: int | None = None
    unit_id: str | None = None
    target_id: str | None = None
    hand_index: int | None = None
    position: Position | None = None

    # Targeting responses carry the chosen target object
    target: Any | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """A complete command to be applied to the engine."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def place_starting_unit(cls, player_id: int, position: Position) -> Action:
        return cls(
            action_type=ActionType.PLACE_STARTING_UNIT,
            payload=ActionPayload(player_id=player_id, position=position),
        )

    @classmethod
    def play_card(cls, hand_index: int, position: Position | None = None) -> Action:
        """Factory for playing a card. Spells take no position."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(hand_index=hand_index, position=position),
        )

    @classmethod
    def attack(cls, attacker_id: str, target_id: str) -> Action:
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(unit_id=attacker_id, target_id=target_id),
        )

    @classmethod
    def attack_spawn_tile(cls, attacker_id: str, position: Position) -> Action:
        return cls(
            action_type=ActionType.ATTACK_SPAWN_TILE,
            payload=ActionPayload(unit_id=attacker_id, position=position),
        )

    @classmethod
    def advance_phase(cls) -> Action:
        return cls(action_type=ActionType.ADVANCE_PHASE)

    @classmethod
    def resolve_targeting(cls, target: Any) -> Action:
        return cls(
            action_type=ActionType.RESOLVE_TARGETING,
            payload=ActionPayload(target=target),
        )

    @classmethod
    def cancel_targeting(cls) -> Action:
        return cls(action_type=ActionType.CANCEL_TARGETING)

    @classmethod
    def move_unit(cls, unit_id: str, position: Position) -> Action:
        return cls(
            action_type=ActionType.MOVE_UNIT,
            payload=ActionPayload(unit_id=unit_id, position=position),
        )


@dataclass
class ActionResult:
    """
    Result of applying a command.

    Contains:
    - Whether the command succeeded
    - Error message and stable code (if failed)
    - The events emitted while the command ran
    """
    success: bool
    error: str | None = None
    error_code: str | None = None
    events: list[Any] = field(default_factory=list)  # GameEvent
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, **details) -> ActionResult:
        """Create a success result."""
        return cls(success=True, details=details)


@dataclass
class EffectResult:
    """Outcome of one effect action. Never raised, always returned."""
    success: bool
    message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failed(cls, message: str | None = None) -> EffectResult:
        return cls(success=False, message=message)
