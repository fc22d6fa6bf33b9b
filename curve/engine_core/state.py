"""
Game State - The engine-owned aggregate for one match.

Design principles:
- Single writer: only the GameEngine mutates state
- Inspectable: buffs, graveyards and history keep provenance
- Snapshot-able: history.py takes value copies of everything here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ..card_schema.card_def import CardDefinition, CardInstance
from ..card_schema.effect_dsl import Effect, EffectTrigger
from .board import Board, Position
from .player import Player


class GamePhase(Enum):
    """Turn phases. DRAW and ADVANCE run automatically."""
    SETUP = "setup"
    DRAW = "draw"
    ADVANCE = "advance"
    PLAY = "play"
    BATTLE = "battle"
    END = "end"


class EngineInvariantError(AssertionError):
    """Internal consistency violation. Indicates an engine bug, not a bad command."""
    pass


@dataclass(frozen=True)
class Buff:
    """
    One applied modifier.

    duration -1 means permanent. buff_type tags bookkeeping buffs (ROOT).
    """
    buff_id: str
    source: str
    attack: int = 0
    health: int = 0
    duration: int = -1
    buff_type: str | None = None


@dataclass
class Unit:
    """A card that resolved onto the board."""
    unit_id: str
    card: CardDefinition
    owner_id: int
    attack: int
    health: int
    max_health: int
    position: Position
    effects: list[Effect] = field(default_factory=list)
    buffs: list[Buff] = field(default_factory=list)

    # The card that was played; goes back to the graveyard on death
    instance: CardInstance | None = None

    # Per-turn flags
    has_attacked: bool = False
    is_rooted: bool = False
    root_duration: int | None = None
    advances_this_turn: int = 0

    @classmethod
    def from_card(
        cls,
        unit_id: str,
        card: CardDefinition,
        owner_id: int,
        position: Position,
        instance: CardInstance | None = None,
    ) -> Unit:
        health = card.health if card.health is not None else 1
        return cls(
            unit_id=unit_id,
            card=card,
            owner_id=owner_id,
            attack=card.attack or 0,
            health=health,
            max_health=health,
            position=position,
            effects=list(card.effects),
            instance=instance,
        )

    @property
    def card_id(self) -> str:
        return self.card.id

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def cost(self) -> int:
        return self.card.cost

    @property
    def archetype(self) -> str:
        return self.card.archetype

    @property
    def has_taunt(self) -> bool:
        return any(e.trigger == EffectTrigger.TAUNT for e in self.effects)

    @property
    def is_dead(self) -> bool:
        return self.health <= 0

    def effects_for(self, trigger: EffectTrigger) -> list[Effect]:
        return [e for e in self.effects if e.trigger == trigger]


# An effect target is exactly one of these. RETURN_TO_HAND also accepts a
# list of cards.
Target = Union[Unit, Player, CardInstance, Position]

# Whatever an effect originates from
EffectSource = Union[Unit, CardInstance]


@dataclass
class PendingAction:
    """Something the current player must do before play continues."""
    action_type: str  # "place_starting_unit"
    player_id: int
    message: str = ""


@dataclass
class TargetingSession:
    """An effect waiting for the player to pick its target."""
    source: EffectSource
    effect: Effect
    controller_id: int
    valid_targets: list[Any] = field(default_factory=list)
    message: str = "Select a target"

    def accepts(self, target: Any) -> bool:
        if isinstance(target, (list, tuple)):
            return bool(target) and all(t in self.valid_targets for t in target)
        return target in self.valid_targets


@dataclass
class EffectExecution:
    """Entry on the effect stack while an effect resolves."""
    source_name: str
    trigger: EffectTrigger
    depth: int


@dataclass
class GameState:
    """
    Complete state of a match.

    players is fixed order: index 0 is player 1, index 1 is player 2.
    """
    players: list[Player]
    board: Board
    current_player_idx: int = 0
    phase: GamePhase = GamePhase.SETUP
    turn_number: int = 1

    game_over: bool = False
    winner: int | None = None
    win_reason: str | None = None

    pending_actions: list[PendingAction] = field(default_factory=list)
    targeting: TargetingSession | None = None
    effect_stack: list[EffectExecution] = field(default_factory=list)

    # True while DRAW/ADVANCE steps are in flight
    automatic_phase_pending: bool = False

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_idx]

    @property
    def opponent(self) -> Player:
        return self.players[1 - self.current_player_idx]

    def get_player(self, player_id: int) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def opponent_of(self, player_id: int) -> Player | None:
        for player in self.players:
            if player.player_id != player_id:
                return player
        return None

    def all_units(self) -> list[Unit]:
        return [unit for player in self.players for unit in player.units]

    def find_unit(self, unit_id: str) -> Unit | None:
        for player in self.players:
            unit = player.find_unit(unit_id)
            if unit is not None:
                return unit
        return None

    def pending_setup_for(self, player_id: int) -> PendingAction | None:
        for pending in self.pending_actions:
            if pending.action_type == "place_starting_unit" and pending.player_id == player_id:
                return pending
        return None
