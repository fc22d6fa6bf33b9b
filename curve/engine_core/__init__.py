"""
Engine Core - Rules engine for the lane battler.

The engine is the runtime that:
1. Owns the GameState (board, players, phase)
2. Runs the phase state machine
3. Validates and applies commands
4. Resolves card effects
5. Publishes events and keeps a history of snapshots
"""

from .config import GameConfig
from .board import Board, Position
from .player import Player, DrawOutcome, DrawResult
from .state import (
    Buff,
    EngineInvariantError,
    GamePhase,
    GameState,
    PendingAction,
    TargetingSession,
    Unit,
)
from .action import Action, ActionPayload, ActionResult, ActionType, EffectResult, ErrorCode
from .events import EventFeed, EventType, GameEvent, Subscription
from .history import GameSnapshot, HistoryBuffer, PlayerSnapshot, UnitSnapshot
from .effect_resolver import EffectResolver
from .engine import GameEngine
from .action_generator import ActionGenerator, legal_actions, is_legal

__all__ = [
    "GameConfig",
    "Board",
    "Position",
    "Player",
    "DrawOutcome",
    "DrawResult",
    "Buff",
    "EngineInvariantError",
    "GamePhase",
    "GameState",
    "PendingAction",
    "TargetingSession",
    "Unit",
    "Action",
    "ActionPayload",
    "ActionResult",
    "ActionType",
    "EffectResult",
    "ErrorCode",
    "EventFeed",
    "EventType",
    "GameEvent",
    "Subscription",
    "GameSnapshot",
    "HistoryBuffer",
    "PlayerSnapshot",
    "UnitSnapshot",
    "EffectResolver",
    "GameEngine",
    "ActionGenerator",
    "legal_actions",
    "is_legal",
]
