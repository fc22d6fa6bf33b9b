"""
History - Bounded buffer of value snapshots.

A snapshot is taken before every state-mutating command (attack,
spawn attack, phase advance, card play). Snapshots are frozen copies,
so later mutation of the live state never reaches them.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Iterator, TYPE_CHECKING

from ..card_schema.card_def import CardInstance
from .board import Position

if TYPE_CHECKING:
    from .state import Buff, GamePhase, GameState, Unit
    from .player import Player


@dataclass(frozen=True)
class UnitSnapshot:
    unit_id: str
    card_id: str
    owner_id: int
    attack: int
    health: int
    max_health: int
    position: Position
    buffs: tuple[Buff, ...]
    has_attacked: bool
    is_rooted: bool
    root_duration: int | None
    advances_this_turn: int


@dataclass(frozen=True)
class PlayerSnapshot:
    player_id: int
    name: str
    health: int
    max_health: int
    mana: int
    max_mana: int
    deck: tuple[CardInstance, ...]
    hand: tuple[CardInstance, ...]
    units: tuple[UnitSnapshot, ...]
    graveyard: tuple[CardInstance, ...]
    turn_count: int
    fatigue_damage: int
    cost_reductions: tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class GameSnapshot:
    """Value copy of a GameState."""
    label: str
    players: tuple[PlayerSnapshot, ...]
    tiles: tuple[tuple[str | None, ...], ...]
    current_player_idx: int
    phase: GamePhase
    turn_number: int
    game_over: bool
    winner: int | None

    def player(self, player_id: int) -> PlayerSnapshot | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None


def snapshot_unit(unit: Unit) -> UnitSnapshot:
    return UnitSnapshot(
        unit_id=unit.unit_id,
        card_id=unit.card_id,
        owner_id=unit.owner_id,
        attack=unit.attack,
        health=unit.health,
        max_health=unit.max_health,
        position=unit.position,
        buffs=tuple(unit.buffs),
        has_attacked=unit.has_attacked,
        is_rooted=unit.is_rooted,
        root_duration=unit.root_duration,
        advances_this_turn=unit.advances_this_turn,
    )


def snapshot_player(player: Player) -> PlayerSnapshot:
    return PlayerSnapshot(
        player_id=player.player_id,
        name=player.name,
        health=player.health,
        max_health=player.max_health,
        mana=player.mana,
        max_mana=player.max_mana,
        deck=tuple(player.deck),
        hand=tuple(player.hand),
        units=tuple(snapshot_unit(u) for u in player.units),
        graveyard=tuple(player.graveyard),
        turn_count=player.turn_count,
        fatigue_damage=player.fatigue_damage,
        cost_reductions=tuple(sorted(player.cost_reductions.items())),
    )


def snapshot_state(state: GameState, label: str = "") -> GameSnapshot:
    return GameSnapshot(
        label=label,
        players=tuple(snapshot_player(p) for p in state.players),
        tiles=tuple(tuple(row) for row in state.board.tiles),
        current_player_idx=state.current_player_idx,
        phase=state.phase,
        turn_number=state.turn_number,
        game_over=state.game_over,
        winner=state.winner,
    )


class HistoryBuffer:
    """Ring buffer of snapshots; the oldest is discarded at capacity."""

    def __init__(self, limit: int = 50):
        self.limit = limit
        self._entries: deque[GameSnapshot] = deque(maxlen=limit)

    def record(self, state: GameState, label: str = "") -> GameSnapshot:
        snapshot = snapshot_state(state, label)
        self._entries.append(snapshot)
        return snapshot

    @property
    def latest(self) -> GameSnapshot | None:
        return self._entries[-1] if self._entries else None

    def entries(self) -> list[GameSnapshot]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[GameSnapshot]:
        return iter(self._entries)
