"""
Pytest fixtures for Curve tests.
"""

import pytest

from ..card_schema.card_def import CardInstance
from ..catalog.cards import KRIPER
from ..catalog.registry import CardCatalog
from ..engine_core.board import Position
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.state import GamePhase


def kriper_deck(prefix: str, size: int = 20) -> list[CardInstance]:
    return [CardInstance(KRIPER, f"{prefix}-{i}") for i in range(size)]


def spawn(engine: GameEngine, card_id: str, player_id: int, row: int, col: int):
    """Put a unit straight onto the board."""
    card = engine.catalog.require(card_id)
    return engine.create_unit_from_card(card, player_id, Position(row, col))


def give_card(engine: GameEngine, player_id: int, card_id: str) -> int:
    """Add a card to a player's hand and return its index."""
    player = engine.get_player(player_id)
    player.hand.append(CardInstance(engine.catalog.require(card_id), engine.next_id("card")))
    return len(player.hand) - 1


def set_mana(engine: GameEngine, player_id: int, mana: int) -> None:
    player = engine.get_player(player_id)
    player.max_mana = mana
    player.mana = mana


def open_play(engine: GameEngine) -> GameEngine:
    """Start the game and skip straight to player 1's Play phase with an empty board."""
    engine.start_game()
    engine.state.pending_actions = []
    engine._setup_done.update({1, 2})
    engine.state.phase = GamePhase.PLAY
    return engine


def pass_turn(engine: GameEngine) -> None:
    """Advance phases until the turn passes (or the game ends)."""
    current = engine.state.current_player_idx
    while not engine.state.game_over and engine.state.current_player_idx == current:
        result = engine.advance_phase()
        assert result.success, result.error


@pytest.fixture
def config() -> GameConfig:
    """Deterministic config with invariant checks after every command."""
    return GameConfig(random_seed=7, strict_invariants=True)


@pytest.fixture
def catalog() -> CardCatalog:
    return CardCatalog.default()


@pytest.fixture
def engine(config: GameConfig, catalog: CardCatalog) -> GameEngine:
    """Fresh, unstarted engine with two all-Kriper decks."""
    return GameEngine([kriper_deck("p1"), kriper_deck("p2")], catalog=catalog, config=config)


@pytest.fixture
def play_engine(engine: GameEngine) -> GameEngine:
    """Player 1 in Play phase, empty board, 10 mana."""
    open_play(engine)
    set_mana(engine, 1, 10)
    return engine


@pytest.fixture
def battle_engine(play_engine: GameEngine) -> GameEngine:
    """Player 1 in Battle phase, empty board."""
    play_engine.state.phase = GamePhase.BATTLE
    return play_engine
