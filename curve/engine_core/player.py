"""
Player - Health, mana, cards and per-player bookkeeping.

Mana grows with the player's own turn count, not the global turn
number, so both players ramp independently.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING
import random

from ..card_schema.card_def import CardInstance
from .config import GameConfig

if TYPE_CHECKING:
    from .state import Unit


class DrawOutcome(Enum):
    DRAWN = "drawn"
    BURNED = "burned"  # Hand full, card went to graveyard
    FATIGUE = "fatigue"  # Deck empty


@dataclass
class DrawResult:
    outcome: DrawOutcome
    card: CardInstance | None = None
    fatigue_damage: int = 0


@dataclass
class Player:
    """State for a single player."""
    player_id: int
    name: str
    health: int = 30
    max_health: int = 30
    mana: int = 0
    max_mana: int = 0

    deck: list[CardInstance] = field(default_factory=list)
    hand: list[CardInstance] = field(default_factory=list)
    units: list[Unit] = field(default_factory=list)
    graveyard: list[CardInstance] = field(default_factory=list)

    turn_count: int = 0
    fatigue_damage: int = 1

    max_hand_size: int = 7
    mana_cap: int = 10

    # archetype -> pending one-shot reduction
    cost_reductions: dict[str, int] = field(default_factory=dict)
    status_effects: dict[str, Any] = field(default_factory=dict)

    deck_name: str = ""

    @classmethod
    def create(
        cls,
        player_id: int,
        name: str,
        deck: list[CardInstance],
        rng: random.Random,
        config: GameConfig,
        deck_name: str = "",
    ) -> Player:
        """Create a player with a shuffled copy of `deck`."""
        shuffled = list(deck)
        rng.shuffle(shuffled)
        return cls(
            player_id=player_id,
            name=name,
            health=config.starting_health,
            max_health=config.starting_health,
            deck=shuffled,
            max_hand_size=config.max_hand_size,
            mana_cap=config.max_mana,
            deck_name=deck_name,
        )

    @property
    def is_defeated(self) -> bool:
        return self.health <= 0

    @property
    def hand_full(self) -> bool:
        return len(self.hand) >= self.max_hand_size

    def draw(self) -> DrawResult:
        """
        Draw the top card of the deck.

        Empty deck: take progressive fatigue damage (1, 2, 3...).
        Full hand: the card is burned to the graveyard.
        """
        if not self.deck:
            damage = self.fatigue_damage
            self.health -= damage
            self.fatigue_damage += 1
            return DrawResult(DrawOutcome.FATIGUE, fatigue_damage=damage)

        card = self.deck.pop(0)
        if self.hand_full:
            self.graveyard.append(card)
            return DrawResult(DrawOutcome.BURNED, card=card)

        self.hand.append(card)
        return DrawResult(DrawOutcome.DRAWN, card=card)

    def draw_card(self) -> CardInstance | None:
        """Draw and return the card, or None if it was burned or the deck was empty."""
        result = self.draw()
        return result.card if result.outcome == DrawOutcome.DRAWN else None

    def start_turn(self) -> None:
        self.turn_count += 1
        self.max_mana = min(self.mana_cap, self.turn_count)
        self.mana = self.max_mana

    def spend_mana(self, amount: int) -> bool:
        if amount < 0 or amount > self.mana:
            return False
        self.mana -= amount
        return True

    # ------------------------------------------------------------------
    # Cost reductions
    # ------------------------------------------------------------------

    def add_cost_reduction(self, archetype: str, amount: int) -> int:
        """Accumulate a reduction for the next card of `archetype`. Returns the new total."""
        total = self.cost_reductions.get(archetype, 0) + amount
        self.cost_reductions[archetype] = total
        return total

    def get_cost_reduction(self, archetype: str) -> int:
        return self.cost_reductions.get(archetype, 0)

    def use_cost_reduction(self, archetype: str) -> int:
        """Consume the whole reduction for `archetype`, even if only part of it applied."""
        return self.cost_reductions.pop(archetype, 0)

    def effective_cost(self, card: CardInstance) -> int:
        return max(0, card.cost - self.get_cost_reduction(card.archetype))

    # ------------------------------------------------------------------
    # Status effects
    # ------------------------------------------------------------------

    def add_status_effect(self, key: str, value: Any) -> None:
        self.status_effects[key] = value

    def has_status_effect(self, key: str) -> bool:
        return key in self.status_effects

    def remove_status_effect(self, key: str) -> Any:
        return self.status_effects.pop(key, None)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_unit(self, unit_id: str) -> Unit | None:
        for unit in self.units:
            if unit.unit_id == unit_id:
                return unit
        return None

    def hand_index_of(self, instance_id: str) -> int | None:
        for i, card in enumerate(self.hand):
            if card.instance_id == instance_id:
                return i
        return None

    def graveyard_index_of(self, instance_id: str) -> int | None:
        for i, card in enumerate(self.graveyard):
            if card.instance_id == instance_id:
                return i
        return None
