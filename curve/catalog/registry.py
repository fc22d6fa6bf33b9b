"""
Card Catalog - Immutable registry of card definitions.

The catalog is built once at game setup from the base set plus any
user-authored cards. Adding cards returns a new catalog.
"""

from __future__ import annotations
from typing import Iterable, Iterator
import logging

from ..card_schema.card_def import CardDefinition
from .cards import BASE_CARDS

logger = logging.getLogger(__name__)


class CardCatalog:
    """Maps card IDs to definitions. Never mutated after construction."""

    def __init__(self, cards: Iterable[CardDefinition] = ()):
        entries: dict[str, CardDefinition] = {}
        for card in cards:
            if card.id in entries:
                logger.warning("Duplicate card id %r in catalog; later definition wins", card.id)
            entries[card.id] = card
        self._cards = entries

    @classmethod
    def default(cls, custom_cards: Iterable[CardDefinition] = ()) -> CardCatalog:
        """Base set plus optional user-authored cards."""
        return cls([*BASE_CARDS, *custom_cards])

    def get(self, card_id: str) -> CardDefinition | None:
        return self._cards.get(card_id)

    def require(self, card_id: str) -> CardDefinition:
        """Get a card or raise KeyError."""
        card = self._cards.get(card_id)
        if card is None:
            raise KeyError(f"Unknown card id: {card_id}")
        return card

    def all_cards(self) -> list[CardDefinition]:
        return list(self._cards.values())

    def with_cards(self, cards: Iterable[CardDefinition]) -> CardCatalog:
        """Return new catalog with extra cards added."""
        return CardCatalog([*self._cards.values(), *cards])

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __iter__(self) -> Iterator[CardDefinition]:
        return iter(self._cards.values())

    def __len__(self) -> int:
        return len(self._cards)
