"""
Catalog - The cards a match can use.

This module contains:
- The base card set
- The immutable CardCatalog registry
- Deck assembly from presets or custom descriptions
"""

from .cards import BASE_CARDS, get_card_by_id
from .registry import CardCatalog
from .decks import (
    AssembledDeck,
    DeckBuilder,
    DeckEntry,
    DeckKind,
    DeckSource,
    AGGRO_PRESET,
    CONTROL_PRESET,
    STARTER_PRESET,
    PRESET_NAMES,
)

__all__ = [
    "BASE_CARDS",
    "get_card_by_id",
    "CardCatalog",
    "AssembledDeck",
    "DeckBuilder",
    "DeckEntry",
    "DeckKind",
    "DeckSource",
    "AGGRO_PRESET",
    "CONTROL_PRESET",
    "STARTER_PRESET",
    "PRESET_NAMES",
]
