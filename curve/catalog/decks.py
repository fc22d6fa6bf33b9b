"""
Deck Assembly - Builds ordered card lists for a player.

This module handles:
- Preset decks (balanced starter, aggro, control)
- Custom decks from a card + quantity description
- Padding short decks and trimming long ones

Decks are assumed to be validated by the authoring tools already;
the builder only repairs what would break game setup.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Sequence
import logging

from ..card_schema.card_def import CardDefinition, CardInstance, Rarity
from ..card_schema.effect_dsl import EffectTrigger
from ..card_schema.validation import MIN_DECK_SIZE, MAX_DECK_SIZE
from .registry import CardCatalog

logger = logging.getLogger(__name__)


class DeckKind(Enum):
    PRESET = "preset"
    CUSTOM = "custom"


STARTER_PRESET = "balanced-starter"
AGGRO_PRESET = "aggro-rush"
CONTROL_PRESET = "control-defense"

PRESET_NAMES = {
    STARTER_PRESET: "Balanced Starter",
    AGGRO_PRESET: "Aggro Rush",
    CONTROL_PRESET: "Control Defense",
}


@dataclass(frozen=True)
class DeckEntry:
    """
    One line of a custom deck description.

    `card` carries stored card data for user-authored cards that may
    no longer be in the catalog.
    """
    card_id: str
    quantity: int = 1
    card: CardDefinition | None = None


@dataclass(frozen=True)
class DeckSource:
    """Where a player's deck comes from."""
    kind: DeckKind = DeckKind.PRESET
    deck_id: str = STARTER_PRESET
    name: str | None = None
    entries: tuple[DeckEntry, ...] = ()

    @classmethod
    def preset(cls, deck_id: str = STARTER_PRESET) -> DeckSource:
        return cls(kind=DeckKind.PRESET, deck_id=deck_id)

    @classmethod
    def custom(
        cls, entries: Sequence[DeckEntry], name: str = "Custom Deck", deck_id: str = "custom"
    ) -> DeckSource:
        return cls(kind=DeckKind.CUSTOM, deck_id=deck_id, name=name, entries=tuple(entries))


@dataclass
class AssembledDeck:
    """A deck ready to hand to a player (unshuffled)."""
    deck_id: str
    name: str
    cards: list[CardInstance] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.cards)


class DeckBuilder:
    """
    Builds decks from a catalog.

    Instance IDs are unique per builder, so one builder should create
    both players' decks for a match.
    """

    def __init__(
        self,
        catalog: CardCatalog,
        min_size: int = MIN_DECK_SIZE,
        max_size: int = MAX_DECK_SIZE,
        padding_card_id: str = "kriper",
    ):
        self.catalog = catalog
        self.min_size = min_size
        self.max_size = max_size
        self.padding_card_id = padding_card_id
        self._ids = count(1)

    def build(self, source: DeckSource) -> AssembledDeck:
        """Assemble the deck described by `source`."""
        if source.kind == DeckKind.CUSTOM:
            definitions = self._custom_definitions(source.entries)
            name = source.name or "Custom Deck"
        else:
            definitions = self._preset_definitions(source.deck_id)
            name = source.name or PRESET_NAMES.get(source.deck_id, "Starter Deck")

        definitions = self._fit_size(definitions, name)
        cards = [self._instance(card) for card in definitions]
        logger.info("Assembled deck %r with %d cards", name, len(cards))
        return AssembledDeck(deck_id=source.deck_id, name=name, cards=cards)

    def starter(self) -> list[CardDefinition]:
        """Commons x3, rares x2, everything else x1."""
        deck = []
        for card in self.catalog:
            if card.rarity == Rarity.COMMON:
                copies = 3
            elif card.rarity == Rarity.RARE:
                copies = 2
            else:
                copies = 1
            deck.extend([card] * copies)
        return deck

    def aggro(self) -> list[CardDefinition]:
        """Cheap units x3, mid-cost x2."""
        deck = []
        for card in self.catalog:
            if card.cost <= 3:
                deck.extend([card] * 3)
        for card in self.catalog:
            if card.cost in (4, 5):
                deck.extend([card] * 2)
        return deck

    def control(self) -> list[CardDefinition]:
        """Taunts and expensive units x3, the rest x2."""
        deck = []
        for card in self.catalog:
            if card.has_trigger(EffectTrigger.TAUNT) or card.cost >= 5:
                copies = 3
            else:
                copies = 2
            deck.extend([card] * copies)
        return deck

    def _preset_definitions(self, deck_id: str) -> list[CardDefinition]:
        presets = {
            STARTER_PRESET: self.starter,
            AGGRO_PRESET: self.aggro,
            CONTROL_PRESET: self.control,
        }
        factory = presets.get(deck_id)
        if factory is None:
            logger.warning("Unknown preset deck %r, using starter deck", deck_id)
            factory = self.starter
        return factory()

    def _custom_definitions(self, entries: Sequence[DeckEntry]) -> list[CardDefinition]:
        deck = []
        for entry in entries:
            card = self.catalog.get(entry.card_id)
            if card is None and entry.card is not None:
                logger.info("Using stored card data for %r", entry.card_id)
                card = entry.card
            if card is None:
                logger.error("Could not find or reconstruct card %r; skipping", entry.card_id)
                continue
            deck.extend([card] * max(0, entry.quantity))
        return deck

    def _fit_size(self, deck: list[CardDefinition], name: str) -> list[CardDefinition]:
        if len(deck) < self.min_size:
            padding = self.catalog.get(self.padding_card_id)
            if padding is None:
                logger.error(
                    "Deck %r is short and padding card %r is missing",
                    name, self.padding_card_id,
                )
                return deck
            logger.warning(
                "Deck %r has only %d cards, padding with %s", name, len(deck), padding.name
            )
            deck = deck + [padding] * (self.min_size - len(deck))
        elif len(deck) > self.max_size:
            logger.warning("Deck %r has %d cards, trimming to %d", name, len(deck), self.max_size)
            deck = deck[: self.max_size]
        return deck

    def _instance(self, card: CardDefinition) -> CardInstance:
        return CardInstance(definition=card, instance_id=f"{card.id}#{next(self._ids)}")
