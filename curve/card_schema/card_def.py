"""
Card Definitions - Immutable catalog entries.

A CardDefinition is never mutated after creation. Decks and hands hold
CardInstance wrappers that point at a definition.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .effect_dsl import Effect, EffectTrigger


class CardKind(Enum):
    UNIT = "UNIT"
    SPELL = "SPELL"


class Rarity(Enum):
    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


@dataclass(frozen=True)
class CardDefinition:
    """
    Definition of a card.

    attack/health are only meaningful for units.
    """
    id: str
    name: str
    cost: int
    kind: CardKind = CardKind.UNIT
    archetype: str = "Neutral"
    rarity: Rarity = Rarity.COMMON
    attack: int | None = None
    health: int | None = None
    effects: tuple[Effect, ...] = field(default_factory=tuple)
    description: str = ""
    icon: str = ""

    @property
    def is_unit(self) -> bool:
        return self.kind == CardKind.UNIT

    def has_trigger(self, trigger: EffectTrigger) -> bool:
        return any(e.trigger == trigger for e in self.effects)

    def effects_for(self, trigger: EffectTrigger) -> list[Effect]:
        return [e for e in self.effects if e.trigger == trigger]


@dataclass(frozen=True)
class CardInstance:
    """
    A card in a deck, hand or graveyard.

    Note: This is a runtime instance, not the definition.
    Two copies of the same card share a definition but not an instance_id.
    """
    definition: CardDefinition
    instance_id: str

    @property
    def card_id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def cost(self) -> int:
        return self.definition.cost

    @property
    def kind(self) -> CardKind:
        return self.definition.kind

    @property
    def archetype(self) -> str:
        return self.definition.archetype
