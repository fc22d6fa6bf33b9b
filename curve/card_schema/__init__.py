"""Card schema - effect DSL, card definitions and validation."""

from .card_def import CardDefinition, CardInstance, CardKind, Rarity
from .effect_dsl import (
    Effect,
    EffectAction,
    EffectArea,
    EffectTrigger,
    FilterController,
    FilterLocation,
    TargetFilter,
    TargetSelector,
)
from .validation import (
    validate_card,
    validate_deck,
    CardValidationError,
    DeckValidationError,
)

__all__ = [
    "CardDefinition",
    "CardInstance",
    "CardKind",
    "Rarity",
    "Effect",
    "EffectAction",
    "EffectArea",
    "EffectTrigger",
    "FilterController",
    "FilterLocation",
    "TargetFilter",
    "TargetSelector",
    "validate_card",
    "validate_deck",
    "CardValidationError",
    "DeckValidationError",
]
