"""
Card and Deck Validation.

Validates that:
1. Card basics are sane (name, cost range, unit stats)
2. Effect triggers are paired with compatible actions
3. Decks respect size and copy limits

Deck legality is normally enforced before a deck reaches the engine;
these helpers are what the authoring tools and the CLI call.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from .card_def import CardDefinition, CardKind, Rarity
from .effect_dsl import Effect, EffectAction, EffectTrigger, TargetSelector


MIN_DECK_SIZE = 20
MAX_DECK_SIZE = 30
MAX_COPIES = 3
MAX_LEGENDARY_COPIES = 1


class CardValidationError(Exception):
    """Raised when card validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Card validation failed with {len(errors)} error(s)")


class DeckValidationError(Exception):
    """Raised when deck validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Deck validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class CardValidationResult(ValidationResult):
    power_level: int = 1  # 1-10
    complexity: int = 1  # 1-5


# Which actions each trigger may carry
TRIGGER_COMPATIBILITY: dict[EffectTrigger, frozenset[EffectAction]] = {
    EffectTrigger.WARSHOUT: frozenset({
        EffectAction.DAMAGE, EffectAction.HEAL, EffectAction.BUFF,
        EffectAction.DRAW, EffectAction.SUMMON, EffectAction.ROOT,
        EffectAction.REDUCE_COST, EffectAction.TELEPORT,
    }),
    EffectTrigger.STRIKE: frozenset({
        EffectAction.DAMAGE, EffectAction.HEAL, EffectAction.PUSH, EffectAction.ROOT,
    }),
    EffectTrigger.DEATHBLOW: frozenset({
        EffectAction.DAMAGE, EffectAction.RESURRECT, EffectAction.RETURN_TO_HAND,
        EffectAction.BUFF,
    }),
    EffectTrigger.DEATHSTRIKE: frozenset({
        EffectAction.HEAL, EffectAction.BUFF, EffectAction.DRAW,
    }),
    EffectTrigger.TAUNT: frozenset(),
    EffectTrigger.SACRIFICE: frozenset({
        EffectAction.DAMAGE, EffectAction.HEAL, EffectAction.BUFF, EffectAction.SUMMON,
    }),
    EffectTrigger.SUMMON: frozenset({EffectAction.SUMMON}),
    EffectTrigger.DRAW: frozenset({EffectAction.DRAW}),
    EffectTrigger.BUFF: frozenset({EffectAction.BUFF}),
    EffectTrigger.DAMAGE: frozenset({EffectAction.DAMAGE}),
    EffectTrigger.HEAL: frozenset({EffectAction.HEAL}),
}

_VALUE_ACTIONS = frozenset({
    EffectAction.DAMAGE, EffectAction.HEAL, EffectAction.BUFF,
    EffectAction.DRAW, EffectAction.ROOT, EffectAction.REDUCE_COST,
    EffectAction.PUSH, EffectAction.PULL, EffectAction.RESURRECT,
    EffectAction.RETURN_TO_HAND,
})

_YAR_ACTIONS = frozenset({
    EffectAction.DAMAGE, EffectAction.HEAL, EffectAction.BUFF, EffectAction.ROOT,
})

_EFFECT_POWER = {
    EffectAction.DAMAGE: 1.5,
    EffectAction.HEAL: 1.0,
    EffectAction.BUFF: 2.0,
    EffectAction.DRAW: 2.5,
    EffectAction.RESURRECT: 3.0,
    EffectAction.ROOT: 1.5,
    EffectAction.REDUCE_COST: 2.0,
}


def validate_card(card: CardDefinition, raise_on_error: bool = False) -> CardValidationResult:
    """
    Validate a single card definition.

    Returns CardValidationResult with errors, warnings and balance scores.
    Raises CardValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not card.name or not card.name.strip():
        errors.append("Card must have a name")
    if card.cost < 0 or card.cost > 10:
        errors.append("Card cost must be between 0 and 10")

    if card.kind == CardKind.UNIT:
        if card.attack is None or card.attack < 0:
            errors.append("Unit must have non-negative attack")
        if card.health is None or card.health < 1:
            errors.append("Unit must have at least 1 health")

    for index, effect in enumerate(card.effects, start=1):
        effect_errors, effect_warnings = _check_effect(effect)
        errors.extend(f"Effect {index}: {e}" for e in effect_errors)
        warnings.extend(f"Effect {index}: {w}" for w in effect_warnings)

    triggers = Counter(e.trigger for e in card.effects)
    duplicates = sorted(t.value for t, n in triggers.items() if n > 1)
    if duplicates:
        warnings.append(f"Duplicate effect types: {', '.join(duplicates)}")

    power = calculate_power_level(card)
    complexity = calculate_complexity(card)
    warnings.extend(_balance_warnings(card, power, complexity))

    if errors and raise_on_error:
        raise CardValidationError(errors)

    return CardValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        power_level=power,
        complexity=complexity,
    )


def _check_effect(effect: Effect) -> tuple[list[str], list[str]]:
    errors: list[str] = []
    warnings: list[str] = []

    if effect.action is not None:
        allowed = TRIGGER_COMPATIBILITY.get(effect.trigger, frozenset())
        if effect.action not in allowed:
            errors.append(
                f"{effect.trigger.value} is not compatible with {effect.action.value} action"
            )
        if effect.action in _VALUE_ACTIONS and not effect.value:
            warnings.append("May need a value property")
        if effect.yar_restricted and effect.action not in _YAR_ACTIONS:
            warnings.append("YAR may not work with this action")
    elif effect.trigger != EffectTrigger.TAUNT:
        warnings.append("No action set; it will be inferred from the trigger")

    return errors, warnings


def calculate_power_level(card: CardDefinition) -> int:
    """Rough 1-10 strength estimate relative to cost. Spells score 1."""
    if card.kind != CardKind.UNIT:
        return 1

    stat_total = (card.attack or 0) + (card.health or 0)
    expected = card.cost * 2 + 1
    power = min(10.0, max(1.0, 5.0 + (stat_total - expected)))
    for effect in card.effects:
        power += _effect_power(effect)
    power = round(power * (10 / max(1, card.cost)))
    return int(min(10, max(1, power)))


def _effect_power(effect: Effect) -> float:
    base = _EFFECT_POWER.get(effect.action, 1.0) if effect.action else 1.0
    if effect.target == TargetSelector.ALL:
        target_mult = 2.0
    elif effect.target == TargetSelector.ALLY:
        target_mult = 1.5
    else:
        target_mult = 1.0
    return base * (effect.value or 1) * target_mult


def calculate_complexity(card: CardDefinition) -> int:
    """1-5 rules-text complexity."""
    complexity = 1.0 + len(card.effects)
    for effect in card.effects:
        if effect.requires_targeting:
            complexity += 0.5
        if effect.trigger in (EffectTrigger.STRIKE, EffectTrigger.DEATHSTRIKE):
            complexity += 0.5
        if effect.yar_restricted:
            complexity += 0.5
    return int(min(5, round(complexity)))


def _balance_warnings(card: CardDefinition, power: int, complexity: int) -> list[str]:
    warnings = []
    if power > 8:
        warnings.append("This card may be overpowered for its cost")
    if power < 3 and card.cost > 2:
        warnings.append("This card may be underpowered for its cost")
    if complexity > 3 and card.cost < 3:
        warnings.append("Complex effects on low-cost cards can be problematic")

    has_resurrect = any(e.action == EffectAction.RESURRECT for e in card.effects)
    if has_resurrect and card.has_trigger(EffectTrigger.DEATHBLOW):
        warnings.append("Resurrect + Deathblow can create infinite loops - use carefully")
    return warnings


def validate_deck(
    cards: Sequence[CardDefinition],
    min_size: int = MIN_DECK_SIZE,
    max_size: int = MAX_DECK_SIZE,
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate deck size and copy limits.

    At most one copy of a Legendary, at most three of anything else.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if len(cards) < min_size:
        errors.append(f"Deck has only {len(cards)} cards (minimum {min_size})")
    if len(cards) > max_size:
        errors.append(f"Deck has {len(cards)} cards (maximum {max_size})")

    counts = Counter(card.id for card in cards)
    by_id = {card.id: card for card in cards}
    for card_id, count in sorted(counts.items()):
        card = by_id[card_id]
        if card.rarity == Rarity.LEGENDARY and count > MAX_LEGENDARY_COPIES:
            errors.append(f"Too many copies of legendary card: {card.name}")
        elif card.rarity != Rarity.LEGENDARY and count > MAX_COPIES:
            errors.append(f"Too many copies of {card.name} (max {MAX_COPIES})")

    if not any(card.is_unit for card in cards):
        warnings.append("Deck contains no units")

    if errors and raise_on_error:
        raise DeckValidationError(errors)

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
