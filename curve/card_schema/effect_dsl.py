"""
Effect DSL - Declarative card effects.

An effect declaration says:
- When it fires (trigger)
- Who it can hit (target selector + optional filter)
- What it does (action, explicit or inferred from the trigger)
- How much (value)

Declarations are immutable. The EffectResolver interprets them against
a live game state.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class EffectTrigger(Enum):
    """When an effect fires."""
    WARSHOUT = "WARSHOUT"  # Unit enters play
    STRIKE = "STRIKE"  # Unit attacks
    DEATHBLOW = "DEATHBLOW"  # Unit dies
    DEATHSTRIKE = "DEATHSTRIKE"  # Unit kills an enemy
    TAUNT = "TAUNT"  # Passive: enemies must attack this unit

    # Legacy trigger types. They never fire on their own but
    # still drive action inference for older card data.
    SACRIFICE = "SACRIFICE"
    SUMMON = "SUMMON"
    DRAW = "DRAW"
    BUFF = "BUFF"
    DAMAGE = "DAMAGE"
    HEAL = "HEAL"


class TargetSelector(Enum):
    """Candidate pool for an effect."""
    SELF = "SELF"
    ALLY = "ALLY"
    ENEMY = "ENEMY"
    ANY = "ANY"
    ALL = "ALL"


class EffectAction(Enum):
    """What an effect does when it resolves."""
    DAMAGE = "DAMAGE"
    HEAL = "HEAL"
    DRAW = "DRAW"
    BUFF = "BUFF"
    SUMMON = "SUMMON"
    ROOT = "ROOT"
    REDUCE_COST = "REDUCE_COST"
    PUSH = "PUSH"
    PULL = "PULL"
    TELEPORT = "TELEPORT"
    DISCARD = "DISCARD"
    RETURN_TO_HAND = "RETURN_TO_HAND"
    RESURRECT = "RESURRECT"
    STUN = "STUN"


class EffectArea(Enum):
    """Area hint for multi-target effects."""
    SINGLE = "single"
    ALL = "all"
    ADJACENT = "adjacent"
    ROW = "row"
    COLUMN = "column"


class FilterLocation(Enum):
    FIELD = "field"
    HAND = "hand"
    GRAVEYARD = "graveyard"


class FilterController(Enum):
    SELF = "SELF"
    ENEMY = "ENEMY"
    ANY = "ANY"


# Actions that operate on a unit on the board. Non-interactive effects
# with one of these actions hit every valid target.
UNIT_ACTIONS = frozenset({
    EffectAction.DAMAGE,
    EffectAction.HEAL,
    EffectAction.BUFF,
    EffectAction.ROOT,
    EffectAction.PUSH,
    EffectAction.PULL,
    EffectAction.TELEPORT,
    EffectAction.STUN,
})

# Actions scoped to the acting player rather than a target.
PLAYER_ACTIONS = frozenset({
    EffectAction.DRAW,
    EffectAction.REDUCE_COST,
})

_INFERRED_ACTIONS = {
    EffectTrigger.DAMAGE: EffectAction.DAMAGE,
    EffectTrigger.HEAL: EffectAction.HEAL,
    EffectTrigger.BUFF: EffectAction.BUFF,
    EffectTrigger.DRAW: EffectAction.DRAW,
    EffectTrigger.SUMMON: EffectAction.SUMMON,
}


@dataclass(frozen=True)
class TargetFilter:
    """
    Narrows the candidate pool of an effect.

    Every bound is optional; an empty filter matches everything.
    """
    card_type: str | None = None  # "UNIT" / "SPELL"
    archetype: str | None = None
    min_cost: int | None = None
    max_cost: int | None = None
    min_attack: int | None = None
    max_attack: int | None = None
    min_health: int | None = None
    max_health: int | None = None
    has_effect: EffectTrigger | None = None
    location: FilterLocation | None = None
    controller: FilterController | None = None
    in_yar: bool = False
    is_rooted: bool | None = None


@dataclass(frozen=True)
class Effect:
    """
    A single effect declaration on a card.

    If `action` is unset it is inferred from the trigger, falling back
    to DAMAGE. Card authors should always set it explicitly.
    """
    trigger: EffectTrigger
    target: TargetSelector = TargetSelector.SELF
    value: int | None = None
    action: EffectAction | None = None
    filter: TargetFilter | None = None
    requires_targeting: bool = False
    area: EffectArea | None = None
    yar: bool = False  # Your Area of Ruling restriction

    @property
    def resolved_action(self) -> EffectAction:
        """The explicit action, or the one inferred from the trigger."""
        if self.action is not None:
            return self.action
        return _INFERRED_ACTIONS.get(self.trigger, EffectAction.DAMAGE)

    @property
    def uses_damage_fallback(self) -> bool:
        """True when neither the action nor the trigger names what to do."""
        return self.action is None and self.trigger not in _INFERRED_ACTIONS

    @property
    def yar_restricted(self) -> bool:
        return self.yar or bool(self.filter and self.filter.in_yar)

    @property
    def hits_all_targets(self) -> bool:
        return self.area == EffectArea.ALL or self.target == TargetSelector.ALL


# ============================================================================
# Factory functions for common effect patterns
# ============================================================================

def warshout(
    target: TargetSelector,
    action: EffectAction,
    value: int | None = None,
    **kwargs,
) -> Effect:
    """On-play effect."""
    return Effect(EffectTrigger.WARSHOUT, target=target, action=action, value=value, **kwargs)


def strike(
    action: EffectAction,
    value: int | None = None,
    target: TargetSelector = TargetSelector.ENEMY,
    **kwargs,
) -> Effect:
    """On-attack effect; the defender is always the target."""
    return Effect(EffectTrigger.STRIKE, target=target, action=action, value=value, **kwargs)


def deathblow(
    action: EffectAction,
    value: int | None = None,
    target: TargetSelector = TargetSelector.SELF,
    **kwargs,
) -> Effect:
    """On-death effect."""
    return Effect(EffectTrigger.DEATHBLOW, target=target, action=action, value=value, **kwargs)


def deathstrike(
    action: EffectAction,
    value: int | None = None,
    target: TargetSelector = TargetSelector.SELF,
    **kwargs,
) -> Effect:
    """On-kill effect."""
    return Effect(EffectTrigger.DEATHSTRIKE, target=target, action=action, value=value, **kwargs)


def taunt() -> Effect:
    """Passive taunt marker."""
    return Effect(EffectTrigger.TAUNT, target=TargetSelector.SELF)
