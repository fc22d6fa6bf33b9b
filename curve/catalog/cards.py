"""
Base Cards - The card set every catalog starts from.

Card structure:
- Cost (0-10)
- Kind (unit or spell)
- Archetype (Neutral, Nether, Nature, Divine, Shadow, Tech)
- Attack / health for units
- Effects (declared in the effect DSL)
"""

from ..card_schema.card_def import CardDefinition, CardKind, Rarity
from ..card_schema.effect_dsl import (
    EffectAction,
    EffectArea,
    TargetFilter,
    TargetSelector,
    deathblow,
    deathstrike,
    strike,
    taunt,
    warshout,
    Effect,
    EffectTrigger,
)


# ============================================================================
# Neutral
# ============================================================================

KRIPER = CardDefinition(
    id="kriper",
    name="Kriper",
    cost=1,
    kind=CardKind.UNIT,
    archetype="Neutral",
    rarity=Rarity.COMMON,
    attack=1,
    health=1,
    description="A basic unit.",
    icon="🦎",
)

MERCENARY = CardDefinition(
    id="mercenary",
    name="Mercenary",
    cost=2,
    archetype="Neutral",
    rarity=Rarity.COMMON,
    attack=2,
    health=2,
    description="A reliable fighter.",
    icon="⚔️",
)

GUARD = CardDefinition(
    id="guard",
    name="Guard",
    cost=3,
    archetype="Neutral",
    rarity=Rarity.COMMON,
    attack=2,
    health=4,
    effects=(taunt(),),
    description="Taunt. Enemies must attack this unit first.",
    icon="🛡️",
)

WARCHIEF = CardDefinition(
    id="warchief",
    name="Warchief",
    cost=5,
    archetype="Neutral",
    rarity=Rarity.RARE,
    attack=3,
    health=3,
    effects=(
        warshout(TargetSelector.ALLY, EffectAction.BUFF, 1, area=EffectArea.ALL),
    ),
    description="Warshout: Give all other friendly units +1/+1.",
    icon="👑",
)

TITAN = CardDefinition(
    id="titan",
    name="Titan",
    cost=6,
    archetype="Neutral",
    rarity=Rarity.EPIC,
    attack=6,
    health=6,
    description="A massive unit.",
    icon="🗿",
)

# ============================================================================
# Nether
# ============================================================================

# No explicit action: resolves through the DAMAGE fallback.
BERSERKER = CardDefinition(
    id="berserker",
    name="Berserker",
    cost=4,
    archetype="Nether",
    rarity=Rarity.RARE,
    attack=4,
    health=3,
    effects=(
        Effect(EffectTrigger.STRIKE, target=TargetSelector.ENEMY, value=1),
    ),
    description="Strike: Deal 1 extra damage to the defender.",
    icon="🗡️",
)

RITUALIST = CardDefinition(
    id="ritualist",
    name="Ritualist",
    cost=1,
    archetype="Nether",
    rarity=Rarity.COMMON,
    attack=1,
    health=1,
    effects=(
        warshout(
            TargetSelector.SELF,
            EffectAction.REDUCE_COST,
            2,
            filter=TargetFilter(archetype="Nether"),
        ),
    ),
    description="Warshout: Your next Nether card costs (2) less.",
    icon="🕯️",
)

SOUL_REAPER = CardDefinition(
    id="soul_reaper",
    name="Soul Reaper",
    cost=4,
    archetype="Nether",
    rarity=Rarity.EPIC,
    attack=3,
    health=3,
    effects=(deathstrike(EffectAction.BUFF, 1),),
    description="Deathstrike: Gain +1/+1.",
    icon="💀",
)

# ============================================================================
# Nature / Divine / Shadow / Tech
# ============================================================================

THORNWEAVER = CardDefinition(
    id="thornweaver",
    name="Thornweaver",
    cost=2,
    archetype="Nature",
    rarity=Rarity.RARE,
    attack=1,
    health=3,
    effects=(
        warshout(
            TargetSelector.ENEMY,
            EffectAction.ROOT,
            1,
            requires_targeting=True,
            yar=True,
        ),
    ),
    description="Warshout: Root an enemy unit in your area for 1 turn.",
    icon="🌿",
)

CLERIC = CardDefinition(
    id="cleric",
    name="Cleric",
    cost=3,
    archetype="Divine",
    rarity=Rarity.COMMON,
    attack=2,
    health=3,
    effects=(warshout(TargetSelector.ALLY, EffectAction.HEAL, 2),),
    description="Warshout: Restore 2 health to all other friendly units.",
    icon="✨",
)

SHADE = CardDefinition(
    id="shade",
    name="Shade",
    cost=2,
    archetype="Shadow",
    rarity=Rarity.COMMON,
    attack=2,
    health=1,
    effects=(deathblow(EffectAction.DAMAGE, 1, target=TargetSelector.ENEMY),),
    description="Deathblow: Deal 1 damage to the unit that killed this.",
    icon="👤",
)

BATTERING_RAM = CardDefinition(
    id="battering_ram",
    name="Battering Ram",
    cost=3,
    archetype="Tech",
    rarity=Rarity.COMMON,
    attack=2,
    health=2,
    effects=(strike(EffectAction.PUSH, 1),),
    description="Strike: Push the defender back 1 tile.",
    icon="🐏",
)


BASE_CARDS: tuple[CardDefinition, ...] = (
    KRIPER,
    MERCENARY,
    GUARD,
    BERSERKER,
    WARCHIEF,
    TITAN,
    RITUALIST,
    SOUL_REAPER,
    THORNWEAVER,
    CLERIC,
    SHADE,
    BATTERING_RAM,
)


def get_card_by_id(card_id: str) -> CardDefinition | None:
    """Look up a base card by ID."""
    for card in BASE_CARDS:
        if card.id == card_id:
            return card
    return None
