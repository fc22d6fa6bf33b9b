"""
Pydantic Schemas - Request/response models for UI collaborators.

These models define the contract between the renderer/menu layers and
the engine. Card and deck models also parse authored JSON files.

Error Codes (CommandResponse.error_code):
- GAME_OVER: the match has ended
- WRONG_PHASE: the command is not allowed in the current phase
- AUTOMATIC_PHASE_PENDING: DRAW/ADVANCE still running
- TARGETING_ACTIVE: an interactive effect is waiting for a target
- NO_GAME: no match has been created yet
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field, field_validator

from ..card_schema.card_def import CardDefinition, CardInstance, CardKind, Rarity
from ..card_schema.effect_dsl import (
    Effect,
    EffectAction,
    EffectArea,
    EffectTrigger,
    FilterController,
    FilterLocation,
    TargetFilter,
    TargetSelector,
)
from ..catalog.decks import DeckEntry, DeckKind, DeckSource, STARTER_PRESET
from ..engine_core.board import Position


# =============================================================================
# Enums
# =============================================================================

class DeckType(str, Enum):
    """Where a deck description comes from."""
    PRESET = "preset"
    CUSTOM = "custom"


def _upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


# =============================================================================
# Card Models
# =============================================================================

class TargetFilterModel(BaseModel):
    """Authored target filter."""
    card_type: Optional[str] = Field(None, description="UNIT or SPELL")
    archetype: Optional[str] = None
    min_cost: Optional[int] = None
    max_cost: Optional[int] = None
    min_attack: Optional[int] = None
    max_attack: Optional[int] = None
    min_health: Optional[int] = None
    max_health: Optional[int] = None
    has_effect: Optional[EffectTrigger] = None
    location: Optional[FilterLocation] = None
    controller: Optional[FilterController] = None
    in_yar: bool = False
    is_rooted: Optional[bool] = None

    model_config = {"from_attributes": True}

    @field_validator("has_effect", "controller", mode="before")
    @classmethod
    def _uppercase(cls, value):
        return _upper(value)

    def to_filter(self) -> TargetFilter:
        return TargetFilter(**self.model_dump())


class EffectModel(BaseModel):
    """Authored effect declaration."""
    trigger: EffectTrigger
    target: TargetSelector = TargetSelector.SELF
    value: Optional[int] = None
    action: Optional[EffectAction] = None
    filter: Optional[TargetFilterModel] = None
    requires_targeting: bool = False
    area: Optional[EffectArea] = None
    yar: bool = False

    model_config = {"from_attributes": True}

    @field_validator("trigger", "target", "action", mode="before")
    @classmethod
    def _uppercase(cls, value):
        return _upper(value)

    @field_validator("area", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.lower() if isinstance(value, str) else value

    def to_effect(self) -> Effect:
        return Effect(
            trigger=self.trigger,
            target=self.target,
            value=self.value,
            action=self.action,
            filter=self.filter.to_filter() if self.filter else None,
            requires_targeting=self.requires_targeting,
            area=self.area,
            yar=self.yar,
        )


class CardDefinitionModel(BaseModel):
    """A card as authored or stored. Converts to an immutable CardDefinition."""
    id: str
    name: str = ""
    cost: int = Field(0, ge=0, le=10)
    kind: CardKind = Field(CardKind.UNIT, alias="type")
    archetype: str = "Neutral"
    rarity: Rarity = Rarity.COMMON
    attack: Optional[int] = None
    health: Optional[int] = None
    effects: list[EffectModel] = Field(default_factory=list)
    description: str = ""
    icon: str = ""

    model_config = {"from_attributes": True, "populate_by_name": True}

    @field_validator("kind", "rarity", mode="before")
    @classmethod
    def _uppercase(cls, value):
        return _upper(value)

    def to_definition(self) -> CardDefinition:
        return CardDefinition(
            id=self.id,
            name=self.name,
            cost=self.cost,
            kind=self.kind,
            archetype=self.archetype,
            rarity=self.rarity,
            attack=self.attack,
            health=self.health,
            effects=tuple(e.to_effect() for e in self.effects),
            description=self.description,
            icon=self.icon,
        )

    @classmethod
    def from_definition(cls, card: CardDefinition) -> "CardDefinitionModel":
        return cls(
            id=card.id,
            name=card.name,
            cost=card.cost,
            kind=card.kind,
            archetype=card.archetype,
            rarity=card.rarity,
            attack=card.attack,
            health=card.health,
            effects=[
                EffectModel(
                    trigger=e.trigger,
                    target=e.target,
                    value=e.value,
                    action=e.action,
                    filter=TargetFilterModel.model_validate(e.filter) if e.filter else None,
                    requires_targeting=e.requires_targeting,
                    area=e.area,
                    yar=e.yar,
                )
                for e in card.effects
            ],
            description=card.description,
            icon=card.icon,
        )


# =============================================================================
# Deck Models
# =============================================================================

class DeckEntryModel(BaseModel):
    """One line of a custom deck."""
    card_id: str
    quantity: int = Field(1, ge=1, le=30)
    card: Optional[CardDefinitionModel] = Field(
        None, description="Stored card data used when the id is not in the catalog"
    )

    def to_entry(self) -> DeckEntry:
        return DeckEntry(
            card_id=self.card_id,
            quantity=self.quantity,
            card=self.card.to_definition() if self.card else None,
        )


class DeckSourceModel(BaseModel):
    """A preset id or a custom card list."""
    deck_type: DeckType = DeckType.PRESET
    deck_id: str = STARTER_PRESET
    name: Optional[str] = None
    cards: list[DeckEntryModel] = Field(default_factory=list)

    def to_source(self) -> DeckSource:
        if self.deck_type == DeckType.CUSTOM:
            return DeckSource.custom(
                [entry.to_entry() for entry in self.cards],
                name=self.name or "Custom Deck",
                deck_id=self.deck_id,
            )
        return DeckSource(kind=DeckKind.PRESET, deck_id=self.deck_id, name=self.name)


# =============================================================================
# Request Models
# =============================================================================

class GameSetupRequest(BaseModel):
    """Everything needed to start a match."""
    player_names: list[str] = Field(
        default_factory=lambda: ["Player 1", "Player 2"], min_length=2, max_length=2
    )
    decks: list[DeckSourceModel] = Field(
        default_factory=lambda: [DeckSourceModel(), DeckSourceModel()], min_length=2, max_length=2
    )
    custom_cards: list[CardDefinitionModel] = Field(
        default_factory=list, description="User-authored cards added to the catalog"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")
    auto_resolve_phases: Optional[bool] = Field(
        None, description="Override the configured automatic phase driving"
    )
    first_player_skips_draw: Optional[bool] = None


class PositionModel(BaseModel):
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)

    model_config = {"from_attributes": True}

    def to_position(self) -> Position:
        return Position(self.row, self.col)


# =============================================================================
# Response Models
# =============================================================================

class CardView(BaseModel):
    """A card in a hand."""
    instance_id: str
    card_id: str
    name: str
    cost: int
    effective_cost: int
    kind: str
    archetype: str

    @classmethod
    def from_instance(cls, card: CardInstance, effective_cost: int) -> "CardView":
        return cls(
            instance_id=card.instance_id,
            card_id=card.card_id,
            name=card.name,
            cost=card.cost,
            effective_cost=effective_cost,
            kind=card.kind.value,
            archetype=card.archetype,
        )


class UnitView(BaseModel):
    """A unit on the board."""
    unit_id: str
    card_id: str
    name: str
    owner_id: int
    attack: int
    health: int
    max_health: int
    position: PositionModel
    has_attacked: bool = False
    is_rooted: bool = False
    root_duration: Optional[int] = None
    has_taunt: bool = False
    buff_count: int = 0


class PlayerView(BaseModel):
    """Player information for display."""
    player_id: int
    name: str
    deck_name: str = ""
    health: int
    max_health: int
    mana: int
    max_mana: int
    deck_size: int
    graveyard_size: int
    fatigue_damage: int
    is_current_turn: bool = False
    hand: list[CardView] = Field(default_factory=list)
    units: list[UnitView] = Field(default_factory=list)
    cost_reductions: dict[str, int] = Field(default_factory=dict)


class TargetingView(BaseModel):
    """An interactive effect waiting for a target."""
    source: str
    action: str
    message: str
    controller_id: int
    target_ids: list[str] = Field(
        default_factory=list, description="Unit ids or card instance ids"
    )


class GameStateView(BaseModel):
    """Read model of the whole match."""
    phase: str
    turn_number: int
    current_player_id: int
    game_over: bool = False
    winner: Optional[int] = None
    win_reason: Optional[str] = None
    automatic_phase_pending: bool = False
    pending_setup_player_id: Optional[int] = None
    board: list[list[Optional[str]]] = Field(default_factory=list)
    players: list[PlayerView] = Field(default_factory=list)
    targeting: Optional[TargetingView] = None


class EventView(BaseModel):
    """A game event as delivered to UI collaborators."""
    event_type: str
    player_id: Optional[int] = None
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: float


class CommandResponse(BaseModel):
    """Result of any command, plus the state after it."""
    success: bool
    error: Optional[str] = Field(None, description="Human-readable error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
    details: dict[str, Any] = Field(default_factory=dict)
    events: list[EventView] = Field(default_factory=list)
    state: Optional[GameStateView] = None


class DeckReport(BaseModel):
    """Assembled deck plus its legality check."""
    deck_id: str
    name: str
    size: int
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
