"""
Game Service - Boundary layer between UI collaborators and the engine.

The service:
1. Builds the catalog and decks from a GameSetupRequest
2. Translates primitive arguments (ints, ids) into engine commands
3. Formats every result as a CommandResponse with a state view
4. Forwards engine events to subscribers as EventView models

This layer is framework-agnostic; a renderer, a menu or a network
adapter can sit on top of it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Sequence
import logging

from ..card_schema.card_def import CardInstance
from ..card_schema.validation import validate_card, validate_deck
from ..catalog.decks import DeckBuilder
from ..catalog.registry import CardCatalog
from ..engine_core.action import ActionResult, EffectResult, ErrorCode
from ..engine_core.action_generator import legal_actions
from ..engine_core.board import Position
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import GameEvent, Subscription
from ..engine_core.player import Player
from ..engine_core.state import GameState, Unit
from .schemas import (
    # Requests
    GameSetupRequest,
    DeckSourceModel,
    # Responses
    CommandResponse,
    DeckReport,
    GameStateView,
    EventView,
    # Shared
    CardDefinitionModel,
    CardView,
    PlayerView,
    PositionModel,
    TargetingView,
    UnitView,
)

logger = logging.getLogger(__name__)

NO_GAME = "NO_GAME"
INVALID_CARD = "INVALID_CARD"


@dataclass(eq=False)
class Listener:
    """Service-level event subscription; re-attached to each new engine."""
    service: GameService
    handler: Callable[[EventView], None]
    event_types: Any = None
    _subscription: Subscription | None = None

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self in self.service._listeners:
            self.service._listeners.remove(self)


@dataclass
class GameService:
    """
    One match behind a request/response surface.

    Usage:
        service = GameService()
        service.new_game(GameSetupRequest(random_seed=7))
        service.place_starting_unit(1, row=4, col=3)
        service.play_card(0, row=4, col=2)
    """
    config: GameConfig = field(default_factory=GameConfig)
    catalog: CardCatalog = field(default_factory=CardCatalog.default)
    engine: GameEngine | None = None

    _listeners: list[Listener] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def new_game(self, request: GameSetupRequest | None = None) -> CommandResponse:
        """Create and start a match. Replaces any previous one."""
        request = request or GameSetupRequest()

        custom = [model.to_definition() for model in request.custom_cards]
        errors = []
        for card in custom:
            result = validate_card(card)
            errors.extend(f"{card.id}: {e}" for e in result.errors)
        if errors:
            return CommandResponse(
                success=False,
                error="; ".join(errors),
                error_code=INVALID_CARD,
            )

        overrides: dict[str, Any] = {}
        if request.random_seed is not None:
            overrides["random_seed"] = request.random_seed
        if request.auto_resolve_phases is not None:
            overrides["auto_resolve_phases"] = request.auto_resolve_phases
        if request.first_player_skips_draw is not None:
            overrides["first_player_skips_draw"] = request.first_player_skips_draw
        config = self.config.with_overrides(**overrides) if overrides else self.config

        catalog = self.catalog.with_cards(custom) if custom else self.catalog
        self.engine = GameEngine.from_sources(
            [deck.to_source() for deck in request.decks],
            catalog=catalog,
            config=config,
            player_names=request.player_names,
        )
        for listener in self._listeners:
            self._attach(listener)
        logger.info("New game: %s", " vs ".join(request.player_names))
        return self._respond(self.engine.start_game())

    def validate_deck(self, deck: DeckSourceModel) -> DeckReport:
        """Assemble a deck without repairs and report its legality."""
        builder = DeckBuilder(
            self.catalog,
            min_size=0,
            max_size=10 ** 6,
            padding_card_id=self.config.starting_unit_card_id,
        )
        assembled = builder.build(deck.to_source())
        definitions = [card.definition for card in assembled.cards]
        result = validate_deck(
            definitions,
            min_size=self.config.min_deck_size,
            max_size=self.config.max_deck_size,
        )
        counts: dict[str, int] = {}
        for card in definitions:
            counts[card.id] = counts.get(card.id, 0) + 1
        return DeckReport(
            deck_id=assembled.deck_id,
            name=assembled.name,
            size=len(assembled),
            valid=result.valid,
            errors=result.errors,
            warnings=result.warnings,
            counts=counts,
        )

    def list_cards(self) -> list[CardDefinitionModel]:
        return [CardDefinitionModel.from_definition(card) for card in self.catalog]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def place_starting_unit(self, player_id: int, row: int, col: int) -> CommandResponse:
        return self._command(lambda e: e.place_starting_unit(player_id, Position(row, col)))

    def play_card(
        self, hand_index: int, row: int | None = None, col: int | None = None
    ) -> CommandResponse:
        position = Position(row, col) if row is not None and col is not None else None
        return self._command(lambda e: e.play_card(hand_index, position))

    def attack(self, attacker_id: str, target_id: str) -> CommandResponse:
        return self._command(lambda e: e.attack(attacker_id, target_id))

    def attack_spawn_tile(self, attacker_id: str, row: int, col: int) -> CommandResponse:
        return self._command(lambda e: e.attack_spawn_tile(attacker_id, Position(row, col)))

    def advance_phase(self) -> CommandResponse:
        return self._command(lambda e: e.advance_phase())

    def resolve_targeting(
        self,
        target_id: str | int | Sequence[str] | None = None,
        row: int | None = None,
        col: int | None = None,
    ) -> CommandResponse:
        """
        Pick the pending effect's target.

        target_id is a unit id, a card instance id or a player id, or a
        list of card instance ids for effects that take several cards. A
        row/col pair selects a tile.
        """
        if self.engine is None:
            return self._no_game()
        session = self.engine.state.targeting
        if session is None:
            return self._respond(
                ActionResult.failure("No targeting in progress", ErrorCode.NO_TARGETING)
            )
        target = self._match_target(session.valid_targets, target_id, row, col)
        if target is None:
            return self._respond(
                ActionResult.failure("Not a valid target", ErrorCode.INVALID_TARGET)
            )
        return self._respond(self.engine.resolve_targeting(target))

    def cancel_targeting(self) -> CommandResponse:
        return self._command(lambda e: e.exit_targeting_mode())

    def move_unit(self, unit_id: str, row: int, col: int) -> CommandResponse:
        return self._command(lambda e: e.move_unit(unit_id, Position(row, col)))

    def step_automatic_phase(self) -> CommandResponse:
        """Advance one DRAW/ADVANCE step when phases are not auto-resolved."""
        if self.engine is None:
            return self._no_game()
        more = self.engine.step_automatic_phase()
        return CommandResponse(success=True, details={"more": more}, state=self.state_view())

    def legal_actions(self) -> list[dict[str, Any]]:
        if self.engine is None:
            return []
        actions = []
        for action in legal_actions(self.engine):
            payload = action.payload
            actions.append(_plain({
                "action_type": action.action_type,
                "player_id": payload.player_id,
                "unit_id": payload.unit_id,
                "target_id": payload.target_id,
                "hand_index": payload.hand_index,
                "position": payload.position,
                "target": _target_id(payload.target) if payload.target is not None else None,
            }))
        return actions

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, handler: Callable[[EventView], None], event_types=None) -> Listener:
        """
        Receive EventView models for every engine event.

        Listeners survive new_game().
        """
        listener = Listener(service=self, handler=handler, event_types=event_types)
        self._listeners.append(listener)
        self._attach(listener)
        return listener

    def _attach(self, listener: Listener) -> None:
        if self.engine is None:
            return
        listener._subscription = self.engine.subscribe(
            lambda event: listener.handler(event_view(event)), listener.event_types,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def state_view(self) -> GameStateView | None:
        if self.engine is None:
            return None
        return state_view(self.engine)

    def _command(self, call: Callable[[GameEngine], ActionResult]) -> CommandResponse:
        if self.engine is None:
            return self._no_game()
        return self._respond(call(self.engine))

    def _respond(self, result: ActionResult) -> CommandResponse:
        if not result.success:
            logger.debug("Command rejected: %s (%s)", result.error, result.error_code)
        return CommandResponse(
            success=result.success,
            error=result.error,
            error_code=result.error_code,
            details=_plain(result.details),
            events=[event_view(e) for e in result.events],
            state=self.state_view(),
        )

    def _no_game(self) -> CommandResponse:
        return CommandResponse(success=False, error="No game in progress", error_code=NO_GAME)

    def _match_target(
        self,
        candidates: Sequence[Any],
        target_id: str | int | Sequence[str] | None,
        row: int | None,
        col: int | None,
    ) -> Any:
        if row is not None and col is not None:
            wanted = Position(row, col)
            for candidate in candidates:
                if candidate == wanted:
                    return candidate
            return None
        if isinstance(target_id, (list, tuple)):
            # Multi-card picks, e.g. several graveyard cards to return
            matched = [self._match_target(candidates, each, None, None) for each in target_id]
            if not matched or any(m is None for m in matched):
                return None
            return matched
        for candidate in candidates:
            if target_id is not None and _target_id(candidate) == str(target_id):
                return candidate
        return None


# =============================================================================
# View builders
# =============================================================================

def _target_id(target: Any) -> str:
    if isinstance(target, Unit):
        return target.unit_id
    if isinstance(target, CardInstance):
        return target.instance_id
    if isinstance(target, Player):
        return str(target.player_id)
    if isinstance(target, Position):
        return f"{target.row},{target.col}"
    if isinstance(target, (list, tuple)):
        return ",".join(_target_id(t) for t in target)
    return str(target)


def _plain(value: Any) -> Any:
    """Convert engine values into JSON-friendly data."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Position):
        return {"row": value.row, "col": value.col}
    if isinstance(value, (Unit, CardInstance, Player)):
        return _target_id(value)
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, EffectResult):
        return {"success": value.success, "message": value.message}
    return value


def event_view(event: GameEvent) -> EventView:
    return EventView(
        event_type=event.event_type.value,
        player_id=event.player_id,
        payload=_plain(event.payload),
        timestamp=event.timestamp,
    )


def unit_view(unit: Unit) -> UnitView:
    return UnitView(
        unit_id=unit.unit_id,
        card_id=unit.card_id,
        name=unit.name,
        owner_id=unit.owner_id,
        attack=unit.attack,
        health=unit.health,
        max_health=unit.max_health,
        position=PositionModel(row=unit.position.row, col=unit.position.col),
        has_attacked=unit.has_attacked,
        is_rooted=unit.is_rooted,
        root_duration=unit.root_duration,
        has_taunt=unit.has_taunt,
        buff_count=len(unit.buffs),
    )


def player_view(player: Player, is_current: bool) -> PlayerView:
    return PlayerView(
        player_id=player.player_id,
        name=player.name,
        deck_name=player.deck_name,
        health=player.health,
        max_health=player.max_health,
        mana=player.mana,
        max_mana=player.max_mana,
        deck_size=len(player.deck),
        graveyard_size=len(player.graveyard),
        fatigue_damage=player.fatigue_damage,
        is_current_turn=is_current,
        hand=[CardView.from_instance(card, player.effective_cost(card)) for card in player.hand],
        units=[unit_view(unit) for unit in player.units],
        cost_reductions=dict(player.cost_reductions),
    )


def state_view(engine: GameEngine) -> GameStateView:
    state: GameState = engine.state
    targeting = None
    if state.targeting is not None:
        session = state.targeting
        targeting = TargetingView(
            source=session.source.name,
            action=session.effect.resolved_action.value,
            message=session.message,
            controller_id=session.controller_id,
            target_ids=[_target_id(t) for t in session.valid_targets],
        )
    pending = state.pending_actions[0].player_id if state.pending_actions else None
    return GameStateView(
        phase=state.phase.value,
        turn_number=state.turn_number,
        current_player_id=state.current_player.player_id,
        game_over=state.game_over,
        winner=state.winner,
        win_reason=state.win_reason,
        automatic_phase_pending=state.automatic_phase_pending,
        pending_setup_player_id=pending,
        board=[list(row) for row in state.board.tiles],
        players=[
            player_view(player, index == state.current_player_idx)
            for index, player in enumerate(state.players)
        ],
        targeting=targeting,
    )
