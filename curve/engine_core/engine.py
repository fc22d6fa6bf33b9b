"""
Game Engine - The phase state machine and single writer of game state.

This module handles:
- Setup placement of each player's free starting unit
- Automatic DRAW and ADVANCE phases (driven inline, stepped, or awaited)
- Manual PLAY, BATTLE and END phases
- Attack legality (range, taunt, once per turn)
- Unit creation, forced movement and death finalization
- Win detection, history snapshots and the event feed

Illegal commands return ActionResult.failure and leave state unchanged.
"""

from __future__ import annotations
from itertools import count
from typing import Any, Callable, Iterator, Sequence, Union
import asyncio
import logging
import random

from ..card_schema.card_def import CardDefinition, CardInstance, CardKind
from ..card_schema.effect_dsl import Effect, EffectTrigger
from ..catalog.decks import AssembledDeck, DeckBuilder, DeckSource
from ..catalog.registry import CardCatalog
from .action import Action, ActionResult, ActionType, ErrorCode
from .board import Board, Position
from .config import GameConfig
from .effect_resolver import EffectResolver, targeting_message
from .events import EventFeed, EventType, GameEvent
from .history import HistoryBuffer
from .player import DrawOutcome, Player
from .state import (
    EffectExecution,
    EffectSource,
    EngineInvariantError,
    GamePhase,
    GameState,
    PendingAction,
    TargetingSession,
    Unit,
)

logger = logging.getLogger(__name__)

PLACE_STARTING_UNIT = "place_starting_unit"

DeckInput = Union[AssembledDeck, Sequence[CardInstance]]


class GameEngine:
    """
    Runs one match between player 1 and player 2.

    Player 1 spawns on the last row and moves toward row 0; player 2
    spawns on row 0 and moves toward the last row.
    """

    def __init__(
        self,
        decks: Sequence[DeckInput],
        catalog: CardCatalog | None = None,
        config: GameConfig | None = None,
        player_names: Sequence[str] = ("Player 1", "Player 2"),
        events: EventFeed | None = None,
    ):
        if len(decks) != 2:
            raise ValueError("A match needs exactly two decks")
        self.config = config or GameConfig()
        self.config.validate()
        self.catalog = catalog if catalog is not None else CardCatalog.default()
        self.events = events if events is not None else EventFeed()
        self.history = HistoryBuffer(self.config.history_limit)
        self.rng = random.Random(self.config.random_seed)
        self.resolver = EffectResolver(self)

        self._ids = count(1)
        self._setup_done: set[int] = set()
        self._lethal: dict[str, Unit | None] = {}
        self._automatic: Iterator[GamePhase] | None = None
        self._recording: list[GameEvent] | None = None
        self.started = False

        players = []
        for index, deck in enumerate(decks):
            player_id = index + 1
            cards, deck_name = self._deck_cards(deck)
            cards = self._padded(cards, player_id)
            players.append(Player.create(
                player_id, player_names[index], cards, self.rng, self.config, deck_name=deck_name,
            ))
        self.state = GameState(
            players=players,
            board=Board(self.config.board_rows, self.config.board_cols),
        )

    @classmethod
    def from_sources(
        cls,
        sources: Sequence[DeckSource],
        catalog: CardCatalog | None = None,
        config: GameConfig | None = None,
        **kwargs,
    ) -> GameEngine:
        """Build both decks from preset/custom descriptions."""
        catalog = catalog if catalog is not None else CardCatalog.default()
        config = config or GameConfig()
        builder = DeckBuilder(
            catalog,
            min_size=config.min_deck_size,
            max_size=config.max_deck_size,
            padding_card_id=config.starting_unit_card_id,
        )
        decks = [builder.build(source) for source in sources]
        return cls(decks, catalog=catalog, config=config, **kwargs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_state(self) -> GameState:
        return self.state

    @property
    def current_player(self) -> Player:
        return self.state.current_player

    def get_player(self, player_id: int) -> Player | None:
        return self.state.get_player(player_id)

    def spawn_row(self, player_id: int) -> int:
        return self.config.board_rows - 1 if player_id == 1 else 0

    def enemy_spawn_row(self, player_id: int) -> int:
        return 0 if player_id == 1 else self.config.board_rows - 1

    def forward_direction(self, player_id: int) -> int:
        return -1 if player_id == 1 else 1

    def is_free(self, pos: Position) -> bool:
        return self.state.board.is_empty(pos)

    def valid_spawn_positions(self, player_id: int) -> list[Position]:
        board = self.state.board
        return [p for p in board.row_positions(self.spawn_row(player_id)) if board.is_empty(p)]

    def valid_attack_targets(self, unit_id: str) -> list[Unit | Position]:
        """Enemy units and empty enemy spawn tiles the unit may attack now."""
        unit = self.state.find_unit(unit_id)
        if unit is None or unit.has_attacked or self.state.phase != GamePhase.BATTLE:
            return []
        targets: list[Unit | Position] = []
        row = unit.position.row + self.forward_direction(unit.owner_id)
        for dcol in (-1, 0, 1):
            pos = Position(row, unit.position.col + dcol)
            if not self.state.board.in_bounds(pos):
                continue
            occupant_id = self.state.board.occupant(pos)
            if occupant_id is not None:
                target = self.state.find_unit(occupant_id)
                if target and target.owner_id != unit.owner_id and not self._taunt_blocks(unit, target):
                    targets.append(target)
            elif row == self.enemy_spawn_row(unit.owner_id) and not self._taunt_blocks(unit, None):
                targets.append(pos)
        return targets

    def in_attack_range(self, attacker: Unit, pos: Position) -> bool:
        """Exactly one row forward, at most one column sideways."""
        drow = pos.row - attacker.position.row
        return drow == self.forward_direction(attacker.owner_id) and abs(pos.col - attacker.position.col) <= 1

    def next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # ------------------------------------------------------------------
    # Event feed
    # ------------------------------------------------------------------

    def subscribe(self, handler: Callable[[GameEvent], None], event_types=None):
        return self.events.subscribe(handler, event_types)

    def emit(self, event_type: EventType, player_id: int | None = None, **payload: Any) -> GameEvent:
        event = GameEvent(event_type=event_type, player_id=player_id, payload=payload)
        if self._recording is not None:
            self._recording.append(event)
        self.events.emit(event)
        return event

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_game(self) -> ActionResult:
        return self._run(self._start_game)

    def place_starting_unit(self, player_id: int, position: Position) -> ActionResult:
        return self._run(self._place_starting_unit, player_id, position)

    def play_card(self, hand_index: int, position: Position | None = None) -> ActionResult:
        return self._run(self._play_card, hand_index, position)

    def attack(self, attacker_id: str, target_id: str) -> ActionResult:
        return self._run(self._attack, attacker_id, target_id)

    def attack_spawn_tile(self, attacker_id: str, position: Position) -> ActionResult:
        return self._run(self._attack_spawn_tile, attacker_id, position)

    def advance_phase(self) -> ActionResult:
        return self._run(self._advance_phase)

    def resolve_targeting(self, target: Any) -> ActionResult:
        return self._run(self._resolve_targeting, target)

    def exit_targeting_mode(self) -> ActionResult:
        return self._run(self._exit_targeting_mode)

    def move_unit(self, unit_id: str, position: Position) -> ActionResult:
        """Units never move by player choice."""
        logger.warning("Manual unit movement is not allowed; units only advance automatically")
        return ActionResult.failure("Units cannot be moved manually", ErrorCode.MOVEMENT_FORBIDDEN)

    def apply(self, action: Action) -> ActionResult:
        """Dispatch an Action value to the matching command."""
        handler = self._get_handler(action.action_type)
        if handler is None:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}", ErrorCode.INVALID_ACTION,
            )
        return handler(action)

    def _get_handler(self, action_type: ActionType) -> Callable[[Action], ActionResult] | None:
        handlers = {
            ActionType.PLACE_STARTING_UNIT: lambda a: self.place_starting_unit(
                a.payload.player_id, a.payload.position),
            ActionType.PLAY_CARD: lambda a: self.play_card(a.payload.hand_index, a.payload.position),
            ActionType.ATTACK: lambda a: self.attack(a.payload.unit_id, a.payload.target_id),
            ActionType.ATTACK_SPAWN_TILE: lambda a: self.attack_spawn_tile(
                a.payload.unit_id, a.payload.position),
            ActionType.ADVANCE_PHASE: lambda a: self.advance_phase(),
            ActionType.RESOLVE_TARGETING: lambda a: self.resolve_targeting(a.payload.target),
            ActionType.CANCEL_TARGETING: lambda a: self.exit_targeting_mode(),
            ActionType.MOVE_UNIT: lambda a: self.move_unit(a.payload.unit_id, a.payload.position),
        }
        return handlers.get(action_type)

    def _run(self, handler: Callable[..., ActionResult], *args) -> ActionResult:
        """Run a command, collecting the events it emits."""
        if self._recording is not None:
            return handler(*args)
        self._recording = []
        try:
            result = handler(*args)
        finally:
            recorded, self._recording = self._recording, None
        result.events = recorded
        if result.success and self.config.strict_invariants:
            self.check_invariants()
        return result

    def _blocked(self, allow_setup: bool = False) -> ActionResult | None:
        """Common preconditions for state-mutating commands."""
        if self.state.game_over:
            return ActionResult.failure("Game is over", ErrorCode.GAME_OVER)
        if not self.started:
            return ActionResult.failure("Game has not started", ErrorCode.WRONG_PHASE)
        if self.state.automatic_phase_pending:
            return ActionResult.failure(
                "Automatic phase in progress", ErrorCode.AUTOMATIC_PHASE_PENDING,
            )
        if self.state.targeting is not None:
            return ActionResult.failure(
                "Resolve or cancel the pending target first", ErrorCode.TARGETING_ACTIVE,
            )
        if not allow_setup and self.state.pending_actions:
            return ActionResult.failure(
                "Starting unit placement pending", ErrorCode.WRONG_PHASE,
            )
        return None

    def _start_game(self) -> ActionResult:
        if self.started:
            return ActionResult.failure("Game already started", ErrorCode.INVALID_ACTION)
        self.started = True
        for player in self.state.players:
            for _ in range(self.config.starting_hand_size):
                player.draw_card()

        self.state.current_player_idx = 0
        self.state.turn_number = 1
        self.current_player.start_turn()
        logger.info(
            "Starting game: %s vs %s",
            self.state.players[0].name, self.state.players[1].name,
        )
        self.emit(
            EventType.GAME_STARTED, self.current_player.player_id,
            players=[p.player_id for p in self.state.players],
            hand_sizes={p.player_id: len(p.hand) for p in self.state.players},
        )
        self._begin_turn()
        return ActionResult.ok(phase=self.state.phase)

    def _begin_turn(self) -> None:
        player = self.current_player
        if player.player_id not in self._setup_done:
            self.state.phase = GamePhase.SETUP
            self.state.pending_actions = [PendingAction(
                action_type=PLACE_STARTING_UNIT,
                player_id=player.player_id,
                message=f"{player.name}: Place your starting unit on any spawn tile",
            )]
            self.emit(EventType.PHASE_CHANGED, player.player_id, phase=GamePhase.SETUP)
            self.emit(
                EventType.SETUP_PHASE_ENTERED, player.player_id,
                spawn_positions=self.valid_spawn_positions(player.player_id),
            )
        else:
            self._start_automatic_phases()

    def _place_starting_unit(self, player_id: int, position: Position) -> ActionResult:
        if self.state.game_over:
            return ActionResult.failure("Game is over", ErrorCode.GAME_OVER)
        if self.state.pending_setup_for(player_id) is None:
            if self.state.pending_actions:
                return ActionResult.failure(f"Not player {player_id}'s turn", ErrorCode.NOT_YOUR_TURN)
            return ActionResult.failure("No starting placement pending", ErrorCode.NO_SETUP_PENDING)

        if not self.state.board.in_bounds(position) or position.row != self.spawn_row(player_id):
            return ActionResult.failure("Starting unit must go on your spawn row", ErrorCode.INVALID_POSITION)
        if not self.state.board.is_empty(position):
            return ActionResult.failure("Position is occupied", ErrorCode.TILE_OCCUPIED)
        card = self.catalog.get(self.config.starting_unit_card_id)
        if card is None:
            logger.error("Starting unit card %r missing from catalog", self.config.starting_unit_card_id)
            return ActionResult.failure("Starting unit card is not in the catalog", ErrorCode.UNKNOWN_CARD)

        unit = self.create_unit_from_card(card, player_id, position)
        self._setup_done.add(player_id)
        self.state.pending_actions = []
        logger.info("Player %d placed starting unit at %s", player_id, position)
        self.emit(EventType.STARTING_UNIT_PLACED, player_id, unit_id=unit.unit_id, position=position)

        self._start_automatic_phases()
        return ActionResult.ok(unit_id=unit.unit_id)

    def _play_card(self, hand_index: int, position: Position | None) -> ActionResult:
        blocked = self._blocked()
        if blocked:
            return blocked
        if self.state.phase != GamePhase.PLAY:
            return ActionResult.failure("Can only play cards during Play phase", ErrorCode.WRONG_PHASE)

        player = self.current_player
        if hand_index is None or not 0 <= hand_index < len(player.hand):
            return ActionResult.failure("Invalid card index", ErrorCode.INVALID_CARD_INDEX)
        card = player.hand[hand_index]
        cost = player.effective_cost(card)
        if cost > player.mana:
            return ActionResult.failure("Not enough mana", ErrorCode.NOT_ENOUGH_MANA)

        if card.kind == CardKind.UNIT:
            if (
                position is None
                or not self.state.board.in_bounds(position)
                or position.row != self.spawn_row(player.player_id)
            ):
                return ActionResult.failure("Units must be played on spawn row", ErrorCode.INVALID_POSITION)
            if not self.state.board.is_empty(position):
                return ActionResult.failure("Position is occupied", ErrorCode.TILE_OCCUPIED)

        self.history.record(self.state, "play_card")
        player.hand.pop(hand_index)
        player.use_cost_reduction(card.archetype)
        player.spend_mana(cost)

        if card.kind == CardKind.UNIT:
            unit = self._spawn_unit(card.definition, player.player_id, position, instance=card)
            logger.info("Player %d played %s at %s", player.player_id, card.name, position)
            self.emit(
                EventType.UNIT_PLAYED, player.player_id,
                unit_id=unit.unit_id, card_id=card.card_id, position=position, cost=cost,
            )
            effects = self.resolver.handle_unit_played(unit)
            details = {"unit_id": unit.unit_id}
        else:
            logger.info("Player %d cast %s", player.player_id, card.name)
            self.emit(EventType.SPELL_PLAYED, player.player_id, card_id=card.card_id, cost=cost)
            effects = self.resolver.handle_spell_played(card, player.player_id)
            player.graveyard.append(card)
            details = {"card_id": card.card_id}

        self._finalize_deaths()
        self.check_win_conditions()
        return ActionResult.ok(effects=effects, **details)

    def _attack(self, attacker_id: str, target_id: str) -> ActionResult:
        blocked = self._blocked()
        if blocked:
            return blocked
        if self.state.phase != GamePhase.BATTLE:
            return ActionResult.failure("Can only attack during Battle phase", ErrorCode.WRONG_PHASE)

        attacker = self.state.find_unit(attacker_id)
        target = self.state.find_unit(target_id)
        if attacker is None or target is None:
            return ActionResult.failure("Unknown unit", ErrorCode.UNKNOWN_UNIT)
        failure = self._attack_precheck(attacker)
        if failure:
            return failure
        if target.owner_id == attacker.owner_id:
            return ActionResult.failure("Cannot attack your own unit", ErrorCode.INVALID_TARGET)
        if not self.in_attack_range(attacker, target.position):
            return ActionResult.failure("Target out of range", ErrorCode.OUT_OF_RANGE)
        if self._taunt_blocks(attacker, target):
            return ActionResult.failure("A unit with Taunt must be attacked first", ErrorCode.TAUNT_BLOCKS)

        self.history.record(self.state, "attack")
        attacker.has_attacked = True
        damage = attacker.attack
        target.health -= damage
        self.emit(
            EventType.UNIT_ATTACKED, attacker.owner_id,
            attacker_id=attacker.unit_id, target_id=target.unit_id, damage=damage,
        )
        if target.is_dead:
            self.register_lethal(target, attacker)

        effects = self.resolver.handle_attack(attacker, target)
        self._finalize_deaths()
        self.check_win_conditions()
        return ActionResult.ok(damage=damage, effects=effects)

    def _attack_spawn_tile(self, attacker_id: str, position: Position) -> ActionResult:
        blocked = self._blocked()
        if blocked:
            return blocked
        if self.state.phase != GamePhase.BATTLE:
            return ActionResult.failure("Can only attack during Battle phase", ErrorCode.WRONG_PHASE)

        attacker = self.state.find_unit(attacker_id)
        if attacker is None:
            return ActionResult.failure("Unknown unit", ErrorCode.UNKNOWN_UNIT)
        failure = self._attack_precheck(attacker)
        if failure:
            return failure
        if (
            not self.state.board.in_bounds(position)
            or position.row != self.enemy_spawn_row(attacker.owner_id)
        ):
            return ActionResult.failure("Not an enemy spawn tile", ErrorCode.INVALID_POSITION)
        if not self.in_attack_range(attacker, position):
            return ActionResult.failure("Spawn tile out of range", ErrorCode.OUT_OF_RANGE)
        if not self.state.board.is_empty(position):
            return ActionResult.failure("Only empty spawn tiles can be attacked", ErrorCode.TILE_OCCUPIED)
        if self._taunt_blocks(attacker, None):
            return ActionResult.failure("A unit with Taunt must be attacked first", ErrorCode.TAUNT_BLOCKS)

        self.history.record(self.state, "attack_spawn_tile")
        enemy = self.state.opponent_of(attacker.owner_id)
        attacker.has_attacked = True
        damage = attacker.attack
        enemy.health -= damage
        self.emit(
            EventType.SPAWN_TILE_ATTACKED, attacker.owner_id,
            attacker_id=attacker.unit_id, position=position,
            target_player_id=enemy.player_id, damage=damage,
        )
        if enemy.is_defeated:
            self.emit(EventType.PLAYER_DEFEATED, enemy.player_id, health=enemy.health)
        self.check_win_conditions()
        return ActionResult.ok(damage=damage, target_player_id=enemy.player_id)

    def _attack_precheck(self, attacker: Unit) -> ActionResult | None:
        if attacker.owner_id != self.current_player.player_id:
            return ActionResult.failure("Not your unit", ErrorCode.NOT_YOUR_TURN)
        if attacker.has_attacked:
            return ActionResult.failure("Unit has already attacked", ErrorCode.ALREADY_ATTACKED)
        return None

    def _taunt_blocks(self, attacker: Unit, target: Unit | None) -> bool:
        """True if an enemy taunt exists and `target` (None = spawn tile) lacks it."""
        enemy = self.state.opponent_of(attacker.owner_id)
        if enemy is None or not any(u.has_taunt for u in enemy.units):
            return False
        return target is None or not target.has_taunt

    def _advance_phase(self) -> ActionResult:
        blocked = self._blocked()
        if blocked:
            return blocked

        phase = self.state.phase
        transitions = {
            GamePhase.PLAY: GamePhase.BATTLE,
            GamePhase.BATTLE: GamePhase.END,
        }
        if phase not in transitions and phase != GamePhase.END:
            logger.warning("Unexpected manual phase transition from %s", phase.value)
            return ActionResult.failure(f"Cannot advance from {phase.value}", ErrorCode.WRONG_PHASE)

        self.history.record(self.state, "advance_phase")
        if phase == GamePhase.END:
            self._end_turn()
        else:
            self.state.phase = transitions[phase]
            self.emit(EventType.PHASE_CHANGED, self.current_player.player_id, phase=self.state.phase)
            self.check_win_conditions()
        return ActionResult.ok(phase=self.state.phase)

    def _end_turn(self) -> None:
        previous = self.current_player
        for unit in previous.units:
            unit.has_attacked = False

        self.state.current_player_idx = (self.state.current_player_idx + 1) % 2
        if self.state.current_player_idx == 0:
            self.state.turn_number += 1

        player = self.current_player
        player.start_turn()
        logger.info("Turn %d: %s to act", self.state.turn_number, player.name)
        self.emit(
            EventType.TURN_ENDED, previous.player_id,
            next_player_id=player.player_id, turn_number=self.state.turn_number,
        )
        self.check_win_conditions()
        if not self.state.game_over:
            self._begin_turn()

    # ------------------------------------------------------------------
    # Automatic phases
    # ------------------------------------------------------------------

    def _start_automatic_phases(self) -> None:
        self.state.phase = GamePhase.DRAW
        self.emit(EventType.PHASE_CHANGED, self.current_player.player_id, phase=GamePhase.DRAW)
        self._automatic = self._automatic_phases()
        self.state.automatic_phase_pending = True
        if self.config.auto_resolve_phases:
            self.run_automatic_phases()

    def _automatic_phases(self) -> Iterator[GamePhase]:
        """DRAW, then ADVANCE, then hand over to PLAY. Yields after each step."""
        player = self.current_player
        first_turn = self.state.turn_number == 1 and self.state.current_player_idx == 0
        if not (first_turn and self.config.first_player_skips_draw):
            self.draw_cards(player, 1)
        if self.check_win_conditions():
            return
        self.state.phase = GamePhase.ADVANCE
        self.emit(EventType.PHASE_CHANGED, player.player_id, phase=GamePhase.ADVANCE)
        yield GamePhase.DRAW

        self.history.record(self.state, "advance")
        self._advance_units(player)
        if self.state.game_over:
            return
        self.resolver.handle_advance_phase(player.player_id)
        if self.check_win_conditions():
            return
        yield GamePhase.ADVANCE

        self.state.phase = GamePhase.PLAY
        self.emit(EventType.PHASE_CHANGED, player.player_id, phase=GamePhase.PLAY)
        self.check_win_conditions()

    def _advance_units(self, player: Player) -> None:
        direction = self.forward_direction(player.player_id)
        enemy_row = self.enemy_spawn_row(player.player_id)
        # Front-most units first so nobody steps into a tile that is about to clear
        for unit in sorted(player.units, key=lambda u: u.position.row * -direction):
            unit.advances_this_turn = 0
            if unit.is_rooted:
                logger.debug("%s is rooted and cannot advance", unit.name)
                continue
            origin = unit.position
            destination = origin.offset(drow=direction)
            if not self._relocate(unit, destination):
                continue
            unit.advances_this_turn += 1
            self.emit(
                EventType.UNIT_ADVANCED, player.player_id,
                unit_id=unit.unit_id, from_position=origin, to_position=destination,
            )
            if destination.row == enemy_row:
                self.declare_winner(player.player_id, f"{unit.name} reached enemy spawn!")
                return

    def step_automatic_phase(self) -> bool:
        """Run the next automatic step. Returns True while more steps remain."""
        if self._automatic is None:
            return False
        try:
            next(self._automatic)
            more = True
        except StopIteration:
            self._automatic = None
            self.state.automatic_phase_pending = False
            more = False
        if self.config.strict_invariants and self._recording is None:
            self.check_invariants()
        return more

    def run_automatic_phases(self) -> None:
        """Drive the pending automatic steps to completion."""
        while self.step_automatic_phase():
            pass

    async def run_automatic_phases_async(self, step_delay: float | None = None) -> None:
        """Awaitable variant; sleeps between steps so consumers can animate."""
        delay = self.config.phase_step_delay if step_delay is None else step_delay
        while self.step_automatic_phase():
            await asyncio.sleep(delay)

    # ------------------------------------------------------------------
    # Targeting
    # ------------------------------------------------------------------

    def enter_targeting_mode(
        self, source: EffectSource, effect: Effect, controller_id: int | None = None
    ) -> ActionResult:
        """Open an interactive target selection for `effect`."""
        if self.state.game_over:
            return ActionResult.failure("Game is over", ErrorCode.GAME_OVER)
        if self.state.targeting is not None:
            return ActionResult.failure("Targeting already active", ErrorCode.TARGETING_ACTIVE)
        if controller_id is None:
            controller_id = self.resolver.controller_of(source)

        targets = self.resolver.get_valid_targets(effect, source, controller_id)
        if not targets:
            logger.warning("No valid targets for %s from %s", effect.resolved_action.value, source.name)
            return ActionResult.failure("No valid targets for effect", ErrorCode.INVALID_TARGET)

        session = TargetingSession(
            source=source,
            effect=effect,
            controller_id=controller_id,
            valid_targets=targets,
            message=targeting_message(effect),
        )
        self.state.targeting = session
        self.emit(
            EventType.TARGETING_MODE_ENTERED, controller_id,
            source=source.name, action=effect.resolved_action, message=session.message,
            target_count=len(targets),
        )
        return ActionResult.ok(target_count=len(targets))

    def _resolve_targeting(self, target: Any) -> ActionResult:
        if self.state.game_over:
            return ActionResult.failure("Game is over", ErrorCode.GAME_OVER)
        session = self.state.targeting
        if session is None:
            return ActionResult.failure("No targeting in progress", ErrorCode.NO_TARGETING)
        if not session.accepts(target):
            return ActionResult.failure("Not a valid target", ErrorCode.INVALID_TARGET)

        self.state.targeting = None
        result = self.resolver.execute_effect_action(
            session.source, session.effect, target, session.controller_id,
        )
        self.emit(EventType.TARGETING_MODE_EXITED, session.controller_id, resolved=True)
        self._finalize_deaths()
        self.check_win_conditions()
        return ActionResult.ok(effect_success=result.success, message=result.message, **result.details)

    def _exit_targeting_mode(self) -> ActionResult:
        session = self.state.targeting
        if session is None:
            return ActionResult.failure("No targeting in progress", ErrorCode.NO_TARGETING)
        self.state.targeting = None
        self.emit(EventType.TARGETING_MODE_EXITED, session.controller_id, resolved=False)
        return ActionResult.ok()

    # ------------------------------------------------------------------
    # Primitives used by the effect resolver
    # ------------------------------------------------------------------

    def create_unit_from_card(
        self,
        card: CardDefinition,
        player_id: int,
        position: Position,
        instance: CardInstance | None = None,
    ) -> Unit | None:
        """Put a new unit on the board and announce it."""
        unit = self._spawn_unit(card, player_id, position, instance)
        if unit is not None:
            self.emit(EventType.UNIT_CREATED, player_id, unit_id=unit.unit_id, card_id=card.id, position=position)
        return unit

    def _spawn_unit(
        self,
        card: CardDefinition,
        player_id: int,
        position: Position,
        instance: CardInstance | None = None,
    ) -> Unit | None:
        player = self.state.get_player(player_id)
        if player is None:
            return None
        unit = Unit.from_card(self.next_id("unit"), card, player_id, position, instance=instance)
        if not self.state.board.place(unit.unit_id, position):
            return None
        player.units.append(unit)
        return unit

    def move_unit_forced(self, unit: Unit, position: Position, announce: bool = True) -> bool:
        """Effect-driven relocation. Fails on invalid or occupied destinations."""
        origin = unit.position
        if not self._relocate(unit, position):
            return False
        if announce:
            self.emit(
                EventType.UNIT_MOVED, unit.owner_id,
                unit_id=unit.unit_id, from_position=origin, to_position=position,
            )
        return True

    def _relocate(self, unit: Unit, position: Position) -> bool:
        board = self.state.board
        if board.occupant(unit.position) != unit.unit_id:
            return False
        if not board.move(unit.position, position):
            return False
        unit.position = position
        return True

    def draw_cards(self, player: Player, count: int = 1) -> int:
        """Draw `count` cards, announcing each outcome. Returns cards that reached the hand."""
        drawn = 0
        for _ in range(count):
            result = player.draw()
            if result.outcome == DrawOutcome.DRAWN:
                drawn += 1
                self.emit(
                    EventType.CARD_DRAWN, player.player_id,
                    card_id=result.card.card_id, instance_id=result.card.instance_id,
                )
            elif result.outcome == DrawOutcome.BURNED:
                self.emit(
                    EventType.CARD_BURNED, player.player_id,
                    card_id=result.card.card_id, instance_id=result.card.instance_id,
                )
            else:
                self.emit(EventType.FATIGUE_DAMAGE, player.player_id, damage=result.fatigue_damage)
        return drawn

    def register_lethal(self, unit: Unit, killer: Unit | None) -> None:
        """Record who dealt lethal damage; removal happens in _finalize_deaths."""
        self._lethal.setdefault(unit.unit_id, killer)

    def _finalize_deaths(self) -> None:
        """Remove dead units and fire their death triggers until none remain."""
        dead = [u for u in self.state.all_units() if u.is_dead]
        if not dead:
            return
        stack = self.state.effect_stack
        stack.append(EffectExecution("death", EffectTrigger.DEATHBLOW, len(stack) + 1))
        try:
            for unit in dead:
                killer = self._lethal.pop(unit.unit_id, None)
                self._remove_unit(unit)
                self.emit(
                    EventType.UNIT_DIED, unit.owner_id,
                    unit_id=unit.unit_id, card_id=unit.card_id,
                    killer_id=killer.unit_id if killer else None,
                )
                self.resolver.handle_unit_death(unit, killer)
            self._finalize_deaths()
        finally:
            stack.pop()

    def _remove_unit(self, unit: Unit) -> None:
        self.state.board.remove(unit.position)
        owner = self.state.get_player(unit.owner_id)
        if owner is None or unit not in owner.units:
            return
        owner.units.remove(unit)
        owner.graveyard.append(unit.instance or CardInstance(unit.card, self.next_id("card")))

    # ------------------------------------------------------------------
    # Win conditions and invariants
    # ------------------------------------------------------------------

    def check_win_conditions(self) -> bool:
        """Unit on the enemy spawn row first, then health. Returns game_over."""
        if self.state.game_over:
            return True
        for player in self.state.players:
            enemy_row = self.enemy_spawn_row(player.player_id)
            if any(u.position.row == enemy_row for u in player.units):
                self.declare_winner(player.player_id, "Unit reached enemy spawn!")
                return True
        for player in self.state.players:
            if player.is_defeated:
                other = self.state.opponent_of(player.player_id)
                self.declare_winner(other.player_id, f"{player.name} was defeated!")
                return True
        return False

    def declare_winner(self, player_id: int, reason: str) -> None:
        if self.state.game_over:
            return
        self.state.game_over = True
        self.state.winner = player_id
        self.state.win_reason = reason
        logger.info("Game ended - Player %d wins! %s", player_id, reason)
        self.emit(EventType.GAME_ENDED, player_id, winner=player_id, reason=reason)

    def check_invariants(self) -> None:
        """Raise EngineInvariantError if board, units or resources disagree."""
        board = self.state.board
        occupied = board.occupied()
        seen: set[str] = set()
        for player in self.state.players:
            for unit in player.units:
                if unit.unit_id in seen:
                    raise EngineInvariantError(f"Unit {unit.unit_id} listed twice")
                seen.add(unit.unit_id)
                if board.occupant(unit.position) != unit.unit_id:
                    raise EngineInvariantError(
                        f"Unit {unit.unit_id} at {unit.position} is not on that tile"
                    )
            if len(player.hand) > player.max_hand_size:
                raise EngineInvariantError(f"Player {player.player_id} hand over limit")
            if not 0 <= player.mana <= player.max_mana:
                raise EngineInvariantError(f"Player {player.player_id} mana out of range")
        if set(occupied) != seen:
            raise EngineInvariantError("Board holds units no player owns")
        if self.state.current_player_idx not in (0, 1):
            raise EngineInvariantError("Invalid current player index")

    # ------------------------------------------------------------------
    # Setup helpers
    # ------------------------------------------------------------------

    def _deck_cards(self, deck: DeckInput) -> tuple[list[CardInstance], str]:
        if isinstance(deck, AssembledDeck):
            return list(deck.cards), deck.name
        return list(deck), ""

    def _padded(self, cards: list[CardInstance], player_id: int) -> list[CardInstance]:
        missing = self.config.min_deck_size - len(cards)
        if missing <= 0:
            return cards
        filler = self.catalog.get(self.config.starting_unit_card_id)
        if filler is None:
            logger.error("Deck for player %d is short and no padding card exists", player_id)
            return cards
        logger.warning("Deck for player %d has %d cards, padding with %s", player_id, len(cards), filler.name)
        return cards + [CardInstance(filler, self.next_id("card")) for _ in range(missing)]
