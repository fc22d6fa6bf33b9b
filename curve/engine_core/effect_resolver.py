"""
Effect Resolver - Interprets effect declarations against live state.

This module handles:
- The four trigger points (enters play, attacks, dies, advance phase)
- Target resolution by selector, YAR restriction and filter
- Dispatch of each action to its handler
- Effect-chain depth bookkeeping

The resolver never touches the board directly. Movement, unit creation
and unit removal go through GameEngine primitives so the engine stays
the only writer of positions.
"""

from __future__ import annotations
from typing import Any, Callable, TYPE_CHECKING
import logging

from ..card_schema.card_def import CardInstance, CardKind
from ..card_schema.effect_dsl import (
    Effect,
    EffectAction,
    EffectArea,
    EffectTrigger,
    FilterController,
    FilterLocation,
    TargetFilter,
    TargetSelector,
    PLAYER_ACTIONS,
    UNIT_ACTIONS,
)
from .action import EffectResult
from .board import Position
from .events import EventType
from .player import Player
from .state import Buff, EffectExecution, EffectSource, Unit

if TYPE_CHECKING:
    from .engine import GameEngine

logger = logging.getLogger(__name__)


# Actions whose targets are cards rather than units
CARD_ACTIONS = frozenset({
    EffectAction.DISCARD,
    EffectAction.RETURN_TO_HAND,
    EffectAction.RESURRECT,
})

TARGETING_MESSAGES = {
    EffectAction.ROOT: "Select a unit to root",
    EffectAction.PUSH: "Select a unit to push forward",
    EffectAction.PULL: "Select a unit to pull back",
    EffectAction.TELEPORT: "Select a unit to teleport",
    EffectAction.DISCARD: "Select a card to discard",
    EffectAction.RETURN_TO_HAND: "Select cards to return to hand",
    EffectAction.RESURRECT: "Select a unit to resurrect",
}


def targeting_message(effect: Effect) -> str:
    return TARGETING_MESSAGES.get(effect.resolved_action, "Select a target")


class EffectResolver:
    """
    Resolves card effects for one engine.

    Every handler returns an EffectResult; nothing raises for a missing
    or mismatched target.
    """

    def __init__(self, engine: GameEngine):
        self.engine = engine

    @property
    def state(self):
        return self.engine.state

    # ------------------------------------------------------------------
    # Trigger points
    # ------------------------------------------------------------------

    def handle_unit_played(self, unit: Unit) -> list[EffectResult]:
        """Resolve WARSHOUT effects of a unit that just entered play."""
        results = []
        for effect in unit.effects_for(EffectTrigger.WARSHOUT):
            logger.debug("Warshout from %s: %s", unit.name, effect)
            results.extend(self.resolve_on_play(unit, effect, unit.owner_id))
        return results

    def handle_spell_played(self, card: CardInstance, controller_id: int) -> list[EffectResult]:
        """A spell resolves all of its effects as on-play effects."""
        results = []
        for effect in card.definition.effects:
            if effect.trigger == EffectTrigger.TAUNT:
                continue
            logger.debug("Spell %s: %s", card.name, effect)
            results.extend(self.resolve_on_play(card, effect, controller_id))
        return results

    def handle_attack(self, attacker: Unit, defender: Unit) -> list[EffectResult]:
        """Resolve STRIKE effects; the defender is always the target."""
        results = []
        for effect in attacker.effects_for(EffectTrigger.STRIKE):
            logger.debug("Strike from %s against %s", attacker.name, defender.name)
            results.append(self.execute_effect_action(attacker, effect, defender, attacker.owner_id))
        return results

    def handle_unit_death(self, unit: Unit, killer: Unit | None = None) -> list[EffectResult]:
        """Resolve DEATHBLOW on the dead unit, then DEATHSTRIKE on its killer."""
        results = []
        for effect in unit.effects_for(EffectTrigger.DEATHBLOW):
            if effect.resolved_action in CARD_ACTIONS:
                target = self._death_card_target(unit, effect)
            else:
                target = unit if effect.target == TargetSelector.SELF else killer
            results.append(self.execute_effect_action(unit, effect, target, unit.owner_id))

        if killer is not None:
            for effect in killer.effects_for(EffectTrigger.DEATHSTRIKE):
                target = killer if effect.target == TargetSelector.SELF else unit
                results.append(self.execute_effect_action(killer, effect, target, killer.owner_id))
        return results

    def _death_card_target(self, unit: Unit, effect: Effect) -> CardInstance | None:
        """
        Card target for a DEATHBLOW card action.

        SELF means the dead unit's own card, already in its owner's
        graveyard. Other selectors take the first valid card candidate.
        """
        if effect.target != TargetSelector.SELF:
            candidates = self.get_valid_targets(effect, unit, unit.owner_id)
            return candidates[0] if candidates else None

        owner = self.state.get_player(unit.owner_id)
        if owner is None:
            return None
        if unit.instance is not None:
            index = owner.graveyard_index_of(unit.instance.instance_id)
            return owner.graveyard[index] if index is not None else None
        for card in reversed(owner.graveyard):
            if card.card_id == unit.card_id:
                return card
        return None

    def handle_advance_phase(self, player_id: int) -> None:
        """
        Tick ROOT durations for the advancing player's units.

        Runs after those units have moved, and only for the player whose
        turn it is. A root of N turns therefore holds the unit in place
        for N of its owner's advances. Ticking every unit before movement
        would let a one-turn root expire before it ever blocked a step.
        """
        player = self.state.get_player(player_id)
        if player is None:
            return
        for unit in player.units:
            if not unit.is_rooted or unit.root_duration is None:
                continue
            unit.root_duration -= 1
            if unit.root_duration <= 0:
                unit.is_rooted = False
                unit.root_duration = None
                self.engine.emit(EventType.ROOT_EXPIRED, unit.owner_id, unit_id=unit.unit_id)

    def resolve_on_play(
        self, source: EffectSource, effect: Effect, controller_id: int
    ) -> list[EffectResult]:
        """
        Resolve one on-play effect.

        Interactive effects open a targeting session. Unit actions hit
        every valid target, or one random target when the area is SINGLE.
        Player actions and everything else run once without a target.
        """
        if effect.requires_targeting:
            opened = self.engine.enter_targeting_mode(source, effect, controller_id)
            if not opened.success:
                return [EffectResult.failed(opened.error)]
            return [EffectResult(success=True, message="awaiting target")]

        action = effect.resolved_action
        if action in PLAYER_ACTIONS:
            return [self.execute_effect_action(source, effect, None, controller_id)]
        if action in UNIT_ACTIONS:
            targets = self.get_valid_targets(effect, source, controller_id)
            if not targets:
                return [EffectResult.failed("No valid targets")]
            if effect.area == EffectArea.SINGLE and not effect.hits_all_targets:
                targets = [self.engine.rng.choice(targets)]
            return [
                self.execute_effect_action(source, effect, target, controller_id)
                for target in targets
            ]
        return [self.execute_effect_action(source, effect, None, controller_id)]

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def controller_of(self, source: EffectSource) -> int:
        if isinstance(source, Unit):
            return source.owner_id
        return self.state.current_player.player_id

    def get_valid_targets(
        self, effect: Effect, source: EffectSource, controller_id: int | None = None
    ) -> list[Any]:
        """Candidate targets for an effect from `source`."""
        if controller_id is None:
            controller_id = self.controller_of(source)

        if effect.resolved_action in CARD_ACTIONS:
            candidates = self._card_candidates(effect.resolved_action, controller_id)
        else:
            candidates = self._unit_candidates(effect.target, source, controller_id)

        if effect.yar:
            candidates = [t for t in candidates if isinstance(t, Unit) and self.is_in_yar(t, controller_id)]
        if effect.filter is not None:
            candidates = [t for t in candidates if self.matches_filter(t, effect.filter, controller_id)]
        return candidates

    def _unit_candidates(
        self, selector: TargetSelector, source: EffectSource, controller_id: int
    ) -> list[Unit]:
        if selector == TargetSelector.SELF:
            return [source] if isinstance(source, Unit) else []
        if selector == TargetSelector.ALLY:
            player = self.state.get_player(controller_id)
            if player is None:
                return []
            return [u for u in player.units if u is not source]
        if selector == TargetSelector.ENEMY:
            enemy = self.state.opponent_of(controller_id)
            return list(enemy.units) if enemy else []
        # ALL / ANY
        return self.state.all_units()

    def _card_candidates(self, action: EffectAction, controller_id: int) -> list[CardInstance]:
        player = self.state.get_player(controller_id)
        if player is None:
            return []
        if action == EffectAction.DISCARD:
            return list(player.hand)
        if action == EffectAction.RESURRECT:
            return [c for c in player.graveyard if c.kind == CardKind.UNIT]
        return list(player.graveyard)

    def is_in_yar(self, unit: Unit, controller_id: int) -> bool:
        """Within yar_range rows of the controller's own spawn edge."""
        spawn = self.engine.spawn_row(controller_id)
        direction = self.engine.forward_direction(controller_id)
        return (unit.position.row - spawn) * direction < self.engine.config.yar_range

    def matches_filter(self, target: Any, filter: TargetFilter, controller_id: int) -> bool:
        if isinstance(target, Unit):
            kind, archetype, cost = CardKind.UNIT.value, target.archetype, target.cost
            attack, health, effects = target.attack, target.health, target.effects
        elif isinstance(target, CardInstance):
            definition = target.definition
            kind, archetype, cost = definition.kind.value, definition.archetype, definition.cost
            attack, health, effects = definition.attack, definition.health, definition.effects
        else:
            return False

        if filter.card_type and kind != filter.card_type.upper():
            return False
        if filter.archetype and archetype != filter.archetype:
            return False
        if not _within(cost, filter.min_cost, filter.max_cost):
            return False
        if attack is not None and not _within(attack, filter.min_attack, filter.max_attack):
            return False
        if health is not None and not _within(health, filter.min_health, filter.max_health):
            return False
        if filter.has_effect and not any(e.trigger == filter.has_effect for e in effects):
            return False

        if filter.location is not None and not self._in_location(target, filter.location, controller_id):
            return False

        if isinstance(target, Unit):
            if filter.controller == FilterController.SELF and target.owner_id != controller_id:
                return False
            if filter.controller == FilterController.ENEMY and target.owner_id == controller_id:
                return False
            if filter.in_yar and not self.is_in_yar(target, controller_id):
                return False
            if filter.is_rooted is not None and target.is_rooted != filter.is_rooted:
                return False
        return True

    def _in_location(self, target: Any, location: FilterLocation, controller_id: int) -> bool:
        if isinstance(target, Unit):
            return location == FilterLocation.FIELD and self.state.find_unit(target.unit_id) is target
        player = self.state.get_player(controller_id)
        if player is None:
            return False
        if location == FilterLocation.HAND:
            return player.hand_index_of(target.instance_id) is not None
        if location == FilterLocation.GRAVEYARD:
            return player.graveyard_index_of(target.instance_id) is not None
        return False

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_effect_action(
        self,
        source: EffectSource,
        effect: Effect,
        target: Any = None,
        controller_id: int | None = None,
    ) -> EffectResult:
        """Run the effect's action against `target`."""
        if controller_id is None:
            controller_id = self.controller_of(source)

        stack = self.state.effect_stack
        if len(stack) >= self.engine.config.max_effect_depth:
            logger.warning("Effect chain too deep; skipping %s from %s", effect.trigger.value, source.name)
            return EffectResult.failed("Effect chain too deep")

        if effect.uses_damage_fallback:
            logger.warning(
                "Effect %s from %s has no action; falling back to DAMAGE",
                effect.trigger.value, source.name,
            )
        action = effect.resolved_action
        handler = self._get_handler(action)
        logger.debug("Executing %s from %s on %r", action.value, source.name, target)

        stack.append(EffectExecution(source.name, effect.trigger, len(stack) + 1))
        try:
            if handler is None:
                return EffectResult.failed(f"unsupported action {action.value}")
            return handler(source, effect, target, controller_id)
        finally:
            stack.pop()

    def _get_handler(self, action: EffectAction) -> Callable | None:
        handlers = {
            EffectAction.DAMAGE: self._handle_damage,
            EffectAction.HEAL: self._handle_heal,
            EffectAction.BUFF: self._handle_buff,
            EffectAction.DRAW: self._handle_draw,
            EffectAction.ROOT: self._handle_root,
            EffectAction.REDUCE_COST: self._handle_reduce_cost,
            EffectAction.PUSH: self._handle_push,
            EffectAction.PULL: self._handle_pull,
            EffectAction.TELEPORT: self._handle_teleport,
            EffectAction.DISCARD: self._handle_discard,
            EffectAction.RETURN_TO_HAND: self._handle_return_to_hand,
            EffectAction.RESURRECT: self._handle_resurrect,
        }
        return handlers.get(action)

    def _handle_damage(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not effect.value:
            return EffectResult.failed("DAMAGE needs a value")
        if isinstance(target, Unit):
            target.health -= effect.value
            lethal = target.is_dead
            self.engine.emit(
                EventType.DAMAGE_DEALT, controller_id,
                source=source.name, unit_id=target.unit_id, amount=effect.value, lethal=lethal,
            )
            if lethal:
                killer = source if isinstance(source, Unit) else None
                self.engine.register_lethal(target, killer)
            return EffectResult(True, details={"amount": effect.value, "lethal": lethal})
        if isinstance(target, Player):
            target.health -= effect.value
            self.engine.emit(
                EventType.DAMAGE_DEALT, controller_id,
                source=source.name, player_id=target.player_id, amount=effect.value,
            )
            if target.is_defeated:
                self.engine.emit(EventType.PLAYER_DEFEATED, target.player_id, health=target.health)
            return EffectResult(True, details={"amount": effect.value})
        return _invalid_target(EffectAction.DAMAGE)

    def _handle_heal(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not effect.value:
            return EffectResult.failed("HEAL needs a value")
        if not isinstance(target, (Unit, Player)):
            return _invalid_target(EffectAction.HEAL)
        amount = max(0, min(effect.value, target.max_health - target.health))
        target.health += amount
        key = {"unit_id": target.unit_id} if isinstance(target, Unit) else {"player_id": target.player_id}
        self.engine.emit(EventType.HEALING_DONE, controller_id, source=source.name, amount=amount, **key)
        return EffectResult(True, details={"amount": amount})

    def _handle_buff(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not effect.value:
            return EffectResult.failed("BUFF needs a value")
        if not isinstance(target, Unit):
            return _invalid_target(EffectAction.BUFF)
        target.attack += effect.value
        target.health += effect.value
        target.max_health += effect.value
        buff = Buff(
            buff_id=self.engine.next_id("buff"),
            source=source.name,
            attack=effect.value,
            health=effect.value,
        )
        target.buffs.append(buff)
        self.engine.emit(
            EventType.BUFF_APPLIED, controller_id,
            source=source.name, unit_id=target.unit_id, attack=effect.value, health=effect.value,
        )
        return EffectResult(True, details={"buff_id": buff.buff_id})

    def _handle_draw(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        player = self.state.get_player(controller_id)
        if player is None:
            return EffectResult.failed("Unknown player")
        count = effect.value or 1
        drawn = self.engine.draw_cards(player, count)
        return EffectResult(True, details={"drawn": drawn})

    def _handle_root(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, Unit):
            return _invalid_target(EffectAction.ROOT)
        if effect.yar_restricted and not self.is_in_yar(target, controller_id):
            return EffectResult.failed("Target not in YAR")
        duration = effect.value or 1
        target.is_rooted = True
        target.root_duration = duration
        target.buffs.append(Buff(
            buff_id=self.engine.next_id("buff"),
            source=source.name,
            duration=duration,
            buff_type="ROOT",
        ))
        self.engine.emit(
            EventType.UNIT_ROOTED, controller_id,
            source=source.name, unit_id=target.unit_id, duration=duration,
        )
        return EffectResult(True, details={"duration": duration})

    def _handle_reduce_cost(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        player = self.state.get_player(controller_id)
        if player is None:
            return EffectResult.failed("Unknown player")
        archetype = None
        if effect.filter is not None:
            archetype = effect.filter.archetype or effect.filter.card_type
        if not archetype:
            archetype = self.engine.config.default_cost_reduction_archetype
            logger.warning(
                "REDUCE_COST from %s has no archetype; using placeholder %r",
                source.name, archetype,
            )
        amount = effect.value or self.engine.config.default_cost_reduction
        total = player.add_cost_reduction(archetype, amount)
        self.engine.emit(
            EventType.COST_REDUCTION_APPLIED, controller_id,
            archetype=archetype, reduction=amount, total=total,
            message=f"Next {archetype} costs ({amount}) less",
        )
        return EffectResult(True, details={"archetype": archetype, "reduction": amount})

    def _handle_push(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, Unit) or not isinstance(source, Unit):
            logger.warning("Push needs a unit source and a unit target")
            return _invalid_target(EffectAction.PUSH)

        if source.position.row < target.position.row:
            direction = 1
        elif source.position.row > target.position.row:
            direction = -1
        elif target.owner_id != source.owner_id:
            # Same row: push enemies away from the caster's spawn
            direction = self.engine.forward_direction(source.owner_id)
        else:
            return EffectResult.failed("Cannot push - same row")

        distance = self._step(target, direction, effect.value or 1)
        if distance == 0:
            return EffectResult.failed("Could not push unit")

        self.engine.emit(
            EventType.UNIT_PUSHED, controller_id,
            source=source.name, unit_id=target.unit_id,
            distance=distance, position=target.position,
        )
        if target.position.row == self.engine.enemy_spawn_row(target.owner_id):
            logger.info("%s was pushed onto the enemy spawn row", target.name)
            self.engine.declare_winner(target.owner_id, f"{target.name} reached enemy spawn!")
        return EffectResult(True, f"Pushed {distance} spaces", {"actual_distance": distance})

    def _handle_pull(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, Unit):
            return _invalid_target(EffectAction.PULL)
        direction = -self.engine.forward_direction(target.owner_id)
        distance = self._step(target, direction, effect.value or 1)
        if distance == 0:
            return EffectResult.failed("Could not pull unit")
        self.engine.emit(
            EventType.UNIT_PULLED, controller_id,
            source=source.name, unit_id=target.unit_id,
            distance=distance, position=target.position,
        )
        return EffectResult(True, f"Pulled {distance} spaces", {"actual_distance": distance})

    def _step(self, unit: Unit, direction: int, distance: int) -> int:
        """Move `unit` up to `distance` single rows; stop at the first blocked tile."""
        moved = 0
        for _ in range(distance):
            if not self.engine.move_unit_forced(unit, unit.position.offset(drow=direction), announce=False):
                break
            moved += 1
        return moved

    def _handle_teleport(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, Unit) or not isinstance(source, Unit):
            return _invalid_target(EffectAction.TELEPORT)
        origin = target.position
        destination = source.position.offset(drow=self.engine.forward_direction(source.owner_id))
        if not self.engine.move_unit_forced(target, destination, announce=False):
            return EffectResult.failed("Invalid teleport destination")
        self.engine.emit(
            EventType.UNIT_TELEPORTED, controller_id,
            source=source.name, unit_id=target.unit_id, from_position=origin, to_position=destination,
        )
        return EffectResult(True, details={"position": destination})

    def _handle_discard(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, CardInstance):
            return _invalid_target(EffectAction.DISCARD)
        player = self.state.get_player(controller_id)
        index = player.hand_index_of(target.instance_id) if player else None
        if index is None:
            return EffectResult.failed("Card not in hand")
        card = player.hand.pop(index)
        player.graveyard.append(card)
        self.engine.emit(
            EventType.CARD_DISCARDED, controller_id,
            card_id=card.card_id, instance_id=card.instance_id,
        )
        return EffectResult(True)

    def _handle_return_to_hand(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if isinstance(target, CardInstance):
            cards = [target]
        elif isinstance(target, (list, tuple)) and all(isinstance(c, CardInstance) for c in target):
            cards = list(target)
        else:
            return _invalid_target(EffectAction.RETURN_TO_HAND)
        player = self.state.get_player(controller_id)
        if player is None or not cards:
            return EffectResult.failed("Nothing to return")

        returned = 0
        for card in cards:
            if player.hand_full:
                break
            index = player.graveyard_index_of(card.instance_id)
            if index is None:
                continue
            player.hand.append(player.graveyard.pop(index))
            returned += 1
            self.engine.emit(
                EventType.CARD_RETURNED_TO_HAND, controller_id,
                card_id=card.card_id, instance_id=card.instance_id,
            )
        return EffectResult(returned > 0, f"Returned {returned} cards to hand", {"returned": returned})

    def _handle_resurrect(self, source, effect: Effect, target, controller_id: int) -> EffectResult:
        if not isinstance(target, CardInstance) or target.kind != CardKind.UNIT:
            return _invalid_target(EffectAction.RESURRECT)
        player = self.state.get_player(controller_id)
        if player is None:
            return EffectResult.failed("Unknown player")

        positions = self.engine.valid_spawn_positions(controller_id)
        if not positions:
            return EffectResult.failed("No valid spawn positions")
        index = player.graveyard_index_of(target.instance_id)
        if index is None:
            return EffectResult.failed("Card not in graveyard")

        player.graveyard.pop(index)
        position: Position = self.engine.rng.choice(positions)
        unit = self.engine.create_unit_from_card(
            target.definition, controller_id, position, instance=target,
        )
        self.engine.emit(
            EventType.UNIT_RESURRECTED, controller_id,
            unit_id=unit.unit_id, card_id=target.card_id, position=position,
        )
        return EffectResult(True, details={"unit_id": unit.unit_id})


def _within(value: int, low: int | None, high: int | None) -> bool:
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _invalid_target(action: EffectAction) -> EffectResult:
    return EffectResult.failed(f"invalid target for {action.value}")
