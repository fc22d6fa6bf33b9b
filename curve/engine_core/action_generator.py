"""
Action Generator - Enumerates every legal command for the current state.

Used by:
1. UI collaborators to highlight playable cards, tiles and attacks
2. Tests and tooling that drive a match without hand-written scripts
3. Validation (is this action in legal_actions?)

Generated actions are fully specified and can be passed straight to
GameEngine.apply().
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..card_schema.card_def import CardKind
from .action import Action, ActionType
from .board import Position
from .state import GamePhase, Unit

if TYPE_CHECKING:
    from .engine import GameEngine


@dataclass
class ActionGenerator:
    """Generates legal actions for one engine."""
    engine: GameEngine

    def generate(self) -> list[Action]:
        state = self.engine.state
        if state.game_over or not self.engine.started or state.automatic_phase_pending:
            return []

        # While a target is pending, only targeting responses are legal
        if state.targeting is not None:
            actions = [Action.resolve_targeting(t) for t in state.targeting.valid_targets]
            actions.append(Action.cancel_targeting())
            return actions

        if state.pending_actions:
            return self._generate_setup_actions()

        if state.phase == GamePhase.PLAY:
            return self._generate_play_actions() + [Action.advance_phase()]
        if state.phase == GamePhase.BATTLE:
            return self._generate_attack_actions() + [Action.advance_phase()]
        if state.phase == GamePhase.END:
            return [Action.advance_phase()]
        return []

    def _generate_setup_actions(self) -> list[Action]:
        actions = []
        for pending in self.engine.state.pending_actions:
            for pos in self.engine.valid_spawn_positions(pending.player_id):
                actions.append(Action.place_starting_unit(pending.player_id, pos))
        return actions

    def _generate_play_actions(self) -> list[Action]:
        """One action per affordable card and free spawn tile (spells need no tile)."""
        player = self.engine.current_player
        spawn_tiles = self.engine.valid_spawn_positions(player.player_id)
        actions = []
        for index, card in enumerate(player.hand):
            if player.effective_cost(card) > player.mana:
                continue
            if card.kind == CardKind.SPELL:
                actions.append(Action.play_card(index))
                continue
            for pos in spawn_tiles:
                actions.append(Action.play_card(index, pos))
        return actions

    def _generate_attack_actions(self) -> list[Action]:
        actions = []
        for unit in self.engine.current_player.units:
            for target in self.engine.valid_attack_targets(unit.unit_id):
                if isinstance(target, Unit):
                    actions.append(Action.attack(unit.unit_id, target.unit_id))
                elif isinstance(target, Position):
                    actions.append(Action.attack_spawn_tile(unit.unit_id, target))
        return actions


def legal_actions(engine: GameEngine) -> list[Action]:
    """Convenience function to get legal actions."""
    return ActionGenerator(engine=engine).generate()


def is_legal(engine: GameEngine, action: Action) -> bool:
    """Check if a specific action is legal."""
    for candidate in legal_actions(engine):
        if candidate.action_type != action.action_type:
            continue
        a, b = candidate.payload, action.payload
        if action.action_type == ActionType.RESOLVE_TARGETING:
            if a.target == b.target:
                return True
        elif (
            a.player_id == b.player_id
            and a.unit_id == b.unit_id
            and a.target_id == b.target_id
            and a.hand_index == b.hand_index
            and a.position == b.position
        ):
            return True
    return False
