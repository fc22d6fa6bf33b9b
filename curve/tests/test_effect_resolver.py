"""
Tests for effect resolution.

Tests:
- On-play, strike, death and kill triggers of the base cards
- Interactive targeting and YAR restriction
- Every action handler, including failure paths
- Effect chain depth bound
"""

import logging

import pytest

from ..card_schema.card_def import CardDefinition, CardInstance, CardKind
from ..card_schema.effect_dsl import (
    Effect,
    EffectAction,
    EffectArea,
    EffectTrigger,
    FilterController,
    FilterLocation,
    TargetFilter,
    TargetSelector,
    deathblow,
    warshout,
)
from ..card_schema.validation import validate_card
from ..catalog.cards import KRIPER, TITAN
from ..engine_core.action import ErrorCode
from ..engine_core.board import Position
from ..engine_core.config import GameConfig
from ..engine_core.engine import GameEngine
from ..engine_core.events import EventType
from ..engine_core.state import EffectExecution, GamePhase
from .conftest import give_card, kriper_deck, open_play, pass_turn, set_mana, spawn


FIRESTORM = CardDefinition(
    id="firestorm",
    name="Firestorm",
    cost=3,
    kind=CardKind.SPELL,
    effects=(warshout(TargetSelector.ALL, EffectAction.DAMAGE, 1),),
)

SMITE = CardDefinition(
    id="smite",
    name="Smite",
    cost=2,
    kind=CardKind.SPELL,
    effects=(warshout(TargetSelector.ENEMY, EffectAction.DAMAGE, 3, requires_targeting=True),),
)

SPARK = CardDefinition(
    id="spark",
    name="Spark",
    cost=1,
    kind=CardKind.SPELL,
    effects=(warshout(TargetSelector.ENEMY, EffectAction.DAMAGE, 1, area=EffectArea.SINGLE),),
)

HOMING_DOVE = CardDefinition(
    id="homing_dove",
    name="Homing Dove",
    cost=2,
    kind=CardKind.UNIT,
    attack=1,
    health=1,
    effects=(deathblow(EffectAction.RETURN_TO_HAND, 1),),
)

PHOENIX = CardDefinition(
    id="phoenix",
    name="Phoenix",
    cost=4,
    kind=CardKind.UNIT,
    attack=2,
    health=1,
    effects=(deathblow(EffectAction.RESURRECT, 1),),
)


def types(result):
    return [e.event_type for e in result.events]


@pytest.fixture
def spell_engine(config, catalog) -> GameEngine:
    engine = GameEngine(
        [kriper_deck("p1"), kriper_deck("p2")],
        catalog=catalog.with_cards([FIRESTORM, SMITE, SPARK, HOMING_DOVE, PHOENIX]),
        config=config,
    )
    open_play(engine)
    set_mana(engine, 1, 10)
    return engine


class TestWarshout:
    """Tests for on-play effects of the base cards."""

    def test_warchief_buffs_all_other_allies(self, play_engine):
        kriper = spawn(play_engine, "kriper", 1, 4, 0)
        mercenary = spawn(play_engine, "mercenary", 1, 3, 1)
        enemy = spawn(play_engine, "kriper", 2, 1, 1)

        index = give_card(play_engine, 1, "warchief")
        result = play_engine.play_card(index, Position(4, 3))

        assert result.success
        assert (kriper.attack, kriper.health, kriper.max_health) == (2, 2, 2)
        assert (mercenary.attack, mercenary.health) == (3, 3)
        assert (enemy.attack, enemy.health) == (1, 1)
        warchief = play_engine.state.find_unit(result.details["unit_id"])
        assert (warchief.attack, warchief.health) == (3, 3)
        assert warchief.buffs == []
        assert types(result).count(EventType.BUFF_APPLIED) == 2
        assert kriper.buffs[0].source == "Warchief"

    def test_cleric_heals_without_exceeding_max(self, play_engine):
        mercenary = spawn(play_engine, "mercenary", 1, 4, 0)
        mercenary.health = 1
        kriper = spawn(play_engine, "kriper", 1, 4, 1)

        result = play_engine.play_card(give_card(play_engine, 1, "cleric"), Position(4, 2))

        assert result.success
        assert mercenary.health == mercenary.max_health == 2
        assert kriper.health == 1
        amounts = [e.get("amount") for e in result.events if e.event_type == EventType.HEALING_DONE]
        assert amounts == [1, 0]

    def test_ritualist_discounts_next_nether_card(self, play_engine):
        player = play_engine.get_player(1)
        play_engine.play_card(give_card(play_engine, 1, "ritualist"), Position(4, 0))
        assert player.cost_reductions == {"Nether": 2}

        index = give_card(play_engine, 1, "berserker")
        assert player.effective_cost(player.hand[index]) == 2
        mana_before = player.mana
        result = play_engine.play_card(index, Position(4, 1))

        assert result.success
        assert player.mana == mana_before - 2
        assert player.cost_reductions == {}

    def test_failed_play_keeps_discount(self, play_engine):
        player = play_engine.get_player(1)
        play_engine.play_card(give_card(play_engine, 1, "ritualist"), Position(4, 0))
        set_mana(play_engine, 1, 1)

        result = play_engine.play_card(give_card(play_engine, 1, "berserker"), Position(4, 1))

        assert result.error_code == ErrorCode.NOT_ENOUGH_MANA
        assert player.get_cost_reduction("Nether") == 2

    def test_reduce_cost_without_archetype_uses_placeholder(self, play_engine, caplog):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        effect = Effect(EffectTrigger.WARSHOUT, action=EffectAction.REDUCE_COST)
        with caplog.at_level(logging.WARNING):
            result = play_engine.resolver.execute_effect_action(source, effect, None, 1)
        assert result.success
        assert play_engine.get_player(1).cost_reductions == {"DEMON": 2}
        assert "placeholder" in caplog.text


class TestTargeting:
    """Tests for interactive target selection (Thornweaver)."""

    @pytest.fixture
    def rooting(self, play_engine):
        near = spawn(play_engine, "kriper", 2, 3, 2)
        far = spawn(play_engine, "kriper", 2, 1, 2)
        result = play_engine.play_card(give_card(play_engine, 1, "thornweaver"), Position(4, 0))
        return play_engine, near, far, result

    def test_opens_session_with_yar_targets_only(self, rooting):
        engine, near, far, result = rooting
        assert result.success
        assert EventType.TARGETING_MODE_ENTERED in types(result)
        session = engine.state.targeting
        assert session is not None
        assert session.valid_targets == [near]
        assert session.message == "Select a unit to root"

    def test_commands_blocked_while_targeting(self, rooting):
        engine = rooting[0]
        assert engine.advance_phase().error_code == ErrorCode.TARGETING_ACTIVE
        index = give_card(engine, 1, "kriper")
        assert engine.play_card(index, Position(4, 5)).error_code == ErrorCode.TARGETING_ACTIVE

    def test_resolve_rejects_invalid_target(self, rooting):
        engine, near, far, _ = rooting
        result = engine.resolve_targeting(far)
        assert result.error_code == ErrorCode.INVALID_TARGET
        assert engine.state.targeting is not None
        assert not far.is_rooted

    def test_resolve_roots_target(self, rooting):
        engine, near, _, _ = rooting
        result = engine.resolve_targeting(near)
        assert result.success
        assert result.details["effect_success"]
        assert near.is_rooted
        assert near.root_duration == 1
        assert near.buffs[-1].buff_type == "ROOT"
        assert engine.state.targeting is None
        assert EventType.UNIT_ROOTED in types(result)
        assert EventType.TARGETING_MODE_EXITED in types(result)

    def test_cancel(self, rooting):
        engine, near, _, _ = rooting
        result = engine.exit_targeting_mode()
        assert result.success
        assert engine.state.targeting is None
        assert not near.is_rooted
        assert engine.exit_targeting_mode().error_code == ErrorCode.NO_TARGETING

    def test_no_targets_means_no_session(self, play_engine):
        result = play_engine.play_card(give_card(play_engine, 1, "thornweaver"), Position(4, 0))
        assert result.success
        assert play_engine.state.targeting is None
        assert not result.details["effects"][0].success

    def test_root_blocks_exactly_one_advance(self, rooting):
        engine, near, far, _ = rooting
        expired = []
        engine.subscribe(expired.append, EventType.ROOT_EXPIRED)
        engine.resolve_targeting(near)

        pass_turn(engine)  # player 2's automatic phases run now

        assert engine.current_player.player_id == 2
        assert engine.state.phase == GamePhase.PLAY
        assert near.position == Position(3, 2)
        assert far.position == Position(2, 2)
        assert not near.is_rooted
        assert len(expired) == 1

        pass_turn(engine)
        pass_turn(engine)

        assert near.position == Position(4, 2)
        assert engine.state.game_over
        assert engine.state.winner == 2


class TestStrike:
    """Tests for on-attack effects."""

    def test_berserker_extra_damage_via_fallback(self, battle_engine, caplog):
        berserker = spawn(battle_engine, "berserker", 1, 3, 3)
        titan = spawn(battle_engine, "titan", 2, 2, 3)
        with caplog.at_level(logging.WARNING):
            result = battle_engine.attack(berserker.unit_id, titan.unit_id)
        assert result.success
        assert result.details["damage"] == 4
        assert titan.health == 1
        assert berserker.health == 3
        assert "falling back to DAMAGE" in caplog.text

    def test_fallback_warns_once_per_execution(self, play_engine, caplog):
        source = spawn(play_engine, "kriper", 1, 3, 3)
        target = spawn(play_engine, "titan", 2, 2, 3)
        effect = Effect(EffectTrigger.STRIKE, TargetSelector.ENEMY, 2)
        resolver = play_engine.resolver
        with caplog.at_level(logging.WARNING):
            assert resolver.get_valid_targets(effect, source, 1) == [target]
            assert effect.resolved_action == EffectAction.DAMAGE
            resolver.execute_effect_action(source, effect, target, 1)
        warnings = [r for r in caplog.records if "falling back to DAMAGE" in r.getMessage()]
        assert len(warnings) == 1
        assert target.health == 4

    def test_battering_ram_pushes_defender(self, battle_engine):
        ram = spawn(battle_engine, "battering_ram", 1, 3, 3)
        guard = spawn(battle_engine, "guard", 2, 2, 3)
        result = battle_engine.attack(ram.unit_id, guard.unit_id)
        assert result.success
        assert guard.health == 2
        assert guard.position == Position(1, 3)
        assert battle_engine.state.board.occupant(Position(1, 3)) == guard.unit_id
        assert battle_engine.state.board.is_empty(Position(2, 3))
        pushed = [e for e in result.events if e.event_type == EventType.UNIT_PUSHED]
        assert pushed[0].get("distance") == 1

    def test_blocked_push_fails_quietly(self, battle_engine):
        ram = spawn(battle_engine, "battering_ram", 1, 3, 3)
        guard = spawn(battle_engine, "guard", 2, 2, 3)
        spawn(battle_engine, "kriper", 2, 1, 3)
        result = battle_engine.attack(ram.unit_id, guard.unit_id)
        assert result.success
        assert guard.position == Position(2, 3)
        assert not result.details["effects"][0].success

    def test_push_onto_enemy_spawn_row_wins(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 2, 3)
        ally = spawn(play_engine, "kriper", 1, 1, 3)
        effect = Effect(EffectTrigger.STRIKE, TargetSelector.ALLY, 1, EffectAction.PUSH)

        result = play_engine.resolver.execute_effect_action(source, effect, ally, 1)

        assert result.success
        assert ally.position == Position(0, 3)
        assert play_engine.state.game_over
        assert play_engine.state.winner == 1
        assert "reached enemy spawn" in play_engine.state.win_reason

    def test_push_stops_at_first_blocked_tile(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 3)
        target = spawn(play_engine, "kriper", 2, 3, 3)
        spawn(play_engine, "kriper", 2, 1, 3)
        effect = Effect(EffectTrigger.STRIKE, TargetSelector.ENEMY, 3, EffectAction.PUSH)
        result = play_engine.resolver.execute_effect_action(source, effect, target, 1)
        assert result.success
        assert result.details["actual_distance"] == 1
        assert target.position == Position(2, 3)


class TestDeathTriggers:
    """Tests for DEATHBLOW and DEATHSTRIKE."""

    def test_shade_damages_its_killer(self, battle_engine):
        mercenary = spawn(battle_engine, "mercenary", 1, 3, 3)
        shade = spawn(battle_engine, "shade", 2, 2, 3)
        result = battle_engine.attack(mercenary.unit_id, shade.unit_id)
        assert result.success
        assert mercenary.health == 1
        assert battle_engine.state.find_unit(shade.unit_id) is None
        assert battle_engine.state.board.is_empty(Position(2, 3))
        assert [c.card_id for c in battle_engine.get_player(2).graveyard] == ["shade"]
        died = [e for e in result.events if e.event_type == EventType.UNIT_DIED]
        assert died[0].get("killer_id") == mercenary.unit_id

    def test_death_chain_removes_both(self, battle_engine):
        kriper = spawn(battle_engine, "kriper", 1, 3, 3)
        shade = spawn(battle_engine, "shade", 2, 2, 3)
        result = battle_engine.attack(kriper.unit_id, shade.unit_id)
        assert result.success
        assert battle_engine.state.all_units() == []
        assert types(result).count(EventType.UNIT_DIED) == 2
        assert battle_engine.state.effect_stack == []

    def test_soul_reaper_grows_on_kill(self, battle_engine):
        reaper = spawn(battle_engine, "soul_reaper", 1, 3, 3)
        mercenary = spawn(battle_engine, "mercenary", 2, 2, 4)
        result = battle_engine.attack(reaper.unit_id, mercenary.unit_id)
        assert result.success
        assert (reaper.attack, reaper.health, reaper.max_health) == (4, 4, 4)

    def test_dead_unit_returns_to_hand(self, spell_engine):
        assert validate_card(HOMING_DOVE).valid
        spell_engine.state.phase = GamePhase.BATTLE
        titan = spawn(spell_engine, "titan", 1, 3, 3)
        dove = spawn(spell_engine, "homing_dove", 2, 2, 3)
        owner = spell_engine.get_player(2)
        hand_size = len(owner.hand)

        result = spell_engine.attack(titan.unit_id, dove.unit_id)

        assert result.success
        assert spell_engine.state.find_unit(dove.unit_id) is None
        assert len(owner.hand) == hand_size + 1
        assert owner.hand[-1].card_id == "homing_dove"
        assert owner.graveyard == []
        assert EventType.CARD_RETURNED_TO_HAND in types(result)

    def test_dead_unit_resurrects_itself(self, spell_engine):
        assert validate_card(PHOENIX).valid
        spell_engine.state.phase = GamePhase.BATTLE
        titan = spawn(spell_engine, "titan", 1, 3, 3)
        phoenix = spawn(spell_engine, "phoenix", 2, 2, 3)
        owner = spell_engine.get_player(2)

        result = spell_engine.attack(titan.unit_id, phoenix.unit_id)

        assert result.success
        assert spell_engine.state.find_unit(phoenix.unit_id) is None
        assert [u.card_id for u in owner.units] == ["phoenix"]
        reborn = owner.units[0]
        assert reborn.position.row == 0
        assert reborn.health == 1
        assert reborn.instance is not None
        assert owner.graveyard == []
        assert EventType.UNIT_RESURRECTED in types(result)

    def test_death_card_target_prefers_own_instance(self, spell_engine):
        owner = spell_engine.get_player(2)
        older = CardInstance(PHOENIX, "old-phoenix")
        mine = CardInstance(PHOENIX, "my-phoenix")
        owner.graveyard.append(older)
        phoenix = spell_engine.create_unit_from_card(PHOENIX, 2, Position(2, 3), instance=mine)
        phoenix.health = 0
        spell_engine._finalize_deaths()

        assert owner.graveyard == [older]
        assert owner.units[0].instance is mine

    def test_depth_bound_stops_chain(self, catalog):
        config = GameConfig(random_seed=1, max_effect_depth=1, strict_invariants=True)
        engine = GameEngine([kriper_deck("a"), kriper_deck("b")], catalog=catalog, config=config)
        open_play(engine)
        engine.state.phase = GamePhase.BATTLE
        mercenary = spawn(engine, "mercenary", 1, 3, 3)
        shade = spawn(engine, "shade", 2, 2, 3)
        assert engine.attack(mercenary.unit_id, shade.unit_id).success
        assert mercenary.health == 2


class TestSpells:
    """Tests for spell cards."""

    def test_area_spell_hits_everything(self, spell_engine):
        own = spawn(spell_engine, "kriper", 1, 4, 0)
        spawn(spell_engine, "kriper", 2, 1, 1)
        guard = spawn(spell_engine, "guard", 2, 1, 2)
        player = spell_engine.get_player(1)

        result = spell_engine.play_card(give_card(spell_engine, 1, "firestorm"))

        assert result.success
        assert EventType.SPELL_PLAYED in types(result)
        assert spell_engine.state.find_unit(own.unit_id) is None
        assert spell_engine.state.all_units() == [guard]
        assert guard.health == 3
        assert sorted(c.card_id for c in player.graveyard) == ["firestorm", "kriper"]
        assert player.mana == 7

    def test_single_area_hits_one_target(self, spell_engine):
        first = spawn(spell_engine, "kriper", 2, 1, 1)
        second = spawn(spell_engine, "kriper", 2, 1, 4)

        result = spell_engine.play_card(give_card(spell_engine, 1, "spark"))

        assert result.success
        assert len(result.details["effects"]) == 1
        survivors = spell_engine.state.all_units()
        assert len(survivors) == 1
        assert survivors[0] in (first, second)

    def test_targeted_spell(self, spell_engine):
        mercenary = spawn(spell_engine, "mercenary", 2, 1, 1)
        result = spell_engine.play_card(give_card(spell_engine, 1, "smite"))
        assert result.success
        session = spell_engine.state.targeting
        assert session.source.card_id == "smite"

        result = spell_engine.resolve_targeting(mercenary)
        assert result.success
        assert spell_engine.state.find_unit(mercenary.unit_id) is None


class TestActionHandlers:
    """Tests for the individual action handlers."""

    def test_discard_card_not_in_hand(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        player = play_engine.get_player(1)
        before = [c.instance_id for c in player.hand]
        effect = Effect(EffectTrigger.WARSHOUT, action=EffectAction.DISCARD)

        result = play_engine.resolver.execute_effect_action(
            source, effect, CardInstance(KRIPER, "not-held"), 1,
        )

        assert not result.success
        assert [c.instance_id for c in player.hand] == before

    def test_discard(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        player = play_engine.get_player(1)
        card = player.hand[0]
        effect = Effect(EffectTrigger.WARSHOUT, action=EffectAction.DISCARD)
        assert play_engine.resolver.execute_effect_action(source, effect, card, 1).success
        assert card not in player.hand
        assert player.graveyard[-1] is card

    def test_return_to_hand_list(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        player = play_engine.get_player(1)
        cards = [CardInstance(KRIPER, "g1"), CardInstance(TITAN, "g2")]
        player.graveyard.extend(cards)
        effect = Effect(EffectTrigger.DEATHBLOW, action=EffectAction.RETURN_TO_HAND, value=2)

        result = play_engine.resolver.execute_effect_action(source, effect, cards, 1)

        assert result.success
        assert result.details["returned"] == 2
        assert player.graveyard == []
        assert player.hand[-2:] == cards

    def test_resurrect_places_on_spawn_row(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        player = play_engine.get_player(1)
        titan_card = CardInstance(TITAN, "dead-titan")
        spell = CardInstance(FIRESTORM, "dead-spell")
        player.graveyard.extend([titan_card, spell])
        effect = Effect(EffectTrigger.DEATHBLOW, action=EffectAction.RESURRECT, value=1)

        assert play_engine.resolver.get_valid_targets(effect, source, 1) == [titan_card]
        result = play_engine.resolver.execute_effect_action(source, effect, titan_card, 1)

        assert result.success
        unit = play_engine.state.find_unit(result.details["unit_id"])
        assert unit.card_id == "titan"
        assert unit.instance is titan_card
        assert unit.position.row == 4
        assert player.graveyard == [spell]
        assert not play_engine.resolver.execute_effect_action(source, effect, spell, 1).success

    def test_draw(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        player = play_engine.get_player(1)
        before = len(player.hand)
        effect = Effect(EffectTrigger.DEATHSTRIKE, action=EffectAction.DRAW, value=2)
        result = play_engine.resolver.execute_effect_action(source, effect, None, 1)
        assert result.details["drawn"] == 2
        assert len(player.hand) == before + 2

    def test_heal_never_exceeds_max(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        target = spawn(play_engine, "titan", 1, 4, 1)
        target.health = 2
        effect = Effect(EffectTrigger.WARSHOUT, TargetSelector.ALLY, 100, EffectAction.HEAL)
        play_engine.resolver.execute_effect_action(source, effect, target, 1)
        assert target.health == target.max_health == 6

    def test_damage_and_heal_players(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        resolver = play_engine.resolver
        enemy = play_engine.get_player(2)
        resolver.execute_effect_action(
            source, Effect(EffectTrigger.WARSHOUT, value=5, action=EffectAction.DAMAGE), enemy, 1,
        )
        assert enemy.health == 25
        resolver.execute_effect_action(
            source, Effect(EffectTrigger.WARSHOUT, value=9, action=EffectAction.HEAL), enemy, 1,
        )
        assert enemy.health == 30

    def test_pull_moves_toward_owner_spawn(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        target = spawn(play_engine, "kriper", 2, 2, 3)
        effect = Effect(EffectTrigger.WARSHOUT, TargetSelector.ENEMY, 1, EffectAction.PULL)
        result = play_engine.resolver.execute_effect_action(source, effect, target, 1)
        assert result.success
        assert target.position == Position(1, 3)

    def test_teleport_in_front_of_source(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 3, 0)
        target = spawn(play_engine, "kriper", 2, 1, 5)
        effect = Effect(EffectTrigger.WARSHOUT, TargetSelector.ENEMY, action=EffectAction.TELEPORT)
        result = play_engine.resolver.execute_effect_action(source, effect, target, 1)
        assert result.success
        assert target.position == Position(2, 0)
        assert play_engine.state.board.occupant(Position(2, 0)) == target.unit_id

    def test_teleport_onto_occupied_tile_fails(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 3, 0)
        spawn(play_engine, "guard", 1, 2, 0)
        target = spawn(play_engine, "kriper", 2, 1, 5)
        effect = Effect(EffectTrigger.WARSHOUT, TargetSelector.ENEMY, action=EffectAction.TELEPORT)

        result = play_engine.resolver.execute_effect_action(source, effect, target, 1)

        assert not result.success
        assert result.message == "Invalid teleport destination"
        assert target.position == Position(1, 5)
        assert play_engine.state.board.occupant(Position(1, 5)) == target.unit_id

    def test_teleport_off_the_board_fails(self, play_engine):
        source = spawn(play_engine, "kriper", 2, 4, 2)
        target = spawn(play_engine, "kriper", 1, 3, 5)
        effect = Effect(EffectTrigger.WARSHOUT, TargetSelector.ENEMY, action=EffectAction.TELEPORT)

        result = play_engine.resolver.execute_effect_action(source, effect, target, 2)

        assert not result.success
        assert target.position == Position(3, 5)

    def test_resurrect_with_full_spawn_row_fails(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        for col in range(1, 7):
            spawn(play_engine, "kriper", 1, 4, col)
        player = play_engine.get_player(1)
        titan_card = CardInstance(TITAN, "dead-titan")
        player.graveyard.append(titan_card)
        units_before = list(player.units)
        effect = Effect(EffectTrigger.DEATHBLOW, action=EffectAction.RESURRECT, value=1)

        result = play_engine.resolver.execute_effect_action(source, effect, titan_card, 1)

        assert not result.success
        assert result.message == "No valid spawn positions"
        assert player.graveyard == [titan_card]
        assert player.units == units_before

    def test_wrong_target_variant(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        effect = Effect(EffectTrigger.WARSHOUT, value=1, action=EffectAction.DAMAGE)
        result = play_engine.resolver.execute_effect_action(source, effect, CardInstance(KRIPER, "x"), 1)
        assert not result.success
        assert result.message == "invalid target for DAMAGE"

    @pytest.mark.parametrize("action", [EffectAction.STUN, EffectAction.SUMMON])
    def test_unsupported_actions(self, play_engine, action):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        result = play_engine.resolver.execute_effect_action(
            source, Effect(EffectTrigger.WARSHOUT, action=action), source, 1,
        )
        assert not result.success
        assert result.message == f"unsupported action {action.value}"

    def test_depth_limit(self, play_engine):
        source = spawn(play_engine, "kriper", 1, 4, 0)
        stack = play_engine.state.effect_stack
        for depth in range(play_engine.config.max_effect_depth):
            stack.append(EffectExecution("test", EffectTrigger.WARSHOUT, depth + 1))
        effect = Effect(EffectTrigger.WARSHOUT, value=1, action=EffectAction.BUFF)
        result = play_engine.resolver.execute_effect_action(source, effect, source, 1)
        assert not result.success
        assert source.attack == 1
        stack.clear()


class TestTargetSelection:
    """Tests for selectors, YAR and filters."""

    def test_yar_for_each_side(self, play_engine):
        resolver = play_engine.resolver
        p1_near = spawn(play_engine, "kriper", 2, 3, 0)
        p1_far = spawn(play_engine, "kriper", 2, 2, 0)
        assert resolver.is_in_yar(p1_near, 1)
        assert not resolver.is_in_yar(p1_far, 1)
        p2_near = spawn(play_engine, "kriper", 1, 1, 6)
        assert resolver.is_in_yar(p2_near, 2)
        assert not resolver.is_in_yar(p1_far, 2)

    def test_filters(self, play_engine):
        resolver = play_engine.resolver
        source = spawn(play_engine, "kriper", 1, 4, 0)
        guard = spawn(play_engine, "guard", 2, 1, 1)
        kriper = spawn(play_engine, "kriper", 2, 1, 2)
        kriper.is_rooted = True

        def pick(**bounds):
            effect = Effect(
                EffectTrigger.WARSHOUT, TargetSelector.ANY, 1, EffectAction.DAMAGE,
                filter=TargetFilter(**bounds),
            )
            return resolver.get_valid_targets(effect, source, 1)

        assert pick(min_health=3) == [guard]
        assert pick(has_effect=EffectTrigger.TAUNT) == [guard]
        assert pick(is_rooted=True) == [kriper]
        assert pick(controller=FilterController.SELF) == [source]
        assert set(u.unit_id for u in pick(controller=FilterController.ENEMY)) == {
            guard.unit_id, kriper.unit_id,
        }
        assert pick(card_type="spell") == []
        assert len(pick(location=FilterLocation.FIELD)) == 3

    def test_card_filter_by_location(self, play_engine):
        resolver = play_engine.resolver
        source = spawn(play_engine, "kriper", 1, 4, 0)
        effect = Effect(
            EffectTrigger.WARSHOUT, action=EffectAction.DISCARD,
            filter=TargetFilter(location=FilterLocation.HAND, max_cost=1),
        )
        hand = play_engine.get_player(1).hand
        assert resolver.get_valid_targets(effect, source, 1) == hand
