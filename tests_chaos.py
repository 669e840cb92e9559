#!/usr/bin/env python3
"""
Tests for the chaos mutation layer

Validates:
1.  Level -> tier boundaries (0 / 25 / 50 / 75 / 100)
2.  ChaosConfig is a pure function of the level
3.  Higher tiers dominate lower ones (categories, period, active cap)
4.  Mutation catalog shape and eligibility
5.  Same level + seed + milestones -> same category sequence
6.  Timed activation, expiry and the active cap
7.  Rule mutations go through the RuleEngine mutation surface
8.  Parameters are restored on revert
"""

import sys
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.game_schema import ChaosTier, MutationCategory
from game_engine.chaos import (
    ALL_MUTATIONS, ChaosEngine, build_chaos_config, chaos_level_to_tier,
    get_chaos_preset, get_eligible_mutations, get_mutation_by_id, get_mutations_by_category,
)
from game_engine.chaos.mutations import (
    CURSED_COINS, GOAL_SHIFT, GOAL_TYPES, NARRATOR_CHAOS, SCORE_REVERSE, VOID_MERCY,
    MutationContext,
)
from game_engine.rules import get_combined_rules
from game_engine.rules.interpreter import GameState, RuleEngine
from tools.seed_rng import SeededStream

BASE_PARAMS = {"gravity_y": 800.0, "friction": 0.3, "bounciness": 0.8, "pixel_scale": 1.0}


def _engine(level, seed=48213, verbs=("shoot", "collect")):
    rules = RuleEngine(get_combined_rules(list(verbs)))
    return ChaosEngine(level, internal_seed=seed, rule_engine=rules, base_params=BASE_PARAMS)


def _run_milestones(chaos, count, step=50):
    state = GameState()
    for _ in range(count):
        chaos.rules.apply_effect(f"score+{step}", state)
        chaos.observe_score(state)
    return state


# ============================================================
# Tiers & Config
# ============================================================

def test_tier_boundaries():
    expected = {
        -5: ChaosTier.ORDER, 0: ChaosTier.ORDER,
        1: ChaosTier.MILD, 25: ChaosTier.MILD,
        26: ChaosTier.EMERGENT, 50: ChaosTier.EMERGENT,
        51: ChaosTier.WILD, 75: ChaosTier.WILD,
        76: ChaosTier.SURREAL, 100: ChaosTier.SURREAL, 150: ChaosTier.SURREAL,
    }
    for level, tier in expected.items():
        assert chaos_level_to_tier(level) == tier, level


def test_config_is_pure():
    for level in (0, 13, 60, 99):
        assert build_chaos_config(level) == build_chaos_config(level)


def test_order_config():
    config = build_chaos_config(0)
    assert config.tier == ChaosTier.ORDER
    assert config.mutations == []
    assert config.mutation_frequency_ms is None
    assert config.max_active_mutations == 0
    assert config.milestone_interval is None


def test_mild_config():
    config = build_chaos_config(25)
    assert config.allowed_categories == [MutationCategory.VISUAL, MutationCategory.PHYSICS]
    assert config.mutation_frequency_ms == 90_000
    assert config.max_active_mutations == 1
    assert config.mutations == ["color_invert", "pixel_mega", "mirror_world", "gravity_flip",
                                "friction_ice", "gravity_float", "friction_honey", "bounce_extreme"]


def test_higher_tiers_dominate():
    previous = build_chaos_config(0)
    for level in range(1, 101):
        config = build_chaos_config(level)
        assert set(previous.allowed_categories) <= set(config.allowed_categories), level
        assert set(previous.mutations) <= set(config.mutations), level
        prev_period = previous.mutation_frequency_ms or float("inf")
        assert (config.mutation_frequency_ms or float("inf")) <= prev_period, level
        assert config.max_active_mutations >= previous.max_active_mutations, level
        previous = config


def test_surreal_allows_everything():
    config = build_chaos_config(100)
    assert len(config.allowed_categories) == 5
    assert config.mutations == [m.id for m in ALL_MUTATIONS]
    assert config.max_active_mutations == 999
    assert config.mutation_frequency_ms == 15_000


def test_presets():
    assert get_chaos_preset("wild") == build_chaos_config(75)
    assert get_chaos_preset(ChaosTier.ORDER) == build_chaos_config(0)
    try:
        get_chaos_preset("bananas")
    except ValueError:
        pass
    else:
        raise AssertionError("unknown preset should raise")


# ============================================================
# Catalog
# ============================================================

def test_catalog_shape():
    ids = [m.id for m in ALL_MUTATIONS]
    assert len(ids) == len(set(ids)) == 19
    for category in MutationCategory:
        assert get_mutations_by_category(category), category
    assert all(m.min_chaos_level > 75 for m in get_mutations_by_category("narrative"))
    assert all(m.min_chaos_level > 50 for m in get_mutations_by_category("rule"))
    assert all(m.min_chaos_level > 25 for m in get_mutations_by_category("entity"))
    assert get_mutation_by_id("nope") is None
    assert get_mutation_by_id("goal_shift").is_permanent


def test_eligibility_by_level():
    assert get_eligible_mutations(0) == []
    assert [m.id for m in get_eligible_mutations(1)] == ["color_invert"]
    assert len(get_eligible_mutations(100)) == 19


# ============================================================
# Determinism
# ============================================================

def test_same_seed_same_category_sequence():
    a = _engine(80)
    b = _engine(80)
    _run_milestones(a, 20)
    _run_milestones(b, 20)
    assert a.category_history
    assert a.category_history == b.category_history
    assert a.active_mutations == b.active_mutations
    assert a.parameters == b.parameters
    assert a.rules.get_rules() == b.rules.get_rules()


def test_seed_changes_sequence():
    sequences = set()
    for seed in range(1, 21):
        chaos = _engine(80, seed=seed)
        _run_milestones(chaos, 8)
        sequences.add(tuple(chaos.category_history))
    assert len(sequences) > 1


def test_global_random_never_used():
    with patch("random.random", side_effect=AssertionError("global random used")), \
         patch("random.choice", side_effect=AssertionError("global random used")):
        chaos = _engine(100)
        _run_milestones(chaos, 10)
        chaos.on_tick(60_000)


def test_categories_stay_in_tier():
    chaos = _engine(40)
    _run_milestones(chaos, 30)
    allowed = {c.value for c in build_chaos_config(40).allowed_categories}
    assert set(chaos.category_history) <= allowed


# ============================================================
# Scheduling
# ============================================================

def test_order_never_mutates():
    chaos = _engine(0)
    assert chaos.activate() is None
    assert _run_milestones(chaos, 5) is not None
    assert chaos.category_history == []
    assert not chaos.should_trigger(10**9, 0)
    assert chaos.on_tick(10**9) is None


def test_should_trigger_period():
    chaos = _engine(10)
    assert not chaos.should_trigger(89_999, 0)
    assert chaos.should_trigger(90_000, 0)
    assert not chaos.should_trigger(120_000, 60_000)


def test_tick_activation_and_expiry():
    chaos = _engine(25)
    assert chaos.on_tick(45_000) is None
    active = chaos.on_tick(90_000)
    assert active is not None
    assert chaos.active_mutations == [active.id]
    assert active.expires_ms == 90_000 + active.mutation.duration_ms
    assert chaos.expire(90_000 + active.mutation.duration_ms - 1) == []
    assert chaos.expire(90_000 + active.mutation.duration_ms) == [active.id]
    assert chaos.active_mutations == []
    assert chaos.parameters == BASE_PARAMS


def test_active_cap_replaces_oldest():
    chaos = _engine(40)
    for _ in range(6):
        chaos.activate()
        assert len(chaos.active_mutations) <= 2
    assert chaos.activation_count == 6


def test_cap_keeps_oldest_when_nothing_can_replace_it():
    chaos = _engine(10)
    first = chaos.activate()
    params = chaos.parameters
    # No category can be drawn any more
    chaos.config = chaos.config.model_copy(update={"category_weights": {}})
    assert chaos.activate() is None
    assert chaos.active_mutations == [first.id]
    assert chaos.parameters == params
    assert chaos.activation_count == 1


def test_active_mutations_never_share_a_parameter():
    chaos = _engine(100)
    for _ in range(30):
        chaos.activate()
        touched = []
        for mutation_id in chaos.active_mutations:
            touched.extend(get_mutation_by_id(mutation_id).touches)
        assert len(touched) == len(set(touched))


def test_milestones_only_count_upward_crossings():
    chaos = _engine(100)          # milestone every 50 points
    state = GameState()
    chaos.rules.apply_effect("score+120", state)
    assert len(chaos.observe_score(state)) == 2
    chaos.rules.apply_effect("score-100", state)
    assert chaos.observe_score(state) == []
    chaos.rules.apply_effect("score+40", state)
    assert len(chaos.observe_score(state)) == 1


def test_set_level_down_reverts_disallowed():
    chaos = _engine(100)
    for _ in range(12):
        chaos.activate()
    chaos.set_level(10)
    allowed = set(build_chaos_config(10).mutations)
    assert set(chaos.active_mutations) <= allowed
    assert len(chaos.active_mutations) <= 1
    assert chaos.tier == ChaosTier.MILD


def test_revert_all_restores_everything():
    chaos = _engine(100)
    base_rules = chaos.rules.get_rules()
    _run_milestones(chaos, 15)
    chaos.revert_all()
    assert chaos.active_mutations == []
    assert chaos.parameters == BASE_PARAMS
    assert sorted(r.model_dump_json() for r in chaos.rules.get_rules()) == \
        sorted(r.model_dump_json() for r in base_rules)


# ============================================================
# Rule & Narrative Mutations
# ============================================================

def _ctx(rules, state=None):
    return MutationContext(rules=rules, params={}, stream=SeededStream(7, channel="chaos"),
                           nonce=0, state=state)


def test_score_reverse_rewrites_rules():
    rules = RuleEngine(get_combined_rules([]))
    ctx = _ctx(rules)
    undo = SCORE_REVERSE.apply(ctx)
    state = GameState(score=5)
    rules.process_event("player_collect_coin", state)
    assert state.score == 4
    SCORE_REVERSE.revert(ctx, undo)
    rules.process_event("player_collect_coin", state)
    assert state.score == 5
    assert rules.get_rules() == get_combined_rules([])


def test_cursed_coins_adds_and_removes():
    rules = RuleEngine(get_combined_rules([]))
    ctx = _ctx(rules)
    undo = CURSED_COINS.apply(ctx)
    state = GameState(score=0, health=3)
    rules.process_event("player_collect_coin", state)
    assert (state.score, state.health) == (1, 2)
    CURSED_COINS.revert(ctx, undo)
    assert rules.get_rules() == get_combined_rules([])
    assert "coins_cursed" not in ctx.params


def test_void_mercy_swaps_fall_rules():
    rules = RuleEngine(get_combined_rules([]))
    ctx = _ctx(rules)
    undo = VOID_MERCY.apply(ctx)
    state = GameState(health=3)
    rules.process_event("player_fall_out", state)
    assert (state.health, state.score) == (3, 1)
    VOID_MERCY.revert(ctx, undo)
    rules.process_event("player_fall_out", state)
    assert state.health == 2
    triggers = [r.action for r in rules.get_rules() if r.trigger == "player_fall_out"]
    assert triggers == ["damage_player"]


def test_score_reverse_ending_first_leaves_later_rules_alone():
    rules = RuleEngine(get_combined_rules([]))
    reverse_ctx = _ctx(rules)
    mercy_ctx = _ctx(rules)
    reverse_undo = SCORE_REVERSE.apply(reverse_ctx)
    mercy_undo = VOID_MERCY.apply(mercy_ctx)
    SCORE_REVERSE.revert(reverse_ctx, reverse_undo)

    state = GameState(score=10)
    rules.process_event("player_fall_out", state)
    assert state.score == 11
    rules.process_event("player_collect_coin", state)
    assert state.score == 12

    VOID_MERCY.revert(mercy_ctx, mercy_undo)
    assert sorted(rules.get_rules(), key=lambda r: r.dedup_key()) == \
        sorted(get_combined_rules([]), key=lambda r: r.dedup_key())


def test_score_reverse_unflips_rules_it_flipped_for_others():
    rules = RuleEngine(get_combined_rules([]))
    mercy_ctx = _ctx(rules)
    reverse_ctx = _ctx(rules)
    mercy_undo = VOID_MERCY.apply(mercy_ctx)
    reverse_undo = SCORE_REVERSE.apply(reverse_ctx)

    state = GameState(score=10)
    rules.process_event("player_fall_out", state)
    assert state.score == 9

    SCORE_REVERSE.revert(reverse_ctx, reverse_undo)
    rules.process_event("player_fall_out", state)
    assert state.score == 10
    VOID_MERCY.revert(mercy_ctx, mercy_undo)
    assert sorted(rules.get_rules(), key=lambda r: r.dedup_key()) == \
        sorted(get_combined_rules([]), key=lambda r: r.dedup_key())


def test_goal_shift_uses_interpreter_and_seed():
    rules = RuleEngine()
    state = GameState()
    ctx = _ctx(rules, state)
    undo = GOAL_SHIFT.apply(ctx)
    assert state.flags.get("goal_shifted") is True
    assert ctx.params["goal_type"] in GOAL_TYPES
    assert ctx.params["goal_type"] != "reach_goal"

    again = _ctx(RuleEngine(), GameState())
    GOAL_SHIFT.apply(again)
    assert again.params["goal_type"] == ctx.params["goal_type"]

    GOAL_SHIFT.revert(ctx, undo)
    assert ctx.params == {}


def test_narrator_offsets_seeded():
    ctx = _ctx(RuleEngine())
    undo = NARRATOR_CHAOS.apply(ctx)
    assert -100 <= ctx.params["score_display_offset"] <= 99
    assert -1 <= ctx.params["health_display_offset"] <= 1
    NARRATOR_CHAOS.revert(ctx, undo)
    assert ctx.params == {}


def test_chaos_holds_no_rule_copy():
    rules = RuleEngine(get_combined_rules(["shoot"]))
    chaos = ChaosEngine(100, internal_seed=3, rule_engine=rules)
    assert chaos.rules is rules
    assert not any(isinstance(v, list) and v and hasattr(v[0], "trigger")
                   for v in vars(chaos).values())


if __name__ == "__main__":
    tests = [obj for name, obj in sorted(globals().items())
             if name.startswith("test_") and callable(obj)]

    print(f"\n{'='*60}")
    print(f"Chaos Layer Tests — {len(tests)} tests")
    print(f"{'='*60}\n")

    passed = 0
    failed = 0
    for test in tests:
        try:
            test()
            passed += 1
            print(f"✅ {test.__name__}")
        except Exception as e:
            print(f"❌ {test.__name__}: {e}")
            failed += 1

    print(f"\n{'='*60}")
    print(f"Results: {passed} passed, {failed} failed, {passed + failed} total")
    print(f"{'='*60}")

    sys.exit(0 if failed == 0 else 1)
