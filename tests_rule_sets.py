#!/usr/bin/env python3
"""
Tests for rule-set composition and feedback loops

Validates:
1.  The platformer baseline is always included, first
2.  Verb bundles compose in registry order, deduplicated
3.  Composition is idempotent and ignores verb order
4.  Shared contact-damage rules appear once
5.  Registry lookups reject unknown verbs
6.  Every bundled rule parses under strict mode
7.  Feedback loops: universal first, one per verb
8.  Hardcore drops the universal positive loop
9.  Relaxed keeps only the universal negative loop
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.game_schema import CoreVerb, DifficultyStyle, LoopType
from game_engine.rules import (
    RULE_BUNDLES, RULE_VERBS, get_combined_rules, get_rule_bundle,
)
from game_engine.rules.feedback_loops import (
    get_feedback_loops, get_negative_feedback_loops, get_positive_feedback_loops,
)
from game_engine.rules.interpreter import lint_rules
from game_engine.rules.platformer import PlatformerRules
from game_engine.rules.shooter import ShooterRules


# ============================================================
# Composer
# ============================================================

def test_registry_order():
    assert list(RULE_BUNDLES) == ["platformer", "shoot", "collect", "dodge", "build"]
    assert RULE_VERBS == ["shoot", "collect", "dodge", "build"]


def test_baseline_always_included():
    baseline = PlatformerRules().build_rules()
    assert get_combined_rules([]) == baseline
    assert get_combined_rules(["jump"]) == baseline
    assert get_combined_rules(["explore", "craft"]) == baseline
    assert get_combined_rules(["shoot"])[:len(baseline)] == baseline


def test_composition_is_idempotent():
    first = get_combined_rules(["shoot"])
    second = get_combined_rules(["shoot"])
    assert [r.model_dump_json() for r in first] == [r.model_dump_json() for r in second]


def test_no_duplicate_triples():
    rules = get_combined_rules(["shoot", "collect"])
    keys = [r.dedup_key() for r in rules]
    assert len(keys) == len(set(keys))

    contact = [r for r in rules
               if r.dedup_key() == ("enemy_touch_player", "damage_player", "health-1")]
    assert len(contact) == 1


def test_shooter_count_after_dedup():
    # 6 baseline + 6 shooter, one shared contact-damage rule
    assert len(get_combined_rules(["shoot"])) == 11


def test_verb_order_does_not_matter():
    a = get_combined_rules(["collect", "shoot", "dodge"])
    b = get_combined_rules(["dodge", "shoot", "collect"])
    assert a == b


def test_enum_verbs_accepted():
    assert get_combined_rules([CoreVerb.BUILD]) == get_combined_rules(["build"])
    triggers = {r.trigger for r in get_combined_rules([CoreVerb.BUILD])}
    assert "player_place_block" in triggers
    assert "block_chain_complete" in triggers


def test_collect_bundle_contents():
    effects = {(r.trigger, r.effect) for r in get_rule_bundle("collect").build_rules()}
    assert ("player_collect_item", "score+1") in effects
    assert ("player_collect_powerup", "flag=powerup_active") in effects
    assert ("player_collect_key", "flag=key_collected") in effects
    assert ("all_items_collected", "level+1") in effects


def test_get_rule_bundle():
    assert isinstance(get_rule_bundle("shoot"), ShooterRules)
    assert isinstance(get_rule_bundle(CoreVerb.SHOOT), ShooterRules)
    assert isinstance(get_rule_bundle("Platformer"), PlatformerRules)
    for bad in ["teleport", "jump"]:
        try:
            get_rule_bundle(bad)
        except ValueError as e:
            assert bad in str(e)
        else:
            raise AssertionError(f"get_rule_bundle({bad!r}) should raise")


def test_bundles_are_strictly_parsable():
    for name, cls in RULE_BUNDLES.items():
        assert lint_rules(cls().build_rules()) == [], name


def test_bundle_metadata():
    meta = get_rule_bundle("dodge").get_metadata()
    assert meta["verb"] == "dodge"
    assert meta["rule_count"] == 5
    assert meta["triggers"][0] == "player_dodge_enemy"


# ============================================================
# Feedback Loops
# ============================================================

def test_hardcore_drops_universal_positive():
    loops = get_positive_feedback_loops(["jump"], "hardcore")
    assert len(loops) == 1
    assert loops[0].mechanic == "jump"
    assert all("combo multiplier" not in l.description for l in loops)


def test_relaxed_keeps_only_universal_negative():
    loops = get_negative_feedback_loops(["jump"], "relaxed")
    assert len(loops) == 1
    assert loops[0].mechanic == "universal"
    assert "enemy spawn rate" in loops[0].description


def test_universal_loop_first():
    positive = get_positive_feedback_loops(["shoot", "dodge"], DifficultyStyle.STEADY)
    assert positive[0].mechanic == "universal"
    assert "combo multiplier" in positive[0].description
    assert [l.mechanic for l in positive[1:]] == ["shoot", "dodge"]
    assert all(l.type == LoopType.POSITIVE for l in positive)


def test_every_verb_has_loops():
    verbs = [v.value for v in CoreVerb]
    positive = get_positive_feedback_loops(verbs, "steady")
    negative = get_negative_feedback_loops(verbs, "steady")
    assert len(positive) == len(verbs) + 1
    assert len(negative) == len(verbs) + 1
    assert [l.mechanic for l in positive[1:]] == verbs


def test_difficulty_changes_selection_not_content():
    steady = get_positive_feedback_loops(["collect"], "steady")
    hardcore = get_positive_feedback_loops(["collect"], "hardcore")
    assert steady[1:] == hardcore
    relaxed = get_positive_feedback_loops(["collect"], "relaxed")
    assert relaxed == steady
    assert get_negative_feedback_loops(["collect"], "hardcore") == \
        get_negative_feedback_loops(["collect"], "rollercoaster")


def test_unknown_verbs_ignored():
    loops = get_positive_feedback_loops(["teleport", "jump", "jump"], "steady")
    assert [l.mechanic for l in loops] == ["universal", "jump"]


def test_feedback_loop_set():
    loops = get_feedback_loops(["build"], "steady")
    assert len(loops.positive) == 2
    assert len(loops.negative) == 2
    assert loops.negative[1].variables == ["structure_count", "enemy_aggression", "hazard_frequency"]


if __name__ == "__main__":
    tests = [obj for name, obj in sorted(globals().items())
             if name.startswith("test_") and callable(obj)]

    print(f"\n{'='*60}")
    print(f"Rule Set Tests — {len(tests)} tests")
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
