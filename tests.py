#!/usr/bin/env python3
"""
SEEDFORGE - Unit Test Suite

Run: python tests.py
     python tests.py -v              # verbose
     python tests.py TestSeedCodec   # run specific class

Test categories:
  TestSeedCodec        - encode/decode, seed alphabet, chaos quantization
  TestEffectGrammar    - effect parsing, fallback and strict mode
  TestConditionGrammar - condition parsing and evaluation
  TestRuleEngine       - dispatch, effect application, rule-set mutation
"""

import sys
import unittest
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.game_schema import CoreVerb, GravityMode, RuleDef, UserChoices
from game_engine.seed import (
    SEED_ALPHABET, SEED_SPACE, UNKNOWN_SEED, decode_internal_seed, decode_seed_code,
    encode_internal_seed, encode_seed_code, generate_share_url, normalize_internal_seed,
    quantize_chaos,
)
from game_engine.rules.expressions import (
    AlwaysCondition, ArithmeticEffect, CompareCondition, CustomEffect, ExpressionError,
    FlagEffect, SignalEffect, TriggerEffect, UnknownCondition, evaluate_condition,
    parse_condition, parse_effect,
)
from game_engine.rules.interpreter import GameState, RuleEngine, lint_rules


# ============================================================
# Seed Codec
# ============================================================

class TestSeedCodec(unittest.TestCase):

    def test_alphabet_is_33_unambiguous_symbols(self):
        self.assertEqual(len(SEED_ALPHABET), 33)
        self.assertEqual(len(set(SEED_ALPHABET)), 33)
        for ch in "ILO":
            self.assertNotIn(ch, SEED_ALPHABET)
        self.assertEqual(SEED_SPACE, 1_185_921)

    def test_encode_layout(self):
        choices = UserChoices(verbs=[CoreVerb.SHOOT, CoreVerb.COLLECT], gravity=GravityMode.LOW,
                              world_difference="colors_alive", chaos_level=40)
        self.assertEqual(encode_seed_code(choices, 0), "SHOT-FLOT-COLR4-0000")

    def test_internal_seed_digits(self):
        self.assertEqual(encode_internal_seed(0), "0000")
        self.assertEqual(encode_internal_seed(33), "0010")
        self.assertEqual(encode_internal_seed(SEED_SPACE - 1), "ZZZZ")
        # Seeds past the space alias modulo it
        self.assertEqual(encode_internal_seed(SEED_SPACE), "0000")
        self.assertEqual(encode_internal_seed(SEED_SPACE + 33), "0010")

    def test_internal_seed_round_trip(self):
        choices = UserChoices()
        for seed in list(range(0, SEED_SPACE, 7919)) + [SEED_SPACE - 1]:
            code = encode_seed_code(choices, seed)
            self.assertEqual(decode_seed_code(code).internal_seed, seed, code)

    def test_normalize_internal_seed(self):
        self.assertEqual(normalize_internal_seed(-5), 5)
        self.assertEqual(normalize_internal_seed(2.5), 3)
        self.assertEqual(normalize_internal_seed("not a number"), 0)
        self.assertEqual(normalize_internal_seed(float("nan")), 0)
        self.assertEqual(normalize_internal_seed(None), 0)

    def test_malformed_code_decodes_to_unknown(self):
        for code in ["A-B-C", "", "JUMP", "JUMP-NORM-COLR0-0000-EXTRA", None, 42]:
            decoded = decode_seed_code(code)
            self.assertEqual(decoded, UNKNOWN_SEED, code)
            self.assertIsNone(decoded.verb)
            self.assertIsNone(decoded.gravity)
            self.assertIsNone(decoded.world_difference)
            self.assertEqual(decoded.chaos_level, 0)
            self.assertEqual(decoded.internal_seed, 0)

    def test_decode_is_per_field(self):
        decoded = decode_seed_code("XXXX-NORM-COLRZ-00I0")
        self.assertIsNone(decoded.verb)
        self.assertEqual(decoded.gravity, GravityMode.NORMAL)
        self.assertEqual(decoded.world_difference, "colors_alive")
        self.assertEqual(decoded.chaos_level, 0)       # non-digit chaos
        self.assertEqual(decoded.internal_seed, 0)     # I is not in the alphabet

    def test_decode_unknown_and_custom_world(self):
        self.assertIsNone(decode_seed_code("JUMP-NORM-ABCD5-0001").world_difference)
        self.assertEqual(decode_seed_code("JUMP-NORM-ABCD5-0001").chaos_level, 55)
        self.assertEqual(decode_seed_code("JUMP-NORM-CSTM0-0001").world_difference, "custom")

    def test_decode_short_seed_segment(self):
        self.assertEqual(decode_seed_code("JUMP-NORM-COLR0-001").internal_seed, 0)
        self.assertEqual(decode_internal_seed("00000"), 0)

    def test_decode_is_case_insensitive(self):
        decoded = decode_seed_code("shot-flot-colr4-0010")
        self.assertEqual(decoded.verb, CoreVerb.SHOOT)
        self.assertEqual(decoded.gravity, GravityMode.LOW)
        self.assertEqual(decoded.chaos_level, 44)
        self.assertEqual(decoded.internal_seed, 33)

    def test_chaos_quantization_bound(self):
        for level in range(0, 101):
            code = encode_seed_code(UserChoices(chaos_level=level), 1)
            decoded = decode_seed_code(code).chaos_level
            self.assertLessEqual(abs(decoded - level), 11, level)
        for level in range(0, 100, 11):
            code = encode_seed_code(UserChoices(chaos_level=level), 1)
            self.assertEqual(decode_seed_code(code).chaos_level, level)

    def test_quantize_clamps(self):
        self.assertEqual(quantize_chaos(-40), 0)
        self.assertEqual(quantize_chaos(100), 9)
        self.assertEqual(quantize_chaos(500), 9)
        self.assertEqual(quantize_chaos(5.5), 1)    # half-up
        self.assertEqual(quantize_chaos(5), 0)

    def test_encode_never_raises(self):
        junk = {"verbs": ["nope"], "gravity": "sideways", "world_difference": 5, "chaos_level": "abc"}
        self.assertEqual(encode_seed_code(junk, "xyz"), "JUMP-NORM-CSTM0-0000")
        self.assertEqual(encode_seed_code({}, None), "JUMP-NORM-CSTM0-0000")
        self.assertEqual(encode_seed_code({"verbs": 7}, 0), "JUMP-NORM-CSTM0-0000")

    def test_custom_world_text_encodes_as_custom(self):
        code = encode_seed_code(UserChoices(world_difference="shadows remember you"), 0)
        self.assertEqual(code.split("-")[2], "CSTM0")

    def test_decode_then_encode_is_stable(self):
        code = "DASH-RVRS-TIME7-K3P9"
        decoded = decode_seed_code(code)
        choices = {
            "verbs": [decoded.verb], "gravity": decoded.gravity,
            "world_difference": decoded.world_difference, "chaos_level": decoded.chaos_level,
        }
        self.assertEqual(encode_seed_code(choices, decoded.internal_seed), code)

    def test_out_of_range_chaos_is_clamped(self):
        self.assertEqual(UserChoices(chaos_level=250).chaos_level, 100)
        self.assertEqual(UserChoices(chaos_level=-3).chaos_level, 0)

    def test_share_url(self):
        self.assertEqual(generate_share_url("JUMP-NORM-COLR0-0000", prefix="/play/"),
                         "/play/JUMP-NORM-COLR0-0000")
        self.assertEqual(generate_share_url("A B/C", prefix="https://seed.example/p/"),
                         "https://seed.example/p/A%20B%2FC")


# ============================================================
# Effect Grammar
# ============================================================

class TestEffectGrammar(unittest.TestCase):

    def test_arithmetic(self):
        self.assertEqual(parse_effect("score+1"), ArithmeticEffect("score", "+", 1))
        self.assertEqual(parse_effect("health-1"), ArithmeticEffect("health", "-", 1))
        self.assertEqual(parse_effect("score+1.5").value, 1.5)

    def test_trigger_and_signal(self):
        self.assertEqual(parse_effect("chaos:trigger"), TriggerEffect("chaos", "trigger", "trigger"))
        self.assertEqual(parse_effect("spawn:enemy"), SignalEffect("spawn", ":", "enemy"))

    def test_assignment_is_always_a_flag(self):
        self.assertEqual(parse_effect("flag=collected"), FlagEffect("flag", "=", "collected"))
        self.assertEqual(parse_effect("door=open"), FlagEffect("flag", "=", "open"))

    def test_fallback_is_custom(self):
        for text in ["flash_red, shake_screen", "score+", "score+1abc", "hp+x", "a:b:c", ""]:
            parsed = parse_effect(text)
            self.assertIsInstance(parsed, CustomEffect, text)
            self.assertEqual(parsed.type, "custom")
            self.assertEqual(parsed.operator, "trigger")
            self.assertEqual(parsed.value, text)

    def test_non_string_effect_is_custom(self):
        self.assertIsInstance(parse_effect(None), CustomEffect)

    def test_strict_raises_structured_error(self):
        with self.assertRaises(ExpressionError) as ctx:
            parse_effect("oops!", strict=True)
        self.assertEqual(ctx.exception.kind, "effect")
        self.assertEqual(ctx.exception.text, "oops!")
        self.assertIsInstance(ctx.exception, ValueError)
        self.assertEqual(set(ctx.exception.to_dict()), {"kind", "text", "reason"})


# ============================================================
# Condition Grammar
# ============================================================

class TestConditionGrammar(unittest.TestCase):

    def test_empty_is_always_true(self):
        self.assertIsInstance(parse_condition(None), AlwaysCondition)
        self.assertIsInstance(parse_condition("   "), AlwaysCondition)
        self.assertTrue(evaluate_condition(None, GameState()))

    def test_health_gt_zero(self):
        self.assertFalse(evaluate_condition("health>0", GameState(health=0)))
        self.assertTrue(evaluate_condition("health>0", GameState(health=1)))

    def test_all_comparators(self):
        state = GameState(score=10, combo=3, level=1)
        self.assertTrue(evaluate_condition("score>=10", state))
        self.assertTrue(evaluate_condition("score<=10", state))
        self.assertFalse(evaluate_condition("score<10", state))
        self.assertTrue(evaluate_condition("combo==3", state))
        self.assertFalse(evaluate_condition("level!=1", state))

    def test_missing_field_is_zero(self):
        self.assertIsInstance(parse_condition("mana>5"), CompareCondition)
        self.assertFalse(evaluate_condition("mana>5", GameState()))
        self.assertTrue(evaluate_condition("mana<5", GameState()))
        self.assertTrue(evaluate_condition("mana>5", GameState(extra={"mana": 9})))

    def test_non_numeric_field(self):
        state = GameState(extra={"mood": "happy"})
        self.assertFalse(evaluate_condition("mood>0", state))
        self.assertTrue(evaluate_condition("mood!=0", state))

    def test_flag_and_has(self):
        state = GameState(abilities=["shoot"])
        self.assertFalse(evaluate_condition("flag:key_collected", state))
        state.flags["key_collected"] = True
        self.assertTrue(evaluate_condition("flag:key_collected", state))
        self.assertTrue(evaluate_condition("has:shoot", state))
        self.assertFalse(evaluate_condition("has:build", state))

    def test_unrecognized_is_true(self):
        self.assertIsInstance(parse_condition("player_airborne == true"), UnknownCondition)
        self.assertTrue(evaluate_condition("player_airborne == true", GameState()))
        self.assertTrue(evaluate_condition("health > 0", GameState(health=0)))

    def test_strict_condition_raises(self):
        with self.assertRaises(ExpressionError) as ctx:
            parse_condition("health > 0", strict=True)
        self.assertEqual(ctx.exception.kind, "condition")


# ============================================================
# Rule Engine
# ============================================================

COIN = RuleDef(trigger="player_collect_coin", action="add_score", effect="score+1")
STOMP_SCORE = RuleDef(trigger="player_stomp_enemy", action="kill_enemy_and_score", effect="score+2")
STOMP_FX = RuleDef(trigger="player_stomp_enemy", action="destroy_enemy", effect="spawn:particle_burst")
HIT = RuleDef(trigger="enemy_touch_player", condition="health>0", action="damage_player", effect="health-1")


class TestRuleEngine(unittest.TestCase):

    def test_collect_coin_scores(self):
        engine = RuleEngine([COIN])
        state = GameState(score=5)
        effects = engine.process_event("player_collect_coin", state)
        self.assertEqual(state.score, 6)
        self.assertEqual(len(effects), 1)
        self.assertEqual((effects[0].type, effects[0].operator, effects[0].value), ("score", "+", 1))

    def test_unknown_trigger_is_noop(self):
        engine = RuleEngine([COIN])
        state = GameState(score=5)
        self.assertEqual(engine.process_event("nothing_here", state), [])
        self.assertEqual(state.score, 5)

    def test_false_condition_is_skipped(self):
        engine = RuleEngine([HIT])
        state = GameState(health=0)
        self.assertEqual(engine.process_event("enemy_touch_player", state), [])
        self.assertEqual(state.health, 0)

    def test_registration_order_and_signals(self):
        engine = RuleEngine([STOMP_SCORE, STOMP_FX])
        state = GameState()
        effects = engine.process_event("player_stomp_enemy", state)
        self.assertEqual([e.type for e in effects], ["score", "spawn"])
        self.assertEqual(effects[1].value, "particle_burst")
        self.assertEqual(state.score, 2)
        self.assertEqual(state.entities, [])    # spawn is reported, not applied

    def test_flag_and_level_effects(self):
        engine = RuleEngine()
        state = GameState()
        engine.apply_effect("flag=powerup_active", state)
        engine.apply_effect("level+1", state)
        engine.apply_effect("level-1", state)
        engine.apply_effect("level+1", state)
        self.assertTrue(state.flags["powerup_active"])
        self.assertEqual(state.level, 2)

    def test_unapplied_effect_types_leave_state(self):
        engine = RuleEngine()
        state = GameState(score=3)
        before = state.to_dict()
        for effect in ["chaos:trigger", "spawn:block", "combo+5", "speed+1", "flash_red"]:
            engine.apply_effect(effect, state)
        self.assertEqual(state.to_dict(), before)

    def test_get_rules_is_a_copy(self):
        engine = RuleEngine([COIN])
        rules = engine.get_rules()
        rules.append(HIT)
        self.assertEqual(len(engine), 1)

    def test_set_add_remove(self):
        engine = RuleEngine([COIN])
        engine.add_rules([STOMP_SCORE, STOMP_FX])
        self.assertEqual(engine.triggers, ["player_collect_coin", "player_stomp_enemy"])
        removed = engine.remove_rules_by_trigger("player_stomp_enemy")
        self.assertEqual(removed, [STOMP_SCORE, STOMP_FX])
        self.assertEqual(engine.get_rules(), [COIN])
        engine.set_rules([HIT])
        self.assertEqual(engine.get_rules(), [HIT])
        self.assertEqual(engine.remove_rules_by_trigger("missing"), [])

    def test_rules_from_dicts(self):
        engine = RuleEngine([{"trigger": "t", "action": "a", "effect": "score+4"}])
        state = GameState()
        engine.process_event("t", state)
        self.assertEqual(state.score, 4)

    def test_strict_set_rules_is_atomic(self):
        engine = RuleEngine([COIN], strict=True)
        bad = RuleDef(trigger="t", action="a", effect="explode!")
        with self.assertRaises(ExpressionError):
            engine.set_rules([HIT, bad])
        self.assertEqual(engine.get_rules(), [COIN])

    def test_strict_constructor_raises(self):
        with self.assertRaises(ExpressionError):
            RuleEngine([RuleDef(trigger="t", condition="x ? y", action="a", effect="score+1")],
                       strict=True)

    def test_permissive_engine_accepts_anything(self):
        engine = RuleEngine([RuleDef(trigger="t", condition="x ? y", action="a", effect="boom")],
                            strict=False)
        effects = engine.process_event("t", GameState())
        self.assertEqual(effects[0].type, "custom")

    def test_lint_rules_reports_every_miss(self):
        rules = [COIN, RuleDef(trigger="t", condition="x ? y", action="a", effect="boom!")]
        problems = lint_rules(rules)
        self.assertEqual([p.kind for p in problems], ["condition", "effect"])
        self.assertEqual(lint_rules([COIN, HIT, STOMP_FX]), [])

    def test_advance_time(self):
        engine = RuleEngine()
        state = GameState()
        engine.advance_time(state, 250)
        engine.advance_time(state, -100)
        self.assertEqual(state.elapsed_ms, 250)

    def test_rule_set_swap_mid_dispatch_is_not_observed(self):
        """A mutation made by a caller between events applies to the next event only."""
        engine = RuleEngine([COIN])
        state = GameState()
        engine.process_event("player_collect_coin", state)
        engine.set_rules([RuleDef(trigger="player_collect_coin", action="add_score", effect="score+10")])
        engine.process_event("player_collect_coin", state)
        self.assertEqual(state.score, 11)


if __name__ == "__main__":
    unittest.main(verbosity=2)
