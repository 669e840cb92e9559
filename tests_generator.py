#!/usr/bin/env python3
"""
SEEDFORGE - Generator, Session & CLI Tests

Run: python tests_generator.py
     python tests_generator.py TestGameSession

Test categories:
  TestGameGenerator    - payload assembly, determinism, restore from seed code
  TestDifficultyCurve  - curve shape per style and pace
  TestValidation       - meaningful-play warnings and suggestions
  TestDifficultyValidation - curve accessibility, range, dips and steps
  TestGameSession      - event routing, chaos hooks, snapshot, reset
  TestEngineConfig     - environment-driven settings and logging
  TestForgeCLI         - encode / decode / generate / play commands
"""

import io
import json
import logging
import sys
import unittest
from contextlib import redirect_stdout
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.game_schema import (
    CoreVerb, DifficultyStyle, GamePace, GravityMode, RuleDef, SpecialPhysics, UserChoices,
)
from config.settings import EngineConfig, configure_logging
from flows.game_generator import (
    create_internal_seed, generate_difficulty_curve, generate_game, restore_choices,
    restore_game,
)
from game_engine.seed import SEED_SPACE, decode_seed_code, encode_seed_code
from game_engine.session import GameSession
from game_engine.validation import validate_difficulty, validate_meaningful_play


# ============================================================
# Generator
# ============================================================

class TestGameGenerator(unittest.TestCase):

    def setUp(self):
        self.choices = UserChoices(
            verbs=[CoreVerb.SHOOT, CoreVerb.COLLECT], gravity=GravityMode.LOW,
            world_difference="sound_solid", special_physics=SpecialPhysics.SLIPPERY,
            chaos_level=60,
        )

    def test_payload_fields(self):
        game = generate_game(self.choices, internal_seed=123456)
        self.assertEqual(game.id, "game_1e240")
        self.assertEqual(game.seed_code, encode_seed_code(self.choices, 123456))
        self.assertEqual(game.internal_seed, 123456)
        self.assertEqual(game.verbs, [CoreVerb.SHOOT, CoreVerb.COLLECT])
        self.assertEqual(game.chaos.level, 60)
        self.assertEqual(game.world.physics["gravity_y"], 300.0)
        self.assertEqual(game.world.physics["friction"], 0.02)
        self.assertEqual(len(game.difficulty.curve), EngineConfig.DIFFICULTY_CURVE_POINTS)
        self.assertIn("Shoot & Collect", game.name)

    def test_generation_is_deterministic(self):
        a = generate_game(self.choices, internal_seed=777)
        b = generate_game(self.choices, internal_seed=777)
        self.assertEqual(a.model_dump(), b.model_dump())

    def test_payload_is_json(self):
        game = generate_game(self.choices, internal_seed=9)
        data = json.loads(game.model_dump_json())
        self.assertEqual(data["seed_code"], game.seed_code)
        self.assertEqual(data["chaos"]["tier"], "wild")

    def test_dict_choices_accepted(self):
        game = generate_game({"verbs": ["dodge"], "chaos_level": 0}, internal_seed=1)
        self.assertEqual(game.seed_code, "DODG-NORM-COLR0-0001")

    def test_world_and_chaos_rules(self):
        calm = generate_game(UserChoices(chaos_level=0), internal_seed=1)
        self.assertNotIn("player_collect_chaos_orb", [r.trigger for r in calm.rules])

        shifting = generate_game(UserChoices(gravity=GravityMode.SHIFTING, chaos_level=30),
                                 internal_seed=1)
        triggers = [r.trigger for r in shifting.rules]
        self.assertIn("gravity_shift", triggers)
        self.assertIn("player_collect_chaos_orb", triggers)

        reverse = generate_game(UserChoices(gravity=GravityMode.REVERSE), internal_seed=1)
        self.assertIn("player_on_ceiling", [r.trigger for r in reverse.rules])
        self.assertLess(reverse.world.physics["gravity_y"], 0)

    def test_internal_seed_creation(self):
        s1 = create_internal_seed(self.choices, salt=42)
        s2 = create_internal_seed(self.choices, salt=42)
        self.assertEqual(s1, s2)
        self.assertTrue(0 <= s1 < SEED_SPACE)
        self.assertNotEqual(s1, create_internal_seed(UserChoices(), salt=42))
        for _ in range(20):
            self.assertTrue(0 <= create_internal_seed(self.choices) < SEED_SPACE)

    def test_unseeded_generation_round_trips(self):
        game = generate_game(self.choices)
        self.assertEqual(decode_seed_code(game.seed_code).internal_seed, game.internal_seed)

    def test_restore_keeps_encoded_fields(self):
        game = generate_game(self.choices, internal_seed=48213)
        restored = restore_game(game.seed_code)
        self.assertEqual(restored.seed_code, game.seed_code)
        self.assertEqual(restored.internal_seed, game.internal_seed)
        self.assertEqual(restored.verbs[0], CoreVerb.SHOOT)
        self.assertEqual(restored.world.gravity, GravityMode.LOW)
        self.assertEqual(restored.chaos.level, 55)    # digit 5
        self.assertEqual(restored.id, game.id)

    def test_restore_garbage_uses_defaults(self):
        restored = restore_game("A-B-C")
        self.assertEqual(restored.internal_seed, 0)
        self.assertEqual(restored.seed_code, "JUMP-NORM-COLR0-0000")
        self.assertEqual(restored.chaos.level, 0)

    def test_restore_choices_defaults(self):
        choices = restore_choices(decode_seed_code("XXXX-RVRS-CSTM3-0000"))
        self.assertEqual(choices.verbs, [CoreVerb.JUMP])
        self.assertEqual(choices.gravity, GravityMode.REVERSE)
        self.assertEqual(choices.world_difference, "custom")
        self.assertEqual(choices.chaos_level, 33)


# ============================================================
# Difficulty Curve
# ============================================================

class TestDifficultyCurve(unittest.TestCase):

    def test_steady_medium(self):
        curve = generate_difficulty_curve("steady", "medium", 10)
        self.assertEqual(len(curve), 10)
        self.assertAlmostEqual(curve[0], 0.3)
        self.assertAlmostEqual(curve[-1], 0.8)
        self.assertEqual(curve, sorted(curve))

    def test_pace_scales_ramp(self):
        fast = generate_difficulty_curve(DifficultyStyle.STEADY, GamePace.FAST, 5)
        slow = generate_difficulty_curve(DifficultyStyle.STEADY, GamePace.SLOW, 5)
        self.assertAlmostEqual(fast[-1], 0.95)
        self.assertAlmostEqual(slow[-1], 0.65)

    def test_styles(self):
        self.assertAlmostEqual(generate_difficulty_curve("relaxed", "medium", 4)[0], 0.2)
        self.assertAlmostEqual(generate_difficulty_curve("hardcore", "slow", 4)[-1], 0.845)
        coaster = generate_difficulty_curve("rollercoaster", "medium", 17)
        self.assertNotEqual(coaster, sorted(coaster))

    def test_bounds_and_minimum_points(self):
        self.assertEqual(len(generate_difficulty_curve("steady", "fast", 1)), 3)
        for style in DifficultyStyle:
            for pace in GamePace:
                for d in generate_difficulty_curve(style, pace, 25):
                    self.assertTrue(0.0 <= d <= 1.0)


# ============================================================
# Validation
# ============================================================

class TestValidation(unittest.TestCase):

    def test_default_verbs_are_meaningful(self):
        for verbs in (["jump"], ["shoot"], ["collect", "dodge"], ["build"]):
            game = generate_game(UserChoices(verbs=verbs), internal_seed=1)
            result = validate_meaningful_play(game)
            self.assertTrue(result.valid, (verbs, result.warnings))

    def test_rollercoaster_game_is_fully_valid(self):
        game = generate_game(UserChoices(verbs=["shoot"], difficulty_style="rollercoaster"),
                             internal_seed=1)
        self.assertTrue(game.validation.valid, game.validation.warnings)

    def test_verb_without_rules_warns(self):
        game = generate_game(UserChoices(verbs=["explore"]), internal_seed=1)
        self.assertFalse(game.validation.valid)
        self.assertTrue(any('"explore"' in w for w in game.validation.warnings))

    def test_unparsable_rule_is_suggested(self):
        game = generate_game(UserChoices(verbs=["shoot"]), internal_seed=1)
        broken = game.model_copy(update={"rules": game.rules + [
            RuleDef(trigger="player_shoot", condition="ammo > 0", action="fire", effect="flash!")]})
        result = validate_meaningful_play(broken)
        self.assertEqual(len([s for s in result.suggestions if "rule language" in s]), 2)

    def test_missing_progression_and_loops(self):
        game = generate_game(UserChoices(verbs=["shoot"]), internal_seed=1)
        bare = game.model_copy(update={
            "rules": [RuleDef(trigger="bullet_hit_enemy", action="hit", effect="score+1")],
            "feedback_loops": game.feedback_loops.model_copy(update={"positive": [], "negative": []}),
        })
        result = validate_meaningful_play(bare)
        self.assertTrue(result.valid)
        self.assertEqual(len(result.suggestions), 2)


class TestDifficultyValidation(unittest.TestCase):

    def setUp(self):
        self.game = generate_game(UserChoices(verbs=["shoot"]), internal_seed=1)

    def _check(self, curve):
        game = self.game.model_copy(update={
            "difficulty": self.game.difficulty.model_copy(update={"curve": curve})})
        return validate_difficulty(game)

    def test_wavy_curve_passes(self):
        result = self._check([0.2, 0.4, 0.3, 0.5, 0.45, 0.7])
        self.assertTrue(result.valid)
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.suggestions, [])

    def test_initial_difficulty(self):
        result = self._check([0.5, 0.3, 0.6])
        self.assertFalse(result.valid)
        self.assertEqual(len(result.warnings), 1)
        self.assertTrue(result.warnings[0].startswith("Initial difficulty is 0.50"))
        self.assertTrue(self._check([0.4, 0.2, 0.55]).valid)

    def test_flat_curve(self):
        result = self._check([0.3, 0.35, 0.32])
        self.assertFalse(result.valid)
        self.assertIn("range is only 0.05", result.warnings[0])

    def test_long_increasing_run(self):
        result = self._check([0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.5])
        self.assertTrue(result.valid)
        self.assertEqual(len(result.suggestions), 1)
        self.assertIn("run of 6", result.suggestions[0])
        self.assertEqual(self._check([0.1, 0.2, 0.3, 0.4, 0.5, 0.4]).suggestions, [])

    def test_steep_step(self):
        result = self._check([0.1, 0.5, 0.3])
        self.assertTrue(result.valid)
        self.assertEqual(len(result.suggestions), 1)
        self.assertIn("increase is 0.40", result.suggestions[0])
        self.assertEqual(self._check([0.1, 0.4, 0.3]).suggestions, [])

    def test_no_breathing_room(self):
        result = self._check([0.1, 0.2, 0.3, 0.35, 0.4])
        self.assertFalse(result.valid)
        self.assertEqual(len(result.warnings), 1)
        self.assertIn("never decreases", result.warnings[0])

    def test_empty_and_short_curves(self):
        empty = self._check([])
        self.assertFalse(empty.valid)
        self.assertIn("empty", empty.warnings[0])
        short = self._check([0.1, 0.3])
        self.assertTrue(short.valid)
        self.assertIn("only 2 point(s)", short.suggestions[0])

    def test_generated_payload_carries_curve_findings(self):
        self.assertTrue(any("never decreases" in w for w in self.game.validation.warnings))
        self.assertTrue(any("run of 10" in s for s in self.game.validation.suggestions))
        self.assertFalse(self.game.validation.valid)

        hardcore = generate_game(UserChoices(verbs=["shoot"], difficulty_style="hardcore"),
                                 internal_seed=1)
        self.assertTrue(any(w.startswith("Initial difficulty is 0.60")
                            for w in hardcore.validation.warnings))


# ============================================================
# Session
# ============================================================

class TestGameSession(unittest.TestCase):

    def test_event_routing(self):
        session = GameSession(generate_game(UserChoices(verbs=["collect"]), internal_seed=5))
        effects = session.handle_event("player_collect_coin")
        self.assertEqual(session.state.score, 1)
        self.assertEqual(effects[0].type, "score")
        self.assertEqual(session.handle_event("nobody_listens"), [])
        self.assertEqual(session.state.abilities, ["collect"])

    def test_chaos_signal_activates_mutation(self):
        session = GameSession(generate_game(UserChoices(chaos_level=60), internal_seed=5))
        effects = session.handle_event("player_collect_chaos_orb")
        self.assertEqual(effects[0].type, "chaos")
        self.assertEqual(session.chaos.activation_count, 1)

    def test_score_milestones_reach_chaos(self):
        game = generate_game(UserChoices(verbs=["shoot"], chaos_level=100), internal_seed=5)
        session = GameSession(game)
        for _ in range(4):
            session.handle_event("kill_streak_5")
        self.assertEqual(session.chaos.activation_count, 0)
        session.handle_event("kill_streak_5")
        self.assertEqual(session.state.score, 50)
        self.assertEqual(session.chaos.activation_count, 1)

    def test_tick_drives_timer(self):
        session = GameSession(generate_game(UserChoices(chaos_level=10), internal_seed=5))
        self.assertIsNone(session.tick(60_000))
        self.assertIsNotNone(session.tick(30_000))
        self.assertEqual(session.state.elapsed_ms, 90_000)

    def test_snapshot(self):
        session = GameSession(generate_game(UserChoices(chaos_level=80), internal_seed=5))
        snap = session.snapshot()
        self.assertEqual(set(snap), {"seed_code", "state", "rules", "chaos_tier",
                                     "active_mutations", "parameters"})
        self.assertEqual(snap["chaos_tier"], "surreal")
        self.assertEqual(len(snap["rules"]), len(session.game.rules))
        json.dumps(snap)

    def test_reset_restores_base_rules(self):
        game = generate_game(UserChoices(verbs=["shoot", "collect"], chaos_level=100),
                             internal_seed=48213)
        session = GameSession(game)
        for _ in range(15):
            session.chaos.activate(session.state)
        session.handle_event("player_collect_coin")
        session.reset()
        self.assertEqual(session.rules.get_rules(), game.rules)
        self.assertEqual(session.state.score, 0)
        self.assertEqual(session.chaos.active_mutations, [])
        self.assertEqual(session.chaos.parameters, game.world.physics)

    def test_reset_replays_identically(self):
        game = generate_game(UserChoices(verbs=["shoot"], chaos_level=90), internal_seed=31337)
        session = GameSession(game)
        for _ in range(12):
            session.handle_event("kill_streak_5")
        first = session.chaos.category_history
        session.reset()
        for _ in range(12):
            session.handle_event("kill_streak_5")
        self.assertEqual(session.chaos.category_history, first)

    def test_from_seed_code(self):
        game = generate_game(UserChoices(verbs=["dodge"], chaos_level=20), internal_seed=99)
        session = GameSession.from_seed_code(game.seed_code)
        self.assertEqual(session.game.seed_code, game.seed_code)
        self.assertEqual(session.chaos.internal_seed, 99)

    def test_game_over(self):
        session = GameSession(generate_game(UserChoices(), internal_seed=5))
        for _ in range(3):
            session.handle_event("player_fall_out")
        self.assertTrue(session.is_over)


# ============================================================
# Settings
# ============================================================

class TestEngineConfig(unittest.TestCase):

    def test_defaults(self):
        config = EngineConfig.as_dict()
        self.assertEqual(set(config), {"strict_expressions", "share_url_prefix",
                                       "difficulty_curve_points", "log_level"})
        self.assertIsInstance(EngineConfig.STRICT_EXPRESSIONS, bool)

    def test_configure_logging_single_handler(self):
        logger = configure_logging("debug")
        configure_logging("warning")
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.WARNING)
        self.assertTrue(logging.getLogger("seedforge.chaos").isEnabledFor(logging.WARNING))


# ============================================================
# CLI
# ============================================================

class TestForgeCLI(unittest.TestCase):

    def _run(self, *argv):
        from tools.forge_cli import main
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(["--log-level", "WARNING", *argv])
        return code, buf.getvalue()

    def test_decode(self):
        code, out = self._run("decode", "SHOT-FLOT-COLR4-0010")
        self.assertEqual(code, 0)
        self.assertIn("shoot", out)
        code, _ = self._run("decode", "A-B-C")
        self.assertEqual(code, 1)

    def test_encode(self):
        code, out = self._run("encode", "--verbs", "dash", "--gravity", "reverse",
                              "--chaos", "77", "--seed", "33")
        self.assertEqual(code, 0)
        self.assertIn("DASH-RVRS-COLR7-0010", out)

    def test_generate_json(self):
        code, out = self._run("generate", "--verbs", "shoot", "--seed", "5", "--json")
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["seed_code"], "SHOT-NORM-COLR0-0005")

    def test_play(self):
        code, out = self._run("play", "JUMP-NORM-COLR0-0005", "--events",
                              "player_collect_coin", "player_collect_coin")
        self.assertEqual(code, 0)
        self.assertIn("Score: 2", out)


if __name__ == "__main__":
    unittest.main(verbosity=2)
