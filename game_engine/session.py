"""
SEEDFORGE - Game Session

Runtime glue for one play-through: one RuleEngine, one ChaosEngine and one
GameState, built from a GeneratedGame. The renderer feeds trigger names and
clock deltas in and reads snapshots out.

Reset is whole-object: the interpreter, the chaos schedule and the state are
rebuilt from the seed code and its stored payload, never patched back.
"""

import logging
from typing import Optional

from config.game_schema import GeneratedGame
from game_engine.chaos import ChaosEngine
from game_engine.rules.expressions import ParsedEffect
from game_engine.rules.interpreter import GameState, RuleEngine
from game_engine.seed import decode_seed_code

logger = logging.getLogger("seedforge.session")

CHAOS_SIGNAL = "chaos"


class GameSession:
    """Owns the live rule set, chaos schedule and state of one game."""

    def __init__(self, game: GeneratedGame, strict: Optional[bool] = None):
        self.game = game
        self.strict = strict
        self._build()

    @classmethod
    def from_seed_code(cls, seed_code: str, strict: Optional[bool] = None) -> "GameSession":
        from flows.game_generator import restore_game
        return cls(restore_game(seed_code), strict=strict)

    def _build(self) -> None:
        # The chaos schedule is keyed by the seed the code carries; the stored
        # payload supplies the choices a code is too short to hold.
        decoded = decode_seed_code(self.game.seed_code)
        if decoded.internal_seed != self.game.internal_seed:
            logger.warning(f"Seed code {self.game.seed_code} carries seed {decoded.internal_seed}, "
                           f"payload says {self.game.internal_seed}")

        self.rules = RuleEngine(self.game.rules, strict=self.strict)
        self.state = GameState(abilities=[v.value for v in self.game.verbs])
        self.chaos = ChaosEngine(
            level=self.game.chaos.level,
            internal_seed=decoded.internal_seed,
            rule_engine=self.rules,
            base_params=dict(self.game.world.physics),
        )
        self.events_handled = 0

    # ── Inbound ───────────────────────────────────────────────

    def handle_event(self, trigger: str) -> list[ParsedEffect]:
        """Dispatch one trigger. Chaos signals and score milestones reach the chaos layer."""
        effects = self.rules.process_event(trigger, self.state)
        self.events_handled += 1

        for effect in effects:
            if effect.type == CHAOS_SIGNAL:
                self.chaos.activate(self.state)
        self.chaos.observe_score(self.state)

        if not effects:
            logger.debug(f"Trigger '{trigger}' matched no rule")
        return effects

    def tick(self, delta_ms: float):
        """Advance the clock; returns the mutation activated by the timer, if any."""
        self.rules.advance_time(self.state, delta_ms)
        return self.chaos.on_tick(self.state.elapsed_ms, self.state)

    # ── Outbound ──────────────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "seed_code": self.game.seed_code,
            "state": self.state.to_dict(),
            "rules": [r.model_dump() for r in self.rules.get_rules()],
            "chaos_tier": self.chaos.tier.value,
            "active_mutations": self.chaos.active_mutations,
            "parameters": self.chaos.parameters,
        }

    @property
    def is_over(self) -> bool:
        return self.state.health <= 0

    # ── Lifecycle ─────────────────────────────────────────────

    def reset(self) -> None:
        logger.info(f"Session reset for {self.game.seed_code}")
        self._build()
