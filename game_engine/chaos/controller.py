"""
SEEDFORGE - Chaos Controller

Schedules, selects, applies and reverts mutations for one session.

Selection is two-step and seeded: first a category, weighted by the tier and
limited to categories that still have an eligible inactive mutation, then a
mutation within it. Both draws come from SeededStream(internal_seed,
channel="chaos") with the activation count as nonce, so the same level, seed
and sequence of milestones produce the same mutations.

The controller never keeps its own copy of the rule set. Rule mutations run
against the RuleEngine it was given.

Usage:
    from game_engine.chaos import ChaosEngine
    chaos = ChaosEngine(level=80, internal_seed=48213, rule_engine=engine,
                        base_params={"gravity_y": 800, "friction": 0.3})
    chaos.observe_score(state)      # milestone activations
    chaos.on_tick(elapsed_ms, state)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from config.game_schema import ChaosConfig, ChaosTier, clamp_chaos_level
from game_engine.chaos.mutations import Mutation, MutationContext, get_mutation_by_id
from game_engine.chaos.presets import build_chaos_config
from game_engine.rules.interpreter import RuleEngine
from game_engine.seed import normalize_internal_seed
from tools.seed_rng import SeededStream

logger = logging.getLogger("seedforge.chaos")


@dataclass
class ActiveMutation:
    mutation: Mutation
    nonce: int
    started_ms: float
    expires_ms: Optional[float]          # None = permanent until replaced
    undo: dict = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.mutation.id

    def to_dict(self) -> dict:
        return {
            "id": self.mutation.id,
            "category": self.mutation.category.value,
            "nonce": self.nonce,
            "started_ms": self.started_ms,
            "expires_ms": self.expires_ms,
        }


class ChaosEngine:
    """Runtime mutation scheduler for one chaos level and internal seed."""

    def __init__(self, level=0, internal_seed=0, rule_engine: RuleEngine = None,
                 base_params: dict = None):
        self.internal_seed = normalize_internal_seed(internal_seed)
        self.rules = rule_engine if rule_engine is not None else RuleEngine()
        self._base_params = dict(base_params or {})
        self._params = dict(self._base_params)
        self._stream = SeededStream(self.internal_seed, channel="chaos")

        self._active: list[ActiveMutation] = []
        self._history: list[str] = []
        self._activations = 0
        self._clock_ms = 0.0
        self._last_trigger_ms = 0.0
        self._last_score = 0.0

        self.level = 0
        self.config: ChaosConfig = build_chaos_config(0)
        self.set_level(level)

    # ── Level ─────────────────────────────────────────────────

    @property
    def tier(self) -> ChaosTier:
        return self.config.tier

    def set_level(self, level) -> None:
        """Change the level at runtime. Mutations the new tier no longer allows are reverted."""
        self.level = clamp_chaos_level(level)
        self.config = build_chaos_config(self.level)

        allowed = set(self.config.mutations)
        for active in list(self._active):
            if active.id not in allowed:
                self.revert(active.id)
        while len(self._active) > self.config.max_active_mutations:
            self.revert(self._active[0].id)

        logger.debug(f"Chaos level {self.level} ({self.tier.value})")

    # ── Scheduling ────────────────────────────────────────────

    def should_trigger(self, elapsed_ms: float, last_trigger_ms: float) -> bool:
        period = self.config.mutation_frequency_ms
        if self.level <= 0 or period is None:
            return False
        return (elapsed_ms - last_trigger_ms) >= period

    def on_tick(self, elapsed_ms: float, state=None) -> Optional[ActiveMutation]:
        """Expire finished mutations, then activate one if the period has passed."""
        self._clock_ms = elapsed_ms
        self.expire(elapsed_ms)
        if not self.should_trigger(elapsed_ms, self._last_trigger_ms):
            return None
        self._last_trigger_ms = elapsed_ms
        return self.activate(state)

    def observe_score(self, state) -> list[ActiveMutation]:
        """One activation per milestone the score crossed upwards since the last call."""
        score = float(getattr(state, "score", 0) or 0)
        interval = self.config.milestone_interval
        previous, self._last_score = self._last_score, score
        if not interval or self.level <= 0:
            return []

        crossed = math.floor(score / interval) - math.floor(previous / interval)
        activated = []
        for _ in range(max(0, crossed)):
            active = self.on_milestone(state)
            if active is not None:
                activated.append(active)
        return activated

    def on_milestone(self, state=None) -> Optional[ActiveMutation]:
        return self.activate(state)

    # ── Activation ────────────────────────────────────────────

    def _context(self, nonce: int, state=None) -> MutationContext:
        return MutationContext(rules=self.rules, params=self._params,
                               stream=self._stream, nonce=nonce, state=state)

    def _candidates(self, released: Optional[ActiveMutation] = None) -> list[Mutation]:
        """Eligible inactive mutations. `released` counts as already reverted."""
        still_active = [a for a in self._active if a is not released]
        active_ids = {a.id for a in still_active}
        touched = set()
        for a in still_active:
            touched |= a.mutation.touches
        candidates = []
        for mutation_id in self.config.mutations:
            mutation = get_mutation_by_id(mutation_id)
            if mutation is None or mutation.id in active_ids:
                continue
            if mutation.touches & touched:
                continue
            candidates.append(mutation)
        return candidates

    def activate(self, state=None) -> Optional[ActiveMutation]:
        """Pick and apply one mutation. At the active cap the oldest one is replaced."""
        if self.config.max_active_mutations <= 0:
            return None

        # The oldest is only reverted once a replacement is certain
        released = self._active[0] if len(self._active) >= self.config.max_active_mutations else None

        candidates = self._candidates(released)
        nonce = self._activations
        weights = self.config.category_weights
        present = []
        for m in candidates:
            if m.category not in present:
                present.append(m.category)
        category = self._stream.weighted_choice(
            nonce, [(c, weights.get(c.value, 0)) for c in present], purpose="category")
        if category is None:
            logger.debug(f"Chaos activation skipped: no eligible mutation at level {self.level}")
            return None

        pool = [m for m in candidates if m.category == category]
        mutation = self._stream.choice(nonce, pool, purpose="mutation")

        if released is not None:
            self.revert(released.id)

        now = getattr(state, "elapsed_ms", None) if state is not None else None
        now = self._clock_ms if now is None else now
        undo = mutation.apply(self._context(nonce, state))
        active = ActiveMutation(
            mutation=mutation,
            nonce=nonce,
            started_ms=now,
            expires_ms=None if mutation.is_permanent else now + mutation.duration_ms,
            undo=undo,
        )
        self._active.append(active)
        self._history.append(category.value)
        self._activations += 1

        logger.info(f"Chaos mutation '{mutation.id}' ({category.value}) activated, "
                    f"{len(self._active)} active")
        return active

    def revert(self, mutation_id: str, state=None) -> bool:
        for active in self._active:
            if active.id == mutation_id:
                active.mutation.revert(self._context(active.nonce, state), active.undo)
                self._active.remove(active)
                logger.info(f"Chaos mutation '{mutation_id}' reverted")
                return True
        return False

    def expire(self, elapsed_ms: float) -> list[str]:
        """Revert every timed mutation whose duration has run out."""
        expired = [a.id for a in self._active
                   if a.expires_ms is not None and a.expires_ms <= elapsed_ms]
        for mutation_id in expired:
            self.revert(mutation_id)
        return expired

    def revert_all(self) -> None:
        # Newest first so layered rule rewrites unwind in order
        for active in reversed(list(self._active)):
            self.revert(active.id)
        self._params = dict(self._base_params)

    # ── Read surface ──────────────────────────────────────────

    @property
    def parameters(self) -> dict:
        return dict(self._params)

    @property
    def active_mutations(self) -> list[str]:
        return [a.id for a in self._active]

    @property
    def category_history(self) -> list[str]:
        return list(self._history)

    @property
    def activation_count(self) -> int:
        return self._activations

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "tier": self.tier.value,
            "active": [a.to_dict() for a in self._active],
            "parameters": self.parameters,
            "category_history": self.category_history,
        }
