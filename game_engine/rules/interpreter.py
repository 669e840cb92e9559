"""
SEEDFORGE - Rule Interpreter

Evaluates declarative rules against the live game state and reports the
effects it applied.

The RuleEngine is the only owner of the active rule set. Other components
(the chaos layer in particular) change it through set_rules, add_rules and
remove_rules_by_trigger, and never hold a list of their own.

Usage:
    from game_engine.rules.interpreter import RuleEngine, GameState
    engine = RuleEngine(rules)
    state = GameState(score=5)
    effects = engine.process_event("player_collect_coin", state)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from config.game_schema import RuleDef
from config.settings import EngineConfig
from game_engine.rules.expressions import (
    Condition, ExpressionError, ParsedEffect, parse_condition, parse_effect,
)

logger = logging.getLogger("seedforge.rules")

# Effect types the interpreter applies itself. Everything else (spawn,
# chaos, speed, custom ...) is reported back for external systems.
NUMERIC_EFFECT_FIELDS = ("score", "health", "level")
FLAG_EFFECT = "flag"


# ═══════════════════════════════════════════════════════════════
# Game State
# ═══════════════════════════════════════════════════════════════

@dataclass
class GameState:
    """Live record read by conditions and written by effect application."""
    score: float = 0
    health: float = 3
    combo: int = 0
    level: int = 1
    elapsed_ms: float = 0
    entities: list = field(default_factory=list)
    flags: dict = field(default_factory=dict)
    abilities: list = field(default_factory=list)
    extra: dict = field(default_factory=dict)   # any other named field

    _FIELDS = ("score", "health", "combo", "level", "elapsed_ms")

    def value_of(self, name: str):
        if name in self._FIELDS:
            return getattr(self, name)
        return self.extra.get(name)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "health": self.health,
            "combo": self.combo,
            "level": self.level,
            "elapsed_ms": self.elapsed_ms,
            "entities": list(self.entities),
            "flags": dict(self.flags),
            "abilities": list(self.abilities),
            "extra": dict(self.extra),
        }


# ═══════════════════════════════════════════════════════════════
# Rule Engine
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CompiledRule:
    rule: RuleDef
    condition: Condition
    effect: ParsedEffect


def lint_rules(rules: Iterable[RuleDef]) -> list[ExpressionError]:
    """Every unparsable condition or effect in `rules`, without raising."""
    problems = []
    for rule in rules:
        for parse, text in ((parse_condition, rule.condition), (parse_effect, rule.effect)):
            try:
                parse(text, strict=True)
            except ExpressionError as e:
                problems.append(e)
    return problems


class RuleEngine:
    """Owns the active rule set and dispatches trigger events against it."""

    def __init__(self, rules: Iterable[RuleDef] = (), strict: Optional[bool] = None):
        self.strict = EngineConfig.STRICT_EXPRESSIONS if strict is None else strict
        self._compiled: list[CompiledRule] = self._compile(rules)

    def _compile(self, rules: Iterable[RuleDef]) -> list[CompiledRule]:
        compiled = []
        for rule in rules:
            if not isinstance(rule, RuleDef):
                rule = RuleDef.model_validate(rule)
            compiled.append(CompiledRule(
                rule=rule,
                condition=parse_condition(rule.condition, strict=self.strict),
                effect=parse_effect(rule.effect, strict=self.strict),
            ))
        return compiled

    # ── Mutation surface ──────────────────────────────────────

    def set_rules(self, rules: Iterable[RuleDef]) -> None:
        """Replace the entire rule set. The new set is fully built before the swap."""
        compiled = self._compile(rules)
        self._compiled = compiled
        logger.debug(f"Rule set replaced ({len(compiled)} rules)")

    def add_rules(self, rules: Iterable[RuleDef]) -> None:
        compiled = self._compile(rules)
        self._compiled = self._compiled + compiled
        logger.debug(f"Added {len(compiled)} rules ({len(self._compiled)} active)")

    def remove_rules_by_trigger(self, trigger: str) -> list[RuleDef]:
        """Remove every rule for `trigger`. Returns the removed rules."""
        removed = [c.rule for c in self._compiled if c.rule.trigger == trigger]
        self._compiled = [c for c in self._compiled if c.rule.trigger != trigger]
        if removed:
            logger.debug(f"Removed {len(removed)} rules for trigger '{trigger}'")
        return removed

    def get_rules(self) -> list[RuleDef]:
        """Copy of the active rule set, in registration order."""
        return [c.rule for c in self._compiled]

    @property
    def triggers(self) -> list[str]:
        seen = []
        for c in self._compiled:
            if c.rule.trigger not in seen:
                seen.append(c.rule.trigger)
        return seen

    def __len__(self) -> int:
        return len(self._compiled)

    # ── Evaluation ────────────────────────────────────────────

    def evaluate_rule(self, rule: Union[RuleDef, CompiledRule], state: GameState) -> bool:
        if isinstance(rule, CompiledRule):
            return rule.condition.evaluate(state)
        return parse_condition(rule.condition, strict=self.strict).evaluate(state)

    def apply_effect(self, effect: Union[str, ParsedEffect], state: GameState) -> ParsedEffect:
        """Apply one effect to `state` in place and return its parsed form."""
        parsed = effect if isinstance(effect, ParsedEffect) else parse_effect(effect, strict=self.strict)

        if parsed.type in NUMERIC_EFFECT_FIELDS and parsed.operator in ("+", "-"):
            delta = parsed.value if parsed.operator == "+" else -parsed.value
            setattr(state, parsed.type, getattr(state, parsed.type) + delta)
        elif parsed.type == FLAG_EFFECT and parsed.operator == "=":
            state.flags[parsed.value] = True
        # spawn / chaos / custom: signals for the spawner, the chaos layer and
        # the runtime. Reported to the caller, never applied here.

        return parsed

    def advance_time(self, state: GameState, delta_ms: float) -> None:
        """Move the state clock forward. Negative deltas are ignored."""
        if delta_ms and delta_ms > 0:
            state.elapsed_ms += delta_ms

    def process_event(self, trigger: str, state: GameState) -> list[ParsedEffect]:
        """Run every matching rule for `trigger`; returns the applied effects in order."""
        effects = []
        # The list is replaced, never edited in place, so this loop sees one whole rule set
        for compiled in self._compiled:
            if compiled.rule.trigger != trigger:
                continue
            if not compiled.condition.evaluate(state):
                continue
            effects.append(self.apply_effect(compiled.effect, state))
        return effects
