"""
SEEDFORGE - Chaos Mutation Catalog

Every mutation the chaos layer can activate. A mutation changes numeric
(or flag-like) world parameters, and rule mutations additionally rewrite the
live rule set. Rule rewrites go through the RuleEngine's set_rules /
add_rules / remove_rules_by_trigger and nothing else; state changes go
through RuleEngine.apply_effect.

apply() returns an undo record and revert() consumes it, so the same
mutation can be applied to many sessions without holding state itself.

    Category   Min level   Mutations
    visual       1-15      color_invert, pixel_mega, mirror_world
    physics      5-20      gravity_flip, friction_ice, gravity_float,
                           friction_honey, bounce_extreme
    entity      26-40      enemy_friend, platform_moving, bullet_platform,
                           collectible_trap
    rule        51-65      time_warp, score_reverse, cursed_coins, void_mercy
    narrative   76-85      text_monster, goal_shift, narrator_chaos
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional

from config.game_schema import MutationCategory, RuleDef
from game_engine.rules.expressions import ArithmeticEffect, parse_effect

PERMANENT = -1   # duration_ms: stays until replaced or reverted

_MISSING = object()


# ═══════════════════════════════════════════════════════════════
# Context
# ═══════════════════════════════════════════════════════════════

@dataclass
class MutationContext:
    """What a mutation may touch while it applies or reverts."""
    rules: Any                       # RuleEngine
    params: dict
    stream: Any                      # SeededStream
    nonce: int = 0
    state: Any = None                # GameState, read-only except via rules.apply_effect


# ═══════════════════════════════════════════════════════════════
# Base Mutation
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Mutation:
    """
    A parameter-override mutation.

    `overrides` maps parameter name to a new value, or to a callable taking
    the previous value. `fallbacks` gives the previous value to use when the
    parameter was never set.
    """
    id: str
    name: str
    description: str
    category: MutationCategory
    min_chaos_level: int
    duration_ms: int
    overrides: dict = field(default_factory=dict)
    fallbacks: dict = field(default_factory=dict)

    @property
    def is_permanent(self) -> bool:
        return self.duration_ms == PERMANENT

    @property
    def touches(self) -> frozenset:
        """Parameter names this mutation writes. Two active mutations never share one."""
        return frozenset(self.overrides)

    def apply(self, ctx: MutationContext) -> dict:
        previous = {}
        for key, new in self.overrides.items():
            previous[key] = ctx.params.get(key, _MISSING)
            current = ctx.params.get(key, self.fallbacks.get(key))
            ctx.params[key] = new(current) if callable(new) else new
        undo = {"params": previous}
        undo.update(self.apply_extra(ctx) or {})
        return undo

    def revert(self, ctx: MutationContext, undo: dict) -> None:
        self.revert_extra(ctx, undo)
        for key, prev in undo.get("params", {}).items():
            if prev is _MISSING:
                ctx.params.pop(key, None)
            else:
                ctx.params[key] = prev

    # Hooks for rule and narrative mutations
    def apply_extra(self, ctx: MutationContext) -> Optional[dict]:
        return None

    def revert_extra(self, ctx: MutationContext, undo: dict) -> None:
        pass

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "min_chaos_level": self.min_chaos_level,
            "duration_ms": self.duration_ms,
            "touches": sorted(self.touches),
        }


# ═══════════════════════════════════════════════════════════════
# Rule Mutations
# ═══════════════════════════════════════════════════════════════

def _flip_score(rule: RuleDef) -> RuleDef:
    parsed = parse_effect(rule.effect)
    if not isinstance(parsed, ArithmeticEffect) or parsed.type != "score":
        return rule
    op = "-" if parsed.operator == "+" else "+"
    return rule.model_copy(update={"effect": f"score{op}{parsed.value}"})


@dataclass(frozen=True)
class ScoreReverseMutation(Mutation):
    """Every score gain becomes a loss and every loss a gain.

    Only the rules flipped on apply are flipped back on revert. Rules other
    mutations added in the meantime keep their sign.
    """

    def apply_extra(self, ctx):
        rules = []
        flipped = []
        for rule in ctx.rules.get_rules():
            new = _flip_score(rule)
            if new is not rule:
                flipped.append(new.dedup_key())
            rules.append(new)
        ctx.rules.set_rules(rules)
        return {"flipped": flipped}

    def revert_extra(self, ctx, undo):
        pending = Counter(undo.get("flipped", []))
        rules = []
        for rule in ctx.rules.get_rules():
            key = rule.dedup_key()
            if pending[key] > 0:
                pending[key] -= 1
                rule = _flip_score(rule)
            rules.append(rule)
        ctx.rules.set_rules(rules)


@dataclass(frozen=True)
class AddedRulesMutation(Mutation):
    """Appends tagged rules; reverting drops every rule carrying the tag."""
    added: tuple = ()

    @property
    def action_tags(self) -> set:
        return {r.action for r in self.added}

    def apply_extra(self, ctx):
        ctx.rules.add_rules(list(self.added))
        return None

    def revert_extra(self, ctx, undo):
        tags = self.action_tags
        ctx.rules.set_rules([r for r in ctx.rules.get_rules() if r.action not in tags])


@dataclass(frozen=True)
class ReplaceTriggerMutation(AddedRulesMutation):
    """Swaps out every rule for one trigger; reverting restores the originals."""
    trigger: str = ""

    def apply_extra(self, ctx):
        removed = ctx.rules.remove_rules_by_trigger(self.trigger)
        ctx.rules.add_rules(list(self.added))
        return {"removed": removed}

    def revert_extra(self, ctx, undo):
        super().revert_extra(ctx, undo)
        ctx.rules.add_rules(undo.get("removed", []))


# ═══════════════════════════════════════════════════════════════
# Narrative Mutations
# ═══════════════════════════════════════════════════════════════

GOAL_TYPES = ("score_threshold", "survive_time", "collect_all", "reach_goal")


@dataclass(frozen=True)
class GoalShiftMutation(Mutation):
    """Moves the level goal to a different goal type, picked from the seed."""

    def apply_extra(self, ctx):
        previous = ctx.params.get("goal_type", _MISSING)
        current = "reach_goal" if previous is _MISSING else previous
        others = [g for g in GOAL_TYPES if g != current]
        ctx.params["goal_type"] = ctx.stream.choice(ctx.nonce, others, purpose="goal_shift")
        if ctx.state is not None:
            ctx.rules.apply_effect("flag=goal_shifted", ctx.state)
        return {"goal_type": previous}

    def revert_extra(self, ctx, undo):
        previous = undo.get("goal_type", _MISSING)
        if previous is _MISSING:
            ctx.params.pop("goal_type", None)
        else:
            ctx.params["goal_type"] = previous


@dataclass(frozen=True)
class NarratorChaosMutation(Mutation):
    """The HUD starts lying: seeded display offsets for score and health."""

    def apply_extra(self, ctx):
        ctx.params["score_display_offset"] = ctx.stream.randint(
            ctx.nonce, -100, 99, purpose="narrator_score")
        ctx.params["health_display_offset"] = ctx.stream.randint(
            ctx.nonce, -1, 1, purpose="narrator_health")
        return None

    def revert_extra(self, ctx, undo):
        ctx.params.pop("score_display_offset", None)
        ctx.params.pop("health_display_offset", None)


# ═══════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════

V, P, E, R, N = (MutationCategory.VISUAL, MutationCategory.PHYSICS, MutationCategory.ENTITY,
                 MutationCategory.RULE, MutationCategory.NARRATIVE)

# Visual
COLOR_INVERT = Mutation("color_invert", "Negative World", "All colors invert to their complements",
                        V, 1, 15_000, {"color_invert": True})
PIXEL_MEGA = Mutation("pixel_mega", "Mega Pixels", "Everything becomes huge chunky pixels",
                      V, 10, 12_000, {"pixel_scale": 8})
MIRROR_WORLD = Mutation("mirror_world", "Mirror World", "The entire world flips horizontally",
                        V, 15, 15_000, {"mirror_x": True})

# Physics
GRAVITY_FLIP = Mutation("gravity_flip", "Gravity Flip", "Gravity reverses direction",
                        P, 5, 15_000, {"gravity_y": lambda prev: -prev}, {"gravity_y": 800})
FRICTION_ICE = Mutation("friction_ice", "Ice World", "All surfaces become slippery as ice",
                        P, 10, 20_000, {"friction": 0.02})
GRAVITY_FLOAT = Mutation("gravity_float", "Zero-G Float", "Gravity nearly vanishes, everything floats",
                         P, 15, 12_000, {"gravity_y": 50})
FRICTION_HONEY = Mutation("friction_honey", "Honey World", "Everything moves through thick honey",
                          P, 15, 15_000, {"friction": 0.98})
BOUNCE_EXTREME = Mutation("bounce_extreme", "Trampoline World", "Everything bounces with extreme force",
                          P, 20, 18_000, {"bounciness": 1.5})

# Entity
ENEMY_FRIEND = Mutation("enemy_friend", "Frenemies", "Enemies become friendly and follow you around",
                        E, 26, 20_000, {"enemy_behavior": "friendly", "enemy_color": "#44FF44"})
PLATFORM_MOVING = Mutation("platform_moving", "Restless Ground", "All static platforms begin moving",
                           E, 26, 20_000, {"platforms_moving": True, "platform_move_speed": 60,
                                           "platform_move_range": 80})
BULLET_PLATFORM = Mutation("bullet_platform", "Bullet Platforms",
                           "Bullets freeze in place and become platforms",
                           E, 35, 25_000, {"bullet_behavior": "platform", "bullet_solid": True,
                                           "bullet_lifetime_ms": 5000})
COLLECTIBLE_TRAP = Mutation("collectible_trap", "Trick Treasures", "Some collectibles become traps",
                            E, 40, 20_000, {"collectible_trap_chance": 0.4, "trap_damage": 1})

# Rule
TIME_WARP = Mutation("time_warp", "Time Warp", "Game speed oscillates between slow-motion and fast-forward",
                     R, 51, 20_000, {"time_warp": True, "time_warp_min_scale": 0.3,
                                     "time_warp_max_scale": 2.5, "time_warp_period_ms": 4000})
SCORE_REVERSE = ScoreReverseMutation("score_reverse", "Score Reversal",
                                     "Gaining points now costs points and losing points gains them",
                                     R, 55, 15_000, {"score_reversed": True})
CURSED_COINS = AddedRulesMutation(
    "cursed_coins", "Cursed Coins", "Coins bite back: collecting one also costs health",
    R, 60, 15_000, {"coins_cursed": True},
    added=(RuleDef(trigger="player_collect_coin", condition="health>1",
                   action="chaos_cursed_coin", effect="health-1"),),
)
VOID_MERCY = ReplaceTriggerMutation(
    "void_mercy", "Merciful Void", "Falling out of the world pays points instead of hurting",
    R, 65, 15_000, {"void_merciful": True},
    added=(RuleDef(trigger="player_fall_out", action="chaos_void_mercy", effect="score+1"),),
    trigger="player_fall_out",
)

# Narrative
TEXT_MONSTER = Mutation("text_monster", "Text Monster", "UI text comes alive and chases the player",
                        N, 76, 20_000, {"text_monster": True, "text_monster_speed": 120,
                                        "text_monster_damage": 1})
GOAL_SHIFT = GoalShiftMutation("goal_shift", "Goal Shift", "The level goal changes mid-game",
                               N, 80, PERMANENT, {"goal_shifted": True})
NARRATOR_CHAOS = NarratorChaosMutation("narrator_chaos", "Unreliable Narrator",
                                       "The narrator lies and the HUD shows wrong information",
                                       N, 85, 25_000, {"narrator_chaos": True, "fake_death_chance": 0.2})

ALL_MUTATIONS = [
    COLOR_INVERT, PIXEL_MEGA, MIRROR_WORLD,
    GRAVITY_FLIP, FRICTION_ICE, GRAVITY_FLOAT, FRICTION_HONEY, BOUNCE_EXTREME,
    ENEMY_FRIEND, PLATFORM_MOVING, BULLET_PLATFORM, COLLECTIBLE_TRAP,
    TIME_WARP, SCORE_REVERSE, CURSED_COINS, VOID_MERCY,
    TEXT_MONSTER, GOAL_SHIFT, NARRATOR_CHAOS,
]

MUTATIONS_BY_ID = {m.id: m for m in ALL_MUTATIONS}


def get_mutations_by_category(category) -> list[Mutation]:
    category = MutationCategory(category)
    return [m for m in ALL_MUTATIONS if m.category == category]


def get_eligible_mutations(chaos_level: int) -> list[Mutation]:
    return [m for m in ALL_MUTATIONS if m.min_chaos_level <= chaos_level]


def get_mutation_by_id(mutation_id: str) -> Optional[Mutation]:
    return MUTATIONS_BY_ID.get(mutation_id)
