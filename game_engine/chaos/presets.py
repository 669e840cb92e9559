"""
SEEDFORGE - Chaos Tiers & Presets

Maps a 0-100 chaos level onto one of five tiers and builds the ChaosConfig
for it. build_chaos_config is a pure function of the level.

    Tier      Levels    Categories added   Period   Max active   Milestone
    order     0         -                  never    0            -
    mild      1-25      visual, physics    90s      1            500
    emergent  26-50     entity             60s      2            250
    wild      51-75     rule               30s      3            100
    surreal   76-100    narrative          15s      999          50

Every tier keeps the categories of the tiers below it, fires at least as
often and allows at least as many active mutations.
"""

from dataclasses import dataclass
from typing import Optional

from config.game_schema import ChaosConfig, ChaosTier, MutationCategory, clamp_chaos_level
from game_engine.chaos.mutations import get_eligible_mutations

V, P, E, R, N = (MutationCategory.VISUAL, MutationCategory.PHYSICS, MutationCategory.ENTITY,
                 MutationCategory.RULE, MutationCategory.NARRATIVE)


@dataclass(frozen=True)
class TierSpec:
    tier: ChaosTier
    upper_bound: int                     # inclusive
    categories: tuple
    weights: tuple                       # one weight per category
    frequency_ms: Optional[int]
    max_active: int
    milestone_interval: Optional[int]


TIERS = (
    TierSpec(ChaosTier.ORDER, 0, (), (), None, 0, None),
    TierSpec(ChaosTier.MILD, 25, (V, P), (3, 1), 90_000, 1, 500),
    TierSpec(ChaosTier.EMERGENT, 50, (V, P, E), (3, 2, 2), 60_000, 2, 250),
    TierSpec(ChaosTier.WILD, 75, (V, P, E, R), (2, 2, 2, 3), 30_000, 3, 100),
    TierSpec(ChaosTier.SURREAL, 100, (V, P, E, R, N), (2, 2, 2, 3, 3), 15_000, 999, 50),
)

TIERS_BY_NAME = {spec.tier: spec for spec in TIERS}


def get_tier_spec(level) -> TierSpec:
    level = clamp_chaos_level(level)
    for spec in TIERS:
        if level <= spec.upper_bound:
            return spec
    return TIERS[-1]


def chaos_level_to_tier(level) -> ChaosTier:
    return get_tier_spec(level).tier


def build_chaos_config(level) -> ChaosConfig:
    """Pure: the same level always yields an equal config."""
    level = clamp_chaos_level(level)
    spec = get_tier_spec(level)
    allowed = set(spec.categories)
    return ChaosConfig(
        level=level,
        tier=spec.tier,
        allowed_categories=list(spec.categories),
        category_weights={c.value: w for c, w in zip(spec.categories, spec.weights)},
        mutations=[m.id for m in get_eligible_mutations(level) if m.category in allowed],
        mutation_frequency_ms=spec.frequency_ms,
        max_active_mutations=spec.max_active,
        milestone_interval=spec.milestone_interval,
    )


# Slider label presets
ORDER_PRESET = build_chaos_config(0)
MILD_PRESET = build_chaos_config(25)
EMERGENT_PRESET = build_chaos_config(50)
WILD_PRESET = build_chaos_config(75)
SURREAL_PRESET = build_chaos_config(100)

CHAOS_PRESETS = {
    "order": ORDER_PRESET,
    "mild": MILD_PRESET,
    "emergent": EMERGENT_PRESET,
    "wild": WILD_PRESET,
    "surreal": SURREAL_PRESET,
}


def get_chaos_preset(label) -> ChaosConfig:
    """Get a chaos preset by its slider label."""
    key = label.value if isinstance(label, ChaosTier) else str(label).lower()
    preset = CHAOS_PRESETS.get(key)
    if preset is None:
        raise ValueError(f"Unknown chaos preset: {label}. Available: {list(CHAOS_PRESETS)}")
    return preset
