"""
SEEDFORGE - Chaos Mutation Layer

Usage:
    from game_engine.chaos import ChaosEngine, build_chaos_config
    config = build_chaos_config(60)
    chaos = ChaosEngine(60, internal_seed=48213, rule_engine=engine)
"""

from game_engine.chaos.controller import ActiveMutation, ChaosEngine
from game_engine.chaos.mutations import (
    ALL_MUTATIONS, Mutation, get_eligible_mutations, get_mutation_by_id,
    get_mutations_by_category,
)
from game_engine.chaos.presets import (
    CHAOS_PRESETS, build_chaos_config, chaos_level_to_tier, get_chaos_preset,
)
