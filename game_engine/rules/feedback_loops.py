"""
SEEDFORGE - Feedback Loop Advisor

Descriptive positive and negative feedback loops for a verb selection and a
difficulty style. Nothing here runs against GameState; tuning tools and the
game summary read it.

Difficulty changes which loops are listed, never their wording:
  hardcore  drops the universal positive loop
  relaxed   keeps only the universal negative loop
"""

from config.game_schema import (
    CoreVerb, DifficultyStyle, FeedbackLoop, FeedbackLoopSet, LoopType,
)

UNIVERSAL = "universal"


# ═══════════════════════════════════════════════════════════════
# Loop Tables
# ═══════════════════════════════════════════════════════════════

# (description, variables)
UNIVERSAL_POSITIVE = (
    "Successive successful actions increase combo multiplier, yielding more points per action",
    ["combo_multiplier", "score_rate", "player_confidence"],
)

UNIVERSAL_NEGATIVE = (
    "As the player scores higher, enemy spawn rate and speed increase proportionally",
    ["player_score", "enemy_spawn_rate", "enemy_speed"],
)

POSITIVE_LOOPS = {
    CoreVerb.JUMP: (
        "Consecutive precision jumps grant a speed boost, making it easier to reach platforms",
        ["jump_streak", "movement_speed", "platform_reach"],
    ),
    CoreVerb.SHOOT: (
        "Kill streaks increase fire rate temporarily, making it easier to extend the streak",
        ["kill_streak", "fire_rate", "score_per_kill"],
    ),
    CoreVerb.COLLECT: (
        "Collecting items increases magnet radius, making nearby items easier to collect",
        ["items_collected", "collect_radius", "collection_speed"],
    ),
    CoreVerb.DODGE: (
        "Successful dodges charge a power meter that slows time, making dodging even easier",
        ["dodge_streak", "time_slow_factor", "dodge_window"],
    ),
    CoreVerb.BUILD: (
        "Building structures grants resource bonuses, enabling more building",
        ["blocks_placed", "resource_generation", "build_speed"],
    ),
    CoreVerb.EXPLORE: (
        "Discovering new areas reveals more of the map, making the next discovery faster",
        ["areas_discovered", "map_reveal_radius", "travel_speed"],
    ),
    CoreVerb.PUSH: (
        "Pushing objects into place opens shortcuts, freeing time to solve the next push",
        ["objects_placed", "shortcut_count", "push_strength"],
    ),
    CoreVerb.ACTIVATE: (
        "Each activated switch powers nearby mechanisms, making later switches easier to reach",
        ["switches_active", "powered_radius", "activation_speed"],
    ),
    CoreVerb.CRAFT: (
        "Crafted tools speed up gathering, which feeds more crafting",
        ["items_crafted", "gather_rate", "recipe_unlocks"],
    ),
    CoreVerb.DEFEND: (
        "Successful defenses earn upgrades that make the next wave easier to hold",
        ["waves_held", "defense_upgrades", "base_integrity"],
    ),
    CoreVerb.DASH: (
        "Chained dashes refund stamina, allowing even longer dash chains",
        ["dash_chain", "stamina_refund", "dash_distance"],
    ),
}

NEGATIVE_LOOPS = {
    CoreVerb.JUMP: (
        "As the player progresses, platforms become smaller and gaps wider",
        ["levels_cleared", "platform_width", "gap_distance"],
    ),
    CoreVerb.SHOOT: (
        "Enemies killed increase the health and armour of subsequent spawns",
        ["total_kills", "enemy_health", "enemy_armor"],
    ),
    CoreVerb.COLLECT: (
        "More items collected causes remaining items to move or hide more aggressively",
        ["collection_progress", "item_evasion_speed", "item_hide_chance"],
    ),
    CoreVerb.DODGE: (
        "Successful dodges cause enemies to attack in tighter, faster patterns",
        ["dodge_count", "attack_frequency", "attack_pattern_complexity"],
    ),
    CoreVerb.BUILD: (
        "More structures built attract more enemies and environmental hazards",
        ["structure_count", "enemy_aggression", "hazard_frequency"],
    ),
    CoreVerb.EXPLORE: (
        "Distant areas hold fewer resources and stronger guardians",
        ["distance_from_start", "resource_density", "guardian_strength"],
    ),
    CoreVerb.PUSH: (
        "Heavier objects appear as more of them are moved into place",
        ["objects_placed", "object_weight", "push_resistance"],
    ),
    CoreVerb.ACTIVATE: (
        "Active switches time out faster as more of them are lit",
        ["switches_active", "switch_timeout", "sequence_length"],
    ),
    CoreVerb.CRAFT: (
        "Recipes cost more materials the more items have been crafted",
        ["items_crafted", "recipe_cost", "material_scarcity"],
    ),
    CoreVerb.DEFEND: (
        "Each wave held brings a larger, faster wave next",
        ["waves_held", "wave_size", "enemy_speed"],
    ),
    CoreVerb.DASH: (
        "Frequent dashing lengthens the dash cooldown",
        ["dash_count", "dash_cooldown", "stamina_drain"],
    ),
}


# ═══════════════════════════════════════════════════════════════
# Advisor
# ═══════════════════════════════════════════════════════════════

def _verb_set(verbs) -> list[CoreVerb]:
    selected = []
    for v in verbs or []:
        try:
            verb = CoreVerb(v)
        except ValueError:
            continue
        if verb not in selected:
            selected.append(verb)
    return selected


def _difficulty(difficulty) -> DifficultyStyle:
    try:
        return DifficultyStyle(difficulty)
    except ValueError:
        return DifficultyStyle.STEADY


def _loop(loop_type: LoopType, entry: tuple, mechanic: str) -> FeedbackLoop:
    description, variables = entry
    return FeedbackLoop(type=loop_type, description=description,
                        variables=list(variables), mechanic=mechanic)


def get_positive_feedback_loops(verbs, difficulty) -> list[FeedbackLoop]:
    """Universal combo loop first, then one loop per verb in table order."""
    selected = _verb_set(verbs)
    loops = [_loop(LoopType.POSITIVE, UNIVERSAL_POSITIVE, UNIVERSAL)]
    for verb, entry in POSITIVE_LOOPS.items():
        if verb in selected:
            loops.append(_loop(LoopType.POSITIVE, entry, verb.value))

    if _difficulty(difficulty) == DifficultyStyle.HARDCORE:
        return loops[1:]
    return loops


def get_negative_feedback_loops(verbs, difficulty) -> list[FeedbackLoop]:
    """Universal escalation loop first, then one loop per verb in table order."""
    selected = _verb_set(verbs)
    loops = [_loop(LoopType.NEGATIVE, UNIVERSAL_NEGATIVE, UNIVERSAL)]
    for verb, entry in NEGATIVE_LOOPS.items():
        if verb in selected:
            loops.append(_loop(LoopType.NEGATIVE, entry, verb.value))

    if _difficulty(difficulty) == DifficultyStyle.RELAXED:
        return loops[:1]
    return loops


def get_feedback_loops(verbs, difficulty) -> FeedbackLoopSet:
    return FeedbackLoopSet(
        positive=get_positive_feedback_loops(verbs, difficulty),
        negative=get_negative_feedback_loops(verbs, difficulty),
    )
