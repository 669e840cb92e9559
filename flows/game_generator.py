"""
SEEDFORGE - Game Generator

Turns a player's choices into the complete GeneratedGame payload, and rebuilds
a game from nothing but its seed code.

Stages:
  Internal seed -> World -> Rules -> Feedback loops -> Chaos -> Difficulty
  -> Seed code -> Meaningful-play and difficulty validation

Usage:
    from flows.game_generator import generate_game, restore_game
    game = generate_game(UserChoices(verbs=["shoot"], chaos_level=60))
    again = restore_game(game.seed_code)
"""

import hashlib
import logging
import math
import os
from typing import Optional

from config.game_schema import (
    CharacterArchetype, DifficultyConfig, DifficultyStyle, GamePace, GeneratedGame,
    GravityMode, RuleDef, SpecialPhysics, UserChoices, WorldConfig,
)
from config.settings import EngineConfig
from game_engine.chaos import build_chaos_config
from game_engine.rules import get_combined_rules
from game_engine.rules.feedback_loops import get_feedback_loops
from game_engine.seed import (
    CUSTOM_WORLD, SEED_SPACE, DecodedSeed, decode_seed_code, encode_seed_code,
    normalize_internal_seed,
)
from game_engine.validation import merge_results, validate_difficulty, validate_meaningful_play

logger = logging.getLogger("seedforge.generator")


# ═══════════════════════════════════════════════════════════════
# Internal Seed
# ═══════════════════════════════════════════════════════════════

def _choice_fingerprint(choices: UserChoices) -> str:
    return "|".join([
        choices.genre.value,
        choices.visual_style.value,
        ",".join(v.value for v in choices.verbs),
        choices.gravity.value,
        choices.boundary.value,
        choices.world_difference,
        choices.character_archetype.value,
        choices.difficulty_style.value,
        str(choices.chaos_level),
    ])


def create_internal_seed(choices: UserChoices, salt: Optional[int] = None) -> int:
    """Hash of the choices xor a salt, reduced into the seed space.

    Without a salt every call draws fresh random bytes, so two games built
    from identical choices still get different seeds.
    """
    digest = hashlib.sha256(_choice_fingerprint(choices).encode()).digest()
    base = int.from_bytes(digest[:4], "big")
    if salt is None:
        salt = int.from_bytes(os.urandom(4), "big")
    return (base ^ (int(salt) & 0xFFFFFFFF)) % SEED_SPACE


# ═══════════════════════════════════════════════════════════════
# World
# ═══════════════════════════════════════════════════════════════

GRAVITY_Y = {
    GravityMode.NORMAL: 800.0,
    GravityMode.LOW: 300.0,
    GravityMode.SHIFTING: 800.0,
    GravityMode.REVERSE: -800.0,
}

SURFACE = {   # (friction, bounciness)
    SpecialPhysics.ELASTIC: (0.3, 0.8),
    SpecialPhysics.SLIPPERY: (0.02, 0.2),
    SpecialPhysics.STICKY: (0.9, 0.05),
}

PACE_SPEED = {GamePace.FAST: 1.3, GamePace.MEDIUM: 1.0, GamePace.SLOW: 0.7}


def generate_world(choices: UserChoices) -> WorldConfig:
    friction, bounciness = SURFACE[choices.special_physics]
    pace = PACE_SPEED[choices.game_pace]
    return WorldConfig(
        gravity=choices.gravity,
        boundary=choices.boundary,
        special_physics=choices.special_physics,
        physics={
            "gravity_y": GRAVITY_Y[choices.gravity],
            "friction": friction,
            "bounciness": bounciness,
            "move_speed": round(200 * pace, 2),
            "jump_force": 350.0,
            "pixel_scale": 1.0,
            "time_scale": 1.0,
        },
    )


# ═══════════════════════════════════════════════════════════════
# Rules
# ═══════════════════════════════════════════════════════════════

def generate_rules(choices: UserChoices) -> list[RuleDef]:
    """Composed verb rules plus the world and chaos hooks the choices ask for."""
    rules = get_combined_rules(choices.verbs)

    if choices.gravity == GravityMode.SHIFTING:
        rules.append(RuleDef(trigger="gravity_shift", action="invert_gravity", effect="gravity:invert"))
    elif choices.gravity == GravityMode.REVERSE:
        rules.append(RuleDef(trigger="player_on_ceiling", action="ceiling_walk",
                             effect="spawn:particle_sparkle"))

    if choices.chaos_level > 0:
        rules.append(RuleDef(trigger="player_collect_chaos_orb", action="trigger_chaos",
                             effect="chaos:trigger"))
    return rules


# ═══════════════════════════════════════════════════════════════
# Difficulty
# ═══════════════════════════════════════════════════════════════

def generate_difficulty_curve(style, pace, points: Optional[int] = None) -> list[float]:
    """
    Difficulty samples in [0, 1], start to end.

    Fast games ramp quicker and slow ones take their time; rollercoaster adds
    two full oscillations on top of its upward trend. At least 3 points.
    """
    count = max(3, int(points if points is not None else EngineConfig.DIFFICULTY_CURVE_POINTS))
    pm = PACE_SPEED.get(GamePace(pace), 1.0)
    style = DifficultyStyle(style)

    curve = []
    for i in range(count):
        t = i / (count - 1)
        if style == DifficultyStyle.RELAXED:
            d = 0.2 + 0.3 * t * pm
        elif style == DifficultyStyle.STEADY:
            d = 0.3 + 0.5 * t * pm
        elif style == DifficultyStyle.HARDCORE:
            d = 0.6 + 0.35 * t * pm
        else:
            d = 0.35 + 0.25 * t * pm + 0.2 * math.sin(t * math.pi * 4)
        curve.append(round(max(0.0, min(1.0, d)), 4))
    return curve


# ═══════════════════════════════════════════════════════════════
# Pipeline
# ═══════════════════════════════════════════════════════════════

ARCHETYPE_TITLES = {
    CharacterArchetype.EXPLORER: "The Wanderer",
    CharacterArchetype.GUARDIAN: "The Sentinel",
    CharacterArchetype.FUGITIVE: "The Runaway",
    CharacterArchetype.COLLECTOR: "The Hoarder",
}


def _game_name(choices: UserChoices) -> str:
    verb_label = " & ".join(v.value.capitalize() for v in choices.verbs) or "Mystery"
    return f"{ARCHETYPE_TITLES[choices.character_archetype]}'s {verb_label} World"


def generate_game(choices, internal_seed: Optional[int] = None) -> GeneratedGame:
    """Build the full payload. Same choices and seed always give the same game."""
    if not isinstance(choices, UserChoices):
        choices = UserChoices.model_validate(choices)

    if internal_seed is None:
        internal_seed = create_internal_seed(choices)
    internal_seed = normalize_internal_seed(internal_seed)

    verbs_label = ", ".join(v.value for v in choices.verbs)
    game = GeneratedGame(
        id=f"game_{internal_seed:x}",
        seed_code=encode_seed_code(choices, internal_seed),
        name=_game_name(choices),
        description=(f"A {choices.difficulty_style.value} {choices.genre.value} game "
                     f"({verbs_label}) in a world where {choices.world_difference.replace('_', ' ')}"),
        genre=choices.genre,
        visual_style=choices.visual_style,
        verbs=list(choices.verbs),
        world=generate_world(choices),
        rules=generate_rules(choices),
        feedback_loops=get_feedback_loops(choices.verbs, choices.difficulty_style),
        difficulty=DifficultyConfig(
            style=choices.difficulty_style,
            pace=choices.game_pace,
            skill_luck_ratio=choices.skill_luck_ratio,
            curve=generate_difficulty_curve(choices.difficulty_style, choices.game_pace),
        ),
        chaos=build_chaos_config(choices.chaos_level),
        internal_seed=internal_seed,
    )

    play = validate_meaningful_play(game)
    difficulty = validate_difficulty(game)
    for label, result in (("MeaningfulPlay", play), ("Difficulty", difficulty)):
        for w in result.warnings:
            logger.warning(f"[{label}] {w}")
        for s in result.suggestions:
            logger.debug(f"[{label}] {s}")
    validation = merge_results(play, difficulty)

    logger.info(f"Generated {game.seed_code}: {len(game.rules)} rules, chaos {game.chaos.tier.value}")
    return game.model_copy(update={"validation": validation})


# ═══════════════════════════════════════════════════════════════
# Restore
# ═══════════════════════════════════════════════════════════════

def restore_choices(decoded: DecodedSeed) -> UserChoices:
    """Fill the fields a seed code could not carry with the UserChoices defaults."""
    updates = {"chaos_level": decoded.chaos_level}
    if decoded.verb is not None:
        updates["verbs"] = [decoded.verb]
    else:
        logger.debug("Restore: verb unknown, using default")
    if decoded.gravity is not None:
        updates["gravity"] = decoded.gravity
    else:
        logger.debug("Restore: gravity unknown, using default")
    if decoded.world_difference is not None:
        updates["world_difference"] = decoded.world_difference
    else:
        logger.debug("Restore: world difference unknown, using default")
    return UserChoices(**updates)


def restore_game(seed_code: str) -> GeneratedGame:
    """Rebuild a game from its seed code alone."""
    decoded = decode_seed_code(seed_code)
    if decoded.is_blank:
        logger.warning(f"Restore: {seed_code!r} carries no recoverable fields")
    if decoded.world_difference == CUSTOM_WORLD:
        logger.debug("Restore: custom world text is not carried by seed codes")
    return generate_game(restore_choices(decoded), internal_seed=decoded.internal_seed)
