"""
SEEDFORGE - Game Configuration Schema

Typed records shared by the generative core: the player's choices going in,
the rule definitions flowing through the interpreter, and the generated game
payload handed to persistence and the runtime.

Usage:
    from config.game_schema import UserChoices, CoreVerb, GravityMode
    choices = UserChoices(verbs=[CoreVerb.SHOOT], gravity=GravityMode.LOW, chaos_level=40)
    json_str = choices.model_dump_json(indent=2)
"""

from __future__ import annotations
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ═══════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════

class GameGenre(str, Enum):
    ACTION       = "action"
    NARRATIVE    = "narrative"
    CARD         = "card"
    BOARD        = "board"
    PUZZLE_LOGIC = "puzzle_logic"
    RHYTHM       = "rhythm"


class VisualStyle(str, Enum):
    PIXEL      = "pixel"
    NEON       = "neon"
    MINIMAL    = "minimal"
    WATERCOLOR = "watercolor"
    RETRO_CRT  = "retro_crt"


class CoreVerb(str, Enum):
    JUMP     = "jump"
    SHOOT    = "shoot"
    COLLECT  = "collect"
    DODGE    = "dodge"
    BUILD    = "build"
    EXPLORE  = "explore"
    PUSH     = "push"
    ACTIVATE = "activate"
    CRAFT    = "craft"
    DEFEND   = "defend"
    DASH     = "dash"


class ObjectType(str, Enum):
    PLATFORM = "platform"
    ENEMY    = "enemy"
    PUZZLE   = "puzzle"
    RESOURCE = "resource"


class GravityMode(str, Enum):
    NORMAL   = "normal"
    LOW      = "low"
    SHIFTING = "shifting"
    REVERSE  = "reverse"


class WorldBoundary(str, Enum):
    WALLED   = "walled"
    LOOP     = "loop"
    INFINITE = "infinite"


class SpecialPhysics(str, Enum):
    ELASTIC  = "elastic"
    SLIPPERY = "slippery"
    STICKY   = "sticky"


class CharacterArchetype(str, Enum):
    EXPLORER  = "explorer"
    GUARDIAN  = "guardian"
    FUGITIVE  = "fugitive"
    COLLECTOR = "collector"


class DifficultyStyle(str, Enum):
    RELAXED       = "relaxed"
    STEADY        = "steady"
    HARDCORE      = "hardcore"
    ROLLERCOASTER = "rollercoaster"


class GamePace(str, Enum):
    FAST   = "fast"
    MEDIUM = "medium"
    SLOW   = "slow"


class SkillLuckRatio(str, Enum):
    PURE_SKILL  = "pure_skill"
    SKILL_HEAVY = "skill_heavy"
    BALANCED    = "balanced"
    LUCK_HEAVY  = "luck_heavy"


class ChaosTier(str, Enum):
    ORDER    = "order"
    MILD     = "mild"
    EMERGENT = "emergent"
    WILD     = "wild"
    SURREAL  = "surreal"


class MutationCategory(str, Enum):
    VISUAL    = "visual"
    PHYSICS   = "physics"
    ENTITY    = "entity"
    RULE      = "rule"
    NARRATIVE = "narrative"


class LoopType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


CHAOS_MIN = 0
CHAOS_MAX = 100


def clamp_chaos_level(value) -> int:
    """Clamp any numeric chaos input into [0, 100]. Non-numeric input becomes 0."""
    try:
        level = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return CHAOS_MIN
    return max(CHAOS_MIN, min(CHAOS_MAX, level))


# ═══════════════════════════════════════════════════════════════
# Player Choices
# ═══════════════════════════════════════════════════════════════

class UserChoices(BaseModel):
    """Everything the creation flow collects. Fixed for one generation."""
    model_config = ConfigDict(frozen=True)

    # Game style
    genre: GameGenre = GameGenre.ACTION
    visual_style: VisualStyle = VisualStyle.PIXEL

    # Core verbs (the first one leads the seed code)
    verbs: list[CoreVerb] = Field(default_factory=lambda: [CoreVerb.JUMP], min_length=1, max_length=3)

    # Objects
    object_types: list[ObjectType] = Field(default_factory=lambda: [ObjectType.PLATFORM, ObjectType.ENEMY])
    custom_element: str = ""

    # World physics
    gravity: GravityMode = GravityMode.NORMAL
    boundary: WorldBoundary = WorldBoundary.WALLED
    special_physics: SpecialPhysics = SpecialPhysics.ELASTIC
    custom_physics: str = ""

    # Narrative
    world_difference: str = "colors_alive"
    character_archetype: CharacterArchetype = CharacterArchetype.EXPLORER

    # Difficulty & pacing
    difficulty_style: DifficultyStyle = DifficultyStyle.STEADY
    game_pace: GamePace = GamePace.MEDIUM
    skill_luck_ratio: SkillLuckRatio = SkillLuckRatio.SKILL_HEAVY

    # Chaos 0-100
    chaos_level: int = 0

    @field_validator("verbs", mode="before")
    @classmethod
    def _dedupe_verbs(cls, v):
        if isinstance(v, (list, tuple)):
            seen = []
            for item in v:
                if item not in seen:
                    seen.append(item)
            return seen
        return v

    @field_validator("chaos_level", mode="before")
    @classmethod
    def _clamp_chaos(cls, v):
        return clamp_chaos_level(v)


# The DNA flow produces the same record as the classic wizard.
GameDNA = UserChoices


# ═══════════════════════════════════════════════════════════════
# Rules
# ═══════════════════════════════════════════════════════════════

class RuleDef(BaseModel):
    """When `trigger` fires and `condition` holds, `action` produces `effect`."""
    model_config = ConfigDict(frozen=True)

    trigger: str
    condition: Optional[str] = None
    action: str
    effect: str

    def dedup_key(self) -> tuple[str, str, str]:
        return (self.trigger, self.action, self.effect)


class FeedbackLoop(BaseModel):
    """Descriptive-only gameplay dynamic, consumed by tuning tools."""
    type: LoopType
    description: str
    variables: list[str] = Field(default_factory=list)
    mechanic: str = "universal"


# ═══════════════════════════════════════════════════════════════
# Chaos
# ═══════════════════════════════════════════════════════════════

class ChaosConfig(BaseModel):
    """Mutation parameters derived from a chaos level (pure function of it)."""
    model_config = ConfigDict(frozen=True)

    level: int = 0
    tier: ChaosTier = ChaosTier.ORDER
    allowed_categories: list[MutationCategory] = Field(default_factory=list)
    category_weights: dict[str, int] = Field(default_factory=dict)
    mutations: list[str] = Field(default_factory=list)   # eligible mutation ids
    mutation_frequency_ms: Optional[int] = None          # None = never on a timer
    max_active_mutations: int = 0
    milestone_interval: Optional[int] = None              # score step between milestones


# ═══════════════════════════════════════════════════════════════
# Generated Game (outbound payload)
# ═══════════════════════════════════════════════════════════════

class WorldConfig(BaseModel):
    gravity: GravityMode = GravityMode.NORMAL
    boundary: WorldBoundary = WorldBoundary.WALLED
    special_physics: SpecialPhysics = SpecialPhysics.ELASTIC
    width: int = 1600
    height: int = 900
    # Base numeric parameters the chaos layer mutates at runtime
    physics: dict[str, float] = Field(default_factory=dict)


class DifficultyConfig(BaseModel):
    style: DifficultyStyle = DifficultyStyle.STEADY
    pace: GamePace = GamePace.MEDIUM
    skill_luck_ratio: SkillLuckRatio = SkillLuckRatio.SKILL_HEAVY
    curve: list[float] = Field(default_factory=list)   # 0-1 samples, start -> end


class FeedbackLoopSet(BaseModel):
    positive: list[FeedbackLoop] = Field(default_factory=list)
    negative: list[FeedbackLoop] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    valid: bool = True
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class GeneratedGame(BaseModel):
    """
    Complete generated configuration.

    Persisted verbatim by the storage collaborator (keyed by `seed_code`) and
    consumed by the runtime. Serialize with `model_dump_json()`.
    """
    id: str
    seed_code: str
    name: str
    description: str = ""
    genre: GameGenre = GameGenre.ACTION
    visual_style: VisualStyle = VisualStyle.PIXEL
    verbs: list[CoreVerb] = Field(default_factory=list)
    world: WorldConfig = Field(default_factory=WorldConfig)
    rules: list[RuleDef] = Field(default_factory=list)
    feedback_loops: FeedbackLoopSet = Field(default_factory=FeedbackLoopSet)
    difficulty: DifficultyConfig = Field(default_factory=DifficultyConfig)
    chaos: ChaosConfig = Field(default_factory=ChaosConfig)
    internal_seed: int = 0
    validation: ValidationSummary = Field(default_factory=ValidationSummary)
