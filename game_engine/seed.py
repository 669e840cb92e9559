"""
SEEDFORGE - Seed Codes

Converts player choices plus the internal numeric seed into a compact,
shareable seed code, and back.

Format:  VVVV-GGGG-WWWWC-SSSS
Example: JUMP-FLOT-COLR3-7X3K

    VVVV : lead verb (first selected verb)
    GGGG : gravity mode
    WWWW : world-difference key, CSTM for free text
    C    : chaos digit, round(level / 11) clamped to 0-9
    SSSS : internal seed, 4 base-33 digits

The chaos digit is lossy on purpose: a decoded level is only accurate to
within 11 units, and exact for multiples of 11 up to 99. The seed segment
covers exactly 33**4 values; larger seeds alias modulo that range.

Usage:
    from game_engine.seed import encode_seed_code, decode_seed_code
    code = encode_seed_code(choices, internal_seed=123456)
    decoded = decode_seed_code(code)
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import quote

from config.game_schema import CoreVerb, GravityMode, clamp_chaos_level
from config.settings import EngineConfig

logger = logging.getLogger("seedforge.seed")


# ═══════════════════════════════════════════════════════════════
# Lookup Tables
# ═══════════════════════════════════════════════════════════════

VERB_CODES = {
    CoreVerb.JUMP: "JUMP",
    CoreVerb.SHOOT: "SHOT",
    CoreVerb.COLLECT: "GRAB",
    CoreVerb.DODGE: "DODG",
    CoreVerb.BUILD: "BILD",
    CoreVerb.EXPLORE: "XPLR",
    CoreVerb.PUSH: "PUSH",
    CoreVerb.ACTIVATE: "ACTV",
    CoreVerb.CRAFT: "CRFT",
    CoreVerb.DEFEND: "DFND",
    CoreVerb.DASH: "DASH",
}

GRAVITY_CODES = {
    GravityMode.NORMAL: "NORM",
    GravityMode.LOW: "FLOT",
    GravityMode.SHIFTING: "SHFT",
    GravityMode.REVERSE: "RVRS",
}

# Known world-difference template keys. Anything else encodes as CUSTOM_WORLD_CODE.
WORLD_CODES = {
    "colors_alive": "COLR",
    "sound_solid": "SOND",
    "memory_touch": "MMRY",
    "time_uneven": "TIME",
}

CUSTOM_WORLD_CODE = "CSTM"
CUSTOM_WORLD = "custom"

DEFAULT_VERB_CODE = VERB_CODES[CoreVerb.JUMP]
DEFAULT_GRAVITY_CODE = GRAVITY_CODES[GravityMode.NORMAL]

CODE_TO_VERB = {v: k for k, v in VERB_CODES.items()}
CODE_TO_GRAVITY = {v: k for k, v in GRAVITY_CODES.items()}
CODE_TO_WORLD = {v: k for k, v in WORLD_CODES.items()}

# 33 symbols: I, L and O are left out (they read as 1, 1 and 0).
SEED_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTUVWXYZ"
SEED_BASE = len(SEED_ALPHABET)
SEED_DIGITS = 4
SEED_SPACE = SEED_BASE ** SEED_DIGITS   # 1,185,921

CHAOS_STEP = 11
SEGMENT_COUNT = 4


# ═══════════════════════════════════════════════════════════════
# Decoded Result
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DecodedSeed:
    """Partial choices recovered from a seed code.

    Fields the code could not represent are None; the caller decides what
    default to use for them.
    """
    verb: Optional[CoreVerb] = None
    gravity: Optional[GravityMode] = None
    world_difference: Optional[str] = None
    chaos_level: int = 0
    internal_seed: int = 0

    @property
    def is_blank(self) -> bool:
        """True when nothing at all could be recovered."""
        return (self.verb is None and self.gravity is None
                and self.world_difference is None and self.internal_seed == 0)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["verb"] = self.verb.value if self.verb else None
        d["gravity"] = self.gravity.value if self.gravity else None
        return d


UNKNOWN_SEED = DecodedSeed()


# ═══════════════════════════════════════════════════════════════
# Internal Seed <-> 4-char code
# ═══════════════════════════════════════════════════════════════

def normalize_internal_seed(seed) -> int:
    """Reduce any numeric seed into [0, SEED_SPACE). Non-numeric input becomes 0."""
    try:
        value = float(seed)
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or math.isinf(value):
        return 0
    return abs(int(math.floor(value + 0.5))) % SEED_SPACE


def encode_internal_seed(seed) -> str:
    n = normalize_internal_seed(seed)
    digits = []
    for _ in range(SEED_DIGITS):
        digits.append(SEED_ALPHABET[n % SEED_BASE])
        n //= SEED_BASE
    return "".join(reversed(digits))


def decode_internal_seed(code: str) -> int:
    """Decode a 4-symbol seed segment. Anything malformed decodes to 0."""
    if not isinstance(code, str) or len(code) != SEED_DIGITS:
        return 0
    n = 0
    for ch in code.upper():
        idx = SEED_ALPHABET.find(ch)
        if idx == -1:
            return 0
        n = n * SEED_BASE + idx
    return n


def quantize_chaos(level) -> int:
    """Map a 0-100 chaos level onto a single digit (half-up rounding)."""
    clamped = clamp_chaos_level(level)
    return max(0, min(9, int(math.floor(clamped / CHAOS_STEP + 0.5))))


# ═══════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════

def _field(choices, name: str, default=None):
    if isinstance(choices, dict):
        return choices.get(name, default)
    return getattr(choices, name, default)


def _lookup(table: dict, enum_cls, raw, default: str) -> str:
    try:
        return table[enum_cls(raw)]
    except (ValueError, KeyError, TypeError):
        return default


def encode_seed_code(choices, internal_seed) -> str:
    """Encode choices (a UserChoices or a plain dict) and a seed. Never raises."""
    verbs = _field(choices, "verbs") or []
    if isinstance(verbs, (str, CoreVerb)):
        verbs = [verbs]
    try:
        lead = next(iter(verbs), None)
    except TypeError:
        lead = None

    verb = _lookup(VERB_CODES, CoreVerb, lead, DEFAULT_VERB_CODE)
    grav = _lookup(GRAVITY_CODES, GravityMode, _field(choices, "gravity"), DEFAULT_GRAVITY_CODE)

    world_key = _field(choices, "world_difference")
    world = WORLD_CODES.get(world_key, CUSTOM_WORLD_CODE) if isinstance(world_key, str) else CUSTOM_WORLD_CODE

    chaos_digit = quantize_chaos(_field(choices, "chaos_level", 0))
    seed_str = encode_internal_seed(internal_seed)

    return f"{verb}-{grav}-{world}{chaos_digit}-{seed_str}"


def decode_seed_code(code: str) -> DecodedSeed:
    """Decode a seed code into partial choices. Never raises."""
    if not isinstance(code, str):
        logger.debug(f"Seed decode: non-string input {type(code).__name__}")
        return UNKNOWN_SEED

    parts = code.strip().upper().split("-")
    if len(parts) != SEGMENT_COUNT:
        logger.debug(f"Seed decode: expected {SEGMENT_COUNT} segments, got {len(parts)} in {code!r}")
        return UNKNOWN_SEED

    verb_code, grav_code, world_chaos, seed_part = parts

    # World code is everything but the last char; the last char is the chaos digit
    world_code, chaos_char = world_chaos[:-1], world_chaos[-1:]

    if world_code in CODE_TO_WORLD:
        world = CODE_TO_WORLD[world_code]
    elif world_code == CUSTOM_WORLD_CODE:
        world = CUSTOM_WORLD
    else:
        world = None

    chaos_level = int(chaos_char) * CHAOS_STEP if chaos_char and chaos_char in "0123456789" else 0

    decoded = DecodedSeed(
        verb=CODE_TO_VERB.get(verb_code),
        gravity=CODE_TO_GRAVITY.get(grav_code),
        world_difference=world,
        chaos_level=chaos_level,
        internal_seed=decode_internal_seed(seed_part),
    )
    if decoded.is_blank:
        logger.debug(f"Seed decode: nothing recoverable from {code!r}")
    return decoded


def generate_share_url(seed_code: str, prefix: str = None) -> str:
    """Shareable play URL for a seed code."""
    base = EngineConfig.SHARE_URL_PREFIX if prefix is None else prefix
    return f"{base}{quote(seed_code, safe='')}"
