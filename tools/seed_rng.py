"""
SEEDFORGE - Seeded Deterministic RNG

Reproducible randomness keyed by a game's internal seed. Every draw is
derived from an HMAC rather than a stateful generator, so a draw depends only
on (seed, channel, nonce, purpose) and can be recomputed later from a seed
code alone.

Architecture:
    key      = str(internal_seed)
    message  = channel + ":" + nonce + ":" + purpose
    combined = HMAC-SHA256(key, message)
    raw      = first 8 hex chars of combined / 2**32     -> float in [0, 1)

Usage:
    from tools.seed_rng import SeededStream
    stream = SeededStream(internal_seed=48213, channel="chaos")
    r = stream.random(nonce=0, purpose="category")
    pick = stream.weighted_choice(nonce=0, purpose="category",
                                  options=[("visual", 3), ("physics", 1)])
"""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass, field
from typing import Sequence


# ═══════════════════════════════════════════════════════════════
# Data Structures
# ═══════════════════════════════════════════════════════════════

@dataclass
class Draw:
    """One derived random value with enough data to re-derive it."""
    channel: str
    nonce: int
    purpose: str
    combined_hash: str
    raw_value: float
    outcome: object = None

    def verification_data(self) -> dict:
        return {
            "channel": self.channel,
            "nonce": self.nonce,
            "purpose": self.purpose,
            "combined_hash": self.combined_hash,
            "raw_value": self.raw_value,
            "outcome": self.outcome,
        }

    def to_audit_json(self) -> str:
        return json.dumps(self.verification_data(), indent=2, default=str)


# ═══════════════════════════════════════════════════════════════
# Core Stream
# ═══════════════════════════════════════════════════════════════

@dataclass
class SeededStream:
    """Deterministic random draws for one seed and one channel."""
    internal_seed: int
    channel: str = "default"
    keep_audit: bool = False
    draws: list = field(default_factory=list)

    def derive_hash(self, nonce: int, purpose: str = "") -> str:
        """Compute HMAC-SHA256(seed, channel:nonce:purpose)."""
        message = f"{self.channel}:{nonce}:{purpose}"
        return hmac.new(
            str(self.internal_seed).encode(),
            message.encode(),
            hashlib.sha256,
        ).hexdigest()

    @staticmethod
    def hash_to_float(hex_hash: str, offset: int = 0) -> float:
        """Convert 8 hex characters to float in [0, 1)."""
        segment = hex_hash[offset:offset + 8]
        return int(segment, 16) / 0x100000000  # 2^32

    def _record(self, nonce: int, purpose: str, combined: str, raw: float, outcome) -> None:
        if self.keep_audit:
            self.draws.append(Draw(self.channel, nonce, purpose, combined, raw, outcome))

    # ── Draws ─────────────────────────────────────────────────

    def random(self, nonce: int, purpose: str = "") -> float:
        combined = self.derive_hash(nonce, purpose)
        r = self.hash_to_float(combined)
        self._record(nonce, purpose, combined, r, r)
        return r

    def randint(self, nonce: int, low: int, high: int, purpose: str = "") -> int:
        """Integer in [low, high] inclusive."""
        if high < low:
            low, high = high, low
        combined = self.derive_hash(nonce, purpose)
        r = self.hash_to_float(combined)
        value = low + int(r * (high - low + 1))
        self._record(nonce, purpose, combined, r, value)
        return value

    def choice(self, nonce: int, options: Sequence, purpose: str = ""):
        if not options:
            return None
        combined = self.derive_hash(nonce, purpose)
        r = self.hash_to_float(combined)
        picked = options[int(r * len(options))]
        self._record(nonce, purpose, combined, r, picked)
        return picked

    def weighted_choice(self, nonce: int, options: Sequence[tuple], purpose: str = ""):
        """Pick from (item, weight) pairs. Non-positive weights are never picked."""
        pool = [(item, w) for item, w in options if w > 0]
        if not pool:
            return None
        total = sum(w for _, w in pool)
        combined = self.derive_hash(nonce, purpose)
        r = self.hash_to_float(combined)
        target = r * total
        running = 0.0
        picked = pool[-1][0]
        for item, w in pool:
            running += w
            if target < running:
                picked = item
                break
        self._record(nonce, purpose, combined, r, picked)
        return picked

    def audit_log(self) -> dict:
        return {
            "internal_seed": self.internal_seed,
            "channel": self.channel,
            "total_draws": len(self.draws),
            "draws": [d.verification_data() for d in self.draws],
        }
