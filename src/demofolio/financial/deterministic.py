"""Deterministic hashing and pseudo-random generation.

Every random draw in demofolio routes through this module so that the same
inputs reproduce byte-identical output across processes and machines.
"""

from __future__ import annotations

import uuid

UINT64_MASK = 0xFFFFFFFFFFFFFFFF
UINT64_MAX = float(UINT64_MASK)

FNV_OFFSET_BASIS = 14695981039346656037
FNV_PRIME = 1099511628211

LCG_MULTIPLIER = 6364136223846793005
LCG_INCREMENT = 1

# Substituted for a zero seed; an all-zero LCG state is degenerate.
ZERO_SEED_REPLACEMENT = 0x9E3779B97F4A7C15


def hash64(text: str) -> int:
    """FNV-1a 64-bit hash of the UTF-8 bytes of ``text``."""
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & UINT64_MASK
    return h


class SeededRNG:
    """Linear-congruential generator over 64-bit state.

    Not suitable for anything security related; it exists purely so demo
    data can be regenerated exactly from a seed.
    """

    def __init__(self, seed: int):
        seed &= UINT64_MASK
        self.state = seed if seed != 0 else ZERO_SEED_REPLACEMENT

    @classmethod
    def from_text(cls, text: str) -> SeededRNG:
        return cls(hash64(text))

    def next_uint64(self) -> int:
        self.state = (self.state * LCG_MULTIPLIER + LCG_INCREMENT) & UINT64_MASK
        return self.state

    def next_double(self, lo: float, hi: float) -> float:
        """Uniform-ish double in ``[lo, hi]``."""
        unit = self.next_uint64() / UINT64_MAX
        return lo + unit * (hi - lo)

    def next_index(self, n: int) -> int:
        """Index in ``range(n)``; ``n`` must be positive."""
        return self.next_uint64() % n


def stable_id(user_key: str, account_id: str) -> uuid.UUID:
    """Deterministic, v4-shaped UUID for a (user, account) pair.

    Two independently salted hashes fill the 16 bytes big-endian, then the
    RFC 4122 version and variant bits are forced. Nothing is allocated or
    persisted; the same inputs always map to the same identifier.
    """
    h1 = hash64(f"idA|{user_key}|{account_id}")
    h2 = hash64(f"idB|{user_key}|{account_id}")
    raw = bytearray(h1.to_bytes(8, "big") + h2.to_bytes(8, "big"))
    raw[6] = (raw[6] & 0x0F) | 0x40
    raw[8] = (raw[8] & 0x3F) | 0x80
    return uuid.UUID(bytes=bytes(raw))


def minutes_ago(user_key: str, salt: str) -> int:
    """Stable "last synced N minutes ago" value in ``[20, 179]``."""
    return 20 + hash64(f"mins|{user_key}|{salt}") % 160
