"""Cosmetic character seed derivation.

The seed only drives procedural character art on the client. It is not
unpredictable and must never gate anything: entry, scoring and payouts
ignore it entirely.
"""

from __future__ import annotations

import uuid
from typing import Callable

from .message import address_bytes

_U64_MASK = (1 << 64) - 1


def fresh_uid() -> bytes:
    """A per-call unique value, like a newly created object id."""
    return uuid.uuid4().bytes


def derive_character_seed(
    sender: str,
    round_id: int,
    uid_source: Callable[[], bytes] = fresh_uid,
) -> int:
    """Mix a fresh unique value with the sender address and round id.

    Each address byte is XORed into the accumulator at a rotating byte
    offset; the round id is folded in last.
    """
    uid = uid_source()
    seed = int.from_bytes(uid[:8].ljust(8, b"\x00"), "little")
    for i, b in enumerate(address_bytes(sender)):
        seed ^= b << ((i % 8) * 8)
    seed ^= (round_id & _U64_MASK) << 1
    return seed & _U64_MASK


__all__ = ["derive_character_seed", "fresh_uid"]
