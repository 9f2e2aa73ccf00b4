"""Deterministic per-student question ordering.

The order is derived from ``(quiz_id, user_id)`` alone, so the same student
always sees the same order for the same quiz without the order being stored.
"""

from __future__ import annotations

from collections.abc import Sequence
import hashlib
import random
from typing import TypeVar

T = TypeVar("T")


def shuffle_seed(quiz_id: int, user_id: int) -> int:
    digest = hashlib.sha256(f"{quiz_id}:{user_id}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def shuffle_questions(items: Sequence[T], quiz_id: int, user_id: int) -> list[T]:
    """Return a Fisher-Yates permutation of ``items`` seeded by the pair."""
    rng = random.Random(shuffle_seed(quiz_id, user_id))
    shuffled = list(items)
    for index in range(len(shuffled) - 1, 0, -1):
        swap_with = rng.randint(0, index)
        shuffled[index], shuffled[swap_with] = shuffled[swap_with], shuffled[index]
    return shuffled
