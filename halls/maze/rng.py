"""Seeded random stream threaded explicitly through generation.

Every random decision in region generation and exploration draws from a
RandomStream instance; nothing touches the process-wide ``random`` state so
two streams built from the same seed always replay the same choices.
"""
from __future__ import annotations
import random
from typing import Sequence, TypeVar

T = TypeVar('T')

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


def to_int32(value: int) -> int:
    """Wrap an arbitrary int into the signed 32-bit range."""
    return ((int(value) - INT32_MIN) % (2 ** 32)) + INT32_MIN


class RandomStream:
    def __init__(self, seed: int):
        self.seed = to_int32(seed)
        self._random = random.Random(self.seed & 0xFFFFFFFF)

    def unit(self) -> float:
        """Uniform float in [0, 1)."""
        return self._random.random()

    def uniform(self, lo: float, hi: float) -> float:
        return lo + self.unit() * (hi - lo)

    def below(self, n: int) -> int:
        """Uniform int in [0, n)."""
        if n <= 0:
            raise ValueError("below() requires n > 0")
        return self._random.randrange(n)

    def between(self, lo: int, hi: int) -> int:
        """Uniform int in [lo, hi] (inclusive)."""
        return self._random.randint(lo, hi)

    def coin(self, probability: float = 0.5) -> bool:
        return self.unit() < probability

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("choice() from empty sequence")
        return items[self.below(len(items))]

    def seed32(self) -> int:
        """Draw a signed 32-bit seed suitable for exchange with peers."""
        return self._random.randint(INT32_MIN, INT32_MAX)

    def spawn(self) -> 'RandomStream':
        return RandomStream(self.seed32())

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"RandomStream(seed={self.seed})"


__all__ = ['RandomStream', 'to_int32', 'INT32_MIN', 'INT32_MAX']
