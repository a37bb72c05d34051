"""
Seeded random - Deterministic pseudo-random numbers for track generation.

Implements the mulberry32 generator on a 32-bit integer state so that
a given seed yields the same sequence on every platform.
"""

from typing import List

_MASK_32 = 0xFFFFFFFF
_GOLDEN_GAMMA = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """32-bit wrapping integer multiply."""
    return (a * b) & _MASK_32


class SeededRandom:
    """Deterministic uniform random source in [0, 1).

    All state is a single unsigned 32-bit integer and every step uses
    integer arithmetic only.

    Usage:
        rng = SeededRandom(1337)
        x = rng.random()
        n = rng.integers(2, 4)  # 2 or 3
    """

    def __init__(self, seed: int = 0):
        """Initialize generator.

        Args:
            seed: Integer seed. Only the low 32 bits are used.
        """
        self._seed = int(seed) & _MASK_32
        self._state = self._seed

    @property
    def seed(self) -> int:
        """Seed the generator was created with (low 32 bits)."""
        return self._seed

    def next(self) -> float:
        """Advance the generator.

        Returns:
            Uniform float in [0, 1)
        """
        self._state = (self._state + _GOLDEN_GAMMA) & _MASK_32
        t = self._state
        r = _imul(t ^ (t >> 15), 1 | t)
        r ^= (r + _imul(r ^ (r >> 7), 61 | r)) & _MASK_32
        return ((r ^ (r >> 14)) & _MASK_32) / _TWO_POW_32

    # numpy Generator-style spelling used throughout the generators
    random = next

    def uniform(self, low: float = 0.0, high: float = 1.0) -> float:
        """Uniform float in [low, high)."""
        return low + (high - low) * self.next()

    def integers(self, low: int, high: int) -> int:
        """Uniform integer in [low, high), like ``numpy.random.Generator.integers``.

        Args:
            low: Inclusive lower bound
            high: Exclusive upper bound

        Returns:
            Integer in [low, high)
        """
        if high <= low:
            raise ValueError(f"Empty integer range [{low}, {high})")
        value = low + int(self.next() * (high - low))
        # Guard float rounding at the top of the range
        return min(value, high - 1)

    def sequence(self, count: int) -> List[float]:
        """Draw ``count`` consecutive values."""
        return [self.next() for _ in range(count)]

    def fork(self, offset: int) -> "SeededRandom":
        """Create an independent generator derived from this seed.

        Args:
            offset: Stream offset added to the seed

        Returns:
            New generator seeded with ``seed + offset``
        """
        return SeededRandom(self._seed + offset)
