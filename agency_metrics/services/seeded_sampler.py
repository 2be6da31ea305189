"""
Deterministic pseudo-random sampling keyed by a string seed.

Stands in for a real analytics backend wherever reproducible synthetic data is
needed (demo series, breakdown magnitudes). The generator is a pure function
of its seed: the same seed yields the same sequence across process restarts
and machines.

Algorithm:
    Seeding hashes the seed's UTF-16 code units with 32-bit FNV-1a
    (offset basis 2166136261, prime 16777619). Each draw applies an
    xorshift-multiply step to the state and scales it into [0, 1):

        h = ((h ^ (h >> 13)) * 16777619) mod 2**32
        return h / 2**32

All arithmetic is done on unsigned 32-bit integers.
"""

from typing import List

FNV_OFFSET_BASIS: int = 2166136261
FNV_PRIME: int = 16777619
UINT32_MASK: int = 0xFFFFFFFF
UINT32_RANGE: float = float(2 ** 32)


def _utf16_code_units(text: str) -> List[int]:
    raw = text.encode("utf-16-le")
    return [raw[i] | (raw[i + 1] << 8) for i in range(0, len(raw), 2)]


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the string's UTF-16 code units."""
    h = FNV_OFFSET_BASIS
    for unit in _utf16_code_units(text):
        h = ((h ^ unit) * FNV_PRIME) & UINT32_MASK
    return h


class SeededSampler:
    """
    Reproducible uniform generator.

    Example:
        >>> rand = SeededSampler("2024-03-01|2024-03-07|impressions|gender|all")
        >>> first = rand()
        >>> 0.0 <= first < 1.0
        True
    """

    def __init__(self, seed: str) -> None:
        self.seed = seed
        self._state = fnv1a_32(seed)

    def next_float(self) -> float:
        h = self._state
        h = ((h ^ (h >> 13)) * FNV_PRIME) & UINT32_MASK
        self._state = h
        return h / UINT32_RANGE

    __call__ = next_float

    def uniform(self, low: float, high: float) -> float:
        return low + self.next_float() * (high - low)

    def sample_values(self, count: int) -> List[float]:
        return [self.next_float() for _ in range(count)]
