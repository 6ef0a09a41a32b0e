"""
Seeded pseudo-random selection.

The generator is a pure function of a seed string: an FNV-1a 32-bit hash of
the seed's UTF-16 code units feeds a mulberry32-style counter generator.
All arithmetic is kept in unsigned 32-bit space so the sequence for a seed is
identical across processes and matches the JavaScript implementation the
company's web front-end uses.
"""

from typing import Iterator, List, Sequence, TypeVar

T = TypeVar('T')

MASK_32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
MULBERRY_INCREMENT = 0x6D2B79F5
TWO_POW_32 = 4294967296


def _imul(a: int, b: int) -> int:
    """32-bit multiply, low 32 bits kept."""
    return (a * b) & MASK_32


def _utf16_code_units(text: str) -> Iterator[int]:
    data = text.encode('utf-16-le', 'surrogatepass')
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def fnv1a_32(seed: str) -> int:
    """
    FNV-1a hash over the UTF-16 code units of a string.

    Args:
        seed: Seed string

    Returns:
        Unsigned 32-bit hash
    """
    h = FNV_OFFSET_BASIS
    for code_unit in _utf16_code_units(seed):
        h ^= code_unit
        h = _imul(h, FNV_PRIME)
    return h


def selection_seed(property_id: str, day_iso: str) -> str:
    """Seed string for a (property, date) pair."""
    return f"{property_id}-{day_iso}"


class SeededRandom:
    """
    Reproducible uniform generator over [0, 1).

    Holds only its own 32-bit counter, never module-level random state.
    """

    def __init__(self, seed: str):
        self.seed = seed
        self._state = fnv1a_32(seed)

    def random(self) -> float:
        self._state = (self._state + MULBERRY_INCREMENT) & MASK_32
        h = self._state
        t = _imul(h ^ (h >> 15), 1 | h)
        t ^= (t + _imul(t ^ (t >> 7), 61 | t)) & MASK_32
        return ((t ^ (t >> 14)) & MASK_32) / TWO_POW_32

    def randrange(self, n: int) -> int:
        """Uniform index in [0, n)."""
        return int(self.random() * n)

    def __repr__(self):
        return f"<SeededRandom(seed={self.seed!r})>"


def pick_random_distinct(items: Sequence[T], count: int, rng: SeededRandom) -> List[T]:
    """
    Draw ``min(count, len(items))`` distinct items without replacement.

    Indices are drawn uniformly and re-drawn on repeats until enough distinct
    ones are collected, so the result order is the draw order.

    Args:
        items: Candidate pool
        count: Number of items wanted
        rng: Seeded generator

    Returns:
        List of chosen items
    """
    n = min(count, len(items))
    result: List[T] = []
    used = set()
    while len(result) < n:
        idx = rng.randrange(len(items))
        if idx not in used:
            used.add(idx)
            result.append(items[idx])
    return result
