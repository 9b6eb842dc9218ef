# solver/permutations.py
from __future__ import annotations

import math
from typing import List, MutableSequence, Optional, Tuple


def next_permutation(seq: MutableSequence[int]) -> bool:
    """Advance ``seq`` in place to its lexicographic successor.

    Returns False (leaving ``seq`` untouched) when it is already the last,
    descending ordering.
    """
    n = len(seq)
    i = n - 2
    while i >= 0 and seq[i] >= seq[i + 1]:
        i -= 1
    if i < 0:
        return False
    j = n - 1
    while seq[j] <= seq[i]:
        j -= 1
    seq[i], seq[j] = seq[j], seq[i]
    seq[i + 1:] = reversed(seq[i + 1:])
    return True


class PermutationCounter:
    """Hands out orderings of ``range(n)`` one at a time, then ``None``."""

    def __init__(self, n: int):
        self.n = int(n)
        self.total = math.factorial(max(0, self.n))
        self.issued = 0
        self._current: Optional[List[int]] = None
        self._exhausted = False

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def next(self) -> Optional[Tuple[int, ...]]:
        if self._exhausted:
            return None
        if self._current is None:
            self._current = list(range(self.n))
        elif not next_permutation(self._current):
            self._exhausted = True
            return None
        self.issued += 1
        return tuple(self._current)

    def fraction_done(self) -> float:
        if self.total <= 0:
            return 1.0
        return min(1.0, self.issued / self.total)
