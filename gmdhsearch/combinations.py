"""
Enumeration of feature combinations

All generators yield index tuples in lexicographic order and can be
restarted by calling them again.
"""

import math
from typing import Iterator


def combinations(n: int, size: int) -> Iterator[tuple[int, ...]]:
    """All strictly increasing index tuples of length `size` from `range(n)`.

    Starts at `(0, 1, ..., size-1)`. To advance, find the rightmost position
    `p` with `idx[p] < n - size + p`, increment it and reset every later
    position to one more than its predecessor.
    """
    if size < 1 or size > n:
        return

    idx = list(range(size))
    while True:
        yield tuple(idx)

        p = size - 1
        while p >= 0 and idx[p] == n - size + p:
            p -= 1
        if p < 0:
            return

        idx[p] += 1
        for q in range(p + 1, size):
            idx[q] = idx[q - 1] + 1


def pairs(n: int) -> Iterator[tuple[int, int]]:
    """Unordered pairs `(i, j)`, `i < j`."""
    for i in range(n):
        for j in range(i + 1, n):
            yield (i, j)


def subsets(n: int, min_size: int, max_size: int) -> Iterator[tuple[int, ...]]:
    """Combinations of every size in `[min_size, max_size]`, smallest first."""
    for size in range(min_size, max_size + 1):
        yield from combinations(n, size)


def count_subsets(n: int, min_size: int, max_size: int) -> int:
    return sum(math.comb(n, s) for s in range(max(min_size, 1), max_size + 1))
