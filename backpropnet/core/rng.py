"""Random number helpers.

Every component that needs randomness receives a :class:`numpy.random.Generator`
so that runs are reproducible from a single seed.
"""

from __future__ import annotations

import time
from typing import MutableSequence

import numpy as np


def make_rng(seed: int | None = None) -> np.random.Generator:
    return np.random.default_rng(seed)


def resolve_seed(seed: int) -> int:
    """Return ``seed`` or, when it is 0, a seed in [1, 10000] derived from the clock."""

    if seed:
        return int(seed)
    # 0 is reserved for "use the clock"
    return (int(time.time()) % 10000) + 1


def rand_int(rng: np.random.Generator, start: int, end: int) -> int:
    """Uniform integer in the closed interval ``[start, end]``."""

    if start > end:
        raise ValueError(f"Empty interval [{start}, {end}]")
    return int(rng.integers(start, end + 1))


def shuffle_in_place(values: MutableSequence[int], rng: np.random.Generator) -> None:
    """Fisher-Yates permutation walking from the last position down."""

    for i in range(len(values), 0, -1):
        j = rand_int(rng, 0, i - 1)
        values[i - 1], values[j] = values[j], values[i - 1]


__all__ = ["make_rng", "resolve_seed", "rand_int", "shuffle_in_place"]
