from __future__ import annotations

"""
Parent selection strategies over a population already sorted best-first.

All selectors share the signature (rng, population_size) -> index and can be
swapped through SELECTION_REGISTRY.
"""

import math
import random
from functools import partial
from typing import Callable

from .vars import TOURNAMENT_K

Selector = Callable[[random.Random, int], int]


def rank_biased_index(rng: random.Random, population_size: int) -> int:
    """floor((1 - sqrt(1 - u)) * N): density falls linearly from rank 0 to rank N-1."""
    u = rng.random()
    return int((1.0 - math.sqrt(1.0 - u)) * population_size)


def tournament_index(rng: random.Random, population_size: int, k: int = TOURNAMENT_K) -> int:
    """Best (lowest) of k uniformly drawn ranks.

    k is capped at N - 1 so rank 1 can still win; otherwise a second distinct
    parent could never be drawn.
    """
    k = max(1, min(k, population_size - 1))
    return min(rng.sample(range(population_size), k))


SELECTION_REGISTRY: dict[str, Selector] = {
    "rank": rank_biased_index,
    "tournament": tournament_index,
}


def get_selector(name: str, tournament_k: int = TOURNAMENT_K) -> Selector:
    if name not in SELECTION_REGISTRY:
        raise KeyError(name)
    if name == "tournament":
        return partial(tournament_index, k=tournament_k)
    return SELECTION_REGISTRY[name]


def select_parent_indices(rng: random.Random, population_size: int, selector: Selector = rank_biased_index) -> tuple[int, int]:
    """Two distinct ranks; the second is redrawn until it differs from the first."""
    first = selector(rng, population_size)
    second = selector(rng, population_size)
    while second == first:
        second = selector(rng, population_size)
    return first, second
