from __future__ import annotations

"""
Seeder strategies for the EA: how the genes of the initial population are drawn.

All seeders share the signature (catalogue, width, height, rng) -> list[Placement],
one placement per template index, positions not yet resolved for collisions.
"""

import math
import random
from typing import Callable, Sequence

from .tiles import SIDES, Placement, Pos, TileTemplate

SeederFn = Callable[[Sequence[TileTemplate], int, int, random.Random], list[Placement]]


def random_orientation(rng: random.Random):
    return SIDES[rng.randrange(4)]


def random_pos(rng: random.Random, width: int, height: int) -> Pos:
    return Pos(rng.randrange(width), rng.randrange(height))


def uniform_seed(catalogue: Sequence[TileTemplate], width: int, height: int, rng: random.Random) -> list[Placement]:
    """Every tile at a uniformly random cell with a random orientation."""
    return [
        Placement(template=template, pos=random_pos(rng, width, height), orientation=random_orientation(rng))
        for template in catalogue
    ]


def centred_seed(catalogue: Sequence[TileTemplate], width: int, height: int, rng: random.Random) -> list[Placement]:
    """Draw cells from a window around the board centre just big enough for the catalogue."""
    span = math.isqrt(max(1, len(catalogue) - 1)) + 3  # ceil(sqrt(n)) + 2
    span_x = min(width, span)
    span_y = min(height, span)
    x0 = (width - span_x) // 2
    y0 = (height - span_y) // 2
    return [
        Placement(
            template=template,
            pos=Pos(x0 + rng.randrange(span_x), y0 + rng.randrange(span_y)),
            orientation=random_orientation(rng),
        )
        for template in catalogue
    ]


SEEDING_REGISTRY: dict[str, SeederFn] = {
    "uniform": uniform_seed,
    "centred": centred_seed,
}
