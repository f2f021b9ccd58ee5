"""
Tile geometry and the board model.

Tile templates describe their structures in tile-local sides. Once a template is
placed with an orientation, every tile-local side maps to an absolute board side
through ``ROTATION_TABLE``; all side lookups (per-tile terrain, town following,
edge matching) go through that one table.

Board coordinates are (x, y) with x growing to the right and y growing downwards,
so the TOP neighbour of (x, y) is (x, y - 1).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Iterator, NamedTuple, Optional

import numpy as np


class TerrainType(Enum):
    ROAD = "road"
    FIELD = "field"
    TOWN = "town"

    def __str__(self) -> str:
        return self.value


class Side(IntEnum):
    """A tile side, and also a rotation amount (LEFT = no rotation)."""

    LEFT = 0
    TOP = 1
    RIGHT = 2
    BOTTOM = 3

    @property
    def opposite(self) -> Side:
        return OPPOSITE[self]

    def __str__(self) -> str:
        return self.name.lower()


# Orientation of a placement shares the four-valued enumeration with sides.
Orientation = Side

SIDES: tuple[Side, ...] = (Side.LEFT, Side.TOP, Side.RIGHT, Side.BOTTOM)

OPPOSITE: dict[Side, Side] = {
    Side.LEFT: Side.RIGHT,
    Side.TOP: Side.BOTTOM,
    Side.RIGHT: Side.LEFT,
    Side.BOTTOM: Side.TOP,
}

# ROTATION_TABLE[tile_side][orientation] -> absolute board side.
# Each orientation step moves every side one position back in LEFT -> TOP -> RIGHT -> BOTTOM.
ROTATION_TABLE: dict[Side, dict[Side, Side]] = {
    Side.LEFT: {Side.LEFT: Side.LEFT, Side.TOP: Side.BOTTOM, Side.RIGHT: Side.RIGHT, Side.BOTTOM: Side.TOP},
    Side.TOP: {Side.LEFT: Side.TOP, Side.TOP: Side.LEFT, Side.RIGHT: Side.BOTTOM, Side.BOTTOM: Side.RIGHT},
    Side.RIGHT: {Side.LEFT: Side.RIGHT, Side.TOP: Side.TOP, Side.RIGHT: Side.LEFT, Side.BOTTOM: Side.BOTTOM},
    Side.BOTTOM: {Side.LEFT: Side.BOTTOM, Side.TOP: Side.RIGHT, Side.RIGHT: Side.TOP, Side.BOTTOM: Side.LEFT},
}

# (absolute side, orientation) -> tile side
_INVERSE_ROTATION: dict[tuple[Side, Side], Side] = {
    (absolute, orientation): tile_side
    for tile_side, row in ROTATION_TABLE.items()
    for orientation, absolute in row.items()
}

# Board offset of the neighbour across each absolute side.
DIRECTIONS: dict[Side, tuple[int, int]] = {
    Side.LEFT: (-1, 0),
    Side.TOP: (0, -1),
    Side.RIGHT: (1, 0),
    Side.BOTTOM: (0, 1),
}


def absolute_side(tile_side: Side, orientation: Orientation) -> Side:
    """Board side that a tile-local side faces once the tile is rotated."""
    return ROTATION_TABLE[tile_side][orientation]


def tile_side_for(board_side: Side, orientation: Orientation) -> Side:
    """Inverse of ``absolute_side``: which tile-local side faces ``board_side``."""
    return _INVERSE_ROTATION[(board_side, orientation)]


def rotate_side(side: Side, steps: int) -> Side:
    """Move ``side`` ``steps`` positions along LEFT -> TOP -> RIGHT -> BOTTOM."""
    return Side((int(side) + steps) % 4)


def parse_side(name: str | Side) -> Side:
    if isinstance(name, Side):
        return name
    return Side[str(name).strip().upper()]


def parse_terrain(name: str | TerrainType) -> TerrainType:
    if isinstance(name, TerrainType):
        return name
    return TerrainType[str(name).strip().upper()]


@dataclass(frozen=True)
class Structure:
    """A named terrain feature occupying some tile-local sides."""

    name: str
    terrain: TerrainType
    sides: tuple[Side, ...] = ()
    value: int = 0


@dataclass(frozen=True)
class TileTemplate:
    """Immutable catalogue entry. Per-side terrain is derived from the structures."""

    name: str
    structures: tuple[Structure, ...] = ()
    monastery: bool = False
    image: str | None = None

    def structure_index_at(self, side: Side) -> int | None:
        for idx, structure in enumerate(self.structures):
            if side in structure.sides:
                return idx
        return None

    def side(self, side: Side) -> TerrainType:
        idx = self.structure_index_at(side)
        if idx is None:
            return TerrainType.FIELD
        return self.structures[idx].terrain

    @property
    def sides(self) -> tuple[TerrainType, ...]:
        """Un-rotated terrain in LEFT, TOP, RIGHT, BOTTOM order."""
        return tuple(self.side(s) for s in SIDES)


class Pos(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class Placement:
    """A tile template bound to a board position and an orientation."""

    template: TileTemplate
    pos: Pos
    orientation: Orientation = Side.LEFT

    def side(self, board_side: Side) -> TerrainType:
        return self.template.side(tile_side_for(board_side, self.orientation))

    @property
    def left(self) -> TerrainType:
        return self.side(Side.LEFT)

    @property
    def top(self) -> TerrainType:
        return self.side(Side.TOP)

    @property
    def right(self) -> TerrainType:
        return self.side(Side.RIGHT)

    @property
    def bottom(self) -> TerrainType:
        return self.side(Side.BOTTOM)

    def structure_at(self, board_side: Side) -> int | None:
        """Index of the structure claiming ``board_side`` after rotation."""
        return self.template.structure_index_at(tile_side_for(board_side, self.orientation))

    def structure_sides(self, index: int) -> list[Side]:
        """Absolute board sides occupied by structure ``index``."""
        return [absolute_side(s, self.orientation) for s in self.template.structures[index].sides]

    def moved_to(self, pos: Pos) -> Placement:
        return replace(self, pos=Pos(*pos))

    def rotated(self, steps: int) -> Placement:
        return replace(self, orientation=rotate_side(self.orientation, steps))


def side_of(item: TileTemplate | Placement | None, side: Side) -> TerrainType:
    """Terrain at ``side`` for a template (un-rotated), a placement (absolute) or an empty cell."""
    if item is None:
        return TerrainType.FIELD
    return item.side(side)


class Board:
    """Fixed width x height grid; each cell holds at most one Placement."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.cells: list[list[Optional[Placement]]] = [[None] * height for _ in range(width)]

    @classmethod
    def from_placements(cls, placements: list[Placement], width: int, height: int) -> Board:
        board = cls(width, height)
        for placement in placements:
            board.place(placement)
        return board

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Optional[Placement]:
        if not self.in_bounds(x, y):
            return None
        return self.cells[x][y]

    def is_free(self, pos: Pos) -> bool:
        return self.in_bounds(*pos) and self.cells[pos[0]][pos[1]] is None

    def place(self, placement: Placement) -> None:
        x, y = placement.pos
        if not self.in_bounds(x, y):
            raise ValueError(f"Position {placement.pos} is outside the {self.width}x{self.height} board")
        if self.cells[x][y] is not None:
            raise ValueError(f"Position {placement.pos} is already occupied")
        self.cells[x][y] = placement

    def neighbour(self, pos: Pos, side: Side) -> Optional[Placement]:
        dx, dy = DIRECTIONS[side]
        return self.get(pos[0] + dx, pos[1] + dy)

    def side_at(self, x: int, y: int, side: Side) -> TerrainType:
        """Absolute terrain at a cell side; FIELD for empty or off-board cells."""
        return side_of(self.get(x, y), side)

    def placements(self) -> Iterator[Placement]:
        """Occupied cells in scan order (x outer, y inner)."""
        for x in range(self.width):
            for y in range(self.height):
                cell = self.cells[x][y]
                if cell is not None:
                    yield cell

    def occupancy(self) -> np.ndarray:
        """uint8 mask of shape (width, height); 1 where a tile is placed."""
        mask = np.zeros((self.width, self.height), dtype=np.uint8)
        for placement in self.placements():
            mask[placement.pos.x, placement.pos.y] = 1
        return mask

    def __len__(self) -> int:
        return sum(1 for _ in self.placements())

    def __repr__(self) -> str:
        return f"Board({self.width}x{self.height}, tiles={len(self)})"
