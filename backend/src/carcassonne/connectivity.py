from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, List

from .tiles import DIRECTIONS, Board, Placement, Pos, TerrainType


@dataclass
class Cluster:
    """Maximal set of 4-connected occupied cells."""
    cells: List[Placement]

    @property
    def positions(self) -> set[Pos]:
        return {cell.pos for cell in self.cells}

    def __len__(self) -> int:
        return len(self.cells)


@dataclass(frozen=True)
class TownPart:
    """One town structure on one placed tile. Identity is (position, structure index)."""
    pos: Pos
    structure: int
    placement: Placement = field(compare=False, repr=False)


@dataclass
class TownCluster:
    """Town structures joined across tile borders."""
    parts: List[TownPart]

    @property
    def positions(self) -> set[Pos]:
        return {part.pos for part in self.parts}

    def __len__(self) -> int:
        return len(self.parts)


def spatial_clusters(board: Board) -> list[Cluster]:
    """
    Split the occupied cells into 4-connected clusters.

    Works on a scratch occupancy mask: a cell is cleared from the mask when it is
    enqueued, so each cell lands in exactly one cluster. Clusters are discovered in
    scan order (x outer, y inner).
    """
    remaining = board.occupancy()
    clusters: list[Cluster] = []

    for x in range(board.width):
        for y in range(board.height):
            if not remaining[x, y]:
                continue
            remaining[x, y] = 0
            cells = [board.cells[x][y]]
            q: deque[tuple[int, int]] = deque([(x, y)])

            while q:
                cx, cy = q.popleft()
                for dx, dy in DIRECTIONS.values():
                    nx, ny = cx + dx, cy + dy
                    if board.in_bounds(nx, ny) and remaining[nx, ny]:
                        remaining[nx, ny] = 0
                        cells.append(board.cells[nx][ny])
                        q.append((nx, ny))

            clusters.append(Cluster(cells=cells))

    return clusters


def town_neighbours(board: Board, part: TownPart) -> Iterator[TownPart]:
    """Town structures on adjacent tiles that meet ``part`` edge to edge."""
    placement = part.placement
    for side in placement.structure_sides(part.structure):
        neighbour = board.neighbour(placement.pos, side)
        if neighbour is None:
            continue
        facing = side.opposite
        if neighbour.side(facing) is not TerrainType.TOWN:
            continue
        idx = neighbour.structure_at(facing)
        if idx is not None:
            yield TownPart(pos=neighbour.pos, structure=idx, placement=neighbour)


def town_clusters(board: Board) -> list[TownCluster]:
    """
    Group every TOWN structure on the board into connected towns.

    Each unvisited (tile, town structure) pair seeds a breadth-first walk that
    follows town sides across tile borders; several towns may share one tile.
    """
    visited: set[TownPart] = set()
    clusters: list[TownCluster] = []

    for placement in board.placements():
        for idx, structure in enumerate(placement.template.structures):
            if structure.terrain is not TerrainType.TOWN:
                continue
            seed = TownPart(pos=placement.pos, structure=idx, placement=placement)
            if seed in visited:
                continue
            visited.add(seed)
            parts = [seed]
            q: deque[TownPart] = deque([seed])

            while q:
                part = q.popleft()
                for nb in town_neighbours(board, part):
                    if nb in visited:
                        continue
                    visited.add(nb)
                    parts.append(nb)
                    q.append(nb)

            clusters.append(TownCluster(parts=parts))

    return clusters
