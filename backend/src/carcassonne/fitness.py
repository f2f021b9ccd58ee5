# backend/src/carcassonne/fitness.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from .connectivity import spatial_clusters, town_clusters
from .tiles import Board, Placement, Side, TerrainType
from .vars import (
    CLUSTER_WEIGHT,
    EDGE_MISMATCH_WEIGHT,
    UNCLOSED_TOWN_WEIGHT,
    TOWN_CLUSTER_WEIGHT,
)


@dataclass(frozen=True)
class Weights:
    clusters: int = CLUSTER_WEIGHT
    edge_mismatch: int = EDGE_MISMATCH_WEIGHT
    unclosed_towns: int = UNCLOSED_TOWN_WEIGHT
    town_clusters: int = TOWN_CLUSTER_WEIGHT


@dataclass(frozen=True)
class FitnessScores:
    clusters: int
    edge_mismatch: int
    unclosed_towns: int
    town_clusters: int

    @property
    def total(self) -> int:
        return self.clusters + self.edge_mismatch + self.unclosed_towns + self.town_clusters


# ---------- penalties ----------
def cluster_penalty(board: Board) -> int:
    """Number of 4-connected tile groups beyond the first."""
    return max(0, len(spatial_clusters(board)) - 1)


def edge_mismatch_penalty(board: Board) -> int:
    """Adjacent tile pairs whose facing sides carry different terrain; each pair counted once."""
    total = 0
    for x in range(board.width - 1):
        for y in range(board.height):
            a, b = board.cells[x][y], board.cells[x + 1][y]
            if a is not None and b is not None and a.right is not b.left:
                total += 1
    for x in range(board.width):
        for y in range(board.height - 1):
            a, b = board.cells[x][y], board.cells[x][y + 1]
            if a is not None and b is not None and a.bottom is not b.top:
                total += 1
    return total


def _is_town(board: Board, x: int, y: int, side: Side) -> bool:
    return board.side_at(x, y, side) is TerrainType.TOWN


def unclosed_town_penalty(board: Board) -> int:
    """
    Town sides that meet anything but another town side.

    Counts town sides facing the board border, plus every shared edge (empty cells
    included) where exactly one of the two facing sides is town.
    """
    w, h = board.width, board.height
    total = 0
    for x in range(w):
        total += _is_town(board, x, 0, Side.TOP)
        total += _is_town(board, x, h - 1, Side.BOTTOM)
    for y in range(h):
        total += _is_town(board, 0, y, Side.LEFT)
        total += _is_town(board, w - 1, y, Side.RIGHT)
    for x in range(w - 1):
        for y in range(h):
            total += _is_town(board, x, y, Side.RIGHT) != _is_town(board, x + 1, y, Side.LEFT)
    for x in range(w):
        for y in range(h - 1):
            total += _is_town(board, x, y, Side.BOTTOM) != _is_town(board, x, y + 1, Side.TOP)
    return int(total)


def town_cluster_penalty(board: Board) -> int:
    """One point per distinct connected town, finished or not."""
    return len(town_clusters(board))


# ---------- main API ----------
def score_board(board: Board) -> FitnessScores:
    return FitnessScores(
        clusters=cluster_penalty(board),
        edge_mismatch=edge_mismatch_penalty(board),
        unclosed_towns=unclosed_town_penalty(board),
        town_clusters=town_cluster_penalty(board),
    )


def scalarize(scores: FitnessScores, w: Weights) -> int:
    return (
        w.clusters * scores.clusters
        + w.edge_mismatch * scores.edge_mismatch
        + w.unclosed_towns * scores.unclosed_towns
        + w.town_clusters * scores.town_clusters
    )


def evaluate(
    placements: Sequence[Placement],
    width: int,
    height: int,
    w: Weights = Weights(),
) -> tuple[int, FitnessScores]:
    """Score a resolved layout on a private board. Lower is better; 0 is a finished layout."""
    board = Board.from_placements(list(placements), width, height)
    scores = score_board(board)
    return scalarize(scores, w), scores
