import random

import pytest

from backend.src.carcassonne.catalogue import base_catalogue
from backend.src.carcassonne.fitness import (
    FitnessScores,
    Weights,
    cluster_penalty,
    edge_mismatch_penalty,
    evaluate,
    scalarize,
    score_board,
    town_cluster_penalty,
    unclosed_town_penalty,
)
from backend.src.carcassonne.resolver import resolve_overlaps
from backend.src.carcassonne.seeders import uniform_seed
from backend.src.carcassonne.tiles import Board, Placement, Pos, Side, Structure, TerrainType, TileTemplate

BLANK = TileTemplate("blank")
TOWN_TOP = TileTemplate("town_top", (Structure("town", TerrainType.TOWN, (Side.TOP,)),))
ROAD_CROSS = TileTemplate(
    "road_cross",
    tuple(Structure(f"road_{i}", TerrainType.ROAD, (s,)) for i, s in enumerate((Side.LEFT, Side.TOP, Side.RIGHT, Side.BOTTOM))),
)

# orientation that turns TOWN_TOP's town to face the given board side
TOWN_FACING = {Side.TOP: Side.LEFT, Side.LEFT: Side.TOP, Side.BOTTOM: Side.RIGHT, Side.RIGHT: Side.BOTTOM}


def _board(width, height, cells):
    return Board.from_placements([Placement(t, Pos(x, y), o) for t, x, y, o in cells], width, height)


def test_town_facing_table():
    for side, orientation in TOWN_FACING.items():
        assert Placement(TOWN_TOP, Pos(0, 0), orientation).side(side) is TerrainType.TOWN


def test_single_blank_tile_scores_zero():
    total, scores = evaluate([Placement(BLANK, Pos(0, 0))], 1, 1)
    assert total == 0
    assert scores == FitnessScores(clusters=0, edge_mismatch=0, unclosed_towns=0, town_clusters=0)


def test_empty_board_scores_zero():
    assert score_board(Board(3, 3)).total == 0


def test_two_by_one_mismatch_costs_exactly_one_more():
    """FIELD facing TOWN on a 2x1 board versus the same town turned to the border."""
    print("\n" + "=" * 60)
    print("INPUT")
    print("=" * 60)
    print("Blank at (0, 0), one-town tile at (1, 0) on a 2x1 board...")

    mismatched = [Placement(BLANK, Pos(0, 0)), Placement(TOWN_TOP, Pos(1, 0), TOWN_FACING[Side.LEFT])]
    matched = [Placement(BLANK, Pos(0, 0)), Placement(TOWN_TOP, Pos(1, 0), TOWN_FACING[Side.RIGHT])]

    print("\n" + "=" * 60)
    print("PROCESS")
    print("=" * 60)
    print("Scoring both layouts...")
    total_mismatched, scores_mismatched = evaluate(mismatched, 2, 1)
    total_matched, scores_matched = evaluate(matched, 2, 1)

    print("\n" + "=" * 60)
    print("OUTPUT")
    print("=" * 60)
    print(f"  Mismatched: {total_mismatched} {scores_mismatched}")
    print(f"  Matched:    {total_matched} {scores_matched}")

    print("\n" + "=" * 60)
    print("VERIFICATION")
    print("=" * 60)
    failures = []
    if total_mismatched - total_matched != 1:
        failures.append(f"Expected difference 1, got {total_mismatched - total_matched}")
    if scores_mismatched.edge_mismatch != 1 or scores_matched.edge_mismatch != 0:
        failures.append("Edge mismatch should be 1 vs 0")
    if (total_mismatched, total_matched) != (3, 2):
        failures.append(f"Expected totals (3, 2), got {(total_mismatched, total_matched)}")
    if failures:
        for i, failure in enumerate(failures, 1):
            print(f"  {i}. {failure}")
        pytest.fail(f"Test had {len(failures)} failure(s): {'; '.join(failures)}")
    else:
        print("  ✓ Mismatch costs exactly one")


@pytest.mark.parametrize(
    "cells, expected",
    [
        ([(0, 0)], 0),
        ([(0, 0), (1, 0), (1, 1)], 0),
        ([(0, 0), (2, 0)], 1),
        ([(0, 0), (1, 1)], 1),
        ([(0, 0), (2, 0), (0, 2), (2, 2)], 3),
    ],
)
def test_cluster_penalty_zero_iff_connected(cells, expected):
    board = _board(3, 3, [(BLANK, x, y, Side.LEFT) for x, y in cells])
    assert cluster_penalty(board) == expected


def test_edge_mismatch_zero_for_matching_board():
    board = _board(3, 3, [(BLANK, x, y, Side.LEFT) for x in range(3) for y in range(3)])
    assert edge_mismatch_penalty(board) == 0


@pytest.mark.parametrize(
    "pos, touched",
    [((1, 1), 4), ((0, 1), 3), ((0, 0), 2), ((2, 2), 2), ((1, 0), 3)],
)
def test_flipped_tile_adds_one_per_touched_edge(pos, touched):
    cells = [(BLANK, x, y, Side.LEFT) for x in range(3) for y in range(3) if (x, y) != pos]
    cells.append((ROAD_CROSS, pos[0], pos[1], Side.LEFT))
    assert edge_mismatch_penalty(_board(3, 3, cells)) == touched


def test_single_rotated_tile_touches_one_edge():
    cells = [(BLANK, x, y, Side.LEFT) for x in range(3) for y in range(3) if (x, y) != (1, 1)]
    cells.append((TOWN_TOP, 1, 1, TOWN_FACING[Side.RIGHT]))
    assert edge_mismatch_penalty(_board(3, 3, cells)) == 1


def test_edge_mismatch_ignores_empty_cells():
    board = _board(3, 1, [(TOWN_TOP, 0, 0, TOWN_FACING[Side.RIGHT]), (BLANK, 2, 0, Side.LEFT)])
    assert edge_mismatch_penalty(board) == 0


def test_border_town_edge_counts_once():
    board = _board(1, 1, [(TOWN_TOP, 0, 0, Side.LEFT)])
    assert unclosed_town_penalty(board) == 1


def test_town_edge_facing_empty_cell_counts_once():
    board = _board(2, 1, [(TOWN_TOP, 0, 0, TOWN_FACING[Side.RIGHT])])
    assert unclosed_town_penalty(board) == 1


def test_unclosed_town_border_versus_matched():
    """
    Border versus matched neighbour: each open town edge costs exactly 1.

    Turning the tile's town from its matching neighbour to the border opens two
    edges, its own border edge (+1) and the neighbour's town edge, which now
    faces a field side (+1 through the XOR term). The pair therefore differs by
    2, not 1; the single-edge cost of 1 is pinned by ``border_only`` below and
    by test_border_town_edge_counts_once.
    """
    anchor = (TOWN_TOP, 0, 0, TOWN_FACING[Side.RIGHT])
    closed = _board(2, 1, [anchor, (TOWN_TOP, 1, 0, TOWN_FACING[Side.LEFT])])
    open_to_border = _board(2, 1, [anchor, (TOWN_TOP, 1, 0, TOWN_FACING[Side.RIGHT])])

    assert unclosed_town_penalty(closed) == 0
    border_only = _board(2, 1, [(TOWN_TOP, 1, 0, TOWN_FACING[Side.RIGHT])])
    assert unclosed_town_penalty(border_only) == 1
    assert unclosed_town_penalty(open_to_border) == unclosed_town_penalty(closed) + 2


def test_town_cluster_penalty_counts_finished_towns_too():
    closed = _board(2, 1, [(TOWN_TOP, 0, 0, TOWN_FACING[Side.RIGHT]), (TOWN_TOP, 1, 0, TOWN_FACING[Side.LEFT])])
    assert unclosed_town_penalty(closed) == 0
    assert town_cluster_penalty(closed) == 1
    assert score_board(closed).total == 1


def test_scalarize_applies_weights():
    scores = FitnessScores(clusters=2, edge_mismatch=3, unclosed_towns=5, town_clusters=7)
    assert scalarize(scores, Weights()) == scores.total == 17
    assert scalarize(scores, Weights(clusters=10, edge_mismatch=0, unclosed_towns=1, town_clusters=2)) == 20 + 5 + 14


def test_all_terms_non_negative_on_random_layouts():
    catalogue = base_catalogue()
    rng = random.Random(2024)
    for _ in range(10):
        layout = resolve_overlaps(uniform_seed(catalogue, 15, 15, rng), 15, 15)
        total, scores = evaluate(layout, 15, 15)
        assert min(scores.clusters, scores.edge_mismatch, scores.unclosed_towns, scores.town_clusters) >= 0
        assert total == scores.total
        assert scores.town_clusters >= 1
