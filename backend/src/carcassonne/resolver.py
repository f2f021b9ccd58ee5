from __future__ import annotations

"""
Collision resolution for candidate layouts.

Placements are laid onto a scratch board in genome order. A placement whose
target cell is already taken moves to the first free cell found on square rings
of growing radius around the target. Earlier genes therefore keep their cells
and later ones get displaced.
"""

from typing import Iterable, List

from .tiles import Board, Placement, Pos


def halo(pos: Pos, distance: int, width: int, height: int) -> List[Pos]:
    """Cells on the square ring at ``distance`` around ``pos``, in search order, clipped to the board.

    Order: top/bottom rows sweeping left to right (alternating top, bottom), then
    left/right columns sweeping top to bottom (alternating left, right), then the
    bottom-right corner which neither sweep reaches.
    """
    px, py = pos
    raw: list[tuple[int, int]] = []
    for x in range(px - distance, px + distance):
        raw.append((x, py - distance))
        raw.append((x, py + distance))
    for y in range(py - distance, py + distance):
        raw.append((px - distance, y))
        raw.append((px + distance, y))
    raw.append((px + distance, py + distance))

    ring: list[Pos] = []
    seen: set[tuple[int, int]] = set()
    for x, y in raw:
        if (x, y) in seen:
            continue
        seen.add((x, y))
        if 0 <= x < width and 0 <= y < height:
            ring.append(Pos(x, y))
    return ring


def find_closest_free_pos(board: Board, pos: Pos) -> Pos:
    """First free cell on the nearest ring around ``pos`` that has one."""
    max_distance = max(board.width, board.height)
    for distance in range(1, max_distance + 1):
        for candidate in halo(pos, distance, board.width, board.height):
            if board.cells[candidate.x][candidate.y] is None:
                return candidate
    raise RuntimeError(
        f"No free cell left on the {board.width}x{board.height} board around {tuple(pos)}; "
        "board capacity must be at least the number of tiles"
    )


def resolve_overlaps(placements: Iterable[Placement], width: int, height: int) -> list[Placement]:
    """Return the placements with later collisions relocated; card and orientation are kept.

    Precondition: ``width * height`` is at least the number of placements.
    """
    board = Board(width, height)
    resolved: list[Placement] = []
    for placement in placements:
        if board.is_free(placement.pos):
            chosen = placement
        else:
            chosen = placement.moved_to(find_closest_free_pos(board, placement.pos))
        board.place(chosen)
        resolved.append(chosen)
    return resolved


def resolve_board(placements: Iterable[Placement], width: int, height: int) -> Board:
    """Resolved placements laid onto a fresh board."""
    return Board.from_placements(resolve_overlaps(placements, width, height), width, height)
