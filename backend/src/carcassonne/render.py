from __future__ import annotations

from PIL import Image, ImageDraw

from .tiles import SIDES, Board, Side, TerrainType

FIELD, ROAD, TOWN = TerrainType.FIELD, TerrainType.ROAD, TerrainType.TOWN

# ---- text view: every tile is 10 columns x 5 rows between box-drawing rules ----
_TOP_BOTTOM = {FIELD: " " * 10, ROAD: "    ██    ", TOWN: "█" * 10}
_EDGE_OUTER = {FIELD: "  ", ROAD: "  ", TOWN: "██"}
_EDGE_MIDDLE = {FIELD: "  ", ROAD: "██", TOWN: "██"}

# ---- image view ----
BACKGROUND = (255, 255, 255)
GRID_LINE = (220, 220, 220)
FIELD_COLOUR = (120, 170, 80)
TOWN_COLOUR = (150, 90, 50)
ROAD_COLOUR = (235, 235, 225)
MONASTERY_COLOUR = (200, 60, 60)


def render_text(board: Board) -> str:
    """Console view of a board; empty cells render blank."""
    lines: list[str] = []
    for y in range(board.height):
        lines.append("┼──────────" * board.width)
        lines.append("".join("│" + _TOP_BOTTOM[board.side_at(x, y, Side.TOP)] for x in range(board.width)))
        for table in (_EDGE_OUTER, _EDGE_MIDDLE, _EDGE_OUTER):
            lines.append(
                "".join(
                    f"│{table[board.side_at(x, y, Side.LEFT)]}      {table[board.side_at(x, y, Side.RIGHT)]}"
                    for x in range(board.width)
                )
            )
        lines.append("".join("│" + _TOP_BOTTOM[board.side_at(x, y, Side.BOTTOM)] for x in range(board.width)))
    return "\n".join(lines)


def _side_polygon(x0: int, y0: int, px: int, side: Side, depth: int) -> list[tuple[int, int]]:
    """Trapezoid hugging one edge of the tile square."""
    x1, y1 = x0 + px - 1, y0 + px - 1
    if side is Side.LEFT:
        return [(x0, y0), (x0 + depth, y0 + depth), (x0 + depth, y1 - depth), (x0, y1)]
    if side is Side.TOP:
        return [(x0, y0), (x1, y0), (x1 - depth, y0 + depth), (x0 + depth, y0 + depth)]
    if side is Side.RIGHT:
        return [(x1, y0), (x1, y1), (x1 - depth, y1 - depth), (x1 - depth, y0 + depth)]
    return [(x0, y1), (x0 + depth, y1 - depth), (x1 - depth, y1 - depth), (x1, y1)]


def _road_box(x0: int, y0: int, px: int, side: Side) -> tuple[int, int, int, int]:
    """Rectangle from the middle of an edge to the tile centre."""
    half = px // 2
    lane = max(1, px // 8)
    cx, cy = x0 + half, y0 + half
    if side is Side.LEFT:
        return (x0, cy - lane, cx, cy + lane)
    if side is Side.TOP:
        return (cx - lane, y0, cx + lane, cy)
    if side is Side.RIGHT:
        return (cx, cy - lane, x0 + px - 1, cy + lane)
    return (cx - lane, cy, cx + lane, y0 + px - 1)


def render_image(board: Board, tile_px: int = 32) -> Image.Image:
    """Draw the board as an RGB image, one ``tile_px`` square per cell."""
    img = Image.new("RGB", (board.width * tile_px, board.height * tile_px), BACKGROUND)
    draw = ImageDraw.Draw(img)
    depth = max(1, tile_px // 4)

    for x in range(board.width):
        for y in range(board.height):
            x0, y0 = x * tile_px, y * tile_px
            draw.rectangle((x0, y0, x0 + tile_px - 1, y0 + tile_px - 1), outline=GRID_LINE)
            placement = board.cells[x][y]
            if placement is None:
                continue
            draw.rectangle((x0, y0, x0 + tile_px - 1, y0 + tile_px - 1), fill=FIELD_COLOUR)
            for side in SIDES:
                terrain = placement.side(side)
                if terrain is TOWN:
                    draw.polygon(_side_polygon(x0, y0, tile_px, side, depth), fill=TOWN_COLOUR)
                elif terrain is ROAD:
                    draw.rectangle(_road_box(x0, y0, tile_px, side), fill=ROAD_COLOUR)
            if placement.template.monastery:
                m = tile_px // 5
                c = tile_px // 2
                draw.rectangle((x0 + c - m, y0 + c - m, x0 + c + m, y0 + c + m), fill=MONASTERY_COLOUR)
    return img
