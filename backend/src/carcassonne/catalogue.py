from __future__ import annotations

"""
Tile catalogues: the built-in base game set and JSON-defined sets.

JSON layout::

    {"tiles": [
        {"name": "city_cap", "count": 5, "monastery": false, "image": "city_cap.png",
         "structures": [{"name": "town", "terrain": "town", "sides": ["top"], "value": 1}]}
    ]}

Entries are expanded by ``count`` in file order, so template indices are stable
for a given file.
"""

import json
from pathlib import Path
from typing import Any, Iterable, Mapping

from .tiles import Side, Structure, TerrainType, TileTemplate, parse_side, parse_terrain

L, T, R, B = Side.LEFT, Side.TOP, Side.RIGHT, Side.BOTTOM
TOWN, ROAD = TerrainType.TOWN, TerrainType.ROAD


class CatalogueError(ValueError):
    """Raised when a tile catalogue definition cannot be turned into templates."""


# kind -> (count, monastery, [(terrain, sides, shield)])
BASE_GAME_TILES: dict[str, tuple[int, bool, list[tuple[TerrainType, tuple[Side, ...], bool]]]] = {
    "monastery_road": (2, True, [(ROAD, (B,), False)]),
    "monastery": (4, True, []),
    "city_full": (1, False, [(TOWN, (L, T, R, B), True)]),
    "city_cap_road_straight": (4, False, [(TOWN, (T,), False), (ROAD, (L, R), False)]),
    "city_cap": (5, False, [(TOWN, (T,), False)]),
    "city_bridge_shield": (2, False, [(TOWN, (L, R), True)]),
    "city_bridge": (1, False, [(TOWN, (T, B), False)]),
    "city_caps_opposite": (3, False, [(TOWN, (L,), False), (TOWN, (R,), False)]),
    "city_caps_adjacent": (2, False, [(TOWN, (T,), False), (TOWN, (R,), False)]),
    "city_cap_road_right_curve": (3, False, [(TOWN, (T,), False), (ROAD, (R, B), False)]),
    "city_cap_road_left_curve": (3, False, [(TOWN, (T,), False), (ROAD, (L, B), False)]),
    "city_cap_road_junction": (
        3,
        False,
        [(TOWN, (T,), False), (ROAD, (L,), False), (ROAD, (R,), False), (ROAD, (B,), False)],
    ),
    "city_corner_shield": (2, False, [(TOWN, (T, L), True)]),
    "city_corner": (3, False, [(TOWN, (T, L), False)]),
    "city_corner_road_shield": (2, False, [(TOWN, (T, L), True), (ROAD, (R, B), False)]),
    "city_corner_road": (3, False, [(TOWN, (T, L), False), (ROAD, (R, B), False)]),
    "city_three_shield": (1, False, [(TOWN, (L, T, R), True)]),
    "city_three": (3, False, [(TOWN, (L, T, R), False)]),
    "city_three_road_shield": (2, False, [(TOWN, (L, T, R), True), (ROAD, (B,), False)]),
    "city_three_road": (1, False, [(TOWN, (L, T, R), False), (ROAD, (B,), False)]),
    "road_straight": (8, False, [(ROAD, (T, B), False)]),
    "road_curve": (9, False, [(ROAD, (L, B), False)]),
    "road_junction_three": (4, False, [(ROAD, (L,), False), (ROAD, (R,), False), (ROAD, (B,), False)]),
    "road_junction_four": (1, False, [(ROAD, (L,), False), (ROAD, (T,), False), (ROAD, (R,), False), (ROAD, (B,), False)]),
}


def _structure_value(terrain: TerrainType, shield: bool) -> int:
    if terrain is TerrainType.TOWN:
        return 2 if shield else 1
    if terrain is TerrainType.ROAD:
        return 1
    return 0


def base_catalogue() -> list[TileTemplate]:
    """The 72 tiles of the base game, grouped by kind."""
    templates: list[TileTemplate] = []
    for kind, (count, monastery, parts) in BASE_GAME_TILES.items():
        structures = tuple(
            Structure(
                name=f"{terrain.value}_{idx}",
                terrain=terrain,
                sides=sides,
                value=_structure_value(terrain, shield),
            )
            for idx, (terrain, sides, shield) in enumerate(parts)
        )
        template = TileTemplate(name=kind, structures=structures, monastery=monastery, image=f"{kind}.png")
        templates.extend([template] * count)
    return templates


def _as_int(raw: Mapping[str, Any], key: str, default: int, where: str) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool):
        raise CatalogueError(f"{where}: {key!r} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise CatalogueError(f"{where}: {key!r} must be an integer, got {value!r}") from exc


def _parse_structure(tile_name: str, idx: int, raw: Mapping[str, Any]) -> Structure:
    where = f"Tile {tile_name!r} structure {idx}"
    if not isinstance(raw, Mapping):
        raise CatalogueError(f"{where} is not an object")
    sides_raw = raw.get("sides", [])
    if not isinstance(sides_raw, list):
        raise CatalogueError(f"{where}: 'sides' must be a list")
    try:
        terrain = parse_terrain(raw["terrain"])
        sides = tuple(parse_side(s) for s in sides_raw)
    except KeyError as exc:
        raise CatalogueError(f"{where}: unknown or missing value {exc}") from exc
    return Structure(
        name=str(raw.get("name") or f"{terrain.value}_{idx}"),
        terrain=terrain,
        sides=sides,
        value=_as_int(raw, "value", 0, where),
    )


def _parse_tile(idx: int, raw: Mapping[str, Any]) -> tuple[TileTemplate, int]:
    if not isinstance(raw, Mapping):
        raise CatalogueError(f"Tile entry {idx} is not an object")
    name = str(raw.get("name") or f"tile_{idx}")
    structures_raw = raw.get("structures", [])
    if not isinstance(structures_raw, list):
        raise CatalogueError(f"Tile {name!r}: 'structures' must be a list")
    structures = tuple(_parse_structure(name, s_idx, s) for s_idx, s in enumerate(structures_raw))
    claimed: set[Side] = set()
    for structure in structures:
        overlap = claimed.intersection(structure.sides)
        if overlap:
            sides = ", ".join(sorted(str(s) for s in overlap))
            raise CatalogueError(f"Tile {name!r}: side(s) {sides} claimed by more than one structure")
        claimed.update(structure.sides)
    count = _as_int(raw, "count", 1, f"Tile {name!r}")
    if count < 0:
        raise CatalogueError(f"Tile {name!r}: negative count {count}")
    template = TileTemplate(
        name=name,
        structures=structures,
        monastery=bool(raw.get("monastery", False)),
        image=raw.get("image"),
    )
    return template, count


def catalogue_from_dict(data: Mapping[str, Any]) -> list[TileTemplate]:
    tiles = data.get("tiles") if isinstance(data, Mapping) else None
    if not isinstance(tiles, list):
        raise CatalogueError("Catalogue must contain a 'tiles' list")
    templates: list[TileTemplate] = []
    for idx, raw in enumerate(tiles):
        template, count = _parse_tile(idx, raw)
        templates.extend([template] * count)
    return templates


def load_catalogue(path: Path | str) -> list[TileTemplate]:
    """Read a JSON catalogue file and expand it into an ordered template list."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise CatalogueError(f"{path}: not UTF-8 text ({exc})") from exc
    except json.JSONDecodeError as exc:
        raise CatalogueError(f"{path}: invalid JSON ({exc})") from exc
    return catalogue_from_dict(data)


def catalogue_summary(templates: Iterable[TileTemplate]) -> dict[str, int]:
    """Count of templates per tile name, in first-seen order."""
    counts: dict[str, int] = {}
    for template in templates:
        counts[template.name] = counts.get(template.name, 0) + 1
    return counts
