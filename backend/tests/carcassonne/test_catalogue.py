import json

import pytest

from backend.src.carcassonne.catalogue import (
    BASE_GAME_TILES,
    CatalogueError,
    base_catalogue,
    catalogue_from_dict,
    catalogue_summary,
    load_catalogue,
)
from backend.src.carcassonne.tiles import Side, TerrainType


def test_base_catalogue_counts():
    """The base game ships 72 tiles in 24 kinds."""
    print("\n" + "=" * 60)
    print("INPUT")
    print("=" * 60)
    print("Built-in base game catalogue...")

    print("\n" + "=" * 60)
    print("PROCESS")
    print("=" * 60)
    templates = base_catalogue()
    summary = catalogue_summary(templates)
    print(f"Expanded {len(summary)} kinds into {len(templates)} templates")

    print("\n" + "=" * 60)
    print("OUTPUT")
    print("=" * 60)
    failures = []
    for kind, (count, _, _) in BASE_GAME_TILES.items():
        got = summary.get(kind, 0)
        print(f"  {kind:<28} {got} (expected {count})")
        if got != count:
            failures.append(f"{kind}: expected {count}, got {got}")
    if len(templates) != 72:
        failures.append(f"Expected 72 templates, got {len(templates)}")
    if len(summary) != 24:
        failures.append(f"Expected 24 kinds, got {len(summary)}")
    if list(summary) != list(BASE_GAME_TILES):
        failures.append("Templates are not grouped in kind order")

    print("\n" + "=" * 60)
    print("VERIFICATION")
    print("=" * 60)
    if failures:
        for i, failure in enumerate(failures, 1):
            print(f"  {i}. {failure}")
        pytest.fail(f"Test had {len(failures)} failure(s): {'; '.join(failures)}")
    else:
        print("  ✓ Base catalogue complete")


def test_base_catalogue_shapes():
    by_name = {t.name: t for t in base_catalogue()}
    assert by_name["monastery"].monastery and by_name["monastery"].structures == ()
    assert by_name["city_full"].sides == (TerrainType.TOWN,) * 4
    assert by_name["road_straight"].sides == (TerrainType.FIELD, TerrainType.ROAD, TerrainType.FIELD, TerrainType.ROAD)
    assert len(by_name["city_caps_opposite"].structures) == 2
    assert by_name["city_corner_shield"].structures[0].value == 2
    assert by_name["city_corner"].structures[0].value == 1
    assert by_name["road_curve"].image == "road_curve.png"


def test_catalogue_from_dict_expands_counts():
    data = {
        "tiles": [
            {"name": "cap", "count": 3, "structures": [{"terrain": "Town", "sides": ["TOP"], "value": 1}]},
            {"name": "cross", "structures": [{"terrain": "road", "sides": [s]} for s in ("left", "top", "right", "bottom")]},
            {"name": "cloister", "count": 2, "monastery": True, "image": "cloister.png"},
        ]
    }
    templates = catalogue_from_dict(data)
    assert [t.name for t in templates] == ["cap"] * 3 + ["cross"] + ["cloister"] * 2
    assert templates[0].side(Side.TOP) is TerrainType.TOWN
    assert templates[0].structures[0].name == "town_0"
    assert templates[3].sides == (TerrainType.ROAD,) * 4
    assert templates[4].monastery and templates[4].image == "cloister.png"


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"tiles": "nope"},
        {"tiles": [{"name": "x", "structures": [{"terrain": "river", "sides": ["top"]}]}]},
        {"tiles": [{"name": "x", "structures": [{"terrain": "town", "sides": ["north"]}]}]},
        {"tiles": [{"name": "x", "structures": [{"sides": ["top"]}]}]},
        {
            "tiles": [
                {
                    "name": "x",
                    "structures": [
                        {"terrain": "town", "sides": ["top"]},
                        {"terrain": "road", "sides": ["top", "bottom"]},
                    ],
                }
            ]
        },
        {"tiles": [{"name": "x", "count": -1}]},
        {"tiles": ["x"]},
        {"tiles": [{"name": "x", "count": "two"}]},
        {"tiles": [{"name": "x", "count": None}]},
        {"tiles": [{"name": "x", "count": True}]},
        {"tiles": [{"name": "x", "structures": ["town"]}]},
        {"tiles": [{"name": "x", "structures": {"terrain": "town"}}]},
        {"tiles": [{"name": "x", "structures": [{"terrain": "town", "sides": ["top"], "value": "x"}]}]},
        {"tiles": [{"name": "x", "structures": [{"terrain": "town", "sides": ["top"], "value": [1]}]}]},
        {"tiles": [{"name": "x", "structures": [{"terrain": "town", "sides": 3}]}]},
    ],
)
def test_catalogue_from_dict_rejects(data):
    with pytest.raises(CatalogueError):
        catalogue_from_dict(data)


def test_load_catalogue_from_file(tmp_path):
    path = tmp_path / "tiles.json"
    path.write_text(json.dumps({"tiles": [{"name": "bridge", "count": 2, "structures": [{"terrain": "town", "sides": ["left", "right"]}]}]}))
    templates = load_catalogue(path)
    assert len(templates) == 2
    assert templates[0] is templates[1]
    assert templates[0].side(Side.RIGHT) is TerrainType.TOWN


def test_load_catalogue_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{tiles: ")
    with pytest.raises(CatalogueError):
        load_catalogue(path)


def test_load_catalogue_not_utf8(tmp_path):
    path = tmp_path / "latin1.json"
    path.write_bytes(b'{"tiles": [{"name": "caf\xe9\xff"}]}')
    with pytest.raises(CatalogueError):
        load_catalogue(path)
