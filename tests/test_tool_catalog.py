import json

from config import TOOLS_FILE, ToolKind
from tool_catalog import DEFAULT_TOOLS, load_tool_catalog


def test_load_tool_catalog_defaults_when_missing(tmp_path):
    catalog = load_tool_catalog(tmp_path / "missing.json")

    assert list(catalog) == [kind.value for kind in ToolKind]
    assert set(catalog) == set(DEFAULT_TOOLS)
    assert catalog["flamestarter"]["craft_cost"] == {"firestone": 5}


def test_bundled_tool_file_matches_defaults(tmp_path):
    assert load_tool_catalog(TOOLS_FILE) == load_tool_catalog(tmp_path / "missing.json")


def test_load_tool_catalog_accepts_valid_override(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(
        json.dumps(
            {
                "flamestarter": {
                    "display_name": "Cheap Flamestarter",
                    "craft_cost": {"firestone": 2},
                    "yield_multiplier": 1.25,
                    "boosts": ["firestone"],
                }
            }
        )
    )

    catalog = load_tool_catalog(path)

    assert catalog["flamestarter"]["display_name"] == "Cheap Flamestarter"
    assert catalog["flamestarter"]["craft_cost"] == {"firestone": 2}
    assert catalog["flamestarter"]["yield_multiplier"] == 1.25
    assert catalog["blaze_hammer"] == DEFAULT_TOOLS["blaze_hammer"].to_runtime_dict()


def test_load_tool_catalog_rejects_invalid_entries(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text(
        json.dumps(
            {
                "flamestarter": {"display_name": "Free", "craft_cost": {"firestone": -1}},
                "blaze_hammer": {"display_name": "Hammer", "craft_cost": {"moonrock": 3}},
                "pyrodrill": {"display_name": "Drill", "craft_cost": {}, "yield_multiplier": 0},
                "laser": {"display_name": "Laser", "craft_cost": {"firestone": 1}},
            }
        )
    )

    catalog = load_tool_catalog(path)

    assert "laser" not in catalog
    for key in ("flamestarter", "blaze_hammer", "pyrodrill"):
        assert catalog[key] == DEFAULT_TOOLS[key].to_runtime_dict()


def test_load_tool_catalog_ignores_malformed_file(tmp_path):
    path = tmp_path / "tools.json"
    path.write_text("{not json")

    assert load_tool_catalog(path) == load_tool_catalog(tmp_path / "missing.json")
