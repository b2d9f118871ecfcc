from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Tuple

from config import TOOLS_FILE, ResourceKind, ToolKind

TOOL_IDS = {kind.value for kind in ToolKind}
RESOURCE_IDS = {kind.value for kind in ResourceKind}


@dataclass(frozen=True)
class ToolDefinition:
    key: str
    display_name: str
    craft_cost: Tuple[Tuple[str, int], ...]
    yield_multiplier: float = 1.0
    boosts: Tuple[str, ...] = ()
    description: str = ""

    def to_runtime_dict(self) -> Dict[str, str | float | Dict[str, int] | list[str]]:
        return {
            "display_name": self.display_name,
            "craft_cost": dict(self.craft_cost),
            "yield_multiplier": self.yield_multiplier,
            "boosts": list(self.boosts),
            "description": self.description,
        }


DEFAULT_TOOLS: Dict[str, ToolDefinition] = {
    "flamestarter": ToolDefinition(
        "flamestarter",
        "Flamestarter",
        (("firestone", 5),),
        1.5,
        ("firestone", "emberash"),
        "Sparks kindling faster; the first step off the plains.",
    ),
    "blaze_hammer": ToolDefinition(
        "blaze_hammer",
        "Blaze Hammer",
        (("firestone", 20), ("emberash", 10)),
        2.0,
        ("emberash", "sulfur_ore"),
        "Breaks open ember crusts and sulfur seams.",
    ),
    "molten_cutter": ToolDefinition(
        "molten_cutter",
        "Molten Cutter",
        (("firestone", 40), ("sulfur_ore", 10), ("ashen_dust", 5)),
        1.5,
        ("heatcores", "ashen_dust"),
        "Slices through cooled slag to reach the ruins' cores.",
    ),
    "pyrodrill": ToolDefinition(
        "pyrodrill",
        "Pyrodrill",
        (("sulfur_ore", 20), ("heatcores", 15)),
        2.0,
        ("sulfur_ore", "heatcores"),
        "A heatcore-driven bore for deep mineral veins.",
    ),
    "fire_manipulator": ToolDefinition(
        "fire_manipulator",
        "Fire Manipulator",
        (("heatcores", 30), ("charcoal_essence", 10), ("ashen_dust", 20)),
        2.0,
        ("firestone", "charcoal_essence"),
        "Bends open flame; required to survive the Pyro Nexus.",
    ),
    "phoenix_beacon": ToolDefinition(
        "phoenix_beacon",
        "Phoenix Beacon",
        (("firestone", 200), ("heatcores", 50), ("charcoal_essence", 40), ("ashen_dust", 40)),
        3.0,
        ("firestone", "emberash", "heatcores", "sulfur_ore", "charcoal_essence", "ashen_dust"),
        "Rekindles every hearth of the Pyrobase.",
    ),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _coerce_cost(value: Any) -> Tuple[Tuple[str, int], ...] | None:
    if not isinstance(value, dict) or not value:
        return None
    cost = []
    for resource, amount in value.items():
        if resource not in RESOURCE_IDS:
            return None
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return None
        cost.append((resource, amount))
    return tuple(cost)


def _coerce_resource_list(value: Any) -> Tuple[str, ...] | None:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        return None
    if any(i not in RESOURCE_IDS for i in value) or len(set(value)) != len(value):
        return None
    return tuple(value)


def _parse_tool_entry(key: str, entry: Dict[str, Any]) -> ToolDefinition | None:
    if key not in TOOL_IDS:
        return None

    display_name = entry.get("display_name")
    craft_cost = _coerce_cost(entry.get("craft_cost"))
    yield_multiplier = entry.get("yield_multiplier", 1.0)
    boosts = _coerce_resource_list(entry.get("boosts", []))
    description = entry.get("description", "")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if craft_cost is None or boosts is None:
        return None
    if not _is_positive_number(yield_multiplier):
        return None
    if not isinstance(description, str):
        return None

    return ToolDefinition(
        key=key,
        display_name=display_name.strip(),
        craft_cost=craft_cost,
        yield_multiplier=float(yield_multiplier),
        boosts=boosts,
        description=description.strip(),
    )


def _ordered_runtime_catalog(tools: Iterable[ToolDefinition]) -> Dict[str, Dict[str, Any]]:
    order = [kind.value for kind in ToolKind]
    ordered = sorted(tools, key=lambda tool: order.index(tool.key))
    return {tool.key: tool.to_runtime_dict() for tool in ordered}


def load_tool_catalog(path: Path = TOOLS_FILE) -> Dict[str, Dict[str, Any]]:
    """Load tool definitions, falling back to defaults per missing or invalid entry.

    The tool set is closed, so the returned catalog always has exactly one
    entry per ``ToolKind``; the file may only retune known tools.
    """
    defaults = dict(DEFAULT_TOOLS)
    if not path.exists():
        return _ordered_runtime_catalog(defaults.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_runtime_catalog(defaults.values())

    if not isinstance(raw, dict):
        return _ordered_runtime_catalog(defaults.values())

    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        tool = _parse_tool_entry(key, entry)
        if tool is None:
            continue
        defaults[key] = tool

    return _ordered_runtime_catalog(defaults.values())
