from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from config import AREAS_FILE, BASIC_RESOURCES, RARE_MINERALS, AreaKind, ToolKind

AREA_IDS = {kind.value for kind in AreaKind}
TOOL_IDS = {kind.value for kind in ToolKind}
BASIC_IDS = {kind.value for kind in BASIC_RESOURCES}
RARE_IDS = {kind.value for kind in RARE_MINERALS}


@dataclass(frozen=True)
class AreaDefinition:
    key: str
    display_name: str
    yields: Tuple[Tuple[str, float], ...] = ()
    mining: Tuple[Tuple[str, float], ...] = ()
    required_tools: Tuple[str, ...] = ()
    required_areas: Tuple[str, ...] = ()
    description: str = ""

    def to_runtime_dict(self) -> Dict[str, str | Dict[str, float] | List[str]]:
        return {
            "display_name": self.display_name,
            "yields": dict(self.yields),
            "mining": dict(self.mining),
            "required_tools": list(self.required_tools),
            "required_areas": list(self.required_areas),
            "description": self.description,
        }


DEFAULT_AREA_DEFINITIONS: Dict[str, AreaDefinition] = {
    "scorched_plains": AreaDefinition(
        key="scorched_plains",
        display_name="Scorched Plains",
        yields=(("firestone", 1.0), ("emberash", 0.5)),
        description="Blackened flats where firestone lies in the open.",
    ),
    "ember_fields": AreaDefinition(
        key="ember_fields",
        display_name="Ember Fields",
        yields=(("firestone", 0.5), ("emberash", 1.0), ("ashen_dust", 0.25)),
        mining=(("sulfur_ore", 0.5),),
        required_tools=("flamestarter",),
        required_areas=("scorched_plains",),
        description="Smouldering meadows over shallow sulfur seams.",
    ),
    "forgeflame_ruins": AreaDefinition(
        key="forgeflame_ruins",
        display_name="Forgeflame Ruins",
        yields=(("firestone", 1.0), ("ashen_dust", 0.5)),
        mining=(("sulfur_ore", 1.0), ("heatcores", 0.25)),
        required_tools=("blaze_hammer",),
        required_areas=("ember_fields",),
        description="The broken forges of an older Pyrobase.",
    ),
    "inferno_wells": AreaDefinition(
        key="inferno_wells",
        display_name="Inferno Wells",
        yields=(("firestone", 0.5), ("ashen_dust", 1.0)),
        mining=(("heatcores", 1.0), ("charcoal_essence", 0.5), ("sulfur_ore", 0.5)),
        required_tools=("molten_cutter",),
        required_areas=("forgeflame_ruins",),
        description="Shafts of living flame, rich in heatcores.",
    ),
    "pyro_nexus": AreaDefinition(
        key="pyro_nexus",
        display_name="Pyro Nexus",
        yields=(("firestone", 2.0), ("emberash", 1.0), ("ashen_dust", 1.0)),
        mining=(("heatcores", 1.0), ("charcoal_essence", 1.0)),
        required_tools=("fire_manipulator", "pyrodrill"),
        required_areas=("inferno_wells",),
        description="The heart of the fire, where every resource converges.",
    ),
}


def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def _coerce_rate_table(value: Any, allowed: set[str]) -> Tuple[Tuple[str, float], ...] | None:
    if not isinstance(value, dict):
        return None
    table = []
    for resource, rate in value.items():
        if resource not in allowed or not _is_positive_number(rate):
            return None
        table.append((resource, float(rate)))
    return tuple(table)


def _coerce_id_list(value: Any, allowed: set[str]) -> Tuple[str, ...] | None:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        return None
    if any(i not in allowed for i in value) or len(set(value)) != len(value):
        return None
    return tuple(value)


def _parse_area_entry(key: str, entry: Dict[str, Any]) -> AreaDefinition | None:
    if key not in AREA_IDS:
        return None

    display_name = entry.get("display_name")
    description = entry.get("description", "")
    yields = _coerce_rate_table(entry.get("yields", {}), BASIC_IDS)
    mining = _coerce_rate_table(entry.get("mining", {}), RARE_IDS)
    required_tools = _coerce_id_list(entry.get("required_tools", []), TOOL_IDS)
    required_areas = _coerce_id_list(entry.get("required_areas", []), AREA_IDS)

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not isinstance(description, str):
        return None
    if yields is None or mining is None:
        return None
    if required_tools is None or required_areas is None:
        return None
    if key in required_areas:
        return None

    return AreaDefinition(
        key=key,
        display_name=display_name.strip(),
        yields=yields,
        mining=mining,
        required_tools=required_tools,
        required_areas=required_areas,
        description=description.strip(),
    )


def _ordered_runtime_catalog(areas: Iterable[AreaDefinition]) -> Dict[str, Dict[str, Any]]:
    order = [kind.value for kind in AreaKind]
    ordered = sorted(areas, key=lambda area: order.index(area.key))
    return {area.key: area.to_runtime_dict() for area in ordered}


def load_area_catalog(path: Path = AREAS_FILE) -> Dict[str, Dict[str, Any]]:
    areas: Dict[str, AreaDefinition] = dict(DEFAULT_AREA_DEFINITIONS)
    if not path.exists():
        return _ordered_runtime_catalog(areas.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_runtime_catalog(areas.values())

    if not isinstance(raw, dict):
        return _ordered_runtime_catalog(areas.values())

    for key, entry in raw.items():
        if not isinstance(key, str) or not isinstance(entry, dict):
            continue
        area = _parse_area_entry(key, entry)
        if area is None:
            continue
        areas[key] = area

    return _ordered_runtime_catalog(areas.values())
