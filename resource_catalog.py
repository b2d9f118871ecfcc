from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable

from config import RESOURCES_FILE, ResourceKind

RESOURCE_IDS = [kind.value for kind in ResourceKind]


@dataclass(frozen=True)
class ResourceDefinition:
    key: str
    display_name: str
    description: str = ""

    def to_runtime_dict(self) -> Dict[str, str]:
        return {
            "display_name": self.display_name,
            "description": self.description,
        }


DEFAULT_RESOURCES: Dict[str, ResourceDefinition] = {
    "firestone": ResourceDefinition(
        key="firestone",
        display_name="Firestone",
        description="The main resource, used for powering advanced tools and upgrading Pyrobase.",
    ),
    "emberash": ResourceDefinition(
        key="emberash",
        display_name="Emberash",
        description="Byproduct of gathered fire materials, used to craft basic tools.",
    ),
    "heatcores": ResourceDefinition(
        key="heatcores",
        display_name="Heatcores",
        description="Energy cells that power high-tier machinery.",
    ),
    "sulfur_ore": ResourceDefinition(
        key="sulfur_ore",
        display_name="Sulfur Ore",
        description="Required for crafting advanced tools.",
    ),
    "charcoal_essence": ResourceDefinition(
        key="charcoal_essence",
        display_name="Charcoal Essence",
        description="A rare resource for creating fire-based artifacts.",
    ),
    "ashen_dust": ResourceDefinition(
        key="ashen_dust",
        display_name="Ashen Dust",
        description="Fine residue of burnt-out areas, binds tool handles and casings.",
    ),
}


def _parse_resource_entry(key: str, entry: Dict[str, Any]) -> ResourceDefinition | None:
    if key not in RESOURCE_IDS:
        return None

    display_name = entry.get("display_name")
    description = entry.get("description", "")

    if not isinstance(display_name, str) or not display_name.strip():
        return None
    if not isinstance(description, str):
        return None

    return ResourceDefinition(
        key=key,
        display_name=display_name.strip(),
        description=description.strip(),
    )


def _ordered_runtime_catalog(resources: Iterable[ResourceDefinition]) -> Dict[str, Dict[str, str]]:
    ordered = sorted(resources, key=lambda resource: RESOURCE_IDS.index(resource.key))
    return {resource.key: resource.to_runtime_dict() for resource in ordered}


def load_resource_catalog(path: Path = RESOURCES_FILE) -> Dict[str, Dict[str, str]]:
    resources: Dict[str, ResourceDefinition] = dict(DEFAULT_RESOURCES)
    if not path.exists():
        return _ordered_runtime_catalog(resources.values())

    try:
        raw = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError):
        return _ordered_runtime_catalog(resources.values())

    if not isinstance(raw, dict):
        return _ordered_runtime_catalog(resources.values())

    for key, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        resource = _parse_resource_entry(key, entry)
        if resource is None:
            continue
        resources[key] = resource

    return _ordered_runtime_catalog(resources.values())
