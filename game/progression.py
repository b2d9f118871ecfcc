"""ProgressionGraph: the static unlock rules for tools and areas.

Built once from the tool and area catalogs and shared read-only by the
command interpreter and the accrual engine.  Tools are gated only by their
craft cost; areas are gated by explicit edges to required tools and
required areas, which must form a DAG.
"""
from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from area_catalog import load_area_catalog
from config import AREAS_FILE, TOOLS_FILE, AreaKind, ResourceKind, ToolKind
from game.ledger import ResourceLedger
from tool_catalog import load_tool_catalog


def exact(value: float) -> Fraction:
    """Exact fraction of a config number as written (``0.1`` is 1/10)."""
    return Fraction(str(value))


@dataclass(frozen=True)
class ToolSpec:
    kind: ToolKind
    display_name: str
    craft_cost: Mapping[ResourceKind, int]
    yield_multiplier: float = 1.0
    boosts: frozenset[ResourceKind] = frozenset()
    description: str = ""


@dataclass(frozen=True)
class AreaSpec:
    kind: AreaKind
    display_name: str
    yields: Mapping[ResourceKind, float]
    mining: Mapping[ResourceKind, float]
    required_tools: frozenset[ToolKind] = frozenset()
    required_areas: frozenset[AreaKind] = frozenset()
    description: str = ""


@dataclass(frozen=True)
class ProgressionGraph:
    tools: Mapping[ToolKind, ToolSpec]
    areas: Mapping[AreaKind, AreaSpec]

    def __post_init__(self) -> None:
        missing_tools = [kind.value for kind in ToolKind if kind not in self.tools]
        missing_areas = [kind.value for kind in AreaKind if kind not in self.areas]
        if missing_tools or missing_areas:
            raise ValueError(f"progression graph is missing {', '.join(missing_tools + missing_areas)}")
        for area in self.areas.values():
            if area.kind in area.required_areas:
                raise ValueError(f"area {area.kind.value} requires itself")
        self._check_acyclic()
        object.__setattr__(self, "tools", MappingProxyType({kind: self.tools[kind] for kind in ToolKind}))
        object.__setattr__(self, "areas", MappingProxyType({kind: self.areas[kind] for kind in AreaKind}))

    def _check_acyclic(self) -> None:
        done: set[AreaKind] = set()

        def visit(kind: AreaKind, path: List[AreaKind]) -> None:
            if kind in done:
                return
            if kind in path:
                cycle = " -> ".join(k.value for k in path + [kind])
                raise ValueError(f"area prerequisites form a cycle: {cycle}")
            for required in self.areas[kind].required_areas:
                visit(required, path + [kind])
            done.add(kind)

        for kind in self.areas:
            visit(kind, [])

    @classmethod
    def from_catalogs(cls, tool_catalog: Mapping[str, Dict[str, Any]], area_catalog: Mapping[str, Dict[str, Any]]) -> "ProgressionGraph":
        tools = {}
        for key, entry in tool_catalog.items():
            kind = ToolKind(key)
            tools[kind] = ToolSpec(
                kind=kind,
                display_name=str(entry["display_name"]),
                craft_cost=MappingProxyType(
                    {ResourceKind(res): int(amount) for res, amount in entry["craft_cost"].items()}
                ),
                yield_multiplier=float(entry["yield_multiplier"]),
                boosts=frozenset(ResourceKind(res) for res in entry["boosts"]),
                description=str(entry.get("description", "")),
            )
        areas = {}
        for key, entry in area_catalog.items():
            kind = AreaKind(key)
            areas[kind] = AreaSpec(
                kind=kind,
                display_name=str(entry["display_name"]),
                yields=MappingProxyType({ResourceKind(res): float(rate) for res, rate in entry["yields"].items()}),
                mining=MappingProxyType({ResourceKind(res): float(rate) for res, rate in entry["mining"].items()}),
                required_tools=frozenset(ToolKind(tool) for tool in entry["required_tools"]),
                required_areas=frozenset(AreaKind(area) for area in entry["required_areas"]),
                description=str(entry.get("description", "")),
            )
        return cls(tools=tools, areas=areas)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def tool(self, kind: ToolKind) -> ToolSpec:
        return self.tools[kind]

    def area(self, kind: AreaKind) -> AreaSpec:
        return self.areas[kind]

    def can_craft(self, tool: ToolKind, ledger: ResourceLedger) -> bool:
        return ledger.has_all(self.tools[tool].craft_cost)

    def can_unlock(self, area: AreaKind, owned_tools: Iterable[ToolKind], unlocked_areas: Iterable[AreaKind]) -> bool:
        spec = self.areas[area]
        return spec.required_tools <= set(owned_tools) and spec.required_areas <= set(unlocked_areas)

    def reachable_areas(self, owned_tools: Iterable[ToolKind], unlocked_areas: Iterable[AreaKind]) -> List[AreaKind]:
        """Locked areas whose prerequisites hold, in declaration order."""
        owned = set(owned_tools)
        unlocked = set(unlocked_areas)
        return [
            kind
            for kind in self.areas
            if kind not in unlocked and self.can_unlock(kind, owned, unlocked)
        ]

    def multiplier_for(self, resource: ResourceKind, owned_tools: Iterable[ToolKind]) -> Fraction:
        multiplier = Fraction(1)
        for kind in owned_tools:
            spec = self.tools[kind]
            if resource in spec.boosts:
                multiplier *= exact(spec.yield_multiplier)
        return multiplier


def load_progression_graph(tools_path: Path = TOOLS_FILE, areas_path: Path = AREAS_FILE) -> ProgressionGraph:
    return ProgressionGraph.from_catalogs(load_tool_catalog(tools_path), load_area_catalog(areas_path))


PROGRESSION = load_progression_graph()
