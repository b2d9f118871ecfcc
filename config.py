"""Centralised configuration constants for Pyrobase."""
from __future__ import annotations

from enum import Enum
from pathlib import Path

# ---------------------------------------------------------------------------
# Resource / tool / area kinds
# ---------------------------------------------------------------------------


class ResourceKind(str, Enum):
    FIRESTONE = "firestone"
    EMBERASH = "emberash"
    HEATCORES = "heatcores"
    SULFUR_ORE = "sulfur_ore"
    CHARCOAL_ESSENCE = "charcoal_essence"
    ASHEN_DUST = "ashen_dust"


class ToolKind(str, Enum):
    FLAMESTARTER = "flamestarter"
    BLAZE_HAMMER = "blaze_hammer"
    MOLTEN_CUTTER = "molten_cutter"
    PYRODRILL = "pyrodrill"
    FIRE_MANIPULATOR = "fire_manipulator"
    PHOENIX_BEACON = "phoenix_beacon"


class AreaKind(str, Enum):
    SCORCHED_PLAINS = "scorched_plains"
    EMBER_FIELDS = "ember_fields"
    FORGEFLAME_RUINS = "forgeflame_ruins"
    INFERNO_WELLS = "inferno_wells"
    PYRO_NEXUS = "pyro_nexus"


# Basic resources are gathered by ``collect`` and passive accrual; rare
# minerals only by ``mine``.
BASIC_RESOURCES: frozenset[ResourceKind] = frozenset(
    {ResourceKind.FIRESTONE, ResourceKind.EMBERASH, ResourceKind.ASHEN_DUST}
)
RARE_MINERALS: frozenset[ResourceKind] = frozenset(
    {ResourceKind.HEATCORES, ResourceKind.SULFUR_ORE, ResourceKind.CHARCOAL_ESSENCE}
)

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
DATA_DIR: Path = Path(__file__).resolve().parent / "data"
TOOLS_FILE: Path = DATA_DIR / "tools.json"
AREAS_FILE: Path = DATA_DIR / "areas.json"
RESOURCES_FILE: Path = DATA_DIR / "resources.json"
SAVE_DIR: Path = Path("saves")

# ---------------------------------------------------------------------------
# Save slots
# ---------------------------------------------------------------------------
SAVE_SLOT_COUNT: int = 3               # slots are numbered 1..SAVE_SLOT_COUNT
SAVE_FORMAT_VERSION: int = 1
SAVE_FILE_TEMPLATE: str = "slot_{slot_id}.json"

# ---------------------------------------------------------------------------
# Gameplay tuning
# ---------------------------------------------------------------------------
STARTING_AREA: AreaKind = AreaKind.SCORCHED_PLAINS
COLLECT_UNIT_SECONDS: int = 5          # one ``collect`` is worth this much passive yield
MINE_UNIT_SECONDS: int = 4             # one ``mine`` is worth this much mining yield
AUTO_TRAVEL_ON_EXPLORE: bool = True    # move to a freshly unlocked area
OFFLINE_ACCRUAL_CAP_SECONDS: float = 8 * 3600.0  # max catch-up accrued when a slot is loaded

# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
EVENT_LOG_LIMIT: int = 12
COMMAND_SUGGESTION_CUTOFF: float = 0.6  # difflib ratio for "did you mean"
