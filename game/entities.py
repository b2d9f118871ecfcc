"""Core dataclasses for the Pyrobase engine."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from config import STARTING_AREA, AreaKind, ResourceKind, ToolKind
from game.ledger import ResourceLedger

# "n" or "n/d" as str(Fraction) writes it; bounded digits keep parsing cheap
_CARRY_PATTERN = re.compile(r"[0-9]{1,64}(/[0-9]{1,64})?")


class SessionPhase(str, Enum):
    SLOT_SELECTION = "slot_selection"
    PLAYING = "playing"
    SAVING = "saving"
    EXITED = "exited"


@dataclass
class GameState:
    """Everything a save slot persists.

    ``accrual_carry`` holds the fractional part of passive accrual that has
    not yet added up to a whole unit, so accrual stays linear in time.
    """

    ledger: ResourceLedger
    tools: Dict[ToolKind, bool]
    areas: Dict[AreaKind, bool]
    active_area: AreaKind
    last_tick: float
    accrual_carry: Dict[ResourceKind, Fraction] = field(default_factory=dict)

    @classmethod
    def new_game(cls, now: float) -> "GameState":
        return cls(
            ledger=ResourceLedger(),
            tools={kind: False for kind in ToolKind},
            areas={kind: kind == STARTING_AREA for kind in AreaKind},
            active_area=STARTING_AREA,
            last_tick=float(now),
        )

    def owns(self, tool: ToolKind) -> bool:
        return self.tools.get(tool, False)

    def is_unlocked(self, area: AreaKind) -> bool:
        return self.areas.get(area, False)

    def owned_tools(self) -> frozenset[ToolKind]:
        return frozenset(kind for kind, owned in self.tools.items() if owned)

    def unlocked_areas(self) -> frozenset[AreaKind]:
        return frozenset(kind for kind, unlocked in self.areas.items() if unlocked)

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict:
        return {
            "resources": {kind.value: amount for kind, amount in self.ledger.items()},
            "tools": {kind.value: owned for kind, owned in self.tools.items()},
            "areas": {kind.value: unlocked for kind, unlocked in self.areas.items()},
            "active_area": self.active_area.value,
            "last_tick": self.last_tick,
            "accrual_carry": {
                kind.value: str(carry) for kind, carry in self.accrual_carry.items() if carry
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GameState":
        """Strictly rebuild a state; raises ``ValueError`` on any structural problem."""
        if not isinstance(data, dict):
            raise ValueError("state must be an object")

        resources = _parse_kind_map(data.get("resources"), ResourceKind, _parse_quantity, "resources")
        tools = _parse_kind_map(data.get("tools"), ToolKind, _parse_flag, "tools")
        areas = _parse_kind_map(data.get("areas"), AreaKind, _parse_flag, "areas")

        raw_active = data.get("active_area")
        if not isinstance(raw_active, str):
            raise ValueError("active_area must be a string tag")
        active_area = _parse_tag(AreaKind, raw_active, "active_area")
        if not areas[active_area]:
            raise ValueError(f"active area {raw_active!r} is not unlocked")

        last_tick = _parse_timestamp(data.get("last_tick"))

        raw_carry = data.get("accrual_carry", {})
        if not isinstance(raw_carry, dict):
            raise ValueError("accrual_carry must be an object")
        carry = {
            _parse_tag(ResourceKind, key, "accrual_carry"): _parse_carry(value, key)
            for key, value in raw_carry.items()
        }

        return cls(
            ledger=ResourceLedger(resources),
            tools=tools,
            areas=areas,
            active_area=active_area,
            last_tick=last_tick,
            accrual_carry=carry,
        )


def _parse_tag(enum_cls: Type[Enum], key: str, field_name: str) -> Any:
    try:
        return enum_cls(key)
    except ValueError:
        raise ValueError(f"unknown {field_name} tag {key!r}") from None


def _parse_kind_map(raw: Any, enum_cls: Type[Enum], parse_value: Callable[[Any, str], Any], field_name: str) -> Dict:
    if not isinstance(raw, dict):
        raise ValueError(f"{field_name} must be an object")
    parsed = {_parse_tag(enum_cls, key, field_name): parse_value(value, key) for key, value in raw.items()}
    missing = [kind.value for kind in enum_cls if kind not in parsed]
    if missing:
        raise ValueError(f"{field_name} is missing {', '.join(missing)}")
    return {kind: parsed[kind] for kind in enum_cls}


def _parse_quantity(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"quantity for {key!r} must be an integer")
    if value < 0:
        raise ValueError(f"quantity for {key!r} is negative")
    return value


def _parse_flag(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"flag for {key!r} must be a boolean")
    return value


def _parse_timestamp(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("last_tick must be a finite number")
    try:
        stamp = float(value)
    except OverflowError:
        raise ValueError("last_tick is out of range") from None
    if not math.isfinite(stamp):
        raise ValueError("last_tick must be a finite number")
    return stamp


def _parse_carry(value: Any, key: str) -> Fraction:
    if not isinstance(value, str) or not _CARRY_PATTERN.fullmatch(value):
        raise ValueError(f"carry for {key!r} must be a fraction string like '1/3'")
    try:
        carry = Fraction(value)
    except (ValueError, ZeroDivisionError):
        raise ValueError(f"carry for {key!r} is not a fraction") from None
    if not 0 <= carry < 1:
        raise ValueError(f"carry for {key!r} is out of range")
    return carry


@dataclass
class SaveSlot:
    """Metadata (and optionally the snapshot) of one save slot."""

    slot_id: int
    saved_at: Optional[float] = None
    state: Optional[GameState] = None
    corrupted: bool = False

    @property
    def is_empty(self) -> bool:
        return self.saved_at is None and not self.corrupted


@dataclass(frozen=True)
class CommandOutcome:
    """Result of one command: success, or the name of the failure raised."""

    command: str
    ok: bool
    message: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class StateView:
    """Read-only snapshot handed to the front end after every step."""

    phase: SessionPhase
    slot_id: Optional[int]
    resources: Mapping[ResourceKind, int]
    owned_tools: Tuple[ToolKind, ...]
    unlocked_areas: Tuple[AreaKind, ...]
    active_area: Optional[AreaKind]
    last_outcome: Optional[CommandOutcome] = None
    events: Tuple[str, ...] = ()
