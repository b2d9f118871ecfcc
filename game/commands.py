"""CommandInterpreter: turns one raw command string into one state transition.

Handlers validate everything before touching the state, so a command
either applies completely or raises a :class:`GameError` having changed
nothing.
"""
from __future__ import annotations

import difflib
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple, Type, TypeVar

from config import (
    AUTO_TRAVEL_ON_EXPLORE,
    COLLECT_UNIT_SECONDS,
    COMMAND_SUGGESTION_CUTOFF,
    MINE_UNIT_SECONDS,
    AreaKind,
    ResourceKind,
    ToolKind,
)
from game.entities import GameState
from game.errors import InsufficientResource, InvalidAction, InvalidArgument, PrerequisiteNotMet, UnknownCommand
from game.progression import PROGRESSION, ProgressionGraph, exact
from resource_catalog import load_resource_catalog

RESOURCES = load_resource_catalog()

HELP_TEXT = (
    "collect | mine | explore | craft <tool> | travel <area> | about <resource> | "
    "save | clear | help | quit | slots | switch-slot | new-slot <n> | load-slot <n> | delete-slot <n>"
)

K = TypeVar("K", bound=Enum)


class Signal(str, Enum):
    """Requests the interpreter hands back to the session."""

    SAVE = "save"
    QUIT = "quit"
    CLEAR = "clear"


@dataclass(frozen=True)
class ParsedCommand:
    token: str
    args: Tuple[str, ...] = ()

    @property
    def argument(self) -> str:
        return " ".join(self.args)


@dataclass(frozen=True)
class CommandResult:
    message: str
    signal: Optional[Signal] = None
    mutated: bool = False


def parse_command(raw: str) -> ParsedCommand:
    parts = raw.split()
    if not parts:
        raise InvalidArgument("Empty command.")
    return ParsedCommand(token=parts[0].lower(), args=tuple(parts[1:]))


def normalize_name(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


def suggest(token: str, vocabulary: Iterable[str]) -> Optional[str]:
    matches = difflib.get_close_matches(token, list(vocabulary), n=1, cutoff=COMMAND_SUGGESTION_CUTOFF)
    return matches[0] if matches else None


class CommandInterpreter:
    def __init__(
        self,
        graph: ProgressionGraph = PROGRESSION,
        resources: Mapping[str, Mapping[str, str]] = RESOURCES,
        *,
        auto_travel: bool = AUTO_TRAVEL_ON_EXPLORE,
        vocabulary: Iterable[str] = (),
    ) -> None:
        self.graph = graph
        self.resources = resources
        self.auto_travel = auto_travel
        self._handlers: Dict[str, Callable[[GameState, ParsedCommand], CommandResult]] = {
            "collect": self._collect,
            "mine": self._mine,
            "explore": self._explore,
            "craft": self._craft,
            "travel": self._travel,
            "about": self._about,
            "help": self._help,
            "clear": self._clear,
            "save": self._save,
            "quit": self._quit,
        }
        self._vocabulary = tuple(self._handlers) + tuple(vocabulary)

    @property
    def commands(self) -> Tuple[str, ...]:
        return tuple(self._handlers)

    def apply(self, state: GameState, raw: str) -> CommandResult:
        return self.execute(state, parse_command(raw))

    def execute(self, state: GameState, command: ParsedCommand) -> CommandResult:
        handler = self._handlers.get(command.token)
        if handler is None:
            raise UnknownCommand(command.token, suggest(command.token, self._vocabulary))
        return handler(state, command)

    # ------------------------------------------------------------------
    # Naming helpers
    # ------------------------------------------------------------------

    def resource_name(self, kind: ResourceKind) -> str:
        return str(self.resources.get(kind.value, {}).get("display_name", kind.value))

    def describe(self, amounts: Mapping[ResourceKind, int]) -> str:
        return ", ".join(f"{amount} {self.resource_name(kind)}" for kind, amount in amounts.items())

    def _lookup(self, enum_cls: Type[K], text: str, display_names: Mapping[K, str], what: str) -> K:
        wanted = normalize_name(text)
        for kind in enum_cls:
            if wanted in (normalize_name(kind.value), normalize_name(display_names[kind])):
                return kind
        raise InvalidArgument(f"Unknown {what}: '{text}'.")

    def lookup_tool(self, text: str) -> ToolKind:
        names = {kind: spec.display_name for kind, spec in self.graph.tools.items()}
        return self._lookup(ToolKind, text, names, "tool")

    def lookup_area(self, text: str) -> AreaKind:
        names = {kind: spec.display_name for kind, spec in self.graph.areas.items()}
        return self._lookup(AreaKind, text, names, "area")

    @staticmethod
    def _no_args(command: ParsedCommand) -> None:
        if command.args:
            raise InvalidArgument(f"'{command.token}' takes no arguments.")

    @staticmethod
    def _require_argument(command: ParsedCommand, usage: str) -> str:
        if not command.args:
            raise InvalidArgument(f"Usage: {usage}")
        return command.argument

    # ------------------------------------------------------------------
    # Gathering
    # ------------------------------------------------------------------

    def _action_gains(self, state: GameState, table: Mapping[ResourceKind, float], unit: int) -> Dict[ResourceKind, int]:
        owned = state.owned_tools()
        gains = {}
        for resource, rate in table.items():
            amount = math.floor(exact(rate) * unit * self.graph.multiplier_for(resource, owned))
            if amount > 0:
                gains[resource] = amount
        return gains

    def _collect(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        area = self.graph.area(state.active_area)
        if not area.yields:
            raise InvalidAction(f"There is nothing to collect in {area.display_name}.")
        gains = self._action_gains(state, area.yields, COLLECT_UNIT_SECONDS)
        state.ledger.credit_all(gains)
        return CommandResult(f"Collected {self.describe(gains) or 'nothing'} in {area.display_name}.", mutated=bool(gains))

    def _mine(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        area = self.graph.area(state.active_area)
        if not area.mining:
            raise InvalidAction(f"There is nothing to mine in {area.display_name}.")
        gains = self._action_gains(state, area.mining, MINE_UNIT_SECONDS)
        state.ledger.credit_all(gains)
        return CommandResult(f"Mined {self.describe(gains) or 'nothing'} in {area.display_name}.", mutated=bool(gains))

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def _missing_for(self, state: GameState, area: AreaKind) -> str:
        spec = self.graph.area(area)
        missing = [self.graph.tool(tool).display_name for tool in spec.required_tools if not state.owns(tool)]
        missing += [self.graph.area(req).display_name for req in spec.required_areas if not state.is_unlocked(req)]
        return ", ".join(sorted(missing))

    def _explore(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        reachable = self.graph.reachable_areas(state.owned_tools(), state.unlocked_areas())
        if not reachable:
            locked = [kind for kind in AreaKind if not state.is_unlocked(kind)]
            if not locked:
                raise PrerequisiteNotMet("Every area is already unlocked.")
            nearest = self.graph.area(locked[0])
            raise PrerequisiteNotMet(
                f"No area is reachable yet; {nearest.display_name} requires {self._missing_for(state, locked[0])}."
            )
        target = reachable[0]
        state.areas[target] = True
        name = self.graph.area(target).display_name
        if self.auto_travel:
            state.active_area = target
            return CommandResult(f"Discovered {name} and set up camp there.", mutated=True)
        return CommandResult(f"Discovered {name}.", mutated=True)

    def _craft(self, state: GameState, command: ParsedCommand) -> CommandResult:
        tool = self.lookup_tool(self._require_argument(command, "craft <tool>"))
        spec = self.graph.tool(tool)
        if state.owns(tool):
            raise InvalidAction(f"{spec.display_name} is already crafted.")
        missing = state.ledger.shortfall(spec.craft_cost)
        if missing:
            raise InsufficientResource(missing, f"Cannot craft {spec.display_name}: need {self.describe(missing)} more.")
        state.ledger.debit_all(spec.craft_cost)
        state.tools[tool] = True
        return CommandResult(f"Crafted {spec.display_name} (-{self.describe(spec.craft_cost)}).", mutated=True)

    def _travel(self, state: GameState, command: ParsedCommand) -> CommandResult:
        area = self.lookup_area(self._require_argument(command, "travel <area>"))
        name = self.graph.area(area).display_name
        if not state.is_unlocked(area):
            raise PrerequisiteNotMet(f"{name} is locked; it requires {self._missing_for(state, area) or 'exploring'}.")
        if area == state.active_area:
            return CommandResult(f"Already in {name}.")
        state.active_area = area
        return CommandResult(f"Travelled to {name}.", mutated=True)

    # ------------------------------------------------------------------
    # Read-only and session commands
    # ------------------------------------------------------------------

    def _about(self, state: GameState, command: ParsedCommand) -> CommandResult:
        query = self._require_argument(command, "about <resource|number>")
        kinds = list(ResourceKind)
        kind: Optional[ResourceKind] = None
        if query.isascii() and query.isdigit():
            if len(query) <= 4 and 1 <= int(query) <= len(kinds):
                kind = kinds[int(query) - 1]
        else:
            wanted = normalize_name(query)
            for candidate in kinds:
                if wanted in (normalize_name(candidate.value), normalize_name(self.resource_name(candidate))):
                    kind = candidate
                    break
        if kind is None:
            raise InvalidArgument("Resource not found.")
        description = self.resources.get(kind.value, {}).get("description", "")
        return CommandResult(f"{self.resource_name(kind)}: {description}")

    def _help(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        return CommandResult(HELP_TEXT)

    def _clear(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        return CommandResult("", signal=Signal.CLEAR)

    def _save(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        return CommandResult("Saving...", signal=Signal.SAVE)

    def _quit(self, state: GameState, command: ParsedCommand) -> CommandResult:
        self._no_args(command)
        return CommandResult("Saving and quitting...", signal=Signal.QUIT)
