"""GameSession: the top-level state machine the front end talks to.

One loop step feeds elapsed time and at most one command in, and gets a
read-only :class:`StateView` back.  Phases::

    SLOT_SELECTION -> PLAYING -> SAVING -> PLAYING | EXITED

Failures never escape :meth:`GameSession.handle`; they come back as a
:class:`CommandOutcome` naming the error.
"""
from __future__ import annotations

import time
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional

from config import EVENT_LOG_LIMIT, OFFLINE_ACCRUAL_CAP_SECONDS, AreaKind, ResourceKind, ToolKind
from game.accrual import AccrualEngine
from game.commands import RESOURCES, CommandInterpreter, ParsedCommand, Signal, parse_command, suggest
from game.entities import CommandOutcome, GameState, SaveSlot, SessionPhase, StateView
from game.errors import GameError, InvalidAction, InvalidArgument, SaveFailed, SaveNotFound, UnknownCommand
from game.progression import PROGRESSION, ProgressionGraph
from game.saves import SaveManager

SLOT_COMMANDS = ("new-slot", "load-slot", "delete-slot", "switch-slot", "slots")
SELECTION_HELP = "new-slot <n> | load-slot <n> | delete-slot <n> | slots | help | quit"


class GameSession:
    def __init__(
        self,
        saves: SaveManager,
        graph: ProgressionGraph = PROGRESSION,
        clock: Callable[[], float] = time.time,
        resources: Mapping[str, Mapping[str, str]] = RESOURCES,
    ) -> None:
        self.saves = saves
        self.graph = graph
        self.clock = clock
        self.accrual = AccrualEngine(graph)
        self.interpreter = CommandInterpreter(graph, resources, vocabulary=SLOT_COMMANDS)
        self.phase = SessionPhase.SLOT_SELECTION
        self.slot_id: Optional[int] = None
        self.state: Optional[GameState] = None
        self.event_log: List[str] = []
        self.last_outcome: Optional[CommandOutcome] = None
        self._slot_handlers: Dict[str, Callable[[ParsedCommand], str]] = {
            "new-slot": self._new_slot,
            "load-slot": self._load_slot,
            "delete-slot": self._delete_slot,
            "switch-slot": self._switch_slot,
            "slots": self._slots,
        }

    @property
    def running(self) -> bool:
        return self.phase != SessionPhase.EXITED

    def _log_event(self, message: str) -> None:
        if not message:
            return
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_LIMIT:]

    # ------------------------------------------------------------------
    # Loop entry points
    # ------------------------------------------------------------------

    def step(self, elapsed_seconds: float, command: Optional[str] = None) -> StateView:
        self.tick(elapsed_seconds)
        if command is not None and command.strip():
            self.handle(command)
        return self.view()

    def tick(self, elapsed_seconds: float) -> Dict[ResourceKind, int]:
        if self.phase != SessionPhase.PLAYING or self.state is None:
            return {}
        gains = self.accrual.tick(self.state, elapsed_seconds)
        self.state.last_tick = float(self.clock())
        return gains

    def handle(self, raw: str) -> CommandOutcome:
        text = raw.strip()
        try:
            message = self._dispatch(text)
        except GameError as exc:
            outcome = CommandOutcome(command=text, ok=False, message=str(exc), error=exc.name)
            self._log_event(str(exc))
        else:
            outcome = CommandOutcome(command=text, ok=True, message=message)
        self.last_outcome = outcome
        return outcome

    def view(self) -> StateView:
        state = self.state
        if state is None:
            return StateView(
                phase=self.phase,
                slot_id=self.slot_id,
                resources=MappingProxyType({}),
                owned_tools=(),
                unlocked_areas=(),
                active_area=None,
                last_outcome=self.last_outcome,
                events=tuple(self.event_log),
            )
        return StateView(
            phase=self.phase,
            slot_id=self.slot_id,
            resources=MappingProxyType(state.ledger.snapshot()),
            owned_tools=tuple(kind for kind in ToolKind if state.owns(kind)),
            unlocked_areas=tuple(kind for kind in AreaKind if state.is_unlocked(kind)),
            active_area=state.active_area,
            last_outcome=self.last_outcome,
            events=tuple(self.event_log),
        )

    def list_slots(self) -> List[SaveSlot]:
        return self.saves.list_slots()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, text: str) -> str:
        if self.phase == SessionPhase.EXITED:
            raise InvalidAction("The session has ended.")
        command = parse_command(text)
        slot_handler = self._slot_handlers.get(command.token)
        if slot_handler is not None:
            return slot_handler(command)
        if self.phase == SessionPhase.SLOT_SELECTION:
            return self._selection_command(command)
        return self._play_command(command)

    def _selection_command(self, command: ParsedCommand) -> str:
        if command.token == "quit":
            self.phase = SessionPhase.EXITED
            return "Goodbye."
        if command.token == "help":
            return SELECTION_HELP
        if command.token == "clear":
            self.event_log.clear()
            return ""
        if command.token in self.interpreter.commands:
            raise InvalidAction("Choose a slot first: new-slot <n> or load-slot <n>.")
        raise UnknownCommand(command.token, suggest(command.token, self.interpreter.commands + SLOT_COMMANDS))

    def _play_command(self, command: ParsedCommand) -> str:
        result = self.interpreter.execute(self.state, command)
        if result.signal == Signal.CLEAR:
            self.event_log.clear()
            return result.message
        if result.signal == Signal.SAVE:
            return self._commit(SessionPhase.PLAYING)
        if result.signal == Signal.QUIT:
            return self._commit(SessionPhase.EXITED) + " Goodbye."
        if result.mutated:
            self._log_event(result.message)
        return result.message

    # ------------------------------------------------------------------
    # Saving and slots
    # ------------------------------------------------------------------

    def _commit(self, then: SessionPhase) -> str:
        self.phase = SessionPhase.SAVING
        try:
            self.saves.save(self.slot_id, self.state)
        except SaveFailed:
            self.phase = SessionPhase.PLAYING
            raise
        self.phase = then
        message = f"Saved slot {self.slot_id}."
        self._log_event(message)
        return message

    def _slot_argument(self, command: ParsedCommand) -> int:
        if len(command.args) != 1:
            raise InvalidArgument(f"Usage: {command.token} <slot>")
        try:
            slot_id = int(command.args[0])
        except ValueError:
            raise InvalidArgument(f"Slot must be a number, got '{command.args[0]}'.") from None
        return self.saves.check_slot(slot_id)

    def _leave_current_slot(self) -> None:
        if self.phase == SessionPhase.PLAYING:
            self._commit(SessionPhase.SLOT_SELECTION)
        self.phase = SessionPhase.SLOT_SELECTION
        self.slot_id = None
        self.state = None

    def _enter(self, slot_id: int, state: GameState) -> None:
        self.slot_id = slot_id
        self.state = state
        self.phase = SessionPhase.PLAYING

    def _catch_up(self, state: GameState) -> Dict[ResourceKind, int]:
        now = float(self.clock())
        away = min(now - state.last_tick, OFFLINE_ACCRUAL_CAP_SECONDS)
        gains = self.accrual.tick(state, away)
        state.last_tick = now
        return gains

    def _new_slot(self, command: ParsedCommand) -> str:
        slot_id = self._slot_argument(command)
        self._leave_current_slot()
        self._enter(slot_id, GameState.new_game(self.clock()))
        message = f"Started a new game in slot {slot_id}."
        if self.saves.path_for(slot_id).exists():
            message += " The existing save will be replaced on the next save."
        self._log_event(message)
        return message

    def _load_slot(self, command: ParsedCommand) -> str:
        slot_id = self._slot_argument(command)
        if slot_id == self.slot_id:
            # reloading the slot in play picks up its latest commit
            self._leave_current_slot()
        # a corrupted target is reported before the current slot is left
        try:
            loaded = self.saves.load_slot(slot_id)
        except SaveNotFound:
            loaded = None
        self._leave_current_slot()
        if loaded is None:
            self._enter(slot_id, GameState.new_game(self.clock()))
            message = f"Slot {slot_id} is empty; started a new game."
            self._log_event(message)
            return message
        gains = self._catch_up(loaded.state)
        self._enter(slot_id, loaded.state)
        message = f"Loaded slot {slot_id}."
        if gains:
            message += f" While you were away: {self.interpreter.describe(gains)}."
        self._log_event(message)
        return message

    def _delete_slot(self, command: ParsedCommand) -> str:
        slot_id = self._slot_argument(command)
        if self.phase == SessionPhase.PLAYING and slot_id == self.slot_id:
            raise InvalidAction(f"Slot {slot_id} is in play; switch-slot first.")
        if self.saves.delete(slot_id):
            message = f"Deleted slot {slot_id}."
        else:
            message = f"Slot {slot_id} was already empty."
        self._log_event(message)
        return message

    def _switch_slot(self, command: ParsedCommand) -> str:
        if command.args:
            raise InvalidArgument("'switch-slot' takes no arguments.")
        if self.phase != SessionPhase.PLAYING:
            return SELECTION_HELP
        previous = self.slot_id
        self._leave_current_slot()
        return f"Saved slot {previous}. Choose a slot."

    def _slots(self, command: ParsedCommand) -> str:
        if command.args:
            raise InvalidArgument("'slots' takes no arguments.")
        lines = []
        for slot in self.saves.list_slots():
            if slot.corrupted:
                status = "corrupted"
            elif slot.saved_at is None:
                status = "empty"
            else:
                status = "saved " + _format_saved_at(slot.saved_at)
            lines.append(f"{slot.slot_id}: {status}")
        return " | ".join(lines)


def _format_saved_at(saved_at: float) -> str:
    try:
        return time.strftime("%Y-%m-%d %H:%M", time.localtime(saved_at))
    except (OverflowError, OSError, ValueError):
        return "at an unknown time"
