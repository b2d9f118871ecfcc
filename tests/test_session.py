from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

import pytest

from config import EVENT_LOG_LIMIT, OFFLINE_ACCRUAL_CAP_SECONDS, AreaKind, ResourceKind, ToolKind
from game.entities import CommandOutcome, SessionPhase
from game.errors import SaveFailed
from game.saves import SaveManager
from game.session import GameSession


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _session(save_dir, clock=None) -> GameSession:
    clock = clock or FakeClock()
    return GameSession(SaveManager(save_dir, clock=clock), clock=clock)


@pytest.fixture
def session(tmp_path):
    return _session(tmp_path)


class TestSlotSelection(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.save_dir = Path(self._tmp.name)
        self.session = _session(self.save_dir)

    def tearDown(self):
        self._tmp.cleanup()

    def test_starts_in_slot_selection(self):
        view = self.session.view()
        self.assertEqual(view.phase, SessionPhase.SLOT_SELECTION)
        self.assertIsNone(view.slot_id)
        self.assertIsNone(view.active_area)

    def test_game_commands_need_a_slot(self):
        outcome = self.session.handle("collect")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "InvalidAction")
        self.assertEqual(self.session.phase, SessionPhase.SLOT_SELECTION)

    def test_unknown_command_suggests_slot_commands(self):
        outcome = self.session.handle("new-slt 1")
        self.assertEqual(outcome.error, "UnknownCommand")
        self.assertIn("new-slot", outcome.message)

    def test_new_slot_starts_playing(self):
        outcome = self.session.handle("new-slot 1")
        self.assertTrue(outcome.ok)
        view = self.session.view()
        self.assertEqual(view.phase, SessionPhase.PLAYING)
        self.assertEqual(view.slot_id, 1)
        self.assertEqual(view.active_area, AreaKind.SCORCHED_PLAINS)
        self.assertEqual(view.unlocked_areas, (AreaKind.SCORCHED_PLAINS,))
        self.assertEqual(view.owned_tools, ())
        self.assertTrue(all(amount == 0 for amount in view.resources.values()))

    def test_bad_slot_arguments(self):
        for raw in ("new-slot", "new-slot 9", "new-slot one", "load-slot 1 2"):
            outcome = self.session.handle(raw)
            self.assertEqual(outcome.error, "InvalidArgument", raw)
        self.assertEqual(self.session.phase, SessionPhase.SLOT_SELECTION)

    def test_quit_from_selection_writes_nothing(self):
        outcome = self.session.handle("quit")
        self.assertTrue(outcome.ok)
        self.assertFalse(self.session.running)
        self.assertEqual(list(self.save_dir.iterdir()), [])

    def test_load_empty_slot_starts_fresh(self):
        outcome = self.session.handle("load-slot 2")
        self.assertTrue(outcome.ok)
        self.assertIn("empty", outcome.message)
        self.assertEqual(self.session.slot_id, 2)
        self.assertEqual(self.session.phase, SessionPhase.PLAYING)


class TestPlaying(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.save_dir = Path(self._tmp.name)
        self.clock = FakeClock()
        self.session = _session(self.save_dir, self.clock)
        self.session.handle("new-slot 1")

    def tearDown(self):
        self._tmp.cleanup()

    def test_step_accrues_elapsed_time(self):
        view = self.session.step(10)
        self.assertEqual(view.resources[ResourceKind.FIRESTONE], 10)
        self.assertEqual(view.resources[ResourceKind.EMBERASH], 5)

    def test_step_stamps_last_tick(self):
        self.clock.now = 1500.0
        self.session.step(1)
        self.assertEqual(self.session.state.last_tick, 1500.0)

    def test_craft_without_enough_firestone(self):
        self.session.step(4)
        view = self.session.step(0, "craft flamestarter")
        self.assertEqual(view.last_outcome.error, "InsufficientResource")
        self.assertEqual(view.resources[ResourceKind.FIRESTONE], 4)
        self.assertEqual(view.owned_tools, ())

    def test_explore_without_prerequisites(self):
        view = self.session.step(0, "explore")
        self.assertEqual(view.last_outcome.error, "PrerequisiteNotMet")
        self.assertEqual(view.active_area, AreaKind.SCORCHED_PLAINS)

    def test_save_keeps_playing(self):
        self.session.step(10)
        outcome = self.session.handle("save")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.session.phase, SessionPhase.PLAYING)
        saved = self.session.saves.load(1)
        self.assertEqual(saved.ledger.quantity(ResourceKind.FIRESTONE), 10)

    def test_quit_saves_and_exits(self):
        self.session.step(10)
        outcome = self.session.handle("quit")
        self.assertTrue(outcome.ok)
        self.assertIn("Goodbye", outcome.message)
        self.assertEqual(self.session.phase, SessionPhase.EXITED)
        self.assertEqual(self.session.saves.load(1), self.session.state)

        after = self.session.handle("collect")
        self.assertEqual(after.error, "InvalidAction")

    def test_quit_with_failing_save_keeps_playing(self):
        def broken_save(slot_id, state):
            raise SaveFailed("disk full")

        self.session.saves.save = broken_save
        outcome = self.session.handle("quit")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "SaveFailed")
        self.assertEqual(self.session.phase, SessionPhase.PLAYING)

    def test_no_accrual_outside_playing(self):
        self.session.handle("switch-slot")
        self.assertEqual(self.session.phase, SessionPhase.SLOT_SELECTION)
        self.assertEqual(self.session.tick(100), {})

    def test_switching_slots_saves_the_current_one(self):
        self.session.step(10)
        outcome = self.session.handle("load-slot 2")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.session.slot_id, 2)
        self.assertEqual(self.session.state.ledger.quantity(ResourceKind.FIRESTONE), 0)
        self.assertEqual(self.session.saves.load(1).ledger.quantity(ResourceKind.FIRESTONE), 10)

    def test_corrupted_target_keeps_current_slot(self):
        self.session.step(10)
        (self.save_dir / "slot_2.json").write_text("garbage")

        outcome = self.session.handle("load-slot 2")

        self.assertEqual(outcome.error, "SaveCorrupted")
        self.assertEqual(self.session.phase, SessionPhase.PLAYING)
        self.assertEqual(self.session.slot_id, 1)
        self.assertEqual(self.session.state.ledger.quantity(ResourceKind.FIRESTONE), 10)
        self.assertFalse((self.save_dir / "slot_1.json").exists())

    def test_reloading_current_slot_keeps_progress(self):
        self.session.step(10)
        outcome = self.session.handle("load-slot 1")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.session.slot_id, 1)
        self.assertEqual(self.session.state.ledger.quantity(ResourceKind.FIRESTONE), 10)

    def test_help_in_play_lists_slot_commands(self):
        message = self.session.handle("help").message
        for token in ("slots", "switch-slot", "delete-slot"):
            self.assertIn(token, message)

    def test_cannot_delete_slot_in_play(self):
        outcome = self.session.handle("delete-slot 1")
        self.assertEqual(outcome.error, "InvalidAction")

    def test_unknown_command_in_play(self):
        outcome = self.session.handle("explor")
        self.assertEqual(outcome.error, "UnknownCommand")
        self.assertIn("Did you mean 'explore'?", outcome.message)

    def test_event_log_is_capped(self):
        for _ in range(EVENT_LOG_LIMIT + 8):
            self.session.handle("collect")
        self.assertEqual(len(self.session.view().events), EVENT_LOG_LIMIT)

    def test_clear_empties_event_log(self):
        self.session.handle("collect")
        self.session.handle("clear")
        self.assertEqual(self.session.view().events, ())

    def test_view_is_read_only(self):
        view = self.session.view()
        with self.assertRaises(TypeError):
            view.resources[ResourceKind.FIRESTONE] = 99
        self.assertEqual(self.session.state.ledger.quantity(ResourceKind.FIRESTONE), 0)


def test_corrupted_slot_stays_in_selection(tmp_path, session):
    (tmp_path / "slot_1.json").write_text("garbage")

    outcome = session.handle("load-slot 1")

    assert outcome.error == "SaveCorrupted"
    assert session.phase == SessionPhase.SLOT_SELECTION
    assert session.handle("slots").message.startswith("1: corrupted")

    assert session.handle("delete-slot 1").ok
    assert session.handle("load-slot 1").ok
    assert session.phase == SessionPhase.PLAYING


def _plant_bad_saves(save_dir) -> None:
    (save_dir / "slot_1.json").write_text("[" * 200000)
    (save_dir / "slot_2.json").write_text(json.dumps({"format": 1, "slot": 2, "saved_at": 1e300, "state": {}}))
    (save_dir / "slot_3.json").write_text(json.dumps({"format": True, "slot": 3, "saved_at": 0.0, "state": {}}))


def test_slot_listing_survives_bad_files(tmp_path, session):
    _plant_bad_saves(tmp_path)

    outcome = session.handle("slots")

    assert outcome.ok
    assert outcome.message == "1: corrupted | 2: corrupted | 3: corrupted"
    for slot_id in (1, 2, 3):
        assert session.handle(f"load-slot {slot_id}").error == "SaveCorrupted"
    assert session.phase == SessionPhase.SLOT_SELECTION


AWKWARD_COMMANDS = [
    "about ²",
    "about ١",
    "about " + "9" * 5000,
    "new-slot ١",
    "new-slot ²",
    "new-slot " + "9" * 5000,
    "load-slot " + "9" * 5000,
    "load-slot 2",
    "delete-slot 3",
    "travel",
    "craft",
    "craft \u202eflamestarter",
    "slots",
    "slots 1",
    "switch-slot",
    "help me",
    "\x00",
    "\x1b[A",
    "collect\x07",
    "",
]


@pytest.mark.parametrize("playing", [False, True])
@pytest.mark.parametrize("raw", AWKWARD_COMMANDS)
def test_handle_always_returns_an_outcome(tmp_path, raw, playing):
    _plant_bad_saves(tmp_path)
    session = _session(tmp_path)
    if playing:
        assert session.handle("new-slot 1").ok

    outcome = session.handle(raw)

    assert isinstance(outcome, CommandOutcome)
    assert outcome.ok or outcome.error
    assert session.handle("slots").ok
    assert session.running


def test_offline_progress_on_load(tmp_path):
    clock = FakeClock(1000.0)
    first = _session(tmp_path, clock)
    first.handle("new-slot 1")
    first.handle("quit")

    clock.now = 1030.0
    second = _session(tmp_path, clock)
    outcome = second.handle("load-slot 1")

    assert outcome.ok
    assert "While you were away" in outcome.message
    assert second.state.ledger.quantity(ResourceKind.FIRESTONE) == 30
    assert second.state.ledger.quantity(ResourceKind.EMBERASH) == 15
    assert second.state.last_tick == 1030.0


def test_offline_progress_is_capped(tmp_path):
    clock = FakeClock(0.0)
    first = _session(tmp_path, clock)
    first.handle("new-slot 1")
    first.handle("quit")

    clock.now = 10 * OFFLINE_ACCRUAL_CAP_SECONDS
    second = _session(tmp_path, clock)
    second.handle("load-slot 1")

    assert second.state.ledger.quantity(ResourceKind.FIRESTONE) == int(OFFLINE_ACCRUAL_CAP_SECONDS)


def test_clock_going_backwards_credits_nothing(tmp_path):
    clock = FakeClock(5000.0)
    first = _session(tmp_path, clock)
    first.handle("new-slot 1")
    first.handle("quit")

    clock.now = 10.0
    second = _session(tmp_path, clock)
    assert second.handle("load-slot 1").message == "Loaded slot 1."
    assert second.state.ledger.quantity(ResourceKind.FIRESTONE) == 0


def _gather_and_craft(session: GameSession, tool: ToolKind) -> None:
    for _ in range(200):
        if session.graph.can_craft(tool, session.state.ledger):
            break
        session.handle("mine")
        session.step(10)
    outcome = session.handle(f"craft {tool.value}")
    assert outcome.ok, outcome.message


def test_full_progression_through_commands(session):
    session.handle("new-slot 3")

    _gather_and_craft(session, ToolKind.FLAMESTARTER)
    assert session.handle("explore").ok
    _gather_and_craft(session, ToolKind.BLAZE_HAMMER)
    assert session.handle("explore").ok
    _gather_and_craft(session, ToolKind.MOLTEN_CUTTER)
    assert session.handle("explore").ok
    assert session.state.active_area == AreaKind.INFERNO_WELLS
    _gather_and_craft(session, ToolKind.PYRODRILL)
    _gather_and_craft(session, ToolKind.FIRE_MANIPULATOR)
    assert session.handle("explore").ok
    assert session.state.active_area == AreaKind.PYRO_NEXUS
    _gather_and_craft(session, ToolKind.PHOENIX_BEACON)

    view = session.view()
    assert set(view.owned_tools) == set(ToolKind)
    assert set(view.unlocked_areas) == set(AreaKind)
    assert session.handle("explore").error == "PrerequisiteNotMet"
    assert all(amount >= 0 for amount in view.resources.values())
