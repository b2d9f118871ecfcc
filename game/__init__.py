"""Pyrobase game engine package.

Public API:
    from game import GameSession, SaveManager, GameState, ResourceLedger
"""
from game.accrual import AccrualEngine
from game.commands import CommandInterpreter
from game.entities import CommandOutcome, GameState, SaveSlot, SessionPhase, StateView
from game.ledger import ResourceLedger
from game.progression import PROGRESSION, ProgressionGraph
from game.saves import SaveManager
from game.session import GameSession

__all__ = [
    "AccrualEngine",
    "CommandInterpreter",
    "CommandOutcome",
    "GameSession",
    "GameState",
    "PROGRESSION",
    "ProgressionGraph",
    "ResourceLedger",
    "SaveManager",
    "SaveSlot",
    "SessionPhase",
    "StateView",
]
