"""Failure taxonomy for the Pyrobase engine.

Every failure a command can produce is a :class:`GameError`.  Components
raise them before mutating anything; :class:`game.session.GameSession`
turns them into structured outcomes at the command boundary.
"""
from __future__ import annotations

from typing import Dict, Optional

from config import ResourceKind


class GameError(Exception):
    """Base class for recoverable, reportable game failures."""

    @property
    def name(self) -> str:
        return type(self).__name__


class InsufficientResource(GameError):
    def __init__(self, shortfall: Dict[ResourceKind, int], message: str = "") -> None:
        self.shortfall = dict(shortfall)
        if not message:
            parts = ", ".join(f"{amount} {kind.value}" for kind, amount in self.shortfall.items())
            message = f"Not enough resources (short {parts})"
        super().__init__(message)


class PrerequisiteNotMet(GameError):
    pass


class InvalidAction(GameError):
    pass


class UnknownCommand(GameError):
    def __init__(self, token: str, suggestion: Optional[str] = None) -> None:
        self.token = token
        self.suggestion = suggestion
        message = f"Unknown command: '{token}'."
        if suggestion:
            message = f"Unknown command: '{token}'. Did you mean '{suggestion}'?"
        super().__init__(message)


class InvalidArgument(GameError):
    pass


class SaveNotFound(GameError):
    pass


class SaveCorrupted(GameError):
    pass


class SaveFailed(GameError):
    pass
