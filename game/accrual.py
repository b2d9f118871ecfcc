"""AccrualEngine: passive resource gain over real elapsed time.

Only the active area produces.  Each basic resource in its yield table
earns ``rate * elapsed * multiplier``; whole units go to the ledger and the
exact remainder stays in ``GameState.accrual_carry``, so splitting an
interval into pieces never changes the total credited.
"""
from __future__ import annotations

import math
from fractions import Fraction
from typing import Dict

from config import ResourceKind
from game.entities import GameState
from game.progression import PROGRESSION, ProgressionGraph, exact


class AccrualEngine:
    def __init__(self, graph: ProgressionGraph = PROGRESSION) -> None:
        self.graph = graph

    def pending(self, state: GameState, elapsed_seconds: float) -> Dict[ResourceKind, Fraction]:
        """Exact (fractional) production for *elapsed_seconds*, without applying it."""
        if not math.isfinite(elapsed_seconds) or elapsed_seconds <= 0:
            return {}
        if not state.is_unlocked(state.active_area):
            return {}
        elapsed = exact(elapsed_seconds)
        owned = state.owned_tools()
        area = self.graph.area(state.active_area)
        return {
            resource: exact(rate) * elapsed * self.graph.multiplier_for(resource, owned)
            for resource, rate in area.yields.items()
        }

    def tick(self, state: GameState, elapsed_seconds: float) -> Dict[ResourceKind, int]:
        """Credit passive production; returns the whole units credited per resource."""
        credited: Dict[ResourceKind, int] = {}
        for resource, amount in self.pending(state, elapsed_seconds).items():
            total = state.accrual_carry.get(resource, Fraction(0)) + amount
            whole = math.floor(total)
            if total - whole:
                state.accrual_carry[resource] = total - whole
            else:
                state.accrual_carry.pop(resource, None)
            if whole:
                credited[resource] = whole
        state.ledger.credit_all(credited)
        return credited
