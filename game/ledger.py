"""Resource ledger: integer quantities per resource kind."""
from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

from config import ResourceKind
from game.errors import InsufficientResource


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"amount must be an int, got {amount!r}")
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")


class ResourceLedger:
    """Non-negative quantity for every :class:`ResourceKind`.

    Debits are all-or-nothing: a failed debit raises
    :class:`InsufficientResource` and leaves every quantity untouched.
    """

    def __init__(self, initial: Optional[Mapping[ResourceKind, int]] = None) -> None:
        self._amounts: Dict[ResourceKind, int] = {kind: 0 for kind in ResourceKind}
        if initial:
            for kind, amount in initial.items():
                _check_amount(amount)
                self._amounts[ResourceKind(kind)] = amount

    def quantity(self, kind: ResourceKind) -> int:
        return self._amounts[kind]

    def snapshot(self) -> Dict[ResourceKind, int]:
        return dict(self._amounts)

    def items(self) -> Iterator[Tuple[ResourceKind, int]]:
        return iter(self._amounts.items())

    def credit(self, kind: ResourceKind, amount: int) -> None:
        _check_amount(amount)
        self._amounts[kind] += amount

    def credit_all(self, gains: Mapping[ResourceKind, int]) -> None:
        for amount in gains.values():
            _check_amount(amount)
        for kind, amount in gains.items():
            self._amounts[kind] += amount

    def shortfall(self, costs: Mapping[ResourceKind, int]) -> Dict[ResourceKind, int]:
        return {
            kind: amount - self._amounts[kind]
            for kind, amount in costs.items()
            if self._amounts[kind] < amount
        }

    def has_all(self, costs: Mapping[ResourceKind, int]) -> bool:
        return not self.shortfall(costs)

    def debit(self, kind: ResourceKind, amount: int) -> None:
        self.debit_all({kind: amount})

    def debit_all(self, costs: Mapping[ResourceKind, int]) -> None:
        for amount in costs.values():
            _check_amount(amount)
        missing = self.shortfall(costs)
        if missing:
            raise InsufficientResource(missing)
        for kind, amount in costs.items():
            self._amounts[kind] -= amount

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceLedger):
            return NotImplemented
        return self._amounts == other._amounts

    def __repr__(self) -> str:
        held = ", ".join(f"{kind.value}={amount}" for kind, amount in self._amounts.items() if amount)
        return f"ResourceLedger({held})"
