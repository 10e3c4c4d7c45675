# Overview: Read access to the stock movement ledger.

from __future__ import annotations

from ..records import StockMovement


class MovementRepository:
    """Read-only. Entries are written by the inventory engine alone."""

    def __init__(self, backend):
        self._backend = backend

    def get_history(self, product_code: int) -> list[StockMovement]:
        """Newest first; entries on the same date come highest id first."""
        return self._backend.movements.history(product_code)

    def all(self) -> list[StockMovement]:
        return self._backend.movements.all()
