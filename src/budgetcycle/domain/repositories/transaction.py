"""Transaction repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol

from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for budget transactions."""

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def list_for_budget(
        self,
        budget_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """Transactions of one budget in chronological order, optionally bounded ``[start, end)``."""
        ...

    def list_for_budgets(
        self,
        budget_ids: Iterable[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """Transactions of several budgets read in a single snapshot."""
        ...

    def list_by_transfer_ref(self, token: str) -> list[Transaction]:
        """Both legs of a transfer."""
        ...

    def create(self, transaction: Transaction) -> Transaction:
        """Insert a transaction."""
        ...

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction by ID."""
        ...
