"""Budget repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.budget import Allocation, Budget


class BudgetRepository(Protocol):
    """Repository for budget envelopes and their allocations."""

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        ...

    def list_all(self, *, user_id: int) -> list[Budget]:
        """List all budgets owned by the user."""
        ...

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        ...

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        ...

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget with its transactions and allocations."""
        ...

    def advance_leftover_watermark(
        self,
        budget_id: int,
        *,
        expected: Optional[datetime],
        new: datetime,
        user_id: int,
    ) -> bool:
        """Move the leftover watermark only if it still equals *expected*."""
        ...

    # Allocation operations
    def list_allocations(self, budget_id: int) -> list[Allocation]:
        """Allocations earmarked against a budget."""
        ...

    def get_allocation(self, allocation_id: int) -> Optional[Allocation]:
        """Retrieve an allocation by ID."""
        ...

    def create_allocation(self, allocation: Allocation) -> Allocation:
        """Create an allocation."""
        ...

    def delete_allocation(self, allocation_id: int) -> None:
        """Delete an allocation."""
        ...
