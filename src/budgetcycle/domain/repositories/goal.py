"""Goal repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.goal import Goal


class GoalRepository(Protocol):
    """Repository for savings goals."""

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[Goal]:
        """Retrieve a goal by ID."""
        ...

    def list_all(self, *, user_id: int) -> list[Goal]:
        """List all goals owned by the user."""
        ...

    def create(self, goal: Goal, *, user_id: int) -> Goal:
        """Create a new goal."""
        ...

    def update(self, goal: Goal, *, user_id: int) -> Goal:
        """Update an existing goal."""
        ...

    def set_leftover_collector(self, goal_id: Optional[int], *, user_id: int) -> None:
        """Flag one goal (or none) as the leftover collector."""
        ...

    def add_to_saved(self, goal_id: int, amount: float, *, user_id: int) -> Goal:
        """Increment ``saved_amount`` in place."""
        ...

    def apply_contribution(
        self,
        goal_id: int,
        *,
        expected: Optional[datetime],
        amount: float,
        now: datetime,
        user_id: int,
    ) -> bool:
        """Add *amount* and stamp *now* only if the watermark still equals *expected*."""
        ...
