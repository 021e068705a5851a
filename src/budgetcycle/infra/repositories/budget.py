"""SQLModel implementation of Budget repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy import update
from sqlmodel import Session, select

from ...models.budget import Allocation, Budget
from ...models.transaction import Transaction


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Budget).where(Budget.id == budget_id).where(Budget.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Budget]:
        """List all budgets ordered by name."""
        with self.session_factory() as session:
            statement = select(Budget).where(Budget.user_id == user_id).order_by(Budget.name)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            session.add(budget)
            session.commit()
            session.refresh(budget)
            session.expunge(budget)
            return budget

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            merged = session.merge(budget)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget along with its transactions and allocations."""
        with self.session_factory() as session:
            budget = session.exec(
                select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
            ).first()
            if budget is None:
                return
            session.execute(sa_delete(Transaction).where(Transaction.budget_id == budget_id))
            session.execute(sa_delete(Allocation).where(Allocation.budget_id == budget_id))
            session.delete(budget)
            session.commit()

    def advance_leftover_watermark(
        self,
        budget_id: int,
        *,
        expected: Optional[datetime],
        new: datetime,
        user_id: int,
    ) -> bool:
        """Compare-and-swap the leftover watermark; False when another writer got there first."""
        column = Budget.leftover_collected_until
        condition = column.is_(None) if expected is None else column == expected  # type: ignore[union-attr]
        with self.session_factory() as session:
            result = session.execute(
                update(Budget)
                .where(Budget.id == budget_id, Budget.user_id == user_id)
                .where(condition)
                .values(leftover_collected_until=new)
            )
            session.commit()
            return result.rowcount == 1

    # Allocation operations
    def list_allocations(self, budget_id: int) -> list[Allocation]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(Allocation)
                    .where(Allocation.budget_id == budget_id)
                    .order_by(Allocation.created_at)
                ).all()
            )
            session.expunge_all()
            return rows

    def get_allocation(self, allocation_id: int) -> Optional[Allocation]:
        with self.session_factory() as session:
            obj = session.get(Allocation, allocation_id)
            if obj:
                session.expunge(obj)
            return obj

    def create_allocation(self, allocation: Allocation) -> Allocation:
        with self.session_factory() as session:
            session.add(allocation)
            session.commit()
            session.refresh(allocation)
            session.expunge(allocation)
            return allocation

    def delete_allocation(self, allocation_id: int) -> None:
        with self.session_factory() as session:
            obj = session.get(Allocation, allocation_id)
            if obj:
                session.delete(obj)
                session.commit()


__all__ = ["SQLModelBudgetRepository"]
