"""SQLModel implementation of Transaction repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from sqlmodel import Session, select

from ...models.transaction import Transaction


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.get(Transaction, transaction_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_for_budget(
        self,
        budget_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """Transactions of one budget in chronological order."""
        return self.list_for_budgets([budget_id], start=start, end=end)

    def list_for_budgets(
        self,
        budget_ids: Iterable[int],
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Transaction]:
        """Transactions of several budgets, read in one session."""
        ids = list(budget_ids)
        if not ids:
            return []
        with self.session_factory() as session:
            statement = select(Transaction).where(Transaction.budget_id.in_(ids))  # type: ignore[attr-defined]
            if start is not None:
                statement = statement.where(Transaction.occurred_at >= start)
            if end is not None:
                statement = statement.where(Transaction.occurred_at < end)
            statement = statement.order_by(Transaction.occurred_at, Transaction.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_by_transfer_ref(self, token: str) -> list[Transaction]:
        """Both legs of a transfer, including rows that only carry the note marker."""
        with self.session_factory() as session:
            statement = select(Transaction).where(
                (Transaction.transfer_ref == token)
                | (Transaction.note.like(f"%[ref:{token}]%"))  # type: ignore[attr-defined]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, transaction: Transaction) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            session.expunge(transaction)
            return transaction

    def delete(self, transaction_id: int) -> None:
        """Delete a transaction by ID."""
        with self.session_factory() as session:
            obj = session.get(Transaction, transaction_id)
            if obj:
                session.delete(obj)
                session.commit()


__all__ = ["SQLModelTransactionRepository"]
