"""SQLModel implementation of Group repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy import delete as sa_delete
from sqlmodel import Session, select

from ...models.budget import Allocation
from ...models.group import ExpenseShare, Group, GroupExpense, GroupMember
from ...models.transaction import Transaction


class SQLModelGroupRepository:
    """SQLModel-based group repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_group(self, group_id: int) -> Optional[Group]:
        with self.session_factory() as session:
            obj = session.get(Group, group_id)
            if obj:
                session.expunge(obj)
            return obj

    def create_group(self, group: Group) -> Group:
        with self.session_factory() as session:
            session.add(group)
            session.commit()
            session.refresh(group)
            session.expunge(group)
            return group

    def add_member(self, member: GroupMember) -> GroupMember:
        with self.session_factory() as session:
            session.add(member)
            session.commit()
            session.refresh(member)
            session.expunge(member)
            return member

    def list_members(self, group_id: int) -> list[GroupMember]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(GroupMember).where(GroupMember.group_id == group_id).order_by(GroupMember.id)
                ).all()
            )
            session.expunge_all()
            return rows

    def list_expenses(self, group_id: int) -> list[GroupExpense]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(GroupExpense)
                    .where(GroupExpense.group_id == group_id)
                    .order_by(GroupExpense.occurred_at.desc())  # type: ignore[attr-defined]
                ).all()
            )
            session.expunge_all()
            return rows

    def list_shares(self, group_id: int) -> list[ExpenseShare]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(ExpenseShare)
                    .join(GroupExpense, ExpenseShare.expense_id == GroupExpense.id)
                    .where(GroupExpense.group_id == group_id)
                    .order_by(ExpenseShare.id)
                ).all()
            )
            session.expunge_all()
            return rows

    def create_expense(
        self, expense: GroupExpense, shares: list[ExpenseShare]
    ) -> tuple[GroupExpense, list[ExpenseShare]]:
        """Insert the expense and its shares in one commit."""
        with self.session_factory() as session:
            session.add(expense)
            session.flush()
            for share in shares:
                share.expense_id = expense.id
                session.add(share)
            session.commit()
            session.refresh(expense)
            for share in shares:
                session.refresh(share)
            session.expunge_all()
            return expense, shares

    def get_share(self, share_id: int) -> Optional[ExpenseShare]:
        with self.session_factory() as session:
            obj = session.get(ExpenseShare, share_id)
            if obj:
                session.expunge(obj)
            return obj

    def update_share(self, share: ExpenseShare) -> ExpenseShare:
        with self.session_factory() as session:
            merged = session.merge(share)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def settle_share_with_transaction(self, share_id: int, transaction: Transaction) -> ExpenseShare:
        """Insert the transaction, settle the share, and delete its allocation in one commit.

        Any failure rolls back all three writes.
        """
        with self.session_factory() as session:
            share = session.get(ExpenseShare, share_id)
            if share is None:
                raise LookupError(f"Share {share_id} not found")
            allocation = (
                session.get(Allocation, share.allocation_id) if share.allocation_id is not None else None
            )
            session.add(transaction)
            session.flush()
            share.transaction_id = transaction.id
            share.allocation_id = None
            share.settled = True
            if allocation is not None:
                session.delete(allocation)
            session.commit()
            session.refresh(share)
            session.refresh(transaction)
            session.expunge_all()
            return share

    def delete_expense(self, expense_id: int) -> None:
        with self.session_factory() as session:
            expense = session.get(GroupExpense, expense_id)
            if expense is None:
                return
            session.execute(sa_delete(ExpenseShare).where(ExpenseShare.expense_id == expense_id))
            session.delete(expense)
            session.commit()


__all__ = ["SQLModelGroupRepository"]
