"""Group repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.group import ExpenseShare, Group, GroupExpense, GroupMember
from ...models.transaction import Transaction


class GroupRepository(Protocol):
    """Repository for groups, members, expenses, and shares."""

    def get_group(self, group_id: int) -> Optional[Group]:
        ...

    def create_group(self, group: Group) -> Group:
        ...

    def add_member(self, member: GroupMember) -> GroupMember:
        ...

    def list_members(self, group_id: int) -> list[GroupMember]:
        ...

    def list_expenses(self, group_id: int) -> list[GroupExpense]:
        ...

    def list_shares(self, group_id: int) -> list[ExpenseShare]:
        """All shares of all expenses in the group."""
        ...

    def create_expense(
        self, expense: GroupExpense, shares: list[ExpenseShare]
    ) -> tuple[GroupExpense, list[ExpenseShare]]:
        """Insert an expense and its shares together."""
        ...

    def get_share(self, share_id: int) -> Optional[ExpenseShare]:
        ...

    def update_share(self, share: ExpenseShare) -> ExpenseShare:
        ...

    def settle_share_with_transaction(self, share_id: int, transaction: Transaction) -> ExpenseShare:
        """Insert *transaction*, settle the share against it, and drop its allocation in one commit."""
        ...

    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense and its shares."""
        ...
