"""Shared-expense groups, their members, expenses, and per-member shares."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

SPLIT_EQUAL = "equal"
SPLIT_CUSTOM = "custom"


class Group(SQLModel, table=True):
    """A set of people sharing expenses."""

    __tablename__: ClassVar[str] = "expense_group"

    id: Optional[int] = Field(default=None, primary_key=True)
    owner_user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)


class GroupMember(SQLModel, table=True):
    """A member of a group, optionally linked to a real user account."""

    __tablename__: ClassVar[str] = "group_member"

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="expense_group.id", nullable=False, index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    display_name: str = Field(default="", max_length=80)


class GroupExpense(SQLModel, table=True):
    """An amount paid by one member on behalf of the group."""

    __tablename__: ClassVar[str] = "group_expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="expense_group.id", nullable=False, index=True)
    paid_by_member_id: Optional[int] = Field(default=None, foreign_key="group_member.id")
    amount: float = Field(nullable=False)
    split_mode: Optional[str] = Field(default=None, max_length=16)
    note: str = Field(default="", max_length=255)
    occurred_at: datetime = Field(default_factory=datetime.now, nullable=False)


class ExpenseShare(SQLModel, table=True):
    """One member's portion of a group expense."""

    __tablename__: ClassVar[str] = "expense_share"

    id: Optional[int] = Field(default=None, primary_key=True)
    expense_id: int = Field(foreign_key="group_expense.id", nullable=False, index=True)
    member_id: int = Field(foreign_key="group_member.id", nullable=False, index=True)
    share_amount: float = Field(nullable=False)
    settled: bool = Field(default=False, nullable=False)
    transaction_id: Optional[int] = Field(default=None, foreign_key="transaction.id")
    allocation_id: Optional[int] = Field(default=None, foreign_key="allocation.id")
