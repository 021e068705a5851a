"""SQLModel table exports."""

from .budget import Allocation, Budget
from .goal import Goal
from .group import ExpenseShare, Group, GroupExpense, GroupMember
from .transaction import Transaction
from .user import User

__all__ = [
    "Allocation",
    "Budget",
    "ExpenseShare",
    "Goal",
    "Group",
    "GroupExpense",
    "GroupMember",
    "Transaction",
    "User",
]
