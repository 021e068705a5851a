"""Repository protocol definitions for domain layer."""

from .budget import BudgetRepository
from .goal import GoalRepository
from .group import GroupRepository
from .transaction import TransactionRepository

__all__ = [
    "BudgetRepository",
    "GoalRepository",
    "GroupRepository",
    "TransactionRepository",
]
