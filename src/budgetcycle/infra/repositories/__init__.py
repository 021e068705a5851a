"""Concrete repository implementations using SQLModel."""

from .budget import SQLModelBudgetRepository
from .goal import SQLModelGoalRepository
from .group import SQLModelGroupRepository
from .transaction import SQLModelTransactionRepository
from .user import ensure_user

__all__ = [
    "SQLModelBudgetRepository",
    "SQLModelGoalRepository",
    "SQLModelGroupRepository",
    "SQLModelTransactionRepository",
    "ensure_user",
]
