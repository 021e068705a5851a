"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import bootstrap_database
from .infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelGoalRepository,
    SQLModelGroupRepository,
    SQLModelTransactionRepository,
    ensure_user,
)
from .models.user import User

DEFAULT_USERNAME = "local"


@dataclass
class AppContext:
    """Centralized application context with repositories and session state."""

    config: BaseConfig
    session_factory: Callable[[], Session]

    transaction_repo: SQLModelTransactionRepository
    budget_repo: SQLModelBudgetRepository
    goal_repo: SQLModelGoalRepository
    group_repo: SQLModelGroupRepository

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("User is not authenticated")
        return self.current_user.id


def create_app_context(
    config: Optional[BaseConfig] = None, *, username: str = DEFAULT_USERNAME
) -> AppContext:
    """Create the engine, schema, repositories, and the session's user."""

    if config is None:
        config = BaseConfig()

    _, session_factory = bootstrap_database(config)

    return AppContext(
        config=config,
        session_factory=session_factory,
        transaction_repo=SQLModelTransactionRepository(session_factory),
        budget_repo=SQLModelBudgetRepository(session_factory),
        goal_repo=SQLModelGoalRepository(session_factory),
        group_repo=SQLModelGroupRepository(session_factory),
        current_user=ensure_user(session_factory, username),
    )
