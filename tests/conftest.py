"""Pytest configuration and shared fixtures for BudgetCycle tests.

Provides an isolated SQLite database per test, repository fixtures, record
factories, and helpers for cent-level float comparisons.
"""

from __future__ import annotations

import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

# Import all models to ensure they're registered with SQLModel metadata
from budgetcycle.infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelGoalRepository,
    SQLModelGroupRepository,
    SQLModelTransactionRepository,
)
from budgetcycle.models import (
    Allocation,
    Budget,
    Goal,
    Group,
    GroupMember,
    Transaction,
    User,
)

# Wednesday; its Monday-aligned week starts 2025-06-09.
TODAY = date(2025, 6, 11)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    """Keep config-driven paths (data dir, log files) inside the test's tmp dir."""
    monkeypatch.setenv("BUDGETCYCLE_DATA_DIR", str(tmp_path / "data"))


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """A session for direct inserts in tests."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the Callable[[], Session] repositories expect."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""

    existing = db_session.exec(select(User).where(User.username == "tester")).first()
    if existing:
        return existing
    u = User(username="tester")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def budget_repo(session_factory):
    return SQLModelBudgetRepository(session_factory)


@pytest.fixture
def transaction_repo(session_factory):
    return SQLModelTransactionRepository(session_factory)


@pytest.fixture
def goal_repo(session_factory):
    return SQLModelGoalRepository(session_factory)


@pytest.fixture
def group_repo(session_factory):
    return SQLModelGroupRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


def _persist(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture
def budget_factory(db_session, user):
    """Factory for creating persisted budgets."""

    def _create_budget(
        name: str = "Groceries",
        goal_amount: float = 100.0,
        cadence: str = "weekly",
        kind: str = "spending",
        anchor: date | None = None,
        leftover_collected_until: datetime | None = None,
    ) -> Budget:
        return _persist(
            db_session,
            Budget(
                user_id=user.id,
                name=name,
                goal_amount=goal_amount,
                cadence=cadence,
                kind=kind,
                anchor=anchor,
                leftover_collected_until=leftover_collected_until,
            ),
        )

    return _create_budget


@pytest.fixture
def transaction_factory(db_session, user):
    """Factory for creating persisted transactions."""

    def _create_transaction(
        budget: Budget,
        amount: float,
        occurred_at: datetime,
        note: str = "",
        is_reset: bool = False,
        transfer_ref: str | None = None,
    ) -> Transaction:
        return _persist(
            db_session,
            Transaction(
                budget_id=budget.id,
                user_id=user.id,
                amount=amount,
                occurred_at=occurred_at,
                note=note,
                is_reset=is_reset,
                transfer_ref=transfer_ref,
            ),
        )

    return _create_transaction


@pytest.fixture
def allocation_factory(db_session):
    def _create_allocation(budget: Budget, amount: float, note: str = "") -> Allocation:
        return _persist(db_session, Allocation(budget_id=budget.id, amount=amount, note=note))

    return _create_allocation


@pytest.fixture
def goal_factory(db_session, user):
    """Factory for creating persisted goals."""

    def _create_goal(
        name: str = "Holiday",
        target_amount: float = 1000.0,
        saved_amount: float = 0.0,
        cadence: str | None = None,
        anchor: date | None = None,
        contribution_amount: float | None = None,
        contribution_paused: bool = False,
        last_contribution_at: datetime | None = None,
        collect_leftovers: bool = False,
    ) -> Goal:
        return _persist(
            db_session,
            Goal(
                user_id=user.id,
                name=name,
                target_amount=target_amount,
                saved_amount=saved_amount,
                cadence=cadence,
                anchor=anchor,
                contribution_amount=contribution_amount,
                contribution_paused=contribution_paused,
                last_contribution_at=last_contribution_at,
                collect_leftovers=collect_leftovers,
            ),
        )

    return _create_goal


@pytest.fixture
def group_factory(db_session, user):
    """Factory creating a group with named members; returns (group, members)."""

    def _create_group(*names: str, name: str = "Flat") -> tuple[Group, list[GroupMember]]:
        group = _persist(db_session, Group(owner_user_id=user.id, name=name))
        members = [
            _persist(db_session, GroupMember(group_id=group.id, display_name=member_name))
            for member_name in names
        ]
        return group, members

    return _create_group


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_float_equal(actual: float, expected: float, tolerance: float = 0.01):
    """Assert that two floats are equal within a tolerance (default one cent)."""
    assert (
        abs(actual - expected) < tolerance
    ), f"Expected {expected}, got {actual} (diff: {abs(actual - expected)})"
