"""SQLModel implementation of Goal repository."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...models.goal import Goal


class SQLModelGoalRepository:
    """SQLModel-based goal repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def get_by_id(self, goal_id: int, *, user_id: int) -> Optional[Goal]:
        with self.session_factory() as session:
            obj = session.exec(
                select(Goal).where(Goal.id == goal_id).where(Goal.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Goal]:
        with self.session_factory() as session:
            rows = list(
                session.exec(select(Goal).where(Goal.user_id == user_id).order_by(Goal.id)).all()
            )
            session.expunge_all()
            return rows

    def create(self, goal: Goal, *, user_id: int) -> Goal:
        with self.session_factory() as session:
            goal.user_id = user_id
            session.add(goal)
            session.commit()
            session.refresh(goal)
            session.expunge(goal)
        if goal.collect_leftovers:
            self.set_leftover_collector(goal.id, user_id=user_id)
        return goal

    def update(self, goal: Goal, *, user_id: int) -> Goal:
        with self.session_factory() as session:
            goal.user_id = user_id
            merged = session.merge(goal)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
        if merged.collect_leftovers:
            self.set_leftover_collector(merged.id, user_id=user_id)
        return merged

    def set_leftover_collector(self, goal_id: Optional[int], *, user_id: int) -> None:
        """Flag *goal_id* as the single leftover collector, clearing every other goal."""
        with self.session_factory() as session:
            session.execute(
                update(Goal)
                .where(Goal.user_id == user_id, Goal.id != goal_id)
                .values(collect_leftovers=False)
            )
            if goal_id is not None:
                session.execute(
                    update(Goal)
                    .where(Goal.user_id == user_id, Goal.id == goal_id)
                    .values(collect_leftovers=True)
                )
            session.commit()

    def add_to_saved(self, goal_id: int, amount: float, *, user_id: int) -> Goal:
        """Increment saved_amount in the database rather than writing a read value back."""
        with self.session_factory() as session:
            session.execute(
                update(Goal)
                .where(Goal.id == goal_id, Goal.user_id == user_id)
                .values(saved_amount=Goal.saved_amount + amount)
            )
            session.commit()
            goal = session.get(Goal, goal_id)
            if goal is None:
                raise LookupError(f"Goal {goal_id} not found")
            session.refresh(goal)
            session.expunge(goal)
            return goal

    def apply_contribution(
        self,
        goal_id: int,
        *,
        expected: Optional[datetime],
        amount: float,
        now: datetime,
        user_id: int,
    ) -> bool:
        column = Goal.last_contribution_at
        condition = column.is_(None) if expected is None else column == expected  # type: ignore[union-attr]
        with self.session_factory() as session:
            result = session.execute(
                update(Goal)
                .where(Goal.id == goal_id, Goal.user_id == user_id)
                .where(condition)
                .values(saved_amount=Goal.saved_amount + amount, last_contribution_at=now)
            )
            session.commit()
            return result.rowcount == 1


__all__ = ["SQLModelGoalRepository"]
