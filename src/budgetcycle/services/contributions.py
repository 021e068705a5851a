"""Recurring contribution scheduler.

Two catch-up effects meant to run at every session start:

* leftover collection moves each spending budget's unspent amount from its
  previous cycle into the goal flagged ``collect_leftovers``;
* auto-contribution adds a goal's ``contribution_amount`` once per cycle.

Both are gated by a watermark compared against the *current* cycle start, so
a missed stretch of cycles is caught up by one step only. Watermark writes are
compare-and-swap updates: when two sessions race, the loser sees the watermark
already moved and skips the effect.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from ..domain.repositories import BudgetRepository, GoalRepository, TransactionRepository
from ..models.budget import Budget
from ..models.goal import Goal
from ..models.transaction import Transaction
from .markers import is_reset
from .money import round_cents
from .period import current_cycle_start, step

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LeftoverCollection:
    """Outcome of one leftover collection pass."""

    goal_id: Optional[int]
    collected: float = 0.0
    budgets_advanced: list[int] = field(default_factory=list)


@dataclass(slots=True)
class RecurringReport:
    leftovers: LeftoverCollection
    contributed_goal_ids: list[int]


def leftover_collector(goals: Iterable[Goal]) -> Optional[Goal]:
    return next((g for g in goals if g.collect_leftovers), None)


def needs_leftover_collection(budget: Budget, *, today: Optional[date] = None) -> bool:
    if budget.is_fixed_commitment:
        return False
    period_start = current_cycle_start(budget.cadence, budget.anchor, today=today)
    last = budget.leftover_collected_until
    return last is None or last < period_start


def previous_cycle_leftover(
    budget: Budget, transactions: Iterable[Transaction], *, today: Optional[date] = None
) -> float:
    """``goal_amount - spent`` over the cycle before the current one (may be negative)."""

    period_start = current_cycle_start(budget.cadence, budget.anchor, today=today)
    prev_start = step(budget.cadence, period_start, "prev", anchor=budget.anchor)
    spent = sum(
        t.amount
        for t in transactions
        if t.budget_id == budget.id and prev_start <= t.occurred_at < period_start and not is_reset(t)
    )
    return budget.goal_amount - spent


def collect_leftovers(
    *,
    budget_repo: BudgetRepository,
    transaction_repo: TransactionRepository,
    goal_repo: GoalRepository,
    user_id: int,
    today: Optional[date] = None,
) -> LeftoverCollection:
    """Sweep last cycle's unspent budget amounts into the collecting goal."""

    target = leftover_collector(goal_repo.list_all(user_id=user_id))
    if target is None or target.id is None:
        return LeftoverCollection(goal_id=None)

    result = LeftoverCollection(goal_id=target.id)
    total = 0.0
    for budget in budget_repo.list_all(user_id=user_id):
        if budget.id is None or not needs_leftover_collection(budget, today=today):
            continue

        period_start = current_cycle_start(budget.cadence, budget.anchor, today=today)
        prev_start = step(budget.cadence, period_start, "prev", anchor=budget.anchor)
        rows = transaction_repo.list_for_budget(budget.id, start=prev_start, end=period_start)
        leftover = previous_cycle_leftover(budget, rows, today=today)

        # Advance even when nothing is left over so the cycle is never re-evaluated.
        moved = budget_repo.advance_leftover_watermark(
            budget.id,
            expected=budget.leftover_collected_until,
            new=period_start,
            user_id=user_id,
        )
        if not moved:
            logger.info(
                "Leftover watermark already advanced by another session",
                extra={"budget_id": budget.id},
            )
            continue

        result.budgets_advanced.append(budget.id)
        if leftover > 0:
            total += leftover

    total = round_cents(total)
    if total > 0:
        goal_repo.add_to_saved(target.id, total, user_id=user_id)
        logger.info(
            "Collected budget leftovers",
            extra={"goal_id": target.id, "amount": total, "budgets": result.budgets_advanced},
        )
    result.collected = max(total, 0.0)
    return result


def contribution_due(goal: Goal, *, today: Optional[date] = None) -> bool:
    """True when the goal is set up for auto-contribution and this cycle has none yet."""

    if not goal.cadence or goal.contribution_paused:
        return False
    if not goal.contribution_amount or goal.contribution_amount <= 0:
        return False
    period_start = current_cycle_start(goal.cadence, goal.anchor, today=today)
    last = goal.last_contribution_at
    return last is None or last < period_start


def process_contributions(
    *,
    goal_repo: GoalRepository,
    user_id: int,
    now: Optional[datetime] = None,
) -> list[int]:
    """Apply at most one contribution per goal per cycle; return the goals credited."""

    now = now or datetime.now()
    credited: list[int] = []
    for goal in goal_repo.list_all(user_id=user_id):
        if goal.id is None or not contribution_due(goal, today=now.date()):
            continue
        applied = goal_repo.apply_contribution(
            goal.id,
            expected=goal.last_contribution_at,
            amount=float(goal.contribution_amount or 0.0),
            now=now,
            user_id=user_id,
        )
        if applied:
            credited.append(goal.id)
            logger.info(
                "Applied goal contribution",
                extra={"goal_id": goal.id, "amount": goal.contribution_amount},
            )
        else:
            logger.info("Contribution already applied by another session", extra={"goal_id": goal.id})
    return credited


def run_recurring(
    *,
    budget_repo: BudgetRepository,
    transaction_repo: TransactionRepository,
    goal_repo: GoalRepository,
    user_id: int,
    now: Optional[datetime] = None,
) -> RecurringReport:
    """Session-start catch-up: leftovers first, then contributions."""

    now = now or datetime.now()
    leftovers = collect_leftovers(
        budget_repo=budget_repo,
        transaction_repo=transaction_repo,
        goal_repo=goal_repo,
        user_id=user_id,
        today=now.date(),
    )
    contributed = process_contributions(goal_repo=goal_repo, user_id=user_id, now=now)
    return RecurringReport(leftovers=leftovers, contributed_goal_ids=contributed)


__all__ = [
    "LeftoverCollection",
    "RecurringReport",
    "collect_leftovers",
    "contribution_due",
    "leftover_collector",
    "needs_leftover_collection",
    "previous_cycle_leftover",
    "process_contributions",
    "run_recurring",
]
