"""Carried-debt resolver.

Debt is never stored. It is recomputed from a budget's raw transactions by
replaying every past cycle: surplus resets to zero at each boundary, deficit
rolls into the next cycle. A reset transaction wipes everything before it.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from ..models.budget import Budget
from ..models.transaction import Transaction
from .markers import is_reset
from .money import round_cents
from .period import current_cycle_start, step

logger = logging.getLogger(__name__)


def _after_last_reset(transactions: list[Transaction]) -> list[Transaction]:
    resets = [t for t in transactions if is_reset(t)]
    if not resets:
        return transactions
    floor = max(t.occurred_at for t in resets)
    return [t for t in transactions if t.occurred_at >= floor]


def carried_debt(
    budget: Budget,
    transactions: Iterable[Transaction],
    *,
    today: Optional[date] = None,
) -> float:
    """Return the deficit (``<= 0``) carried into the budget's current cycle.

    *transactions* must be a consistent snapshot of every transaction recorded
    against the budget; rows belonging to other budgets are ignored.
    """

    rows = [t for t in transactions if budget.id is None or t.budget_id == budget.id]
    relevant = _after_last_reset(rows)
    if not relevant:
        return 0.0

    current_start = current_cycle_start(budget.cadence, budget.anchor, today=today)
    earliest = min(t.occurred_at for t in relevant)

    cursor: datetime = current_start
    while cursor > earliest:
        cursor = step(budget.cadence, cursor, "prev", anchor=budget.anchor)

    debt = 0.0
    cycles = 0
    while cursor < current_start:
        cycle_end = step(budget.cadence, cursor, "next", anchor=budget.anchor)
        spent = sum(
            t.amount
            for t in relevant
            if cursor <= t.occurred_at < cycle_end and not is_reset(t)
        )
        remaining = budget.goal_amount - spent + debt
        debt = min(0.0, remaining)
        cursor = cycle_end
        cycles += 1

    logger.debug(
        "Resolved carried debt",
        extra={"budget_id": budget.id, "cycles": cycles, "debt": debt},
    )
    return round_cents(debt)


__all__ = ["carried_debt"]
