"""Browse past cycles: every budget's spend within one cycle window."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from ..domain.repositories import BudgetRepository, TransactionRepository
from ..models.budget import Budget
from ..models.transaction import Transaction
from .markers import is_reset
from .money import round_cents
from .period import Cadence, CycleRange, cycle_range, parse_anchor, start_of_day, step


@dataclass(slots=True)
class CycleHistory:
    """Transactions and per-budget spend inside one cycle window."""

    cadence: str
    window: CycleRange
    budgets: list[Budget]
    transactions: list[Transaction]
    spent_by_budget: dict[int, float] = field(default_factory=dict)

    @property
    def total_budget(self) -> float:
        return round_cents(sum(b.goal_amount for b in self.budgets if not b.is_fixed_commitment))

    @property
    def total_fixed(self) -> float:
        return round_cents(sum(b.goal_amount for b in self.budgets if b.is_fixed_commitment))

    @property
    def total_spent(self) -> float:
        return round_cents(sum(self.spent_by_budget.values()))

    @property
    def total_remaining(self) -> float:
        return round_cents(self.total_budget - self.total_spent)


def shift_reference(
    cadence: "Cadence | str",
    reference: date,
    cycles: int,
    *,
    anchor: "date | str | None" = None,
) -> date:
    """Move *reference* by whole cycles: negative goes back, positive forward.

    Monthly shifts keep the anchor's day-of-month, or the reference's own day
    when there is no anchor, so repeated steps never drift after a short month.
    """

    renew = parse_anchor(anchor) or reference
    direction = "next" if cycles > 0 else "prev"
    value = reference
    for _ in range(abs(cycles)):
        value = step(cadence, value, direction, anchor=renew)
    return value


def cycle_history(
    *,
    budget_repo: BudgetRepository,
    transaction_repo: TransactionRepository,
    user_id: int,
    cadence: "Cadence | str",
    reference: Optional[date] = None,
    anchor: "date | str | None" = None,
) -> CycleHistory:
    """Collect the user's transactions in the cycle containing *reference*.

    The window is inclusive on both ends at day granularity. Rows come back
    newest first.
    """

    window = cycle_range(cadence, anchor, reference)
    budgets = budget_repo.list_all(user_id=user_id)
    ids = [b.id for b in budgets if b.id is not None]
    rows = transaction_repo.list_for_budgets(
        ids,
        start=window.start,
        end=start_of_day(window.end.date() + timedelta(days=1)),
    )

    spent: dict[int, float] = {}
    for txn in rows:
        if is_reset(txn):
            continue
        spent[txn.budget_id] = spent.get(txn.budget_id, 0.0) + txn.amount

    return CycleHistory(
        cadence=Cadence.parse(cadence).value,
        window=window,
        budgets=budgets,
        transactions=list(reversed(rows)),
        spent_by_budget={budget_id: round_cents(total) for budget_id, total in spent.items()},
    )


__all__ = ["CycleHistory", "cycle_history", "shift_reference"]
