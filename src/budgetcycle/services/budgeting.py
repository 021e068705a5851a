"""Budgeting domain services: remaining balances and what-if checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from ..domain.repositories import BudgetRepository, TransactionRepository
from ..errors import RecordNotFoundError
from ..models.budget import Allocation, Budget
from ..models.transaction import Transaction
from .carried_debt import carried_debt
from .markers import is_reset
from .money import round_cents
from .period import Cadence, current_cycle_start, cycle_label, normalize_amount


@dataclass(slots=True)
class BudgetSnapshot:
    """Display figures for one budget in its current cycle."""

    budget_id: int
    name: str
    cadence: str
    label: str
    goal_amount: float
    spent: float
    carried_debt: float
    allocated: float
    fixed_commitment: bool = False

    @property
    def remaining(self) -> float:
        if self.fixed_commitment:
            return 0.0
        return round_cents(self.goal_amount - self.spent + self.carried_debt - self.allocated)

    @property
    def in_debt(self) -> bool:
        return self.carried_debt < 0


def budget_snapshot(
    budget: Budget,
    transactions: Iterable[Transaction],
    allocations: Iterable[Allocation] = (),
    *,
    today: Optional[date] = None,
) -> BudgetSnapshot:
    """Compose spent, carried debt, earmarks, and remaining for the current cycle."""

    rows = [t for t in transactions if t.budget_id == budget.id]
    period_start = current_cycle_start(budget.cadence, budget.anchor, today=today)
    spent = sum(t.amount for t in rows if t.occurred_at >= period_start and not is_reset(t))
    fixed = budget.is_fixed_commitment
    return BudgetSnapshot(
        budget_id=budget.id or 0,
        name=budget.name,
        cadence=budget.cadence,
        label=cycle_label(budget.cadence, budget.anchor),
        goal_amount=round_cents(budget.goal_amount),
        spent=round_cents(spent),
        carried_debt=0.0 if fixed else carried_debt(budget, rows, today=today),
        allocated=round_cents(sum(a.amount for a in allocations if a.budget_id == budget.id)),
        fixed_commitment=fixed,
    )


def load_snapshots(
    *,
    budget_repo: BudgetRepository,
    transaction_repo: TransactionRepository,
    user_id: int,
    today: Optional[date] = None,
) -> list[BudgetSnapshot]:
    """Fetch every budget of the user and derive its snapshot."""

    budgets = budget_repo.list_all(user_id=user_id)
    ids = [b.id for b in budgets if b.id is not None]
    transactions = transaction_repo.list_for_budgets(ids)
    snapshots = []
    for budget in budgets:
        allocations = budget_repo.list_allocations(budget.id) if budget.id is not None else []
        snapshots.append(budget_snapshot(budget, transactions, allocations, today=today))
    return snapshots


def total_goal(budgets: Iterable[Budget], view_cadence: "Cadence | str", *, fixed: bool = False) -> float:
    """Sum goal amounts of spending (or fixed) budgets scaled to *view_cadence*."""

    return round_cents(
        sum(
            normalize_amount(b.goal_amount, b.cadence, view_cadence)
            for b in budgets
            if b.is_fixed_commitment == fixed
        )
    )


@dataclass(slots=True)
class AffordCheck:
    """Outcome of a hypothetical spend."""

    new_remaining: float
    overspend: float
    cover_budget_id: Optional[int]
    cover_remaining_after: Optional[float]
    total_remaining: float

    @property
    def affordable(self) -> bool:
        return self.overspend == 0 or (
            self.cover_remaining_after is not None and self.cover_remaining_after >= 0
        )


def cover_candidates(snapshots: Sequence[BudgetSnapshot], budget_id: int) -> list[BudgetSnapshot]:
    """Other spending budgets with money left that could absorb an overspend."""

    return [
        s
        for s in snapshots
        if s.budget_id != budget_id and not s.fixed_commitment and s.remaining > 0
    ]


def afford_check(
    snapshots: Sequence[BudgetSnapshot],
    budget_id: int,
    amount: float,
    *,
    cover_budget_id: Optional[int] = None,
) -> AffordCheck:
    """Project remaining balances if *amount* were spent from *budget_id*.

    When a cover budget is chosen, the overspend moves onto it and the
    selected budget lands at zero.
    """

    selected = next((s for s in snapshots if s.budget_id == budget_id), None)
    if selected is None:
        raise RecordNotFoundError(f"Budget {budget_id} not found")

    new_remaining = round_cents(selected.remaining - amount)
    overspend = round_cents(-new_remaining) if new_remaining < 0 else 0.0

    cover = None
    if cover_budget_id is not None:
        cover = next((s for s in cover_candidates(snapshots, budget_id) if s.budget_id == cover_budget_id), None)
        if cover is None:
            raise ValueError(f"Budget {cover_budget_id} cannot cover this spend")
    covering = cover is not None and overspend > 0

    total = 0.0
    for snap in snapshots:
        if snap.fixed_commitment:
            continue
        if snap.budget_id == budget_id:
            total += 0.0 if covering else snap.remaining - amount
        elif covering and snap.budget_id == cover_budget_id:
            total += snap.remaining - overspend
        else:
            total += snap.remaining

    return AffordCheck(
        new_remaining=new_remaining,
        overspend=overspend,
        cover_budget_id=cover.budget_id if cover else None,
        cover_remaining_after=round_cents(cover.remaining - overspend) if cover else None,
        total_remaining=round_cents(total),
    )


__all__ = [
    "AffordCheck",
    "BudgetSnapshot",
    "afford_check",
    "budget_snapshot",
    "cover_candidates",
    "load_snapshots",
    "total_goal",
]
