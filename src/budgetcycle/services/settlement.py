"""Group balances, settle-up suggestions, and share bookkeeping.

Expenses recorded before per-member shares existed have no share rows; they
are split evenly across every current member. Expenses with shares only count
outstanding shares of members other than the payer.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from ..domain.repositories import BudgetRepository, GroupRepository
from ..errors import RecordNotFoundError
from ..models.group import SPLIT_CUSTOM, SPLIT_EQUAL, ExpenseShare, GroupExpense, GroupMember
from ..models.transaction import Transaction
from .money import CENT, round_cents, to_cents

logger = logging.getLogger(__name__)

EPSILON = 0.005  # half a cent


@dataclass(slots=True, frozen=True)
class MemberBalance:
    member_id: int
    name: str
    balance: float


@dataclass(slots=True, frozen=True)
class Transfer:
    """A suggested payment from a debtor to a creditor."""

    from_member_id: int
    to_member_id: int
    amount: float


@dataclass(slots=True, frozen=True)
class ShareSumWarning:
    """An expense whose share rows do not add up to its amount."""

    expense_id: int
    expense_amount: float
    share_total: float

    @property
    def difference(self) -> float:
        return round_cents(self.expense_amount - self.share_total)


def _shares_by_expense(shares: Iterable[ExpenseShare]) -> dict[int, list[ExpenseShare]]:
    grouped: dict[int, list[ExpenseShare]] = defaultdict(list)
    for share in shares:
        grouped[share.expense_id].append(share)
    return grouped


def _raw_balances(
    members: Sequence[GroupMember],
    expenses: Iterable[GroupExpense],
    shares: Iterable[ExpenseShare],
) -> dict[int, float]:
    totals: dict[int, float] = {m.id: 0.0 for m in members if m.id is not None}
    member_count = len(totals)
    by_expense = _shares_by_expense(shares)

    for expense in expenses:
        payer = expense.paid_by_member_id
        expense_shares = by_expense.get(expense.id or -1, [])
        if expense_shares:
            for share in expense_shares:
                if share.settled or share.member_id == payer:
                    continue
                if share.member_id in totals:
                    totals[share.member_id] -= share.share_amount
                if payer in totals:
                    totals[payer] += share.share_amount
        elif member_count and payer is not None:
            fair_share = expense.amount / member_count
            for member_id in totals:
                if member_id == payer:
                    totals[member_id] += expense.amount - fair_share
                else:
                    totals[member_id] -= fair_share
    return totals


def compute_balances(
    members: Sequence[GroupMember],
    expenses: Iterable[GroupExpense],
    shares: Iterable[ExpenseShare],
) -> list[MemberBalance]:
    """Net position of each member: positive is owed money, negative owes."""

    totals = _raw_balances(members, expenses, shares)
    return [
        MemberBalance(
            member_id=m.id,
            name=m.display_name or "Unknown",
            balance=round_cents(totals[m.id]),
        )
        for m in members
        if m.id is not None
    ]


def member_balance(
    member_id: int,
    members: Sequence[GroupMember],
    expenses: Iterable[GroupExpense],
    shares: Iterable[ExpenseShare],
) -> float:
    """One member's net position, as shown on the groups overview."""

    return round_cents(_raw_balances(members, expenses, shares).get(member_id, 0.0))


def simplify(balances: Iterable[MemberBalance]) -> list[Transfer]:
    """Greedy largest-creditor/largest-debtor matching.

    Not guaranteed to be globally minimal, but never emits more than
    ``members - 1`` transfers.
    """

    creditors = sorted(
        ([b.member_id, b.balance] for b in balances if b.balance > EPSILON),
        key=lambda item: item[1],
        reverse=True,
    )
    debtors = sorted(
        ([b.member_id, -b.balance] for b in balances if b.balance < -EPSILON),
        key=lambda item: item[1],
        reverse=True,
    )

    transfers: list[Transfer] = []
    ci = di = 0
    while ci < len(creditors) and di < len(debtors):
        creditor, debtor = creditors[ci], debtors[di]
        amount = min(creditor[1], debtor[1])
        if amount > EPSILON:
            transfers.append(
                Transfer(from_member_id=debtor[0], to_member_id=creditor[0], amount=round_cents(amount))
            )
        creditor[1] -= amount
        debtor[1] -= amount
        if creditor[1] < EPSILON:
            ci += 1
        if debtor[1] < EPSILON:
            di += 1
    return transfers


def check_share_sums(
    expenses: Iterable[GroupExpense],
    shares: Iterable[ExpenseShare],
    *,
    tolerance: float = 0.01,
) -> list[ShareSumWarning]:
    """Flag expenses whose shares are off by more than *tolerance* per share.

    Only reported, never fatal: balances are still computed from the rows as stored.
    """

    by_expense = _shares_by_expense(shares)
    warnings: list[ShareSumWarning] = []
    for expense in expenses:
        rows = by_expense.get(expense.id or -1)
        if not rows:
            continue
        total = sum(s.share_amount for s in rows)
        if abs(total - expense.amount) > tolerance * len(rows) + 1e-9:
            warning = ShareSumWarning(
                expense_id=expense.id or 0,
                expense_amount=expense.amount,
                share_total=round_cents(total),
            )
            warnings.append(warning)
            logger.warning(
                "Expense shares do not sum to expense amount",
                extra={
                    "expense_id": warning.expense_id,
                    "expense_amount": warning.expense_amount,
                    "share_total": warning.share_total,
                },
            )
    return warnings


def split_expense(
    amount: float,
    member_ids: Sequence[int],
    *,
    payer_id: int,
    split_mode: str = SPLIT_EQUAL,
    percentages: Optional[Mapping[int, float]] = None,
) -> list[ExpenseShare]:
    """Build unsaved share rows whose amounts sum exactly to *amount*.

    The last member in *member_ids* absorbs the rounding remainder. The
    payer's own share is created settled.
    """

    if not member_ids:
        raise ValueError("Cannot split an expense across zero members.")
    total = to_cents(amount)

    if split_mode == SPLIT_EQUAL:
        portions = [Decimal(1) / len(member_ids)] * len(member_ids)
    elif split_mode == SPLIT_CUSTOM:
        if percentages is None:
            raise ValueError("Custom splits need a percentage per member.")
        missing = [m for m in member_ids if m not in percentages]
        if missing:
            raise ValueError(f"Missing percentages for members {missing}")
        pct_total = sum(Decimal(str(percentages[m])) for m in member_ids)
        if abs(pct_total - 100) > Decimal("0.01"):
            raise ValueError(f"Split percentages must total 100, got {pct_total}")
        portions = [Decimal(str(percentages[m])) / 100 for m in member_ids]
    else:
        raise ValueError(f"Unknown split mode: {split_mode!r}")

    amounts: list[Decimal] = []
    for portion in portions[:-1]:
        amounts.append((total * portion).quantize(CENT, rounding=ROUND_HALF_UP))
    amounts.append(total - sum(amounts, Decimal(0)))

    return [
        ExpenseShare(member_id=member_id, share_amount=float(share), settled=member_id == payer_id)
        for member_id, share in zip(member_ids, amounts)
    ]


def add_expense(
    *,
    group_repo: GroupRepository,
    group_id: int,
    payer_id: int,
    amount: float,
    note: str = "",
    split_mode: str = SPLIT_EQUAL,
    percentages: Optional[Mapping[int, float]] = None,
    member_ids: Optional[Sequence[int]] = None,
    occurred_at: Optional[datetime] = None,
) -> tuple[GroupExpense, list[ExpenseShare]]:
    """Record a group expense and its shares across the group's members."""

    if amount <= 0:
        raise ValueError("Expense amount must be positive.")
    if member_ids is None:
        member_ids = [m.id for m in group_repo.list_members(group_id) if m.id is not None]
    if payer_id not in member_ids:
        raise ValueError(f"Payer {payer_id} is not a member of group {group_id}")

    shares = split_expense(
        amount, member_ids, payer_id=payer_id, split_mode=split_mode, percentages=percentages
    )
    expense = GroupExpense(
        group_id=group_id,
        paid_by_member_id=payer_id,
        amount=round_cents(amount),
        split_mode=split_mode,
        note=note,
        occurred_at=occurred_at or datetime.now(),
    )
    return group_repo.create_expense(expense, shares)


@dataclass(slots=True)
class GroupSummary:
    balances: list[MemberBalance]
    transfers: list[Transfer]
    warnings: list[ShareSumWarning]


def summarize_group(
    *, group_repo: GroupRepository, group_id: int, tolerance: float = 0.01
) -> GroupSummary:
    """Fetch a group's ledger and derive balances plus a settle-up plan."""

    if group_repo.get_group(group_id) is None:
        raise RecordNotFoundError(f"Group {group_id} not found")
    members = group_repo.list_members(group_id)
    expenses = group_repo.list_expenses(group_id)
    shares = group_repo.list_shares(group_id)
    warnings = check_share_sums(expenses, shares, tolerance=tolerance)
    balances = compute_balances(members, expenses, shares)
    return GroupSummary(balances=balances, transfers=simplify(balances), warnings=warnings)


def settle_share(
    share_id: int,
    *,
    group_repo: GroupRepository,
    budget_repo: BudgetRepository,
    user_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ExpenseShare:
    """Mark a share settled; an earmarked allocation becomes a real transaction.

    The new transaction keeps the allocation's amount and note, and is written
    in the same commit that settles the share and deletes the allocation.
    Settling an already-settled share is a no-op.
    """

    share = group_repo.get_share(share_id)
    if share is None:
        raise RecordNotFoundError(f"Share {share_id} not found")
    if share.settled:
        return share

    if share.allocation_id is not None:
        allocation = budget_repo.get_allocation(share.allocation_id)
        if allocation is None:
            raise RecordNotFoundError(f"Allocation {share.allocation_id} not found")
        txn = Transaction(
            budget_id=allocation.budget_id,
            user_id=user_id,
            amount=allocation.amount,
            note=allocation.note,
            occurred_at=now or datetime.now(),
        )
        share = group_repo.settle_share_with_transaction(share_id, txn)
        logger.info(
            "Converted allocation to transaction on settle",
            extra={"share_id": share_id, "allocation_id": allocation.id, "transaction_id": share.transaction_id},
        )
        return share

    share.settled = True
    return group_repo.update_share(share)


def record_settlement(
    transfer: Transfer,
    *,
    group_repo: GroupRepository,
    group_id: int,
    member_names: Optional[Mapping[int, str]] = None,
    now: Optional[datetime] = None,
) -> GroupExpense:
    """Write a settle-up payment into the group ledger.

    Stored as an expense paid by the debtor in which the creditor owes the
    whole amount, which cancels exactly that much of their net positions.
    """

    names = member_names or {}
    note = "Settlement: {} → {}".format(
        names.get(transfer.from_member_id, f"#{transfer.from_member_id}"),
        names.get(transfer.to_member_id, f"#{transfer.to_member_id}"),
    )
    expense = GroupExpense(
        group_id=group_id,
        paid_by_member_id=transfer.from_member_id,
        amount=transfer.amount,
        split_mode=SPLIT_CUSTOM,
        note=note,
        occurred_at=now or datetime.now(),
    )
    shares = [
        ExpenseShare(member_id=transfer.from_member_id, share_amount=0.0, settled=True),
        ExpenseShare(member_id=transfer.to_member_id, share_amount=transfer.amount, settled=False),
    ]
    created, _ = group_repo.create_expense(expense, shares)
    return created


__all__ = [
    "EPSILON",
    "GroupSummary",
    "MemberBalance",
    "RecordNotFoundError",
    "ShareSumWarning",
    "Transfer",
    "add_expense",
    "check_share_sums",
    "compute_balances",
    "member_balance",
    "record_settlement",
    "round_cents",
    "settle_share",
    "simplify",
    "split_expense",
    "summarize_group",
]
