"""Ledger flows that write transactions: spends, transfers, resets, deletes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..domain.repositories import BudgetRepository, TransactionRepository
from ..errors import RecordNotFoundError
from ..models.budget import Allocation, Budget
from ..models.transaction import Transaction
from .markers import new_transfer_ref, transfer_ref, with_ref_marker, with_reset_marker
from .money import round_cents

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransferResult:
    """The two legs written by one transfer."""

    token: str
    outgoing: Transaction
    incoming: Transaction


def _require_budget(budget_repo: BudgetRepository, budget_id: int, user_id: int) -> Budget:
    budget = budget_repo.get_by_id(budget_id, user_id=user_id)
    if budget is None:
        raise RecordNotFoundError(f"Budget {budget_id} not found")
    return budget


def record_spend(
    transaction_repo: TransactionRepository,
    *,
    budget_id: int,
    amount: float,
    note: str = "",
    occurred_at: Optional[datetime] = None,
    user_id: Optional[int] = None,
) -> Transaction:
    """Record a spend (positive) or refund/credit (negative) against a budget."""

    return transaction_repo.create(
        Transaction(
            budget_id=budget_id,
            user_id=user_id,
            amount=round_cents(amount),
            note=note,
            occurred_at=occurred_at or datetime.now(),
        )
    )


def transfer_between_budgets(
    *,
    budget_repo: BudgetRepository,
    transaction_repo: TransactionRepository,
    from_budget_id: int,
    to_budget_id: int,
    amount: float,
    user_id: int,
    note: str = "",
    occurred_at: Optional[datetime] = None,
    write_note_markers: bool = True,
) -> TransferResult:
    """Move spending room between budgets as two paired transactions.

    The source records the amount as spent, the destination records it as a
    credit. Both carry the same transfer reference so deleting either removes
    the other.
    """

    if amount <= 0:
        raise ValueError("Transfer amount must be positive.")
    if from_budget_id == to_budget_id:
        raise ValueError("Cannot transfer a budget into itself.")
    source = _require_budget(budget_repo, from_budget_id, user_id)
    target = _require_budget(budget_repo, to_budget_id, user_id)

    token = new_transfer_ref()
    moment = occurred_at or datetime.now()
    value = round_cents(amount)
    out_note = note or f"Transfer to {target.name}"
    in_note = note or f"Transfer from {source.name}"
    if write_note_markers:
        out_note = with_ref_marker(out_note, token)
        in_note = with_ref_marker(in_note, token)

    outgoing = transaction_repo.create(
        Transaction(
            budget_id=from_budget_id,
            user_id=user_id,
            amount=value,
            note=out_note,
            occurred_at=moment,
            transfer_ref=token,
        )
    )
    incoming = transaction_repo.create(
        Transaction(
            budget_id=to_budget_id,
            user_id=user_id,
            amount=-value,
            note=in_note,
            occurred_at=moment,
            transfer_ref=token,
        )
    )
    logger.info(
        "Recorded budget transfer",
        extra={"from_budget": from_budget_id, "to_budget": to_budget_id, "amount": value},
    )
    return TransferResult(token=token, outgoing=outgoing, incoming=incoming)


def reset_debt(
    transaction_repo: TransactionRepository,
    *,
    budget_id: int,
    user_id: Optional[int] = None,
    note: str = "Debt cleared",
    occurred_at: Optional[datetime] = None,
    write_note_markers: bool = True,
) -> Transaction:
    """Write a zero-amount reset row; all carried debt before it is forgiven."""

    return transaction_repo.create(
        Transaction(
            budget_id=budget_id,
            user_id=user_id,
            amount=0.0,
            note=with_reset_marker(note) if write_note_markers else note,
            occurred_at=occurred_at or datetime.now(),
            is_reset=True,
        )
    )


def delete_transaction(transaction_repo: TransactionRepository, transaction_id: int) -> list[int]:
    """Delete a transaction and, for transfers, its paired leg. Returns deleted ids."""

    txn = transaction_repo.get_by_id(transaction_id)
    if txn is None:
        raise RecordNotFoundError(f"Transaction {transaction_id} not found")

    deleted = [transaction_id]
    token = transfer_ref(txn)
    if token:
        for leg in transaction_repo.list_by_transfer_ref(token):
            if leg.id is not None and leg.id != transaction_id and transfer_ref(leg) == token:
                deleted.append(leg.id)

    for txn_id in deleted:
        transaction_repo.delete(txn_id)
    return deleted


def earmark(
    budget_repo: BudgetRepository,
    *,
    budget_id: int,
    amount: float,
    note: str = "",
) -> Allocation:
    """Reserve part of a budget for a payment that has not happened yet."""

    if amount <= 0:
        raise ValueError("Allocation amount must be positive.")
    return budget_repo.create_allocation(
        Allocation(budget_id=budget_id, amount=round_cents(amount), note=note)
    )


__all__ = [
    "TransferResult",
    "delete_transaction",
    "earmark",
    "record_spend",
    "reset_debt",
    "transfer_between_budgets",
]
