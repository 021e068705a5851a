"""Service module exports."""

from . import (
    budgeting,
    carried_debt,
    contributions,
    history,
    ledger_service,
    markers,
    money,
    period,
    settlement,
)

__all__ = [
    "budgeting",
    "carried_debt",
    "contributions",
    "history",
    "ledger_service",
    "markers",
    "money",
    "period",
    "settlement",
]
