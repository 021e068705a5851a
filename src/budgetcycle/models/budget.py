"""Budget envelopes and earmarked allocations."""

from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

BUDGET_KIND_SPENDING = "spending"
BUDGET_KIND_FIXED = "fixed-commitment"
BUDGET_KINDS = (BUDGET_KIND_SPENDING, BUDGET_KIND_FIXED)


class Budget(SQLModel, table=True):
    """A recurring envelope with a goal amount per cycle."""

    __tablename__: ClassVar[str] = "budget"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80)
    kind: str = Field(default=BUDGET_KIND_SPENDING, max_length=24, nullable=False)
    cadence: str = Field(default="weekly", max_length=16, nullable=False)
    goal_amount: float = Field(default=0.0, ge=0, nullable=False)
    anchor: Optional[date] = Field(default=None, description="Calendar day pinning cycle boundaries")
    leftover_collected_until: Optional[datetime] = Field(default=None)
    group_id: Optional[int] = Field(default=None, foreign_key="expense_group.id", index=True)

    @property
    def is_fixed_commitment(self) -> bool:
        return self.kind == BUDGET_KIND_FIXED


class Allocation(SQLModel, table=True):
    """Funds earmarked against a budget that have not been spent yet."""

    __tablename__: ClassVar[str] = "allocation"

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    amount: float = Field(nullable=False)
    note: str = Field(default="", max_length=255)
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)
