"""Savings goals with optional recurring contributions."""

from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Goal(SQLModel, table=True):
    """A savings target fed by manual additions, contributions, and leftovers."""

    __tablename__: ClassVar[str] = "goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80)
    target_amount: float = Field(default=0.0, ge=0, nullable=False)
    saved_amount: float = Field(default=0.0, nullable=False)

    cadence: Optional[str] = Field(default=None, max_length=16)
    anchor: Optional[date] = Field(default=None)
    contribution_amount: Optional[float] = Field(default=None)
    contribution_paused: bool = Field(default=False, nullable=False)
    last_contribution_at: Optional[datetime] = Field(default=None)

    # At most one goal per account may collect budget leftovers.
    collect_leftovers: bool = Field(default=False, nullable=False)

    @property
    def progress(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return min(1.0, self.saved_amount / self.target_amount)
