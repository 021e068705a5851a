"""SQLModel definitions for budget transactions."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Transaction(SQLModel, table=True):
    """A spend (positive) or credit (negative) recorded against a budget."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    budget_id: int = Field(foreign_key="budget.id", nullable=False, index=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    amount: float = Field(nullable=False, description="Positive for spend, negative for credit")
    note: str = Field(default="", max_length=255)
    occurred_at: datetime = Field(default_factory=datetime.now, nullable=False, index=True)

    # Structured replacements for the legacy "[RESET]" / "[ref:...]" note markers.
    is_reset: bool = Field(default=False, nullable=False)
    transfer_ref: Optional[str] = Field(default=None, index=True, max_length=64)
