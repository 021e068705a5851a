"""BudgetCycle budgeting ledger package."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestConfig, resolve_config
from .context import create_app_context

__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app_context", "resolve_config"]
