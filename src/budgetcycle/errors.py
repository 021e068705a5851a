"""Exceptions raised by the ledger engine and its flows."""

from __future__ import annotations


class InvalidCadenceError(ValueError):
    """Raised for cadence values outside the supported set."""


class RecordNotFoundError(LookupError):
    """A referenced budget, goal, share, allocation, or group does not exist."""


__all__ = ["InvalidCadenceError", "RecordNotFoundError"]
