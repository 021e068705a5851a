"""Reset and transfer markers on transactions.

Transactions carry ``is_reset`` and ``transfer_ref`` columns. Older rows only
have the markers embedded in the free-text note (``[RESET]`` anywhere, and a
trailing ``[ref:<token>]``), so readers honour both forms.
"""

from __future__ import annotations

import re
import uuid
from typing import Optional

from ..models.transaction import Transaction

RESET_MARKER = "[RESET]"
_REF_PATTERN = re.compile(r"\[ref:([^\]]+)\]\s*$")


def is_reset(txn: Transaction) -> bool:
    return bool(txn.is_reset) or RESET_MARKER in (txn.note or "")


def transfer_ref(txn: Transaction) -> Optional[str]:
    """Return the token pairing the two legs of a transfer, if any."""

    if txn.transfer_ref:
        return txn.transfer_ref
    match = _REF_PATTERN.search(txn.note or "")
    return match.group(1) if match else None


def new_transfer_ref() -> str:
    return uuid.uuid4().hex


def with_ref_marker(note: str, token: str) -> str:
    if "]" in token:
        raise ValueError("Transfer tokens may not contain ']'")
    base = (note or "").rstrip()
    return f"{base} [ref:{token}]" if base else f"[ref:{token}]"


def with_reset_marker(note: str) -> str:
    base = (note or "").strip()
    if RESET_MARKER in base:
        return base
    return f"{RESET_MARKER} {base}" if base else RESET_MARKER


def strip_markers(note: str) -> str:
    """Remove machine markers for display."""

    text = _REF_PATTERN.sub("", note or "")
    return text.replace(RESET_MARKER, "").strip()


__all__ = [
    "RESET_MARKER",
    "is_reset",
    "new_transfer_ref",
    "strip_markers",
    "transfer_ref",
    "with_ref_marker",
    "with_reset_marker",
]
