"""Cycle calendar for budget and goal cadences.

Boundaries are calendar days in the caller's local calendar. ``cycle_start``
and ``step`` agree with each other so that walking forward from a boundary
always lands on the next boundary; the carried-debt walk depends on this.

Monthly anchors past the end of a short month are clamped to the month's
last day (an anchor on the 31st starts February's cycle on the 28th/29th and
March's on the 31st).
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Union

from ..errors import InvalidCadenceError

DateLike = Union[date, datetime]


class Cadence(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    FOUR_WEEKLY = "4-weekly"
    MONTHLY = "monthly"

    @classmethod
    def parse(cls, value: "Cadence | str | None") -> "Cadence":
        """Return the cadence for *value* or raise ``InvalidCadenceError``."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidCadenceError(f"Unknown cadence: {value!r}") from None

    @property
    def nominal_days(self) -> float:
        return NOMINAL_DAYS[self]


# Used only to compare amounts across cadences, never for boundaries.
NOMINAL_DAYS: dict[Cadence, float] = {
    Cadence.WEEKLY: 7,
    Cadence.FORTNIGHTLY: 14,
    Cadence.FOUR_WEEKLY: 28,
    Cadence.MONTHLY: 30.44,
}

_FIXED_LENGTH_DAYS: dict[Cadence, int] = {
    Cadence.WEEKLY: 7,
    Cadence.FORTNIGHTLY: 14,
    Cadence.FOUR_WEEKLY: 28,
}

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(slots=True, frozen=True)
class CycleRange:
    """Inclusive bounds of one cycle."""

    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def parse_anchor(value: "date | str | None") -> Optional[date]:
    """Accept an anchor as a ``date`` or a ``YYYY-MM-DD`` string."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip()[:10])


def start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min)


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, monthrange(year, month)[1]))


def _add_months(value: date, months: int, day: int) -> date:
    index = value.year * 12 + (value.month - 1) + months
    return _clamped(index // 12, index % 12 + 1, day)


def _aligned_start(ref: date, anchor: date, length: int) -> date:
    days_since_anchor = (ref - anchor).days
    offset = ((days_since_anchor % length) + length) % length
    return ref - timedelta(days=offset)


def _weekly_start(ref: date, anchor: Optional[date]) -> date:
    renew_day = anchor.weekday() if anchor else 0  # Monday
    diff = (ref.weekday() - renew_day) % 7
    return ref - timedelta(days=diff)


def _monthly_start(ref: date, anchor: Optional[date]) -> date:
    renew_day = anchor.day if anchor else 1
    start = _clamped(ref.year, ref.month, renew_day)
    if start > ref:
        start = _add_months(start, -1, renew_day)
    return start


def cycle_start(
    cadence: "Cadence | str",
    anchor: "date | str | None" = None,
    reference: Optional[DateLike] = None,
    *,
    today: Optional[date] = None,
) -> date:
    """Return the first day of the cycle containing *reference*.

    Without an anchor, fortnightly and 4-weekly cycles are aligned as if the
    current cycle began ``length - 1`` days before *today*.
    """

    cad = Cadence.parse(cadence)
    today = today or date.today()
    ref = _as_date(reference) if reference is not None else today
    anchor_day = parse_anchor(anchor)

    if cad is Cadence.WEEKLY:
        return _weekly_start(ref, anchor_day)
    if cad is Cadence.MONTHLY:
        return _monthly_start(ref, anchor_day)

    length = _FIXED_LENGTH_DAYS[cad]
    if anchor_day is None:
        anchor_day = today - timedelta(days=length - 1)
    return _aligned_start(ref, anchor_day, length)


def cycle_range(
    cadence: "Cadence | str",
    anchor: "date | str | None" = None,
    reference: Optional[DateLike] = None,
) -> CycleRange:
    """Return the bounds of the cycle containing *reference* (default today).

    Anchored cadences use the same alignment as ``cycle_start``. Without an
    anchor the window is relative to *reference* itself: a fortnight covers
    the week before the reference's Monday-aligned week plus that week, and a
    4-weekly window ends on the reference day.
    """

    cad = Cadence.parse(cadence)
    ref = _as_date(reference) if reference is not None else date.today()
    anchor_day = parse_anchor(anchor)

    if cad is Cadence.WEEKLY:
        start = _weekly_start(ref, anchor_day)
        end = start + timedelta(days=6)
    elif cad is Cadence.MONTHLY:
        start = _monthly_start(ref, anchor_day)
        renew_day = anchor_day.day if anchor_day else 1
        end = _add_months(start, 1, renew_day) - timedelta(days=1)
    else:
        length = _FIXED_LENGTH_DAYS[cad]
        if anchor_day is not None:
            start = _aligned_start(ref, anchor_day, length)
        elif cad is Cadence.FORTNIGHTLY:
            start = _weekly_start(ref, None) - timedelta(days=7)
        else:
            start = ref - timedelta(days=length - 1)
        end = start + timedelta(days=length - 1)

    return CycleRange(start=start_of_day(start), end=datetime.combine(end, END_OF_DAY))


def step(
    cadence: "Cadence | str",
    value: DateLike,
    direction: str,
    *,
    anchor: "date | str | None" = None,
) -> DateLike:
    """Move *value* one cycle forward (``"next"``) or back (``"prev"``).

    Monthly steps keep the anchor's day-of-month (the day of *value* when no
    anchor is given), clamped to the target month.
    """

    cad = Cadence.parse(cadence)
    if direction not in ("next", "prev"):
        raise ValueError(f"direction must be 'next' or 'prev', got {direction!r}")
    sign = 1 if direction == "next" else -1

    if cad is not Cadence.MONTHLY:
        return value + timedelta(days=sign * _FIXED_LENGTH_DAYS[cad])

    anchor_day = parse_anchor(anchor)
    renew_day = anchor_day.day if anchor_day else value.day
    moved = _add_months(_as_date(value), sign, renew_day)
    if isinstance(value, datetime):
        return datetime.combine(moved, value.timetz())
    return moved


def current_cycle_start(
    cadence: "Cadence | str",
    anchor: "date | str | None" = None,
    *,
    today: Optional[date] = None,
) -> datetime:
    """Midnight at the start of today's cycle."""

    return start_of_day(cycle_start(cadence, anchor, today=today))


def cycle_label(cadence: "Cadence | str", anchor: "date | str | None" = None) -> str:
    cad = Cadence.parse(cadence)
    if cad is Cadence.WEEKLY:
        return "This Week"
    if cad is Cadence.MONTHLY:
        return "This Month"
    if parse_anchor(anchor) is not None:
        return "This Fortnight" if cad is Cadence.FORTNIGHTLY else "This 4-Week Cycle"
    return "Last 14 Days" if cad is Cadence.FORTNIGHTLY else "Last 28 Days"


def normalize_amount(amount: float, from_cadence: "Cadence | str", to_cadence: "Cadence | str") -> float:
    """Scale a per-cycle amount from one cadence to another by nominal length."""

    source = Cadence.parse(from_cadence)
    target = Cadence.parse(to_cadence)
    return amount * (target.nominal_days / source.nominal_days)


__all__ = [
    "Cadence",
    "CycleRange",
    "InvalidCadenceError",
    "NOMINAL_DAYS",
    "current_cycle_start",
    "cycle_label",
    "cycle_range",
    "cycle_start",
    "normalize_amount",
    "parse_anchor",
    "start_of_day",
    "step",
]
