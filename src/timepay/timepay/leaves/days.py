from __future__ import annotations

from datetime import date

from ..common.datetime_utils import iter_days

HALF_DAY = 0.5


def business_days(start: date, end: date) -> int:
    """Mon-Fri days in the inclusive range; 0 when ``end`` precedes ``start``."""

    return sum(1 for d in iter_days(start, end) if d.weekday() < 5)


def leave_days(start: date, end: date, *, is_half_day: bool = False) -> float:
    if is_half_day:
        return HALF_DAY
    return float(business_days(start, end))
