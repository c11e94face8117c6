# Rev 0.2.0

"""Offset calculator (Rev 0.2.0)
Turns a relative TimeOffset into a concrete date against an anchor, and
derives a day-based offset back from two concrete dates.

Month arithmetic clamps to the last day of the target month:
31 Mar + 1 month -> 30 Apr, 31 Mar - 1 month -> 28/29 Feb.
"""
from __future__ import annotations
import calendar
from dataclasses import replace
from datetime import date, timedelta

from ..models.entities import TimeOffset
from ..models.types import OFFSET_UNITS
from .errors import OffsetCalculationError


def days_in_month(y: int, m: int) -> int:
    return calendar.monthrange(y, m)[1]


def add_months(anchor: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    idx = anchor.year * 12 + (anchor.month - 1) + months
    y, m = divmod(idx, 12)
    m += 1
    if not (date.min.year <= y <= date.max.year):
        raise OffsetCalculationError(f"month shift {months:+d} from {anchor} leaves the calendar range")
    return date(y, m, min(anchor.day, days_in_month(y, m)))


def calculate_date(offset: TimeOffset, anchor: date) -> date:
    """Concrete date for `offset` relative to `anchor`.

    Raises OffsetCalculationError when the arithmetic is undefined.
    """
    value = offset.value
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise OffsetCalculationError(f"offset magnitude must be a positive integer, got {value!r}")
    if offset.unit not in OFFSET_UNITS:
        raise OffsetCalculationError(f"unknown offset unit {offset.unit!r}")

    signed = -value if offset.before else value
    try:
        if offset.unit == "days":
            return anchor + timedelta(days=signed)
        if offset.unit == "weeks":
            return anchor + timedelta(weeks=signed)
        return add_months(anchor, signed)
    except OverflowError as e:
        raise OffsetCalculationError(f"{offset.describe()} from {anchor} overflows: {e}") from e


def offset_between(target: date, anchor: date) -> TimeOffset:
    """Day-based offset that places `target` relative to `anchor`.

    Identical dates have no valid offset (magnitude would be 0).
    """
    diff = (anchor - target).days
    if diff == 0:
        raise OffsetCalculationError(f"{target} is the anchor date itself; no offset")
    return TimeOffset(value=abs(diff), unit="days", before=diff > 0)


def reverse_offset(offset: TimeOffset) -> TimeOffset:
    return replace(offset, before=not offset.before)
