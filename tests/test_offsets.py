# tests/test_offsets.py
from __future__ import annotations

from datetime import date

import pytest

from deadlinez.models.entities import TimeOffset
from deadlinez.services.errors import OffsetCalculationError
from deadlinez.services.offsets import add_months, calculate_date, offset_between, reverse_offset


@pytest.mark.parametrize(
    "offset,anchor,expected",
    [
        (TimeOffset(7, "days", True), date(2025, 3, 31), date(2025, 3, 24)),
        (TimeOffset(3, "days", False), date(2025, 12, 30), date(2026, 1, 2)),
        (TimeOffset(2, "weeks", True), date(2025, 3, 31), date(2025, 3, 17)),
        (TimeOffset(1, "weeks", False), date(2024, 2, 25), date(2024, 3, 3)),
        (TimeOffset(2, "months", True), date(2025, 1, 15), date(2024, 11, 15)),
        (TimeOffset(14, "months", False), date(2025, 1, 15), date(2026, 3, 15)),
    ],
)
def test_calculate_date(offset, anchor, expected):
    assert calculate_date(offset, anchor) == expected


@pytest.mark.parametrize(
    "offset,anchor,expected",
    [
        # clamp to the last valid day of the target month
        (TimeOffset(1, "months", True), date(2025, 3, 31), date(2025, 2, 28)),
        (TimeOffset(1, "months", True), date(2024, 3, 31), date(2024, 2, 29)),
        (TimeOffset(1, "months", False), date(2025, 1, 31), date(2025, 2, 28)),
        (TimeOffset(1, "months", False), date(2025, 3, 31), date(2025, 4, 30)),
        (TimeOffset(12, "months", False), date(2024, 2, 29), date(2025, 2, 28)),
    ],
)
def test_month_offsets_clamp_to_month_end(offset, anchor, expected):
    assert calculate_date(offset, anchor) == expected


@pytest.mark.parametrize(
    "offset",
    [
        TimeOffset(0, "days", True),
        TimeOffset(-3, "weeks", False),
        TimeOffset(2, "years", True),
    ],
)
def test_invalid_offsets_raise(offset):
    with pytest.raises(OffsetCalculationError):
        calculate_date(offset, date(2025, 3, 31))


def test_out_of_calendar_range_raises():
    with pytest.raises(OffsetCalculationError):
        calculate_date(TimeOffset(1, "days", False), date.max)
    with pytest.raises(OffsetCalculationError):
        add_months(date(9999, 12, 1), 1)


@pytest.mark.parametrize(
    "offset",
    [
        TimeOffset(7, "days", True),
        TimeOffset(40, "days", False),
        TimeOffset(3, "weeks", True),
        TimeOffset(1, "months", True),
        TimeOffset(5, "months", False),
    ],
)
@pytest.mark.parametrize("anchor", [date(2025, 3, 31), date(2024, 2, 29), date(2025, 1, 10)])
def test_inverse_offset_recovers_anchor(offset, anchor):
    d = calculate_date(offset, anchor)
    inv = offset_between(d, anchor)
    assert inv.unit == "days"
    assert calculate_date(inv, anchor) == d
    assert calculate_date(reverse_offset(inv), d) == anchor


def test_reverse_month_offset_is_exact_without_clamping():
    anchor = date(2025, 1, 10)
    o = TimeOffset(1, "months", True)
    assert calculate_date(reverse_offset(o), calculate_date(o, anchor)) == anchor


def test_reverse_month_offset_after_clamping_lands_on_clamped_day():
    # 31 Mar -> 28 Feb -> 28 Mar: the clamped day is not restored
    anchor = date(2025, 3, 31)
    o = TimeOffset(1, "months", True)
    back = calculate_date(reverse_offset(o), calculate_date(o, anchor))
    assert back == date(2025, 3, 28)


def test_offset_between_direction():
    anchor = date(2025, 3, 31)
    assert offset_between(date(2025, 3, 24), anchor) == TimeOffset(7, "days", True)
    assert offset_between(date(2025, 4, 2), anchor) == TimeOffset(2, "days", False)
    with pytest.raises(OffsetCalculationError):
        offset_between(anchor, anchor)
