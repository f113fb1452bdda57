"""Unit tests for local calendar date helpers"""

from datetime import date, datetime

import pytest

from rewards_engine.utils.date_utils import (
    effective_billing_day,
    format_local_date,
    format_month_label,
    last_day_of_month,
    one_instant_before,
    parse_ledger_date,
    shift_month,
    start_of_day,
)


def test_last_day_of_month_handles_leap_years():
    assert last_day_of_month(2024, 2) == 29
    assert last_day_of_month(2023, 2) == 28
    assert last_day_of_month(2024, 4) == 30
    assert last_day_of_month(2024, 12) == 31


def test_shift_month_wraps_across_years():
    assert shift_month(2024, 12, 1) == (2025, 1)
    assert shift_month(2024, 1, -1) == (2023, 12)
    assert shift_month(2024, 3, -14) == (2023, 1)
    assert shift_month(2024, 3, 0) == (2024, 3)


def test_effective_billing_day_clamps_to_month_end():
    assert effective_billing_day(2024, 2, 31) == 29
    assert effective_billing_day(2023, 2, 30) == 28
    assert effective_billing_day(2024, 4, 31) == 30
    assert effective_billing_day(2024, 5, 15) == 15


def test_start_of_day_truncates_time():
    assert start_of_day(datetime(2024, 3, 5, 13, 45, 12)) == datetime(2024, 3, 5)
    assert start_of_day(date(2024, 3, 5)) == datetime(2024, 3, 5)


def test_parse_ledger_date_keeps_calendar_day():
    """Leap day must not shift into March"""
    assert parse_ledger_date("2024-02-29") == date(2024, 2, 29)


def test_parse_ledger_date_rejects_garbage():
    with pytest.raises(ValueError):
        parse_ledger_date("29/02/2024")


def test_formatting():
    assert format_local_date(datetime(2024, 2, 29, 23, 59)) == "2024-02-29"
    assert format_month_label(date(2024, 1, 31)) == "2024-01"


def test_one_instant_before_midnight():
    assert one_instant_before(datetime(2024, 3, 1)) == datetime(2024, 2, 29, 23, 59, 59, 999999)
