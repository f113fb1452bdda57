"""Date manipulation utilities for ledger-style local calendar dates"""

import calendar
from datetime import date, datetime, timedelta


def last_day_of_month(year: int, month: int) -> int:
    """Return the last day (28-31) of the given month (1-12)"""
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Move (year, month) by a number of months, wrapping across years"""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def effective_billing_day(year: int, month: int, requested_day: int) -> int:
    """Clamp a requested billing day so it never exceeds the month's last day"""
    return min(requested_day, last_day_of_month(year, month))


def start_of_day(value: date | datetime) -> datetime:
    """Truncate a date or datetime to local midnight"""
    return datetime(value.year, value.month, value.day)


def parse_ledger_date(value: str) -> date:
    """
    Parse a ledger date string (YYYY-MM-DD) as a local calendar date.

    No timezone shifting is applied: "2024-02-29" is always Feb 29.
    """
    return date.fromisoformat(value)


def format_local_date(value: date | datetime) -> str:
    """Format a date as YYYY-MM-DD without timezone conversion"""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def format_month_label(value: date | datetime) -> str:
    """Format a period label as YYYY-MM"""
    return f"{value.year:04d}-{value.month:02d}"


def one_instant_before(value: datetime) -> datetime:
    """Return the last representable instant before value"""
    return value - timedelta(microseconds=1)
