"""Period calculator - calendar months and statement-day billing cycles"""

from datetime import date, datetime, timedelta
from typing import List

from rewards_engine.domain.models import CalculationPeriod, CreditCard
from rewards_engine.utils.date_utils import (
    effective_billing_day,
    format_month_label,
    one_instant_before,
    shift_month,
    start_of_day,
)


def _cycle_start(year: int, month: int, requested_day: int) -> datetime:
    """Cycle start for a month, clamping e.g. day 31 to Feb 28/29"""
    return datetime(year, month, effective_billing_day(year, month, requested_day))


def _calendar_period(reference: datetime) -> CalculationPeriod:
    start = datetime(reference.year, reference.month, 1)
    next_year, next_month = shift_month(reference.year, reference.month, 1)
    end = one_instant_before(datetime(next_year, next_month, 1))
    return CalculationPeriod(start_date=start, end_date=end, label=format_month_label(start))


def _billing_period(reference: datetime, statement_day: int) -> CalculationPeriod:
    current_start = _cycle_start(reference.year, reference.month, statement_day)

    # Before this month's statement day: still in the cycle that began last month
    if reference < current_start:
        prev_year, prev_month = shift_month(reference.year, reference.month, -1)
        start = _cycle_start(prev_year, prev_month, statement_day)
        return CalculationPeriod(
            start_date=start,
            end_date=one_instant_before(current_start),
            label=format_month_label(start),
        )

    next_year, next_month = shift_month(reference.year, reference.month, 1)
    next_start = _cycle_start(next_year, next_month, statement_day)
    return CalculationPeriod(
        start_date=current_start,
        end_date=one_instant_before(next_start),
        label=format_month_label(current_start),
    )


def _period_containing(card: CreditCard, reference: datetime) -> CalculationPeriod:
    statement_day = card.billing_cycle.statement_day
    if statement_day is None:
        return _calendar_period(reference)
    return _billing_period(reference, statement_day)


def previous_period(card: CreditCard, period: CalculationPeriod) -> CalculationPeriod:
    """Period immediately before the given one"""
    return _period_containing(card, start_of_day(period.start_date - timedelta(days=1)))


def next_period(card: CreditCard, period: CalculationPeriod) -> CalculationPeriod:
    """Period immediately after the given one"""
    return _period_containing(card, start_of_day(period.end_date + timedelta(microseconds=1)))


def calculate_period(
    card: CreditCard,
    reference_date: date | datetime | None = None,
    offset: int = 0,
) -> CalculationPeriod:
    """
    Compute the accounting period containing reference_date.

    Calendar cards use the reference month. Billing cards start each cycle on
    the configured day of month, clamped to the month's last day; a reference
    date on the cycle start day belongs to the cycle that starts that day.

    Args:
        card: Card whose billing cycle delimits the period
        reference_date: Any date/datetime inside the wanted period (default: today)
        offset: Whole periods to move from the containing one (negative = earlier)
    """
    if reference_date is None:
        reference_date = date.today()

    period = _period_containing(card, start_of_day(reference_date))

    for _ in range(abs(offset)):
        period = next_period(card, period) if offset > 0 else previous_period(card, period)

    return period


def get_recent_periods(
    card: CreditCard,
    count: int = 3,
    reference_date: date | datetime | None = None,
) -> List[CalculationPeriod]:
    """Return count consecutive periods, oldest first, ending with the current one"""
    if count <= 0:
        return []

    periods = [calculate_period(card, reference_date)]
    while len(periods) < count:
        periods.append(previous_period(card, periods[-1]))

    periods.reverse()
    return periods


def period_contains(period: CalculationPeriod, day: date | datetime) -> bool:
    """Whether a calendar day falls inside the period (inclusive)"""
    return period.start_date.date() <= start_of_day(day).date() <= period.end_date.date()
