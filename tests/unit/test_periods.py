"""Unit tests for calendar and billing-cycle period arithmetic"""

from datetime import date, datetime, timedelta

from rewards_engine.domain.models import BillingCycle, BillingCycleType, CreditCard, RewardType
from rewards_engine.domain.periods import (
    calculate_period,
    get_recent_periods,
    next_period,
    period_contains,
    previous_period,
)


def _card(billing_cycle: BillingCycle = None) -> CreditCard:
    return CreditCard(
        id="card-1",
        name="Test Card",
        reward_type=RewardType.CASHBACK,
        billing_cycle=billing_cycle or BillingCycle.calendar(),
    )


def test_calendar_period_covers_whole_month():
    period = calculate_period(_card(), date(2024, 2, 10))

    assert period.start_date == datetime(2024, 2, 1)
    assert period.end_date == datetime(2024, 2, 29, 23, 59, 59, 999999)
    assert period.label == "2024-02"
    assert period.start == "2024-02-01"
    assert period.end == "2024-02-29"


def test_billing_cycle_clamps_in_leap_year():
    """Day 31 against Feb 2024: cycle runs Jan 31 to the instant before Feb 29"""
    period = calculate_period(_card(BillingCycle.billing(31)), date(2024, 2, 15))

    assert period.start_date == datetime(2024, 1, 31)
    assert period.end_date == datetime(2024, 2, 28, 23, 59, 59, 999999)
    assert period.label == "2024-01"


def test_billing_cycle_clamps_in_short_month():
    period = calculate_period(_card(BillingCycle.billing(30)), date(2023, 3, 1))

    assert period.start_date == datetime(2023, 2, 28)
    assert period.end_date == datetime(2023, 3, 29, 23, 59, 59, 999999)


def test_reference_on_cycle_start_belongs_to_current_cycle():
    card = _card(BillingCycle.billing(15))

    on_start = calculate_period(card, datetime(2024, 3, 15, 0, 0))
    day_before = calculate_period(card, date(2024, 3, 14))

    assert on_start.start_date == datetime(2024, 3, 15)
    assert on_start.label == "2024-03"
    assert day_before.start_date == datetime(2024, 2, 15)
    assert day_before.end_date == datetime(2024, 3, 14, 23, 59, 59, 999999)


def test_billing_without_positive_day_behaves_as_calendar():
    for cycle in (BillingCycle(BillingCycleType.BILLING, None), BillingCycle.billing(0)):
        period = calculate_period(_card(cycle), date(2024, 5, 20))
        assert period.start_date == datetime(2024, 5, 1)
        assert period.label == "2024-05"


def test_offset_moves_whole_periods():
    card = _card()

    assert calculate_period(card, date(2024, 1, 15), offset=-1).label == "2023-12"
    assert calculate_period(card, date(2024, 1, 15), offset=2).label == "2024-03"


def test_previous_and_next_period_are_adjacent():
    card = _card(BillingCycle.billing(31))
    current = calculate_period(card, date(2024, 3, 31))

    previous = previous_period(card, current)
    following = next_period(card, current)

    assert previous.start_date == datetime(2024, 2, 29)
    assert previous.end_date + timedelta(microseconds=1) == current.start_date
    assert current.end_date + timedelta(microseconds=1) == following.start_date
    assert following.start_date == datetime(2024, 4, 30)


def test_recent_periods_oldest_first_and_contiguous():
    card = _card(BillingCycle.billing(31))
    periods = get_recent_periods(card, 3, date(2024, 3, 31))

    assert [p.label for p in periods] == ["2024-01", "2024-02", "2024-03"]
    assert [p.start_date for p in periods] == [datetime(2024, 1, 31), datetime(2024, 2, 29), datetime(2024, 3, 31)]
    for earlier, later in zip(periods, periods[1:]):
        assert earlier.end_date + timedelta(microseconds=1) == later.start_date


def test_recent_periods_is_stable_for_fixed_reference():
    card = _card()
    assert get_recent_periods(card, 4, date(2024, 1, 5)) == get_recent_periods(card, 4, date(2024, 1, 5))
    assert [p.label for p in get_recent_periods(card, 2, date(2024, 1, 5))] == ["2023-12", "2024-01"]


def test_recent_periods_non_positive_count():
    assert get_recent_periods(_card(), 0, date(2024, 1, 5)) == []
    assert get_recent_periods(_card(), -2, date(2024, 1, 5)) == []


def test_period_contains_uses_calendar_day():
    period = calculate_period(_card(), date(2024, 2, 10))

    assert period_contains(period, date(2024, 2, 1))
    assert period_contains(period, datetime(2024, 2, 29, 23, 0))
    assert not period_contains(period, date(2024, 3, 1))
