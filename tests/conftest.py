"""Pytest fixtures for testing"""

import itertools
from datetime import date
from typing import Callable, Optional

import pytest

from rewards_engine.domain.models import (
    CalculationPeriod,
    CardSubcategory,
    CreditCard,
    RewardType,
    SpendLimit,
    Transaction,
)
from rewards_engine.domain.periods import calculate_period

ACCOUNT_ID = "acct-1"


@pytest.fixture
def make_spend() -> Callable[..., Transaction]:
    """Factory for outflow transactions given a dollar amount"""
    counter = itertools.count(1)

    def _make(
        dollars: float,
        on: date = date(2024, 3, 10),
        flag_color: Optional[str] = None,
        account_id: str = ACCOUNT_ID,
    ) -> Transaction:
        return Transaction(
            id=f"txn-{next(counter)}",
            account_id=account_id,
            amount=-round(dollars * 1000),
            date=on,
            flag_color=flag_color,
            payee_name="Test Merchant",
        )

    return _make


@pytest.fixture
def march_2024() -> CalculationPeriod:
    """Calendar period for March 2024"""
    card = CreditCard(id="calendar", name="Calendar", reward_type=RewardType.CASHBACK)
    return calculate_period(card, date(2024, 3, 15))


@pytest.fixture
def cashback_card() -> CreditCard:
    """2% cashback, explicitly no minimum, $1000 cap"""
    return CreditCard(
        id="card-cash",
        name="Everyday Cashback",
        reward_type=RewardType.CASHBACK,
        account_id=ACCOUNT_ID,
        earning_rate=2.0,
        minimum_spend=SpendLimit.disabled(),
        maximum_spend=SpendLimit.of(1000),
    )


@pytest.fixture
def miles_card() -> CreditCard:
    """1.5 miles per dollar earned in $5 blocks, no limits configured"""
    return CreditCard(
        id="card-miles",
        name="Travel Miles",
        reward_type=RewardType.MILES,
        account_id=ACCOUNT_ID,
        earning_rate=1.5,
        earning_block_size=5,
    )


@pytest.fixture
def banded_card() -> CreditCard:
    """Cashback card with dining, groceries, an excluded band and a fallback, sharing a $1000 cap"""
    return CreditCard(
        id="card-bands",
        name="Banded Cashback",
        reward_type=RewardType.CASHBACK,
        account_id=ACCOUNT_ID,
        earning_rate=1.0,
        maximum_spend=SpendLimit.of(1000),
        subcategories_enabled=True,
        subcategories=[
            CardSubcategory(
                id="dining",
                name="Dining",
                flag_color="red",
                reward_value=5.0,
                priority=0,
                maximum_spend=SpendLimit.of(200),
            ),
            CardSubcategory(id="groceries", name="Groceries", flag_color="blue", reward_value=3.0, priority=1),
            CardSubcategory(
                id="transfers",
                name="Transfers",
                flag_color="green",
                reward_value=4.0,
                priority=2,
                exclude_from_rewards=True,
            ),
            CardSubcategory(id="everything", name="Unflagged", flag_color="unflagged", reward_value=1.0, priority=3),
        ],
    )
