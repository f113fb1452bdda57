"""Unit tests for record parsing and calculation serialisation"""

from datetime import date

import pytest

from rewards_engine.domain.exceptions import (
    InvalidCalculationRecordError,
    InvalidCardConfigurationError,
    InvalidTransactionDataError,
)
from rewards_engine.domain.models import (
    BillingCycleType,
    LimitState,
    RewardSettings,
    RewardType,
    SubcategoryCalculation,
    RewardCalculation,
)
from rewards_engine.infrastructure.records.parsers import (
    calculation_to_record,
    parse_calculation,
    parse_card,
    parse_settings,
    parse_theme_groups,
    parse_transaction,
    parse_transactions,
)


@pytest.fixture
def card_record():
    return {
        "id": "card-1",
        "name": "Travel Miles",
        "issuer": "Big Bank",
        "type": "miles",
        "ynabAccountId": "acct-1",
        "billingCycle": {"type": "billing", "dayOfMonth": 20},
        "featured": False,
        "earningRate": 1.5,
        "earningBlockSize": 5,
        "minimumSpend": 0,
        "maximumSpend": "lots",
        "subcategoriesEnabled": True,
        "subcategories": [
            {
                "id": "travel",
                "name": "Travel",
                "flagColor": "blue",
                "rewardValue": 3,
                "milesBlockSize": 10,
                "minimumSpend": None,
                "maximumSpend": 500,
                "priority": 0,
                "active": True,
                "excludeFromRewards": False,
            }
        ],
    }


def test_parse_card_maps_camel_case_record(card_record):
    card = parse_card(card_record)

    assert card.reward_type is RewardType.MILES
    assert card.account_id == "acct-1"
    assert card.issuer == "Big Bank"
    assert card.featured is False
    assert card.billing_cycle.type is BillingCycleType.BILLING
    assert card.billing_cycle.statement_day == 20
    assert card.minimum_spend.state is LimitState.DISABLED
    assert card.maximum_spend.state is LimitState.UNSET

    travel = card.subcategories[0]
    assert travel.miles_block_size == 10
    assert travel.maximum_spend.amount == 500
    assert travel.minimum_spend.state is LimitState.UNSET


def test_parse_card_adds_fallback_band(card_record):
    card = parse_card(card_record)

    assert [sub.flag_color for sub in card.subcategories] == ["blue", "unflagged"]
    assert card.subcategories[1].reward_value == 1.5


def test_parse_card_defaults_to_calendar_cycle(card_record):
    del card_record["billingCycle"]

    assert parse_card(card_record).billing_cycle.statement_day is None


@pytest.mark.parametrize("field,value", [("type", "points"), ("name", None), ("earningRate", "fast")])
def test_parse_card_rejects_malformed_records(card_record, field, value):
    card_record[field] = value

    with pytest.raises(InvalidCardConfigurationError):
        parse_card(card_record)


def test_parse_transaction():
    txn = parse_transaction(
        {
            "id": "t1",
            "date": "2024-02-29",
            "amount": -12340,
            "account_id": "acct-1",
            "flag_color": "red",
            "payee_name": "Cafe",
            "memo": "ignored",
        }
    )

    assert txn.date == date(2024, 2, 29)
    assert txn.amount == -12340
    assert txn.flag_color == "red"


@pytest.mark.parametrize(
    "overrides",
    [{"date": "2024-13-01"}, {"amount": "lots"}, {"account_id": None}],
)
def test_parse_transaction_rejects_malformed_records(overrides):
    raw = {"id": "t1", "date": "2024-03-01", "amount": -1000, "account_id": "acct-1"}
    raw.update(overrides)

    with pytest.raises(InvalidTransactionDataError):
        parse_transactions([raw])


def test_parse_settings_overrides_valuation_only_when_positive():
    base = RewardSettings(miles_valuation=0.01, use_rate_ratio=0.7)

    assert parse_settings({"milesValuation": 0.015}, base) == RewardSettings(0.015, 0.7)
    assert parse_settings({"milesValuation": 0}, base) is base
    assert parse_settings({}, base) is base
    assert parse_settings({"milesValuation": "abc"}).miles_valuation == 0.01


def test_parse_theme_groups_prunes_against_cards(card_record):
    cards = [parse_card(card_record)]
    raw_groups = [
        {
            "id": "travel",
            "name": "Travel",
            "priority": 4,
            "subcategories": [
                {"cardId": "card-1", "subcategoryId": "travel"},
                {"cardId": "card-1", "subcategoryId": "missing"},
            ],
            "cards": [{"cardId": "other"}],
        }
    ]

    group = parse_theme_groups(raw_groups, cards)[0]

    assert group.priority == 0
    assert [ref.subcategory_id for ref in group.subcategories] == ["travel"]
    assert group.cards == []


def test_parse_theme_groups_rejects_missing_id():
    with pytest.raises(InvalidCardConfigurationError):
        parse_theme_groups([{"name": "No id"}], [])


def _calculation() -> RewardCalculation:
    return RewardCalculation(
        card_id="card-1",
        period="2024-03",
        reward_type=RewardType.MILES,
        total_spend=300.0,
        eligible_spend_before_blocks=250.0,
        eligible_spend=240.0,
        reward_earned=720.0,
        reward_earned_dollars=7.2,
        minimum_spend=None,
        maximum_spend=250.0,
        maximum_spend_exceeded=True,
        maximum_spend_progress=100.0,
        subcategory_breakdowns=[
            SubcategoryCalculation(
                id="travel",
                name="Travel",
                flag_color="blue",
                total_spend=300.0,
                eligible_spend_before_blocks=250.0,
                eligible_spend=240.0,
                reward_rate=3.0,
                reward_earned=720.0,
                reward_earned_dollars=7.2,
                maximum_spend=500.0,
                minimum_spend_met=True,
                block_size=10.0,
                blocks_earned=24,
            )
        ],
        excluded_spend=12.5,
    )


def test_calculation_record_uses_storage_keys():
    record = calculation_to_record(_calculation())

    assert record["cardId"] == "card-1"
    assert record["ruleId"] == "card-card-1"
    assert record["rewardType"] == "miles"
    assert record["shouldStopUsing"] is True
    assert record["maximumExceeded"] is True
    assert record["minimumMet"] is True
    assert record["maximumProgress"] == 100.0
    assert record["subcategoryBreakdowns"][0]["subcategoryId"] == "travel"
    assert record["subcategoryBreakdowns"][0]["blocksEarned"] == 24


def test_calculation_record_reads_back_into_domain():
    calculation = _calculation()

    assert parse_calculation(calculation_to_record(calculation)) == calculation


def test_should_stop_using_alone_marks_cap_reached():
    calc = parse_calculation(
        {"cardId": "c", "ruleId": "card-c", "period": "2024-03", "rewardType": "cashback", "shouldStopUsing": True}
    )

    assert calc.maximum_spend_exceeded is True
    assert calc.subcategory_breakdowns is None


def test_parse_calculation_rejects_malformed_record():
    with pytest.raises(InvalidCalculationRecordError):
        parse_calculation({"cardId": "c", "period": "2024-03", "rewardType": "gold"})
