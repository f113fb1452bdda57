"""Compute pipeline - period calculations and recommendations with structured logging"""

import time
from datetime import date, datetime
from typing import List, Optional

from rewards_engine.config import settings_from_config
from rewards_engine.domain.models import (
    CalculationPeriod,
    CategoryRecommendation,
    CreditCard,
    RewardCalculation,
    RewardSettings,
    ThemeGroup,
    Transaction,
)
from rewards_engine.domain.periods import calculate_period, get_recent_periods
from rewards_engine.domain.recommendations import generate_category_recommendations
from rewards_engine.domain.rewards import calculate_card_rewards
from rewards_engine.infrastructure.observability.logging import (
    log_calculation,
    log_recommendations,
    log_unresolved_spend,
)


def _calculate_logged(
    card: CreditCard,
    transactions: List[Transaction],
    period: CalculationPeriod,
    settings: RewardSettings,
) -> RewardCalculation:
    start_time = time.time()
    calculation = calculate_card_rewards(card, transactions, period, settings)
    duration_ms = (time.time() - start_time) * 1000

    log_calculation(
        card.id,
        calculation.period,
        calculation.total_spend,
        calculation.reward_earned_dollars,
        calculation.minimum_spend_met,
        calculation.maximum_spend_exceeded,
        duration_ms,
    )
    if calculation.unresolved_transaction_count:
        log_unresolved_spend(
            card.id,
            calculation.period,
            calculation.unresolved_transaction_count,
            calculation.unresolved_spend,
        )

    return calculation


def compute_current_period(
    cards: List[CreditCard],
    transactions: List[Transaction],
    settings: Optional[RewardSettings] = None,
    reference_date: Optional[date | datetime] = None,
) -> List[RewardCalculation]:
    """
    Calculate the current period for every card linked to a ledger account.

    Flow:
    1. Skip cards without an account id
    2. Resolve each card's period containing reference_date (default: now)
    3. Calculate and log one record per card
    """
    settings = settings or settings_from_config()

    calculations: List[RewardCalculation] = []
    for card in cards:
        if not card.account_id:
            continue
        period = calculate_period(card, reference_date)
        calculations.append(_calculate_logged(card, transactions, period, settings))

    return calculations


def compute_period_history(
    card: CreditCard,
    transactions: List[Transaction],
    count: int,
    settings: Optional[RewardSettings] = None,
    reference_date: Optional[date | datetime] = None,
) -> List[RewardCalculation]:
    """Calculations for the card's last `count` periods, oldest first"""
    settings = settings or settings_from_config()
    return [
        _calculate_logged(card, transactions, period, settings)
        for period in get_recent_periods(card, count, reference_date)
    ]


def recommend(
    cards: List[CreditCard],
    calculations: List[RewardCalculation],
    groups: List[ThemeGroup],
    settings: Optional[RewardSettings] = None,
) -> List[CategoryRecommendation]:
    """Rank cards per category group and log a run summary"""
    settings = settings or settings_from_config()

    start_time = time.time()
    recommendations = generate_category_recommendations(cards, calculations, groups, settings)
    duration_ms = (time.time() - start_time) * 1000

    log_recommendations(
        len(recommendations),
        sum(len(rec.insights) for rec in recommendations),
        duration_ms,
    )
    return recommendations
