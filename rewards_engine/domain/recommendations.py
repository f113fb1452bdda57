"""Recommendation engine - ranks cards per category group and flags card usage"""

from typing import Dict, Iterable, List, Optional

from rewards_engine.domain.insights import (
    STATUS_AVOID,
    STATUS_CONSIDER,
    STATUS_USE,
    assign_statuses,
    build_card_entries,
    create_subcategory_insight,
    create_whole_card_insight,
)
from rewards_engine.domain.models import (
    CardRecommendation,
    CategoryCardInsight,
    CategoryRecommendation,
    CreditCard,
    RewardCalculation,
    RewardSettings,
    ThemeGroup,
)

STATUS_PRIORITY: Dict[str, int] = {
    STATUS_USE: 3,
    STATUS_CONSIDER: 2,
    STATUS_AVOID: 1,
}

RECOMMENDATION_PRIORITY: Dict[str, int] = {
    "high": 3,
    "medium": 2,
    "low": 1,
}

MINIMUM_PROGRESS_ATTENTION_THRESHOLD = 50
MINIMUM_PROGRESS_ALERT_THRESHOLD = 80
EFFECTIVE_RATE_GOOD_THRESHOLD = 0.02


def resolve_latest_period(calculations: Iterable[RewardCalculation]) -> Optional[str]:
    """Most recent period label (labels sort chronologically)"""
    return max((calc.period for calc in calculations), default=None)


def latest_calculations_by_card(calculations: Iterable[RewardCalculation]) -> Dict[str, RewardCalculation]:
    """Each card's most recent calculation; later entries win ties"""
    by_card: Dict[str, RewardCalculation] = {}
    for calc in calculations:
        existing = by_card.get(calc.card_id)
        if existing is None or calc.period >= existing.period:
            by_card[calc.card_id] = calc
    return by_card


def sort_category_insights(insights: List[CategoryCardInsight]) -> List[CategoryCardInsight]:
    """Status priority, then reward rate, then dollars; name and id break ties"""
    return sorted(
        insights,
        key=lambda i: (
            -STATUS_PRIORITY[i.status],
            -i.reward_rate,
            -i.reward_earned_dollars,
            i.card_name,
            i.card_id,
        ),
    )


def _group_insights(
    group: ThemeGroup,
    cards_by_id: Dict[str, CreditCard],
    calculations_by_card: Dict[str, RewardCalculation],
) -> List[CategoryCardInsight]:
    insights: List[CategoryCardInsight] = []

    for card_id, entry in build_card_entries(group).items():
        card = cards_by_id.get(card_id)
        calculation = calculations_by_card.get(card_id)
        if card is None or calculation is None:
            continue

        insight = create_subcategory_insight(card, calculation, entry.refs) if entry.refs else None
        # Cards without bands are always judged on their whole-card figures
        if insight is None and (entry.include_whole or not card.subcategories_enabled):
            insight = create_whole_card_insight(card, calculation)

        if insight is not None:
            insights.append(insight)

    return insights


def generate_category_recommendations(
    cards: List[CreditCard],
    calculations: List[RewardCalculation],
    groups: List[ThemeGroup],
    settings: Optional[RewardSettings] = None,
) -> List[CategoryRecommendation]:
    """
    Rank cards for each category group.

    Each referenced card is evaluated on its own most recent calculation. Cards
    that use subcategories only contribute the referenced bands. Groups without
    any resolvable insight are left out of the result.
    """
    if not groups:
        return []

    settings = settings or RewardSettings()
    cards_by_id = {card.id: card for card in cards}
    calculations_by_card = latest_calculations_by_card(calculations)

    recommendations: List[CategoryRecommendation] = []
    for group in sorted(groups, key=lambda g: g.priority):
        insights = _group_insights(group, cards_by_id, calculations_by_card)
        if not insights:
            continue

        assign_statuses(insights, settings.use_rate_ratio)

        recommendations.append(
            CategoryRecommendation(
                group_id=group.id,
                group_name=group.name,
                group_description=group.description,
                latest_period=resolve_latest_period(calculations_by_card[i.card_id] for i in insights),
                insights=sort_category_insights(insights),
            )
        )

    return recommendations


def _average_effective_rate(calculations: List[RewardCalculation]) -> float:
    if not calculations:
        return 0.0
    total_rate = sum(
        calc.reward_earned_dollars / calc.eligible_spend for calc in calculations if calc.eligible_spend > 0
    )
    return total_rate / len(calculations)


def get_card_recommendations(
    cards: List[CreditCard],
    calculations: List[RewardCalculation],
) -> List[CardRecommendation]:
    """
    Card-level usage advice, highest priority first.

    Checked in order per card: no activity, maximum reached, close to the
    minimum, good effective rate. Cards matching none are omitted.
    """
    recommendations: List[CardRecommendation] = []

    for card in cards:
        card_calculations = [calc for calc in calculations if calc.card_id == card.id]

        if not card_calculations:
            recommendations.append(
                CardRecommendation(card.id, card.name, "No activity this period", "low", STATUS_CONSIDER)
            )
            continue

        if any(calc.should_stop_using for calc in card_calculations):
            recommendations.append(
                CardRecommendation(card.id, card.name, "Maximum spending limit reached", "high", STATUS_AVOID)
            )
            continue

        needs_more_spend = any(
            calc.minimum_spend_progress is not None
            and MINIMUM_PROGRESS_ATTENTION_THRESHOLD < calc.minimum_spend_progress < 100
            for calc in card_calculations
        )
        if needs_more_spend:
            recommendations.append(
                CardRecommendation(
                    card.id, card.name, "Close to meeting minimum spend requirement", "medium", STATUS_USE
                )
            )
            continue

        average_rate = _average_effective_rate(card_calculations)
        if average_rate > EFFECTIVE_RATE_GOOD_THRESHOLD:
            recommendations.append(
                CardRecommendation(
                    card.id, card.name, f"Good reward rate ({average_rate * 100:.1f}%)", "medium", STATUS_USE
                )
            )

    # sorted() is stable, so equal priorities keep card order
    return sorted(recommendations, key=lambda rec: -RECOMMENDATION_PRIORITY[rec.priority])


def get_alert_recommendations(
    cards: List[CreditCard],
    calculations: List[RewardCalculation],
) -> List[CardRecommendation]:
    """Alerts needing immediate attention, in calculation order"""
    cards_by_id = {card.id: card for card in cards}
    alerts: List[CardRecommendation] = []

    for calc in calculations:
        card = cards_by_id.get(calc.card_id)
        if card is None:
            continue

        if calc.should_stop_using:
            alerts.append(
                CardRecommendation(card.id, card.name, "Stop using - maximum spend reached", "high", STATUS_AVOID)
            )

        progress = calc.minimum_spend_progress
        if progress is not None and progress < MINIMUM_PROGRESS_ALERT_THRESHOLD:
            alerts.append(
                CardRecommendation(
                    card.id, card.name, f"Only {round(progress)}% of minimum spend", "medium", STATUS_USE
                )
            )

    return alerts
