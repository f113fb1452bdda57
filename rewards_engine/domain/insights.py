"""Per-card insights for a category group, derived from reward calculations"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rewards_engine.domain.models import (
    CardSubcategory,
    CategoryCardInsight,
    CreditCard,
    RewardCalculation,
    SubcategoryCalculation,
    SubcategoryReference,
    ThemeGroup,
    positive_number,
)
from rewards_engine.domain.spend_limits import remaining_to_minimum

STATUS_USE = "use"
STATUS_CONSIDER = "consider"
STATUS_AVOID = "avoid"

# Remaining-minimum amounts below this are treated as met
_MINIMUM_EPSILON = 0.0001


@dataclass
class GroupCardEntry:
    """What a category group references on one card"""

    refs: List[SubcategoryReference] = field(default_factory=list)
    include_whole: bool = False


def build_card_entries(group: ThemeGroup) -> Dict[str, GroupCardEntry]:
    """
    Group a category's references by card id, preserving first-seen order.

    Subcategory refs take precedence; include_whole is only used when a card's
    refs resolve to no usable band.
    """
    entries: Dict[str, GroupCardEntry] = {}

    for ref in group.subcategories:
        if not ref.card_id or not ref.subcategory_id:
            continue
        entries.setdefault(ref.card_id, GroupCardEntry()).refs.append(ref)

    for card_ref in group.cards:
        if not card_ref.card_id:
            continue
        entries.setdefault(card_ref.card_id, GroupCardEntry()).include_whole = True

    return entries


def _reward_rate(reward_dollars: float, eligible_spend: float) -> float:
    """Dollars earned per eligible dollar; 0 without eligible spend"""
    if eligible_spend <= 0:
        return 0.0
    return reward_dollars / eligible_spend


def create_whole_card_insight(card: CreditCard, calculation: RewardCalculation) -> CategoryCardInsight:
    """Insight using the card's whole-period figures"""
    total_spend = calculation.total_spend
    eligible_before_blocks = calculation.eligible_spend_before_blocks

    minimum_target = positive_number(card.minimum_spend.to_value())
    minimum_progress = calculation.minimum_spend_progress
    minimum_remaining = remaining_to_minimum(total_spend, card.minimum_spend)

    maximum_cap = positive_number(card.maximum_spend.to_value())
    maximum_progress = calculation.maximum_spend_progress
    headroom = max(0.0, maximum_cap - eligible_before_blocks) if maximum_cap else None
    maximum_exceeded = calculation.maximum_spend_exceeded or (headroom is not None and headroom <= 0)

    return CategoryCardInsight(
        card_id=card.id,
        card_name=card.name,
        reward_type=card.reward_type,
        reward_rate=_reward_rate(calculation.reward_earned_dollars, calculation.eligible_spend),
        reward_earned_dollars=calculation.reward_earned_dollars,
        total_spend=total_spend,
        eligible_spend=calculation.eligible_spend,
        eligible_spend_before_blocks=eligible_before_blocks,
        has_data=total_spend > 0 or calculation.eligible_spend > 0,
        minimum_met=calculation.minimum_spend_met,
        card_minimum_met=calculation.minimum_spend_met,
        card_maximum_exceeded=maximum_exceeded,
        minimum_progress=minimum_progress,
        minimum_target=minimum_target,
        minimum_remaining=minimum_remaining,
        maximum_cap=maximum_cap,
        maximum_progress=maximum_progress,
        headroom_to_maximum=headroom,
        card_maximum_cap=maximum_cap,
        should_avoid=maximum_exceeded,
    )


def create_subcategory_insight(
    card: CreditCard,
    calculation: RewardCalculation,
    refs: List[SubcategoryReference],
) -> Optional[CategoryCardInsight]:
    """
    Insight aggregating only the referenced bands of a card.

    Returns None when the card has no usable subcategories or none of the refs
    point at an active, non-excluded band.
    """
    if not refs or not card.subcategories_enabled or not card.subcategories:
        return None

    definitions: Dict[str, CardSubcategory] = {sub.id: sub for sub in card.subcategories}
    breakdowns: Dict[str, SubcategoryCalculation] = {
        breakdown.id: breakdown for breakdown in (calculation.subcategory_breakdowns or [])
    }

    total_spend = 0.0
    eligible_spend = 0.0
    eligible_before_blocks = 0.0
    reward_dollars = 0.0

    minimum_target_sum = 0.0
    minimum_progress_numerator = 0.0
    minimum_remaining_total = 0.0

    has_maximum = False
    maximum_cap_sum = 0.0
    maximum_progress_numerator = 0.0
    min_headroom = float("inf")
    maximum_exceeded = False

    matched = 0
    has_data = False

    for ref in refs:
        definition = definitions.get(ref.subcategory_id)
        if definition is None or not definition.active or definition.exclude_from_rewards:
            continue
        matched += 1

        breakdown = breakdowns.get(ref.subcategory_id)
        spend = breakdown.total_spend if breakdown else 0.0
        eligible = breakdown.eligible_spend if breakdown else 0.0
        eligible_before = breakdown.eligible_spend_before_blocks if breakdown else 0.0

        if spend > 0 or eligible > 0:
            has_data = True

        total_spend += spend
        eligible_spend += eligible
        eligible_before_blocks += eligible_before
        reward_dollars += breakdown.reward_earned_dollars if breakdown else 0.0

        minimum = definition.minimum_spend
        if minimum.is_active:
            minimum_target_sum += minimum.amount
            minimum_progress_numerator += min(spend, minimum.amount)
            minimum_remaining_total += max(0.0, minimum.amount - spend)

        maximum = definition.maximum_spend
        if maximum.is_active:
            has_maximum = True
            maximum_cap_sum += maximum.amount
            maximum_progress_numerator += min(eligible_before, maximum.amount)
            min_headroom = min(min_headroom, max(0.0, maximum.amount - eligible_before))
            if eligible_before >= maximum.amount:
                maximum_exceeded = True

    if matched == 0:
        return None

    minimum_target = minimum_target_sum if minimum_target_sum > 0 else None
    minimum_progress = min(100.0, minimum_progress_numerator / minimum_target_sum * 100) if minimum_target else None
    minimum_remaining = minimum_remaining_total if minimum_target else None
    minimum_met = minimum_remaining is None or minimum_remaining <= _MINIMUM_EPSILON

    maximum_progress = None
    headroom = None
    if has_maximum:
        maximum_progress = min(100.0, maximum_progress_numerator / maximum_cap_sum * 100)
        headroom = min_headroom
        if headroom <= 0:
            maximum_exceeded = True

    card_maximum_exceeded = calculation.maximum_spend_exceeded
    should_avoid = maximum_exceeded or card_maximum_exceeded

    return CategoryCardInsight(
        card_id=card.id,
        card_name=card.name,
        reward_type=card.reward_type,
        reward_rate=_reward_rate(reward_dollars, eligible_spend),
        reward_earned_dollars=reward_dollars,
        total_spend=total_spend,
        eligible_spend=eligible_spend,
        eligible_spend_before_blocks=eligible_before_blocks,
        has_data=has_data,
        minimum_met=minimum_met,
        card_minimum_met=calculation.minimum_spend_met,
        card_maximum_exceeded=card_maximum_exceeded,
        minimum_progress=minimum_progress,
        minimum_target=minimum_target,
        minimum_remaining=minimum_remaining,
        maximum_cap=maximum_cap_sum if has_maximum else None,
        maximum_progress=maximum_progress,
        headroom_to_maximum=headroom,
        card_maximum_cap=positive_number(card.maximum_spend.to_value()),
        should_avoid=should_avoid,
    )


def assign_statuses(insights: List[CategoryCardInsight], use_rate_ratio: float) -> None:
    """
    Classify insights compared within one group.

    - avoid: a band or card cap is already reached
    - use: minimums met and the rate is within use_rate_ratio of the best
      non-avoided rate in the group
    - consider: everything else
    """
    best_rate = max((i.reward_rate for i in insights if not i.should_avoid), default=0.0)
    threshold = best_rate * use_rate_ratio

    for insight in insights:
        if insight.should_avoid:
            insight.status = STATUS_AVOID
        elif (
            insight.minimum_met
            and insight.card_minimum_met
            and insight.reward_rate > 0
            and insight.reward_rate >= threshold
        ):
            insight.status = STATUS_USE
        else:
            insight.status = STATUS_CONSIDER
