"""Reward calculator - core business logic turning card config + transactions into rewards"""

from dataclasses import dataclass, replace
from functools import reduce
from typing import Dict, List, NamedTuple, Optional, Tuple

from rewards_engine.domain.models import (
    CalculationPeriod,
    CardSubcategory,
    CreditCard,
    RewardCalculation,
    RewardSettings,
    SubcategoryCalculation,
    Transaction,
)
from rewards_engine.domain.reward_math import (
    apply_block,
    get_block_size,
    get_reward_rate,
    resolve_miles_valuation,
    reward_units,
    to_dollars,
)
from rewards_engine.domain.spend_limits import (
    is_maximum_spend_exceeded,
    is_minimum_spend_met,
    spend_cap,
    spend_progress,
)
from rewards_engine.domain.subcategories import (
    SubcategoryContext,
    create_subcategory_context,
    normalise_flag_color,
    resolve_subcategory,
)
from rewards_engine.domain.transactions import (
    MILLIUNITS_PER_UNIT,
    for_account,
    in_period,
    is_spend,
    milliunits_to_units,
    total_spend as sum_spend,
)


class TransactionReward(NamedTuple):
    reward: float
    reward_dollars: float
    reward_rate: float
    blocks: int
    block_size: Optional[float]


@dataclass(frozen=True)
class _BandSpend:
    """Period spend classified by band, in integer milliunits"""

    by_flag: Dict[str, int]
    excluded: int
    unresolved: int
    unresolved_count: int

    @property
    def counted_total(self) -> float:
        return sum(self.by_flag.values()) / MILLIUNITS_PER_UNIT


@dataclass(frozen=True)
class _CapAllocation:
    """State threaded through the priority-ordered band fold"""

    remaining_card_cap: float
    eligible_before_blocks: float = 0.0
    eligible: float = 0.0
    reward: float = 0.0
    reward_dollars: float = 0.0
    breakdowns: Tuple[SubcategoryCalculation, ...] = ()


def _period_spend(card: CreditCard, transactions: List[Transaction], period: CalculationPeriod) -> List[Transaction]:
    """Spend transactions for the card's account that fall inside the period"""
    if not card.account_id:
        # Unlinked cards see every spend transaction passed in
        return in_period([t for t in transactions if is_spend(t)], period)
    return in_period(for_account(transactions, card.account_id), period)


def _classify(context: SubcategoryContext, transactions: List[Transaction]) -> _BandSpend:
    by_flag: Dict[str, int] = {}
    excluded = 0
    unresolved = 0
    unresolved_count = 0

    for txn in transactions:
        subcategory = resolve_subcategory(context, txn.flag_color)
        amount = abs(txn.amount)

        if subcategory is None:
            # No matching band and no fallback band: data-integrity problem for the caller
            unresolved += amount
            unresolved_count += 1
            continue

        if subcategory.exclude_from_rewards:
            excluded += amount
            continue

        flag = normalise_flag_color(subcategory.flag_color)
        by_flag[flag] = by_flag.get(flag, 0) + amount

    return _BandSpend(by_flag, excluded, unresolved, unresolved_count)


def _excluded_breakdown(subcategory: CardSubcategory) -> SubcategoryCalculation:
    return SubcategoryCalculation(
        id=subcategory.id,
        name=subcategory.name,
        flag_color=subcategory.flag_color,
        minimum_spend=subcategory.minimum_spend.to_value(),
        maximum_spend=subcategory.maximum_spend.to_value(),
        active=subcategory.active,
        excluded=True,
    )


def _allocate_band(
    card: CreditCard,
    band_spend: _BandSpend,
    card_minimum_met: bool,
    miles_valuation: float,
    state: _CapAllocation,
    subcategory: CardSubcategory,
) -> _CapAllocation:
    """
    Allocate one band's spend against its own limits and the remaining card cap.

    Cap consumption uses the pre-block eligible amount, so block rounding in an
    earlier band never frees cap for a later one.
    """
    if subcategory.exclude_from_rewards:
        return replace(state, breakdowns=state.breakdowns + (_excluded_breakdown(subcategory),))

    band_total = band_spend.by_flag.get(normalise_flag_color(subcategory.flag_color), 0) / MILLIUNITS_PER_UNIT
    rate = get_reward_rate(card, subcategory)
    block_size = get_block_size(card, subcategory)
    band_minimum_met = card_minimum_met and is_minimum_spend_met(band_total, subcategory.minimum_spend)

    eligible_before_blocks = 0.0
    eligible = 0.0
    blocks = 0
    reward = 0.0
    reward_dollars = 0.0
    remaining = state.remaining_card_cap

    if band_minimum_met and rate > 0 and band_total > 0:
        eligible_before_blocks = min(band_total, spend_cap(subcategory.maximum_spend), remaining)
        eligible, blocks = apply_block(eligible_before_blocks, block_size)
        reward = reward_units(card.reward_type, eligible, rate)
        reward_dollars = to_dollars(card.reward_type, reward, miles_valuation)
        remaining = max(0.0, remaining - eligible_before_blocks)

    card_cap_hit = card.maximum_spend.is_active and remaining <= 0

    breakdown = SubcategoryCalculation(
        id=subcategory.id,
        name=subcategory.name,
        flag_color=subcategory.flag_color,
        total_spend=band_total,
        eligible_spend_before_blocks=eligible_before_blocks,
        eligible_spend=eligible,
        reward_rate=rate,
        reward_earned=reward,
        reward_earned_dollars=reward_dollars,
        minimum_spend=subcategory.minimum_spend.to_value(),
        minimum_spend_met=band_minimum_met,
        maximum_spend=subcategory.maximum_spend.to_value(),
        maximum_spend_exceeded=is_maximum_spend_exceeded(band_total, subcategory.maximum_spend) or card_cap_hit,
        block_size=block_size,
        blocks_earned=blocks,
        active=subcategory.active,
        excluded=False,
    )

    return _CapAllocation(
        remaining_card_cap=remaining,
        eligible_before_blocks=state.eligible_before_blocks + eligible_before_blocks,
        eligible=state.eligible + eligible,
        reward=state.reward + reward,
        reward_dollars=state.reward_dollars + reward_dollars,
        breakdowns=state.breakdowns + (breakdown,),
    )


def _cap_transactions(transactions: List[Transaction], cap: float) -> float:
    """
    Fold transactions in order, each contributing min(spend, remaining cap).

    Full contributions are summed in integer milliunits; the transaction that
    crosses the cap contributes exactly the remainder, so the result is the cap.
    """
    consumed = 0
    for txn in transactions:
        consumed += abs(txn.amount)
        if consumed / MILLIUNITS_PER_UNIT >= cap:
            return cap
    return consumed / MILLIUNITS_PER_UNIT


def _finalise(
    card: CreditCard,
    period: CalculationPeriod,
    total: float,
    minimum_met: bool,
    eligible_before_blocks: float,
    eligible: float,
    reward: float,
    reward_dollars: float,
    **extra,
) -> RewardCalculation:
    maximum = card.maximum_spend
    maximum_exceeded = is_maximum_spend_exceeded(total, maximum) or is_maximum_spend_exceeded(
        eligible_before_blocks, maximum
    )

    return RewardCalculation(
        card_id=card.id,
        period=period.label,
        reward_type=card.reward_type,
        total_spend=total,
        eligible_spend_before_blocks=eligible_before_blocks,
        eligible_spend=eligible,
        reward_earned=reward,
        reward_earned_dollars=reward_dollars,
        minimum_spend=card.minimum_spend.to_value(),
        minimum_spend_met=minimum_met,
        minimum_spend_progress=spend_progress(total, card.minimum_spend),
        maximum_spend=maximum.to_value(),
        maximum_spend_exceeded=maximum_exceeded,
        maximum_spend_progress=spend_progress(eligible_before_blocks, maximum),
        **extra,
    )


def _calculate_simple(
    card: CreditCard,
    transactions: List[Transaction],
    period: CalculationPeriod,
    miles_valuation: float,
) -> RewardCalculation:
    total = sum_spend(transactions)
    minimum_met = is_minimum_spend_met(total, card.minimum_spend)

    eligible_before_blocks = 0.0
    eligible = 0.0
    reward = 0.0
    reward_dollars = 0.0

    # Minimum spend gating is all-or-nothing for the period
    if minimum_met:
        eligible_before_blocks = _cap_transactions(transactions, spend_cap(card.maximum_spend))
        eligible, _ = apply_block(eligible_before_blocks, get_block_size(card))
        rate = get_reward_rate(card)
        if rate > 0 and eligible > 0:
            reward = reward_units(card.reward_type, eligible, rate)
            reward_dollars = to_dollars(card.reward_type, reward, miles_valuation)

    return _finalise(card, period, total, minimum_met, eligible_before_blocks, eligible, reward, reward_dollars)


def _calculate_with_subcategories(
    card: CreditCard,
    context: SubcategoryContext,
    transactions: List[Transaction],
    period: CalculationPeriod,
    miles_valuation: float,
) -> RewardCalculation:
    band_spend = _classify(context, transactions)
    total = band_spend.counted_total
    minimum_met = is_minimum_spend_met(total, card.minimum_spend)

    allocation = reduce(
        lambda state, subcategory: _allocate_band(card, band_spend, minimum_met, miles_valuation, state, subcategory),
        context.active_subcategories,
        _CapAllocation(remaining_card_cap=spend_cap(card.maximum_spend)),
    )

    return _finalise(
        card,
        period,
        total,
        minimum_met,
        allocation.eligible_before_blocks,
        allocation.eligible,
        allocation.reward,
        allocation.reward_dollars,
        subcategory_breakdowns=list(allocation.breakdowns),
        excluded_spend=band_spend.excluded / MILLIUNITS_PER_UNIT,
        unresolved_spend=band_spend.unresolved / MILLIUNITS_PER_UNIT,
        unresolved_transaction_count=band_spend.unresolved_count,
    )


def calculate_card_rewards(
    card: CreditCard,
    transactions: List[Transaction],
    period: CalculationPeriod,
    settings: Optional[RewardSettings] = None,
) -> RewardCalculation:
    """
    Calculate a card's rewards for one period.

    Flow:
    1. Keep spend (negative amounts) on the card's account inside the period
    2. Gate on the card-level minimum spend (all-or-nothing)
    3. Cap eligible spend at the card maximum (and per-band maximums)
    4. Round eligible spend down to whole blocks
    5. Apply the earning rate and normalize to dollars

    When subcategories are enabled and at least one is active, spend is split by
    flag colour and bands claim the shared card cap in ascending priority order.

    Never raises for malformed numeric configuration; such values are treated as
    not configured.
    """
    miles_valuation = resolve_miles_valuation(settings)
    period_transactions = _period_spend(card, transactions, period)
    context = create_subcategory_context(card)

    if context.in_use:
        return _calculate_with_subcategories(card, context, period_transactions, period, miles_valuation)

    return _calculate_simple(card, period_transactions, period, miles_valuation)


def calculate_transaction_reward(
    amount: int,
    card: CreditCard,
    settings: Optional[RewardSettings] = None,
    flag_color: Optional[str] = None,
) -> TransactionReward:
    """Estimate the reward for a single milliunit amount, ignoring period limits"""
    context = create_subcategory_context(card)
    subcategory = resolve_subcategory(context, flag_color)

    if subcategory is not None and subcategory.exclude_from_rewards:
        return TransactionReward(0.0, 0.0, 0.0, 0, None)

    rate = get_reward_rate(card, subcategory)
    if rate <= 0:
        return TransactionReward(0.0, 0.0, 0.0, 0, None)

    block_size = get_block_size(card, subcategory)
    earnable, blocks = apply_block(milliunits_to_units(amount), block_size)
    reward = reward_units(card.reward_type, earnable, rate)
    reward_dollars = to_dollars(card.reward_type, reward, resolve_miles_valuation(settings))

    return TransactionReward(reward, reward_dollars, rate, blocks, block_size)


def calculate_effective_rate(calculation: RewardCalculation) -> float:
    """Dollar reward as a percentage of total spend"""
    if calculation.total_spend == 0:
        return 0.0
    return (calculation.reward_earned_dollars / calculation.total_spend) * 100


def find_best_card(
    cards: List[CreditCard],
    transactions: List[Transaction],
    period: CalculationPeriod,
    settings: Optional[RewardSettings] = None,
) -> Optional[Tuple[CreditCard, RewardCalculation]]:
    """Card earning the most dollars over the period; earlier cards win ties"""
    best: Optional[Tuple[CreditCard, RewardCalculation]] = None

    for card in cards:
        if get_reward_rate(card) <= 0:
            continue
        calculation = calculate_card_rewards(card, transactions, period, settings)
        if best is None or calculation.reward_earned_dollars > best[1].reward_earned_dollars:
            best = (card, calculation)

    return best
