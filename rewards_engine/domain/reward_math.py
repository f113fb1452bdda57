"""Reward arithmetic shared by card-level and band-level calculations"""

import math
from typing import NamedTuple, Optional

from rewards_engine.domain.models import (
    CardSubcategory,
    CreditCard,
    RewardSettings,
    RewardType,
    finite_number,
    positive_number,
)

DEFAULT_MILES_VALUATION = 0.01


class BlockResult(NamedTuple):
    amount: float
    blocks: int


def resolve_miles_valuation(settings: Optional[RewardSettings]) -> float:
    """Dollars per mile; falls back to one cent for missing or non-positive values"""
    if settings is None:
        return DEFAULT_MILES_VALUATION
    return positive_number(settings.miles_valuation) or DEFAULT_MILES_VALUATION


def get_reward_rate(card: CreditCard, subcategory: Optional[CardSubcategory] = None) -> float:
    """
    Earning rate for a card or one of its bands.

    Cashback rates are percentages, miles rates are miles per currency unit.
    Missing, non-finite or negative rates earn nothing.
    """
    raw = subcategory.reward_value if subcategory is not None else card.earning_rate
    rate = finite_number(raw)
    if rate is None or rate < 0:
        return 0.0
    return rate


def get_block_size(card: CreditCard, subcategory: Optional[CardSubcategory] = None) -> Optional[float]:
    """
    Block size used to quantize eligible spend, or None for exact earning.

    Bands on miles cards prefer their own block size and fall back to the card's;
    bands on cashback cards never block-round.
    """
    if subcategory is not None:
        if card.reward_type is RewardType.CASHBACK:
            return None
        return positive_number(subcategory.miles_block_size) or positive_number(card.earning_block_size)

    return positive_number(card.earning_block_size)


def apply_block(eligible_amount: float, block_size: Optional[float]) -> BlockResult:
    """Round eligible spend down to whole blocks"""
    if not block_size or block_size <= 0:
        return BlockResult(eligible_amount, 0)

    blocks = math.floor(eligible_amount / block_size)
    return BlockResult(blocks * block_size, blocks)


def reward_units(reward_type: RewardType, eligible_spend: float, rate: float) -> float:
    """Raw reward in the card's currency (dollars for cashback, miles for miles)"""
    if reward_type is RewardType.CASHBACK:
        return eligible_spend * (rate / 100)
    if reward_type is RewardType.MILES:
        return eligible_spend * rate
    raise ValueError(f"Unsupported reward type: {reward_type}")


def to_dollars(reward_type: RewardType, reward: float, miles_valuation: float) -> float:
    """Normalize a raw reward to dollars"""
    if reward_type is RewardType.CASHBACK:
        return reward
    if reward_type is RewardType.MILES:
        return reward * miles_valuation
    raise ValueError(f"Unsupported reward type: {reward_type}")
