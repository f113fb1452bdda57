"""Minimum/maximum spend checks over tri-state SpendLimit values"""

from typing import Optional

from rewards_engine.domain.models import SpendLimit


def is_minimum_spend_met(total_spend: float, minimum: SpendLimit) -> bool:
    """Unset or explicitly-zero minimums are always met"""
    if not minimum.is_active:
        return True
    return total_spend >= minimum.amount


def is_maximum_spend_exceeded(spend: float, maximum: SpendLimit) -> bool:
    """Unset or explicitly-unlimited maximums are never exceeded"""
    if not maximum.is_active:
        return False
    return spend >= maximum.amount


def spend_cap(maximum: SpendLimit) -> float:
    """Spend ceiling for cap consumption; +inf when there is no positive cap"""
    return maximum.amount if maximum.is_active else float("inf")


def spend_progress(spend: float, limit: SpendLimit) -> Optional[float]:
    """Progress towards a positive threshold as a 0-100 percentage"""
    if not limit.is_active:
        return None
    return min(100.0, (spend / limit.amount) * 100)


def remaining_to_minimum(spend: float, minimum: SpendLimit) -> Optional[float]:
    if not minimum.is_active:
        return None
    return max(0.0, minimum.amount - spend)
