"""Transaction filter - pure predicates over ledger transactions"""

from datetime import date, datetime
from typing import Iterable, List

from rewards_engine.domain.models import CalculationPeriod, Transaction
from rewards_engine.domain.subcategories import normalise_flag_color
from rewards_engine.utils.date_utils import start_of_day

# Ledger amounts are integer milliunits of the budget currency
MILLIUNITS_PER_UNIT = 1000


def milliunits_to_units(amount: int) -> float:
    """Absolute value of a milliunit amount in major currency units"""
    return abs(amount) / MILLIUNITS_PER_UNIT


def is_spend(transaction: Transaction) -> bool:
    """Only outflows (negative amounts) count as card spend"""
    return transaction.amount < 0


def for_account(transactions: Iterable[Transaction], account_id: str) -> List[Transaction]:
    """Keep spend transactions posted to the given account"""
    return [t for t in transactions if t.account_id == account_id and is_spend(t)]


def in_range(
    transactions: Iterable[Transaction],
    start: date | datetime,
    end: date | datetime,
) -> List[Transaction]:
    """Keep transactions whose calendar date falls within [start, end]"""
    first_day = start_of_day(start).date()
    last_day = start_of_day(end).date()
    return [t for t in transactions if first_day <= t.date <= last_day]


def in_period(transactions: Iterable[Transaction], period: CalculationPeriod) -> List[Transaction]:
    return in_range(transactions, period.start_date, period.end_date)


def total_spend(transactions: Iterable[Transaction]) -> float:
    """
    Sum of absolute amounts in major units.

    Summed as integers before a single division so totals stay exact.
    """
    return sum(abs(t.amount) for t in transactions) / MILLIUNITS_PER_UNIT


def available_tags(transactions: Iterable[Transaction]) -> List[str]:
    """Distinct band keys of tagged transactions, normalised the way bands are matched"""
    return sorted({normalise_flag_color(t.flag_color) for t in transactions if t.flag_color})
