"""Domain models - pure Python dataclasses representing reward configuration and results"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from rewards_engine.utils.date_utils import format_local_date


class RewardType(str, Enum):
    """Reward currency earned by a card"""

    CASHBACK = "cashback"
    MILES = "miles"


class BillingCycleType(str, Enum):
    """How a card's accounting period is delimited"""

    CALENDAR = "calendar"
    BILLING = "billing"


class LimitState(str, Enum):
    """Tri-state for minimum/maximum spend configuration"""

    UNSET = "unset"  # not configured
    DISABLED = "disabled"  # explicitly zero: no minimum / no limit
    SET = "set"  # positive threshold


# Ledger flag colours usable as subcategory tags
FLAG_COLORS = ("red", "orange", "yellow", "green", "blue", "purple")
UNFLAGGED = "unflagged"
UNFLAGGED_LABEL = "Unflagged"


def finite_number(value: object) -> Optional[float]:
    """Return value as a float if it is a finite real number, else None"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def positive_number(value: object) -> Optional[float]:
    """Return value as a float if it is finite and > 0, else None"""
    number = finite_number(value)
    if number is None or number <= 0:
        return None
    return number


@dataclass(frozen=True)
class SpendLimit:
    """
    Minimum or maximum spend threshold.

    Keeps "not configured" (UNSET) distinct from "configured as zero" (DISABLED).
    Both mean no gating / no cap for the calculator, but they are reported
    differently to the surrounding application.
    """

    state: LimitState = LimitState.UNSET
    amount: float = 0.0

    @classmethod
    def from_value(cls, value: object) -> "SpendLimit":
        """Build from a raw nullable number; malformed values become UNSET"""
        number = finite_number(value)
        if number is None or number < 0:
            return cls()
        if number == 0:
            return cls(LimitState.DISABLED)
        return cls(LimitState.SET, number)

    @classmethod
    def unset(cls) -> "SpendLimit":
        return cls()

    @classmethod
    def disabled(cls) -> "SpendLimit":
        return cls(LimitState.DISABLED)

    @classmethod
    def of(cls, amount: float) -> "SpendLimit":
        return cls.from_value(amount)

    @property
    def is_active(self) -> bool:
        return self.state is LimitState.SET

    @property
    def is_configured(self) -> bool:
        return self.state is not LimitState.UNSET

    def to_value(self) -> Optional[float]:
        """Raw nullable number as stored by the configuration collaborator"""
        if self.state is LimitState.UNSET:
            return None
        if self.state is LimitState.DISABLED:
            return 0.0
        return self.amount


@dataclass(frozen=True)
class BillingCycle:
    """Calendar-month or statement-day billing cycle"""

    type: BillingCycleType = BillingCycleType.CALENDAR
    day_of_month: Optional[int] = None

    @classmethod
    def calendar(cls) -> "BillingCycle":
        return cls()

    @classmethod
    def billing(cls, day_of_month: int) -> "BillingCycle":
        return cls(BillingCycleType.BILLING, day_of_month)

    @property
    def statement_day(self) -> Optional[int]:
        """Configured day of month for billing cycles, None when calendar-based"""
        if self.type is not BillingCycleType.BILLING:
            return None
        if isinstance(self.day_of_month, bool) or not isinstance(self.day_of_month, int):
            return None
        if self.day_of_month < 1:
            return None
        return self.day_of_month


@dataclass
class CardSubcategory:
    """Reward band keyed by a transaction flag colour"""

    id: str
    name: str
    flag_color: str
    reward_value: float
    priority: int = 0
    miles_block_size: Optional[float] = None
    minimum_spend: SpendLimit = field(default_factory=SpendLimit)
    maximum_spend: SpendLimit = field(default_factory=SpendLimit)
    active: bool = True
    exclude_from_rewards: bool = False


@dataclass
class CreditCard:
    """Reward configuration for one card, tracked against one ledger account"""

    id: str
    name: str
    reward_type: RewardType
    account_id: str = ""
    issuer: str = "Unknown"
    billing_cycle: BillingCycle = field(default_factory=BillingCycle)
    earning_rate: Optional[float] = None
    earning_block_size: Optional[float] = None
    minimum_spend: SpendLimit = field(default_factory=SpendLimit)
    maximum_spend: SpendLimit = field(default_factory=SpendLimit)
    subcategories_enabled: bool = False
    subcategories: List[CardSubcategory] = field(default_factory=list)
    featured: bool = True


@dataclass(frozen=True)
class Transaction:
    """Ledger transaction; amount in signed milliunits, negative = outflow"""

    id: str
    account_id: str
    amount: int
    date: date
    flag_color: Optional[str] = None
    payee_name: Optional[str] = None


@dataclass(frozen=True)
class CalculationPeriod:
    """Accounting period; end_date is the last instant before the next period"""

    start_date: datetime
    end_date: datetime
    label: str

    @property
    def start(self) -> str:
        return format_local_date(self.start_date)

    @property
    def end(self) -> str:
        return format_local_date(self.end_date)


@dataclass(frozen=True)
class RewardSettings:
    """Global settings the calculator needs, passed explicitly to every call"""

    miles_valuation: float = 0.01  # dollars per mile
    use_rate_ratio: float = 0.8  # fraction of the best rate a card needs for "use"


@dataclass
class SubcategoryCalculation:
    """Per-band slice of a reward calculation"""

    id: str
    name: str
    flag_color: str
    total_spend: float = 0.0
    eligible_spend_before_blocks: float = 0.0
    eligible_spend: float = 0.0
    reward_rate: float = 0.0
    reward_earned: float = 0.0
    reward_earned_dollars: float = 0.0
    minimum_spend: Optional[float] = None
    minimum_spend_met: bool = False
    maximum_spend: Optional[float] = None
    maximum_spend_exceeded: bool = False
    block_size: Optional[float] = None
    blocks_earned: int = 0
    active: bool = True
    excluded: bool = False


@dataclass
class RewardCalculation:
    """Output of the reward calculator for one card and one period"""

    card_id: str
    period: str
    reward_type: RewardType
    total_spend: float = 0.0
    eligible_spend_before_blocks: float = 0.0
    eligible_spend: float = 0.0
    reward_earned: float = 0.0
    reward_earned_dollars: float = 0.0
    minimum_spend: Optional[float] = None
    minimum_spend_met: bool = True
    minimum_spend_progress: Optional[float] = None
    maximum_spend: Optional[float] = None
    maximum_spend_exceeded: bool = False
    maximum_spend_progress: Optional[float] = None
    subcategory_breakdowns: Optional[List[SubcategoryCalculation]] = None
    excluded_spend: float = 0.0
    unresolved_spend: float = 0.0
    unresolved_transaction_count: int = 0

    @property
    def should_stop_using(self) -> bool:
        return self.maximum_spend_exceeded


@dataclass(frozen=True)
class SubcategoryReference:
    card_id: str
    subcategory_id: str


@dataclass(frozen=True)
class CardReference:
    card_id: str


@dataclass
class ThemeGroup:
    """Spending category grouping cards and/or specific subcategories"""

    id: str
    name: str
    priority: int = 0
    description: Optional[str] = None
    subcategories: List[SubcategoryReference] = field(default_factory=list)
    cards: List[CardReference] = field(default_factory=list)


@dataclass
class CategoryCardInsight:
    """How one card performs for one category group"""

    card_id: str
    card_name: str
    reward_type: RewardType
    reward_rate: float
    reward_earned_dollars: float
    total_spend: float
    eligible_spend: float
    eligible_spend_before_blocks: float
    has_data: bool
    minimum_met: bool
    card_minimum_met: bool
    card_maximum_exceeded: bool
    minimum_progress: Optional[float] = None
    minimum_target: Optional[float] = None
    minimum_remaining: Optional[float] = None
    maximum_cap: Optional[float] = None
    maximum_progress: Optional[float] = None
    headroom_to_maximum: Optional[float] = None
    card_maximum_cap: Optional[float] = None
    status: str = "consider"  # use | consider | avoid
    should_avoid: bool = False


@dataclass
class CategoryRecommendation:
    group_id: str
    group_name: str
    insights: List[CategoryCardInsight]
    group_description: Optional[str] = None
    latest_period: Optional[str] = None


@dataclass
class CardRecommendation:
    """Card-level usage advice"""

    card_id: str
    card_name: str
    reason: str
    priority: str  # high | medium | low
    action: str  # use | avoid | consider
