"""Pydantic schemas for card, ledger, settings, group and calculation records"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from rewards_engine.domain.models import BillingCycleType, RewardType


class CamelRecord(BaseModel):
    """Base for records stored with camelCase keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class BillingCycleRecord(CamelRecord):
    type: BillingCycleType = BillingCycleType.CALENDAR
    day_of_month: Optional[int] = None


class SubcategoryRecord(CamelRecord):
    """Reward band stored on a card"""

    id: str = Field(..., min_length=1)
    name: str = ""
    flag_color: Optional[str] = None
    reward_value: Optional[float] = None
    miles_block_size: Optional[float] = None
    # Limits stay loose; malformed values degrade to "unset" in the domain
    minimum_spend: Any = None
    maximum_spend: Any = None
    priority: int = 0
    active: bool = True
    exclude_from_rewards: bool = False


class CardRecord(CamelRecord):
    """Card configuration as stored by the settings collaborator"""

    id: str = Field(..., min_length=1)
    name: str
    issuer: str = "Unknown"
    reward_type: RewardType = Field(..., alias="type")
    ynab_account_id: str = ""
    billing_cycle: Optional[BillingCycleRecord] = None
    featured: bool = True
    earning_rate: Optional[float] = None
    earning_block_size: Optional[float] = None
    minimum_spend: Any = None
    maximum_spend: Any = None
    subcategories_enabled: bool = False
    subcategories: List[SubcategoryRecord] = Field(default_factory=list)


class LedgerTransactionRecord(BaseModel):
    """Transaction as returned by the YNAB API (snake_case)"""

    model_config = ConfigDict(extra="ignore")

    id: str
    date: str  # YYYY-MM-DD
    amount: int  # milliunits
    account_id: str
    flag_color: Optional[str] = None
    payee_name: Optional[str] = None


class SettingsRecord(CamelRecord):
    miles_valuation: Any = None


class SubcategoryReferenceRecord(CamelRecord):
    card_id: str
    subcategory_id: str


class CardReferenceRecord(CamelRecord):
    card_id: str


class ThemeGroupRecord(CamelRecord):
    """Category group referencing whole cards and/or single bands"""

    id: str = Field(..., min_length=1)
    name: str = ""
    description: Optional[str] = None
    priority: int = 0
    subcategories: List[SubcategoryReferenceRecord] = Field(default_factory=list)
    cards: List[CardReferenceRecord] = Field(default_factory=list)


class SubcategoryBreakdownRecord(CamelRecord):
    """Stored slice of a calculation for one band"""

    subcategory_id: str
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


class CalculationRecord(CamelRecord):
    """Stored reward calculation for one card and period"""

    card_id: str
    rule_id: str
    period: str
    reward_type: RewardType
    total_spend: float = 0.0
    eligible_spend_before_blocks: float = 0.0
    eligible_spend: float = 0.0
    reward_earned: float = 0.0
    reward_earned_dollars: float = 0.0
    minimum_spend: Optional[float] = None
    minimum_progress: Optional[float] = None
    minimum_met: bool = True
    maximum_spend: Optional[float] = None
    maximum_progress: Optional[float] = None
    maximum_exceeded: bool = False
    should_stop_using: bool = False
    subcategory_breakdowns: Optional[List[SubcategoryBreakdownRecord]] = None
    excluded_spend: float = 0.0
    unresolved_spend: float = 0.0
    unresolved_transaction_count: int = 0
