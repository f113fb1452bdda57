"""Convert stored records to domain models and back"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from rewards_engine.domain.exceptions import (
    InvalidCalculationRecordError,
    InvalidCardConfigurationError,
    InvalidTransactionDataError,
)
from rewards_engine.domain.models import (
    BillingCycle,
    CardReference,
    CardSubcategory,
    CreditCard,
    RewardCalculation,
    RewardSettings,
    SpendLimit,
    SubcategoryCalculation,
    SubcategoryReference,
    ThemeGroup,
    Transaction,
    positive_number,
)
from rewards_engine.domain.normalisers import normalise_card, prune_theme_groups
from rewards_engine.infrastructure.records.schemas import (
    BillingCycleRecord,
    CalculationRecord,
    CardRecord,
    LedgerTransactionRecord,
    SettingsRecord,
    SubcategoryBreakdownRecord,
    SubcategoryRecord,
    ThemeGroupRecord,
)
from rewards_engine.utils.date_utils import parse_ledger_date


def _billing_cycle(record: Optional[BillingCycleRecord]) -> BillingCycle:
    if record is None:
        return BillingCycle.calendar()
    return BillingCycle(record.type, record.day_of_month)


def _subcategory(record: SubcategoryRecord) -> CardSubcategory:
    return CardSubcategory(
        id=record.id,
        name=record.name,
        flag_color=record.flag_color,
        reward_value=record.reward_value if record.reward_value is not None else 0.0,
        priority=record.priority,
        miles_block_size=record.miles_block_size,
        minimum_spend=SpendLimit.from_value(record.minimum_spend),
        maximum_spend=SpendLimit.from_value(record.maximum_spend),
        active=record.active,
        exclude_from_rewards=record.exclude_from_rewards,
    )


def parse_card(raw: Mapping[str, Any]) -> CreditCard:
    """
    Build a normalised card from a camelCase card record.

    Raises:
        InvalidCardConfigurationError: If the record is missing required fields
            or has values of the wrong type
    """
    try:
        record = CardRecord.model_validate(raw)
    except ValidationError as exc:
        raise InvalidCardConfigurationError(f"Invalid card record: {exc}") from exc

    card = CreditCard(
        id=record.id,
        name=record.name,
        reward_type=record.reward_type,
        account_id=record.ynab_account_id,
        issuer=record.issuer,
        billing_cycle=_billing_cycle(record.billing_cycle),
        earning_rate=record.earning_rate,
        earning_block_size=record.earning_block_size,
        minimum_spend=SpendLimit.from_value(record.minimum_spend),
        maximum_spend=SpendLimit.from_value(record.maximum_spend),
        subcategories_enabled=record.subcategories_enabled,
        subcategories=[_subcategory(sub) for sub in record.subcategories],
        featured=record.featured,
    )
    return normalise_card(card)


def parse_cards(raw: Iterable[Mapping[str, Any]]) -> List[CreditCard]:
    return [parse_card(item) for item in raw]


def parse_transaction(raw: Mapping[str, Any]) -> Transaction:
    """
    Build a transaction from a YNAB ledger record.

    Raises:
        InvalidTransactionDataError: On missing fields, non-integer amounts or
            unparseable dates
    """
    try:
        record = LedgerTransactionRecord.model_validate(raw)
        return Transaction(
            id=record.id,
            account_id=record.account_id,
            amount=record.amount,
            date=parse_ledger_date(record.date),
            flag_color=record.flag_color,
            payee_name=record.payee_name,
        )
    except (ValidationError, ValueError) as exc:
        raise InvalidTransactionDataError(f"Invalid transaction record: {exc}") from exc


def parse_transactions(raw: Iterable[Mapping[str, Any]]) -> List[Transaction]:
    return [parse_transaction(item) for item in raw]


def parse_settings(raw: Mapping[str, Any], base: Optional[RewardSettings] = None) -> RewardSettings:
    """
    Apply a stored settings record on top of base settings.

    A missing or non-positive miles valuation keeps the base value.
    """
    base = base or RewardSettings()
    try:
        record = SettingsRecord.model_validate(raw)
    except ValidationError as exc:
        raise InvalidCardConfigurationError(f"Invalid settings record: {exc}") from exc

    valuation = positive_number(record.miles_valuation)
    if valuation is None:
        return base
    return RewardSettings(miles_valuation=valuation, use_rate_ratio=base.use_rate_ratio)


def parse_theme_group(raw: Mapping[str, Any]) -> ThemeGroup:
    try:
        record = ThemeGroupRecord.model_validate(raw)
    except ValidationError as exc:
        raise InvalidCardConfigurationError(f"Invalid theme group record: {exc}") from exc

    return ThemeGroup(
        id=record.id,
        name=record.name,
        priority=record.priority,
        description=record.description,
        subcategories=[SubcategoryReference(ref.card_id, ref.subcategory_id) for ref in record.subcategories],
        cards=[CardReference(ref.card_id) for ref in record.cards],
    )


def parse_theme_groups(raw: Iterable[Mapping[str, Any]], cards: List[CreditCard]) -> List[ThemeGroup]:
    """Parse groups and drop references the given cards cannot satisfy"""
    return prune_theme_groups([parse_theme_group(item) for item in raw], cards)


def _breakdown_record(breakdown: SubcategoryCalculation) -> SubcategoryBreakdownRecord:
    return SubcategoryBreakdownRecord(
        subcategory_id=breakdown.id,
        name=breakdown.name,
        flag_color=breakdown.flag_color,
        total_spend=breakdown.total_spend,
        eligible_spend_before_blocks=breakdown.eligible_spend_before_blocks,
        eligible_spend=breakdown.eligible_spend,
        reward_rate=breakdown.reward_rate,
        reward_earned=breakdown.reward_earned,
        reward_earned_dollars=breakdown.reward_earned_dollars,
        minimum_spend=breakdown.minimum_spend,
        minimum_spend_met=breakdown.minimum_spend_met,
        maximum_spend=breakdown.maximum_spend,
        maximum_spend_exceeded=breakdown.maximum_spend_exceeded,
        block_size=breakdown.block_size,
        blocks_earned=breakdown.blocks_earned,
        active=breakdown.active,
        excluded=breakdown.excluded,
    )


def calculation_to_record(calculation: RewardCalculation, rule_id: Optional[str] = None) -> Dict[str, Any]:
    """Serialise a calculation to its camelCase storage record"""
    breakdowns = calculation.subcategory_breakdowns
    record = CalculationRecord(
        card_id=calculation.card_id,
        rule_id=rule_id or f"card-{calculation.card_id}",
        period=calculation.period,
        reward_type=calculation.reward_type,
        total_spend=calculation.total_spend,
        eligible_spend_before_blocks=calculation.eligible_spend_before_blocks,
        eligible_spend=calculation.eligible_spend,
        reward_earned=calculation.reward_earned,
        reward_earned_dollars=calculation.reward_earned_dollars,
        minimum_spend=calculation.minimum_spend,
        minimum_progress=calculation.minimum_spend_progress,
        minimum_met=calculation.minimum_spend_met,
        maximum_spend=calculation.maximum_spend,
        maximum_progress=calculation.maximum_spend_progress,
        maximum_exceeded=calculation.maximum_spend_exceeded,
        should_stop_using=calculation.should_stop_using,
        subcategory_breakdowns=[_breakdown_record(b) for b in breakdowns] if breakdowns is not None else None,
        excluded_spend=calculation.excluded_spend,
        unresolved_spend=calculation.unresolved_spend,
        unresolved_transaction_count=calculation.unresolved_transaction_count,
    )
    return record.model_dump(mode="json", by_alias=True)


def _breakdown(record: SubcategoryBreakdownRecord) -> SubcategoryCalculation:
    return SubcategoryCalculation(
        id=record.subcategory_id,
        name=record.name,
        flag_color=record.flag_color,
        total_spend=record.total_spend,
        eligible_spend_before_blocks=record.eligible_spend_before_blocks,
        eligible_spend=record.eligible_spend,
        reward_rate=record.reward_rate,
        reward_earned=record.reward_earned,
        reward_earned_dollars=record.reward_earned_dollars,
        minimum_spend=record.minimum_spend,
        minimum_spend_met=record.minimum_spend_met,
        maximum_spend=record.maximum_spend,
        maximum_spend_exceeded=record.maximum_spend_exceeded,
        block_size=record.block_size,
        blocks_earned=record.blocks_earned,
        active=record.active,
        excluded=record.excluded,
    )


def parse_calculation(raw: Mapping[str, Any]) -> RewardCalculation:
    """
    Read a stored calculation record back into the domain.

    Raises:
        InvalidCalculationRecordError: If the record does not validate
    """
    try:
        record = CalculationRecord.model_validate(raw)
    except ValidationError as exc:
        raise InvalidCalculationRecordError(f"Invalid calculation record: {exc}") from exc

    breakdowns = record.subcategory_breakdowns
    return RewardCalculation(
        card_id=record.card_id,
        period=record.period,
        reward_type=record.reward_type,
        total_spend=record.total_spend,
        eligible_spend_before_blocks=record.eligible_spend_before_blocks,
        eligible_spend=record.eligible_spend,
        reward_earned=record.reward_earned,
        reward_earned_dollars=record.reward_earned_dollars,
        minimum_spend=record.minimum_spend,
        minimum_spend_met=record.minimum_met,
        minimum_spend_progress=record.minimum_progress,
        maximum_spend=record.maximum_spend,
        # Older records only carry shouldStopUsing
        maximum_spend_exceeded=record.maximum_exceeded or record.should_stop_using,
        maximum_spend_progress=record.maximum_progress,
        subcategory_breakdowns=[_breakdown(b) for b in breakdowns] if breakdowns is not None else None,
        excluded_spend=record.excluded_spend,
        unresolved_spend=record.unresolved_spend,
        unresolved_transaction_count=record.unresolved_transaction_count,
    )


def parse_calculations(raw: Iterable[Mapping[str, Any]]) -> List[RewardCalculation]:
    return [parse_calculation(item) for item in raw]
