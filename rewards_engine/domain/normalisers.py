"""Enforce subcategory and group invariants on loaded configuration"""

import logging
import uuid
from dataclasses import replace
from typing import Dict, List, Set

from rewards_engine.domain.models import (
    FLAG_COLORS,
    UNFLAGGED,
    UNFLAGGED_LABEL,
    CardReference,
    CardSubcategory,
    CreditCard,
    SubcategoryReference,
    ThemeGroup,
)
from rewards_engine.domain.subcategories import normalise_flag_color

logger = logging.getLogger(__name__)


def create_subcategory_id() -> str:
    return str(uuid.uuid4())


def fallback_flag_name(flag_color: str) -> str:
    """Display name for a band created without one"""
    if flag_color in FLAG_COLORS:
        return flag_color.capitalize()
    return UNFLAGGED_LABEL


def normalise_card(card: CreditCard) -> CreditCard:
    """
    Return a copy of card satisfying the subcategory invariants.

    - at most one subcategory per flag colour (the first wins)
    - when subcategories are enabled, exactly one unflagged fallback band,
      created at the card's earning rate if missing
    - priorities renumbered 0..n-1 in ascending priority order
    """
    seen_flags: Set[str] = set()
    subcategories: List[CardSubcategory] = []

    for index, subcategory in enumerate(card.subcategories):
        flag = normalise_flag_color(subcategory.flag_color)
        if flag in seen_flags:
            logger.warning(
                "Duplicate flag colour skipped",
                extra={"card_id": card.id, "subcategory": subcategory.name, "flag_color": flag, "index": index},
            )
            continue
        seen_flags.add(flag)
        subcategories.append(
            replace(
                subcategory,
                flag_color=flag,
                name=subcategory.name.strip() or fallback_flag_name(flag),
            )
        )

    if card.subcategories_enabled and UNFLAGGED not in seen_flags:
        subcategories.append(
            CardSubcategory(
                id=create_subcategory_id(),
                name=fallback_flag_name(UNFLAGGED),
                flag_color=UNFLAGGED,
                reward_value=card.earning_rate or 0.0,
                priority=max((sub.priority for sub in subcategories), default=-1) + 1,
            )
        )

    ordered = sorted(subcategories, key=lambda sub: sub.priority)
    renumbered = [replace(sub, priority=index) for index, sub in enumerate(ordered)]

    return replace(card, subcategories=renumbered)


def normalise_theme_group(group: ThemeGroup, cards: List[CreditCard]) -> ThemeGroup:
    """Drop references to unknown cards or subcategories, and duplicates"""
    known: Dict[str, Set[str]] = {card.id: {sub.id for sub in card.subcategories} for card in cards}

    subcategories: List[SubcategoryReference] = []
    for ref in group.subcategories:
        if ref.subcategory_id in known.get(ref.card_id, set()) and ref not in subcategories:
            subcategories.append(ref)

    card_refs: List[CardReference] = []
    for card_ref in group.cards:
        if card_ref.card_id in known and card_ref not in card_refs:
            card_refs.append(card_ref)

    return replace(
        group,
        name=group.name.strip() or "Untitled Theme",
        subcategories=subcategories,
        cards=card_refs,
    )


def prune_theme_groups(groups: List[ThemeGroup], cards: List[CreditCard]) -> List[ThemeGroup]:
    """Normalise all groups, order them by priority and renumber priorities"""
    normalised = sorted((normalise_theme_group(group, cards) for group in groups), key=lambda g: g.priority)
    return [replace(group, priority=index) for index, group in enumerate(normalised)]
