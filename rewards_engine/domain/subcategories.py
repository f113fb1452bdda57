"""Subcategory (band) resolution by transaction flag colour"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from rewards_engine.domain.models import FLAG_COLORS, UNFLAGGED, CardSubcategory, CreditCard

_KNOWN_FLAGS = frozenset((UNFLAGGED,) + FLAG_COLORS)


def normalise_flag_color(flag_color: Optional[str]) -> str:
    """Lowercase a known flag colour; missing or unknown tags map to UNFLAGGED"""
    if not flag_color:
        return UNFLAGGED
    lowered = flag_color.lower()
    return lowered if lowered in _KNOWN_FLAGS else UNFLAGGED


@dataclass
class SubcategoryContext:
    """Active bands of a card in priority order, indexed by flag colour"""

    enabled: bool
    active_subcategories: List[CardSubcategory] = field(default_factory=list)
    by_flag: Dict[str, CardSubcategory] = field(default_factory=dict)
    fallback: Optional[CardSubcategory] = None

    @property
    def in_use(self) -> bool:
        return self.enabled and bool(self.active_subcategories)


def create_subcategory_context(card: CreditCard) -> SubcategoryContext:
    if not card.subcategories_enabled:
        return SubcategoryContext(enabled=False)

    # sorted() is stable: equal priorities keep their configured order
    active = sorted(
        (sub for sub in card.subcategories if sub is not None and sub.active),
        key=lambda sub: sub.priority,
    )

    by_flag: Dict[str, CardSubcategory] = {}
    for subcategory in active:
        by_flag[normalise_flag_color(subcategory.flag_color)] = subcategory

    return SubcategoryContext(
        enabled=True,
        active_subcategories=active,
        by_flag=by_flag,
        fallback=by_flag.get(UNFLAGGED),
    )


def resolve_subcategory(context: SubcategoryContext, flag_color: Optional[str]) -> Optional[CardSubcategory]:
    """Band for a transaction tag, the fallback band, or None if neither exists"""
    if not context.enabled:
        return None
    return context.by_flag.get(normalise_flag_color(flag_color), context.fallback)
