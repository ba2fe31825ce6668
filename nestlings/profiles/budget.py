"""
Budget tier vocabulary.

Caregivers pick essentials / balanced / premium; storage keeps the older
budget / standard / premium / luxury values.
"""
from __future__ import annotations

from enum import Enum


class BudgetTier(str, Enum):
    essentials = "essentials"
    balanced = "balanced"
    premium = "premium"


_TO_DB: dict[BudgetTier, str] = {
    BudgetTier.essentials: "budget",
    BudgetTier.balanced: "standard",
    BudgetTier.premium: "premium",
}

_FROM_DB: dict[str, BudgetTier] = {
    "budget": BudgetTier.essentials,
    "standard": BudgetTier.balanced,
    "premium": BudgetTier.premium,
    "luxury": BudgetTier.premium,
}


def map_budget_to_db(budget: str | None) -> str | None:
    if not budget:
        return None
    normalized = budget.strip().lower()
    try:
        return _TO_DB[BudgetTier(normalized)]
    except ValueError:
        return normalized


def map_budget_from_db(value: str | None) -> BudgetTier | None:
    if not value:
        return None
    return _FROM_DB.get(value.strip().lower())


def resolve_budget_tier(value: str | None) -> BudgetTier | None:
    """Accept either vocabulary; ``None`` when the value is unrecognized."""
    if not value:
        return None
    normalized = value.strip().lower()
    try:
        return BudgetTier(normalized)
    except ValueError:
        return _FROM_DB.get(normalized)
