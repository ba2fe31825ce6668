"""
Rule-based product scorer.

Each candidate starts from its own rating and picks up bonuses for a
preferred-category match, eco-friendliness (when the caregiver cares) and
fitting the budget tier. ``rank_products`` then deduplicates, orders by
score and pulls the best product of each preferred category to the front.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..profiles.budget import resolve_budget_tier
from .config import DEFAULT_SCORER_CONFIG, ScorerConfig
from .models import PreferenceProfile

logger = logging.getLogger(__name__)

POPULAR_PICK = "Popular pick."


@dataclass(frozen=True)
class ScoredProduct:
    product: Any
    score: float
    rationale: str


def resolve_budget_threshold(tier: str | None, config: ScorerConfig = DEFAULT_SCORER_CONFIG) -> float:
    """Spend ceiling (whole currency units) for ``tier``.

    Storage aliases such as ``standard`` or ``luxury`` are accepted. Anything
    else is scored as ``config.fallback_budget``.
    """
    resolved = resolve_budget_tier(tier)
    if resolved is not None and resolved.value in config.budget_thresholds:
        return config.budget_thresholds[resolved.value]
    logger.warning("Unknown budget tier %r, scoring as %r", tier, config.fallback_budget)
    return config.budget_thresholds[config.fallback_budget]


def _price(product: Any) -> float | None:
    price = getattr(product, "price", None)
    if price is not None:
        return float(price)
    cents = getattr(product, "price_cents", None)
    return cents / 100 if cents is not None else None


def score_product(
    product: Any,
    profile: PreferenceProfile,
    preferred_categories: list[str],
    config: ScorerConfig = DEFAULT_SCORER_CONFIG,
) -> ScoredProduct:
    score = float(product.rating or 0.0)
    reasons: list[str] = []

    if product.category in preferred_categories:
        weight = config.category_weights.get(product.category, 1.0)
        score += config.category_bonus * weight
        reasons.append(f"Matches category focus on {product.category}.")

    if profile.eco_priority and product.eco_friendly:
        score += config.eco_bonus
        reasons.append("Eco-friendly option.")

    # Unpriced products get no budget term either way.
    price = _price(product)
    if price is not None:
        if price <= resolve_budget_threshold(profile.budget, config):
            score += config.within_budget_bonus
            reasons.append("Within monthly budget comfort zone.")
        else:
            score -= config.over_budget_penalty
            reasons.append("Exceeds target monthly spend but adds long-term value.")

    return ScoredProduct(
        product=product,
        score=score,
        rationale=" ".join(reasons) if reasons else POPULAR_PICK,
    )


def rank_products(
    products: list[Any],
    profile: PreferenceProfile,
    preferred_categories: list[str],
    config: ScorerConfig = DEFAULT_SCORER_CONFIG,
) -> list[ScoredProduct]:
    """Score, deduplicate by id, sort and diversify. At most ``config.max_results`` entries."""
    best: dict[str, ScoredProduct] = {}
    for product in products:
        scored = score_product(product, profile, preferred_categories, config)
        current = best.get(product.id)
        if current is None or scored.score > current.score:
            best[product.id] = scored

    ranked = sorted(best.values(), key=lambda s: s.score, reverse=True)

    picked: list[ScoredProduct] = []
    picked_ids: set[str] = set()
    for category in preferred_categories:
        for scored in ranked:
            if scored.product.category == category and scored.product.id not in picked_ids:
                picked.append(scored)
                picked_ids.add(scored.product.id)
                break

    rest = [s for s in ranked if s.product.id not in picked_ids]
    return (picked + rest)[: config.max_results]
