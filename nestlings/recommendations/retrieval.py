from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any

from sqlalchemy.orm import Session

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import annotate_picks
from ..milestones.dates import current_month_index, reference_date
from ..products.cache import TTLCache
from ..products.filters import ProductQueryFilters, ProductQueryOptions
from ..products.service import ProductService, transaction
from ..profiles.models import ProfileOut
from ..profiles.repository import get_profile
from .config import DEFAULT_SCORER_CONFIG, ScorerConfig
from .history import remember_recommendations
from .models import (
    MAX_AGE_MONTHS,
    MIN_AGE_MONTHS,
    PreferenceProfile,
    RecommendationItem,
    RecommendationRequest,
    RecommendationResponse,
)
from .scorer import rank_products

logger = logging.getLogger(__name__)


def to_preference_profile(
    profile: ProfileOut | None,
    request: RecommendationRequest,
) -> PreferenceProfile:
    """Saved profile with request overrides applied; defaults when onboarding is incomplete."""
    budget = request.budget
    if budget is None and profile is not None and profile.budget is not None:
        budget = profile.budget.value
    eco = request.eco_priority
    if eco is None:
        eco = profile.eco_priority if profile is not None else False
    return PreferenceProfile(budget=budget or "balanced", eco_priority=eco)


def infer_age_months(profile: ProfileOut | None, today: date | None = None) -> int | None:
    """Baby's age in months from the saved birth or due date, held to the supported span."""
    reference = reference_date(profile)
    if reference is None:
        return None
    month = current_month_index(reference, today)
    return max(MIN_AGE_MONTHS, min(MAX_AGE_MONTHS, month))


def get_recommendations(
    db: Session,
    user: dict[str, Any],
    request: RecommendationRequest,
    cache: TTLCache | None = None,
    scorer_config: ScorerConfig = DEFAULT_SCORER_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
    today: date | None = None,
) -> RecommendationResponse:
    start_time = time.time()

    saved = get_profile(db, user["id"])
    profile = to_preference_profile(saved, request)
    age_months = request.age_months
    if age_months is None:
        age_months = infer_age_months(saved, today)
    if request.preferred_categories is not None:
        preferred = request.preferred_categories
    else:
        preferred = saved.preferred_categories if saved is not None else []

    # --- Candidates ---
    options = ProductQueryOptions(
        limit=request.candidate_limit,
        sort_by="rating",
        sort_order="desc",
        filters=ProductQueryFilters(
            milestone_ids=request.milestone_ids or None,
            age_months=age_months,
            in_stock=True,
        ),
    )
    candidates = ProductService(db, cache).query(options).products

    # --- Scoring ---
    ranked = rank_products(candidates, profile, preferred, config=scorer_config)

    # --- LLM notes (never reorder) ---
    notes: dict[str, str] = {}
    if request.include_notes and ranked:
        notes = annotate_picks(
            {
                "budget": profile.budget,
                "eco_priority": profile.eco_priority,
                "preferred_categories": preferred,
                "milestone_ids": request.milestone_ids,
            },
            [
                {
                    "id": s.product.id,
                    "name": s.product.name,
                    "category": s.product.category,
                    "price": s.product.price,
                    "rating": s.product.rating,
                }
                for s in ranked
            ],
            config=llm_config,
        )

    with transaction(db):
        remember_recommendations(db, user["id"], ranked)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Ranked %d of %d candidates for user %s in %sms (notes=%d)",
        len(ranked), len(candidates), user["id"], elapsed_ms, len(notes),
    )

    return RecommendationResponse(
        recommendations=[
            RecommendationItem(
                product=s.product,
                score=round(s.score, 4),
                rationale=s.rationale,
                note=notes.get(s.product.id),
            )
            for s in ranked
        ],
        total_candidates=len(candidates),
        profile=profile,
        preferred_categories=preferred,
        age_months=age_months,
    )
