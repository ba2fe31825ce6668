from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ..products.models import InteractionType, ProductOut

MIN_AGE_MONTHS = -3
MAX_AGE_MONTHS = 72


class PreferenceProfile(BaseModel):
    budget: str = "balanced"
    eco_priority: bool = False


class RecommendationRequest(BaseModel):
    preferred_categories: list[str] | None = Field(
        default=None,
        description="Categories to guarantee coverage for; defaults to the saved profile's",
    )
    milestone_ids: list[str] = Field(default_factory=list)
    age_months: int | None = Field(default=None, ge=MIN_AGE_MONTHS, le=MAX_AGE_MONTHS)
    budget: str | None = Field(default=None, description="Overrides the saved budget tier")
    eco_priority: bool | None = None
    candidate_limit: int = Field(default=100, ge=1, le=100)
    include_notes: bool = True


class RecommendationItem(BaseModel):
    product: ProductOut
    score: float
    rationale: str
    note: str | None = None


class RecommendationResponse(BaseModel):
    recommendations: list[RecommendationItem]
    total_candidates: int
    profile: PreferenceProfile
    preferred_categories: list[str]
    age_months: int | None = None


class HistoryItem(BaseModel):
    product_id: str
    name: str
    category: str | None = None
    brand: str | None = None
    price_cents: int | None = None
    currency: str | None = None
    milestone_ids: list[str] = Field(default_factory=list)
    source: Literal["recommendation", "interaction"]
    reason: str | None = None
    recommendation_score: float | None = None
    interaction_type: InteractionType | None = None
    recorded_at: datetime | None = None


class HistoryResponse(BaseModel):
    items: list[HistoryItem]
