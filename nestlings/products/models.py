from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

InteractionType = Literal["view", "like", "dislike", "purchase", "wishlist"]


def clean_strings(values: list[str] | None) -> list[str]:
    """Strip entries, drop blanks and repeats, keep first-seen order."""
    seen: dict[str, None] = {}
    for value in values or []:
        if isinstance(value, str) and value.strip():
            seen.setdefault(value.strip(), None)
    return list(seen)


class ReviewSource(BaseModel):
    source: str = Field(..., min_length=1)
    url: str | None = None


class ReviewIn(BaseModel):
    source: str = Field(..., min_length=1)
    url: str | None = None
    headline: str | None = None
    summary: str | None = None
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    author: str | None = None
    published_at: datetime | None = None


class ReviewOut(ReviewIn):
    id: str


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str | None = None
    category: str = Field(..., min_length=1)
    subcategory: str | None = None
    brand: str | None = None
    image_url: str | None = None
    price_cents: int | None = Field(default=None, ge=0)
    currency: str = "USD"
    start_date: date | None = None
    end_date: date | None = None
    age_range_months_min: int | None = Field(default=None, ge=0)
    age_range_months_max: int | None = Field(default=None, ge=0)
    milestone_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    eco_friendly: bool = False
    premium: bool = False
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    review_count: int = Field(default=0, ge=0)
    affiliate_url: str | None = None
    in_stock: bool = True
    period_start_month: int | None = Field(default=None, ge=-3, le=48)
    period_end_month: int | None = Field(default=None, ge=-3, le=60)
    safety_notes: str | None = None
    review_sources: list[ReviewSource] = Field(default_factory=list)
    external_review_urls: list[ReviewSource] = Field(default_factory=list)
    source_url: str | None = None
    ai_category_ids: list[str] = Field(default_factory=list)
    reviews: list[ReviewIn] = Field(default_factory=list)

    @field_validator("milestone_ids", "tags", "ai_category_ids", mode="before")
    @classmethod
    def _normalize_lists(cls, value: Any) -> list[str]:
        return clean_strings(value if isinstance(value, list) else None)

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, value: Any) -> str:
        return str(value).upper() if value else "USD"

    @model_validator(mode="after")
    def _check_age_range(self) -> "ProductCreate":
        lo, hi = self.age_range_months_min, self.age_range_months_max
        if lo is not None and hi is not None and lo > hi:
            raise ValueError("age_range_months_min must not exceed age_range_months_max")
        return self


class ProductOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    category: str
    subcategory: str | None = None
    brand: str | None = None
    image_url: str | None = None
    price_cents: int | None = None
    currency: str = "USD"
    start_date: date | None = None
    end_date: date | None = None
    age_range_months_min: int | None = None
    age_range_months_max: int | None = None
    milestone_ids: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    eco_friendly: bool = False
    premium: bool = False
    rating: float | None = None
    review_count: int = 0
    affiliate_url: str | None = None
    in_stock: bool = True
    period_start_month: int | None = None
    period_end_month: int | None = None
    safety_notes: str | None = None
    review_sources: list[ReviewSource] = Field(default_factory=list)
    external_review_urls: list[ReviewSource] = Field(default_factory=list)
    source_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    ai_category_ids: list[str] | None = None
    reviews: list[ReviewOut] | None = None

    @property
    def price(self) -> float | None:
        """Price in whole currency units, or ``None`` when unknown."""
        if self.price_cents is None:
            return None
        return self.price_cents / 100


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ProductListResponse(BaseModel):
    products: list[ProductOut]
    pagination: Pagination
    filters: dict[str, Any] = Field(default_factory=dict)


class ProductCreateResponse(BaseModel):
    product: ProductOut
    message: str


class ProductDeleteResponse(BaseModel):
    id: str
    message: str


class CategoryCount(BaseModel):
    category: str
    count: int


class PriceRangeCount(BaseModel):
    range: str
    count: int


class ProductStats(BaseModel):
    total_products: int
    categories: list[CategoryCount]
    price_ranges: list[PriceRangeCount]
    average_rating: float
    eco_friendly_count: int


class InteractionRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    interaction_type: InteractionType


class InteractionResponse(BaseModel):
    status: str
    product_id: str
    interaction_type: InteractionType


class ImportRequest(BaseModel):
    source_url: str = Field(..., min_length=1)
    milestone_id: str | None = None
    ai_category_ids: list[str] = Field(default_factory=list)
