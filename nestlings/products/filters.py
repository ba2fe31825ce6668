"""
Product query options and their translation into SQL predicates.

Every filter is optional and ``None`` always means "not supplied": a
``min_price`` of 0 or an ``eco_friendly`` of False is a real filter.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, field_validator
from sqlalchemy import exists, func, or_
from sqlalchemy.sql.elements import ColumnElement

from ..db.models import Product, ProductMilestone

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# Bound for integers bound into SQL; SQLite and BIGINT columns stop at int64.
SQL_INT_MAX = 2**63 - 1
MAX_PAGE = SQL_INT_MAX // MAX_LIMIT

SORT_FIELDS: dict[str, Any] = {
    "created_at": Product.created_at,
    "updated_at": Product.updated_at,
    "name": Product.name,
    "price_cents": Product.price_cents,
    "rating": Product.rating,
    "review_count": Product.review_count,
}
_SORT_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "price": "price_cents",
    "priceCents": "price_cents",
    "reviewCount": "review_count",
}
DEFAULT_SORT_FIELD = "created_at"
DEFAULT_SORT_ORDER = "desc"

NON_PREMIUM_TIERS = {"essentials", "balanced", "budget", "standard"}
PREMIUM_TIERS = {"premium", "luxury"}


def _as_list(value: Any) -> list[str] | None:
    if value is None:
        return None
    items = [value] if isinstance(value, str) else list(value)
    cleaned = [str(v).strip() for v in items if str(v).strip()]
    return cleaned or None


class ProductQueryFilters(BaseModel):
    category: list[str] | None = None
    milestone_ids: list[str] | None = None
    age_months: int | None = None
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float | None = None
    budget_tier: str | None = None
    search: str | None = None
    eco_friendly: bool | None = None
    premium: bool | None = None
    in_stock: bool | None = None

    @field_validator("category", "milestone_ids", mode="before")
    @classmethod
    def _single_or_list(cls, value: Any) -> list[str] | None:
        return _as_list(value)

    @field_validator("search", "budget_tier", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class ProductQueryOptions(BaseModel):
    page: int | None = None
    limit: int | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    include_reviews: bool = False
    include_ai_categories: bool = False
    filters: ProductQueryFilters = Field(default_factory=ProductQueryFilters)


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def normalize_pagination(page: int | None, limit: int | None) -> PageWindow:
    page = DEFAULT_PAGE if page is None else min(max(page, 1), MAX_PAGE)
    limit = DEFAULT_LIMIT if limit is None else min(max(limit, 1), MAX_LIMIT)
    return PageWindow(page=page, limit=limit)


def normalize_sort(sort_by: str | None, sort_order: str | None) -> tuple[str, str]:
    field = _SORT_ALIASES.get(sort_by or "", sort_by)
    if field not in SORT_FIELDS:
        field = DEFAULT_SORT_FIELD
    order = (sort_order or "").strip().lower()
    if order not in ("asc", "desc"):
        order = DEFAULT_SORT_ORDER
    return field, order


def to_cents(amount: float) -> int:
    cents = amount * 100
    if not math.isfinite(cents):
        return SQL_INT_MAX if cents > 0 else -SQL_INT_MAX
    return _clamp_sql_int(round(cents))


def _clamp_sql_int(value: int) -> int:
    return max(-SQL_INT_MAX, min(SQL_INT_MAX, value))


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so ``term`` matches literally (escape char is a backslash)."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_conditions(filters: ProductQueryFilters) -> list[ColumnElement[bool]]:
    """Translate ``filters`` into predicates that are ANDed together.

    When ``in_stock`` is not supplied, out-of-stock products are hidden.
    """
    conditions: list[ColumnElement[bool]] = []

    if filters.in_stock is None:
        conditions.append(Product.in_stock.is_(True))
    else:
        conditions.append(Product.in_stock.is_(filters.in_stock))

    if filters.category:
        conditions.append(Product.category.in_(filters.category))

    if filters.milestone_ids:
        conditions.append(exists().where(
            ProductMilestone.product_id == Product.id,
            ProductMilestone.milestone_id.in_(filters.milestone_ids),
        ))

    if filters.age_months is not None:
        age = _clamp_sql_int(filters.age_months)
        conditions.append(or_(
            Product.age_range_months_min.is_(None),
            Product.age_range_months_min <= age,
        ))
        conditions.append(or_(
            Product.age_range_months_max.is_(None),
            Product.age_range_months_max >= age,
        ))

    if filters.budget_tier is not None:
        tier = filters.budget_tier.lower()
        if tier in NON_PREMIUM_TIERS:
            conditions.append(Product.premium.is_(False))
        elif tier in PREMIUM_TIERS:
            conditions.append(Product.premium.is_(True))
        else:
            logger.debug("Ignoring unknown budget tier filter %r", filters.budget_tier)

    if filters.premium is not None:
        conditions.append(Product.premium.is_(filters.premium))

    if filters.eco_friendly is not None:
        conditions.append(Product.eco_friendly.is_(filters.eco_friendly))

    if filters.min_price is not None:
        conditions.append(Product.price_cents >= to_cents(filters.min_price))

    if filters.max_price is not None:
        conditions.append(Product.price_cents <= to_cents(filters.max_price))

    if filters.min_rating is not None:
        conditions.append(func.coalesce(Product.rating, 0) >= filters.min_rating)

    if filters.search:
        pattern = f"%{escape_like(filters.search)}%"
        conditions.append(or_(
            Product.name.ilike(pattern, escape="\\"),
            Product.description.ilike(pattern, escape="\\"),
            Product.brand.ilike(pattern, escape="\\"),
        ))

    return conditions


# ── Query-string parsing ─────────────────────────────────────────────────


def _parse_int(raw: str | None) -> int | None:
    number = _parse_float(raw)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _parse_float(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_bool(raw: str | None) -> bool | None:
    if raw is None:
        return None
    lowered = raw.strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    return None


def _split(raw: str | None) -> list[str] | None:
    if not raw:
        return None
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts or None


def _getlist(params: Any, key: str) -> list[str]:
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        return list(getlist(key))
    value = params.get(key)
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def parse_query_params(params: Any) -> ProductQueryOptions:
    """Build query options from raw query-string values.

    ``params`` is any mapping of names to strings (``request.query_params``
    or a plain dict). Values that do not parse are dropped, never raised.
    """
    categories = _split(params.get("categories")) or _as_list(
        [c for raw in _getlist(params, "category") for c in raw.split(",")]
    )
    milestone_ids = _split(params.get("milestoneIds")) or _as_list(
        [m for raw in _getlist(params, "milestoneId") for m in raw.split(",")]
    )

    filters = ProductQueryFilters(
        category=categories,
        milestone_ids=milestone_ids,
        age_months=_parse_int(params.get("ageMonths")),
        min_price=_parse_float(params.get("minPrice")),
        max_price=_parse_float(params.get("maxPrice")),
        min_rating=_parse_float(params.get("minRating")),
        budget_tier=params.get("budgetTier"),
        search=params.get("search"),
        eco_friendly=_parse_bool(params.get("ecoFriendly")),
        premium=_parse_bool(params.get("premium")),
        in_stock=_parse_bool(params.get("inStock")),
    )

    return ProductQueryOptions(
        page=_parse_int(params.get("page")),
        limit=_parse_int(params.get("limit")),
        sort_by=params.get("sortBy"),
        sort_order=params.get("sortOrder"),
        include_reviews=bool(_parse_bool(params.get("includeReviews"))),
        include_ai_categories=bool(_parse_bool(params.get("includeAiCategories"))),
        filters=filters,
    )
