"""
SQL access for the product catalog.

Functions here never commit; the service layer owns the transaction so a
multi-table write either lands completely or not at all.
"""
from __future__ import annotations

import logging
import math
from collections import defaultdict

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ..db.models import (
    AiCategory,
    Product,
    ProductAiCategory,
    ProductMilestone,
    ProductReview,
    UserProductInteraction,
    UserProductRecommendation,
)
from .errors import ProductNotFoundError
from .filters import (
    SORT_FIELDS,
    ProductQueryOptions,
    build_conditions,
    normalize_pagination,
    normalize_sort,
)
from .models import (
    CategoryCount,
    Pagination,
    PriceRangeCount,
    ProductCreate,
    ProductListResponse,
    ProductOut,
    ProductStats,
    ReviewOut,
    ReviewSource,
)

logger = logging.getLogger(__name__)

# Rows that reference a product and go with it on delete.
DEPENDENT_TABLES = (
    ProductAiCategory,
    ProductReview,
    ProductMilestone,
    UserProductRecommendation,
    UserProductInteraction,
)


def to_product_out(
    product: Product,
    ai_category_ids: list[str] | None = None,
    reviews: list[ReviewOut] | None = None,
) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        description=product.description,
        category=product.category,
        subcategory=product.subcategory,
        brand=product.brand,
        image_url=product.image_url,
        price_cents=product.price_cents,
        currency=product.currency or "USD",
        start_date=product.start_date,
        end_date=product.end_date,
        age_range_months_min=product.age_range_months_min,
        age_range_months_max=product.age_range_months_max,
        milestone_ids=product.milestone_ids,
        tags=product.tags or [],
        eco_friendly=bool(product.eco_friendly),
        premium=bool(product.premium),
        rating=product.rating,
        review_count=product.review_count or 0,
        affiliate_url=product.affiliate_url,
        in_stock=bool(product.in_stock),
        period_start_month=product.period_start_month,
        period_end_month=product.period_end_month,
        safety_notes=product.safety_notes,
        review_sources=[ReviewSource(**s) for s in product.review_sources or []],
        external_review_urls=[ReviewSource(**s) for s in product.external_review_urls or []],
        source_url=product.source_url,
        created_at=product.created_at,
        updated_at=product.updated_at,
        ai_category_ids=ai_category_ids,
        reviews=reviews,
    )


def _ai_categories_by_product(db: Session, product_ids: list[str]) -> dict[str, list[str]]:
    grouped: dict[str, set[str]] = defaultdict(set)
    rows = (
        db.query(ProductAiCategory.product_id, ProductAiCategory.ai_category_id)
        .filter(ProductAiCategory.product_id.in_(product_ids))
        .all()
    )
    for product_id, category_id in rows:
        grouped[product_id].add(category_id)
    return {pid: sorted(ids) for pid, ids in grouped.items()}


def _reviews_by_product(db: Session, product_ids: list[str]) -> dict[str, list[ReviewOut]]:
    grouped: dict[str, list[ReviewOut]] = defaultdict(list)
    rows = (
        db.query(ProductReview)
        .filter(ProductReview.product_id.in_(product_ids))
        .order_by(ProductReview.created_at, ProductReview.id)
        .all()
    )
    for r in rows:
        grouped[r.product_id].append(ReviewOut(
            id=r.id,
            source=r.source,
            url=r.url,
            headline=r.headline,
            summary=r.summary,
            rating=r.rating,
            author=r.author,
            published_at=r.published_at,
        ))
    return grouped


def query_products(db: Session, options: ProductQueryOptions) -> ProductListResponse:
    """Return one page of products matching ``options`` plus the total count."""
    window = normalize_pagination(options.page, options.limit)
    field, order = normalize_sort(options.sort_by, options.sort_order)
    conditions = build_conditions(options.filters)

    total = db.query(func.count(Product.id)).filter(*conditions).scalar() or 0

    column = SORT_FIELDS[field]
    ordering = column.asc() if order == "asc" else column.desc()
    rows = (
        db.query(Product)
        .filter(*conditions)
        .order_by(ordering.nulls_last(), Product.id.asc())
        .offset(window.offset)
        .limit(window.limit)
        .all()
    )
    logger.debug(
        "Product query matched %d rows (page=%d limit=%d sort=%s %s)",
        total, window.page, window.limit, field, order,
    )

    ids = [p.id for p in rows]
    ai_categories = _ai_categories_by_product(db, ids) if options.include_ai_categories and ids else {}
    reviews = _reviews_by_product(db, ids) if options.include_reviews and ids else {}

    products = [
        to_product_out(
            p,
            ai_category_ids=ai_categories.get(p.id, []) if options.include_ai_categories else None,
            reviews=reviews.get(p.id, []) if options.include_reviews else None,
        )
        for p in rows
    ]

    return ProductListResponse(
        products=products,
        pagination=Pagination(
            page=window.page,
            limit=window.limit,
            total=total,
            total_pages=math.ceil(total / window.limit),
        ),
        filters=options.filters.model_dump(exclude_none=True),
    )


def product_exists(db: Session, product_id: str) -> bool:
    return db.query(Product.id).filter(Product.id == product_id).first() is not None


def find_product_id_by_name(db: Session, name: str) -> str | None:
    row = db.query(Product.id).filter(func.lower(Product.name) == name.strip().lower()).first()
    return row[0] if row else None


def insert_product(db: Session, payload: ProductCreate) -> Product:
    product = Product(
        name=payload.name.strip(),
        description=payload.description,
        category=payload.category.strip(),
        subcategory=payload.subcategory,
        brand=payload.brand,
        image_url=payload.image_url,
        price_cents=payload.price_cents,
        currency=payload.currency,
        start_date=payload.start_date,
        end_date=payload.end_date,
        age_range_months_min=payload.age_range_months_min,
        age_range_months_max=payload.age_range_months_max,
        period_start_month=payload.period_start_month,
        period_end_month=payload.period_end_month,
        tags=payload.tags,
        eco_friendly=payload.eco_friendly,
        premium=payload.premium,
        rating=payload.rating,
        review_count=payload.review_count,
        affiliate_url=payload.affiliate_url,
        in_stock=payload.in_stock,
        review_sources=[s.model_dump() for s in payload.review_sources],
        external_review_urls=[s.model_dump() for s in payload.external_review_urls],
        safety_notes=payload.safety_notes,
        source_url=payload.source_url,
    )
    db.add(product)
    db.flush()

    for milestone_id in payload.milestone_ids:
        db.add(ProductMilestone(product_id=product.id, milestone_id=milestone_id))
    for review in payload.reviews:
        db.add(ProductReview(product_id=product.id, **review.model_dump()))
    db.flush()
    db.refresh(product)
    return product


def assign_ai_categories(db: Session, product_id: str, ai_category_ids: list[str]) -> list[str]:
    """Link known AI categories to a product; existing links are left alone.

    Returns the ids that were linked. Unknown category ids are skipped.
    """
    if not ai_category_ids:
        return []
    known = {
        row[0]
        for row in db.query(AiCategory.id).filter(AiCategory.id.in_(ai_category_ids)).all()
    }
    existing = {
        row[0]
        for row in db.query(ProductAiCategory.ai_category_id)
        .filter(ProductAiCategory.product_id == product_id)
        .all()
    }
    unknown = sorted(set(ai_category_ids) - known)
    if unknown:
        logger.warning("Skipping unknown AI categories for product %s: %s", product_id, unknown)

    linked: list[str] = []
    for category_id in ai_category_ids:
        if category_id in known and category_id not in existing:
            db.add(ProductAiCategory(product_id=product_id, ai_category_id=category_id))
            existing.add(category_id)
        if category_id in known:
            linked.append(category_id)
    db.flush()
    return linked


def delete_product(db: Session, product_id: str) -> None:
    """Remove a product and every row that references it.

    Raises ``ProductNotFoundError`` before touching any table when the id
    is unknown.
    """
    if not product_exists(db, product_id):
        raise ProductNotFoundError(product_id)

    for table in DEPENDENT_TABLES:
        db.query(table).filter(table.product_id == product_id).delete(synchronize_session=False)
    db.query(Product).filter(Product.id == product_id).delete(synchronize_session=False)
    db.expire_all()


def record_interaction(
    db: Session,
    user_id: str,
    product_id: str,
    interaction_type: str,
) -> UserProductInteraction:
    if not product_exists(db, product_id):
        raise ProductNotFoundError(product_id)
    row = UserProductInteraction(
        user_id=user_id,
        product_id=product_id,
        interaction_type=interaction_type,
    )
    db.add(row)
    db.flush()
    return row


def product_stats(db: Session) -> ProductStats:
    in_stock = Product.in_stock.is_(True)

    total = db.query(func.count(Product.id)).filter(in_stock).scalar() or 0

    count = func.count(Product.id)
    category_rows = (
        db.query(Product.category, count)
        .filter(in_stock)
        .group_by(Product.category)
        .order_by(count.desc(), Product.category)
        .all()
    )

    bucket = case(
        (Product.price_cents < 2000, "Under $20"),
        (Product.price_cents < 5000, "$20-$50"),
        (Product.price_cents < 10000, "$50-$100"),
        (Product.price_cents < 20000, "$100-$200"),
        else_="Over $200",
    )
    price_rows = (
        db.query(bucket, count)
        .filter(in_stock, Product.price_cents.isnot(None))
        .group_by(bucket)
        .order_by(func.min(Product.price_cents))
        .all()
    )

    avg_rating = (
        db.query(func.avg(Product.rating))
        .filter(in_stock, Product.rating.isnot(None))
        .scalar()
    )
    eco_count = (
        db.query(func.count(Product.id))
        .filter(in_stock, Product.eco_friendly.is_(True))
        .scalar()
    )

    return ProductStats(
        total_products=total,
        categories=[CategoryCount(category=c, count=n) for c, n in category_rows],
        price_ranges=[PriceRangeCount(range=r, count=n) for r, n in price_rows],
        average_rating=round(float(avg_rating or 0.0), 2),
        eco_friendly_count=eco_count or 0,
    )
