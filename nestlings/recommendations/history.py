"""
Per-user recommendation history.

Served picks are remembered (one row per user and product, refreshed on
every serve); the history view merges them with the user's interactions.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..db.models import Product, UserProductInteraction, UserProductRecommendation
from .models import HistoryItem
from .scorer import ScoredProduct

logger = logging.getLogger(__name__)


def remember_recommendations(db: Session, user_id: str, picks: list[ScoredProduct]) -> None:
    """Upsert one row per served product. Does not commit."""
    if not picks:
        return
    ids = [p.product.id for p in picks]
    existing = {
        row.product_id: row
        for row in db.query(UserProductRecommendation)
        .filter(
            UserProductRecommendation.user_id == user_id,
            UserProductRecommendation.product_id.in_(ids),
        )
        .all()
    }
    for pick in picks:
        row = existing.get(pick.product.id)
        if row is None:
            db.add(UserProductRecommendation(
                user_id=user_id,
                product_id=pick.product.id,
                recommendation_score=round(pick.score, 4),
                reason=pick.rationale,
            ))
        else:
            row.recommendation_score = round(pick.score, 4)
            row.reason = pick.rationale
            row.created_at = datetime.now(timezone.utc)
    db.flush()
    logger.debug("Remembered %d recommendations for user %s", len(picks), user_id)


def _item(product: Product, **extra) -> HistoryItem:
    return HistoryItem(
        product_id=product.id,
        name=product.name,
        category=product.category,
        brand=product.brand,
        price_cents=product.price_cents,
        currency=product.currency,
        milestone_ids=product.milestone_ids,
        **extra,
    )


def recommendation_history(db: Session, user_id: str, limit: int = 50) -> list[HistoryItem]:
    """Served recommendations and interactions for ``user_id``, newest first."""
    recs = (
        db.query(UserProductRecommendation, Product)
        .join(Product, Product.id == UserProductRecommendation.product_id)
        .filter(UserProductRecommendation.user_id == user_id)
        .order_by(UserProductRecommendation.created_at.desc())
        .limit(limit)
        .all()
    )
    interactions = (
        db.query(UserProductInteraction, Product)
        .join(Product, Product.id == UserProductInteraction.product_id)
        .filter(UserProductInteraction.user_id == user_id)
        .order_by(UserProductInteraction.created_at.desc())
        .limit(limit)
        .all()
    )

    items = [
        _item(
            product,
            source="recommendation",
            reason=rec.reason,
            recommendation_score=rec.recommendation_score,
            recorded_at=rec.created_at,
        )
        for rec, product in recs
    ] + [
        _item(
            product,
            source="interaction",
            interaction_type=interaction.interaction_type,
            recorded_at=interaction.created_at,
        )
        for interaction, product in interactions
    ]
    items.sort(key=lambda i: i.recorded_at.timestamp() if i.recorded_at else 0.0, reverse=True)
    return items[:limit]
