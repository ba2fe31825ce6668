"""
Product domain service.

Responsibilities:
- Serve product queries through the TTL cache.
- Own the transaction around every catalog write.
- Invalidate cached product queries whenever the catalog changes.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from . import repository
from .cache import TTLCache
from .filters import ProductQueryOptions
from .models import (
    InteractionType,
    ProductCreate,
    ProductCreateResponse,
    ProductDeleteResponse,
    ProductListResponse,
    ProductStats,
)

logger = logging.getLogger(__name__)

CACHE_PREFIX = "products"


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


class ProductService:
    def __init__(self, db: Session, cache: TTLCache | None = None) -> None:
        self.db = db
        self.cache = cache

    def _invalidate(self) -> None:
        if self.cache is not None:
            dropped = self.cache.invalidate_prefix(f"{CACHE_PREFIX}:")
            logger.debug("Invalidated %d cached product queries", dropped)

    def query(self, options: ProductQueryOptions) -> ProductListResponse:
        key = TTLCache.make_key(CACHE_PREFIX, options.model_dump())
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        result = repository.query_products(self.db, options)
        if self.cache is not None:
            self.cache.set(key, result)
        return result

    def stats(self) -> ProductStats:
        key = f"{CACHE_PREFIX}:stats"
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        result = repository.product_stats(self.db)
        if self.cache is not None:
            self.cache.set(key, result)
        return result

    def create(
        self,
        payload: ProductCreate,
        user_id: str | None = None,
        interaction_type: InteractionType = "wishlist",
    ) -> ProductCreateResponse:
        logger.debug(
            "Creating product name=%r category=%r milestones=%d tags=%d ai_categories=%d",
            payload.name,
            payload.category,
            len(payload.milestone_ids),
            len(payload.tags),
            len(payload.ai_category_ids),
        )
        with transaction(self.db):
            product = repository.insert_product(self.db, payload)
            linked = repository.assign_ai_categories(self.db, product.id, payload.ai_category_ids)
            if user_id:
                repository.record_interaction(self.db, user_id, product.id, interaction_type)
            out = repository.to_product_out(product, ai_category_ids=linked)

        self._invalidate()
        logger.info("Created product %s (%s)", out.id, out.name)
        return ProductCreateResponse(product=out, message="Product created successfully")

    def delete(self, product_id: str) -> ProductDeleteResponse:
        with transaction(self.db):
            repository.delete_product(self.db, product_id)

        self._invalidate()
        logger.info("Deleted product %s", product_id)
        return ProductDeleteResponse(id=product_id, message="Product removed")

    def record_interaction(
        self,
        user_id: str,
        product_id: str,
        interaction_type: InteractionType,
    ) -> None:
        with transaction(self.db):
            repository.record_interaction(self.db, user_id, product_id, interaction_type)
