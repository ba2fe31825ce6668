"""
SQLAlchemy models for the registry schema.

Products are the catalog; every other product-scoped table references a
product row and must be cleared before that row is removed.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .session import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255))
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    profile = relationship("UserProfile", back_populates="user", uselist=False)


class UserProfile(Base):
    """Onboarding answers; ``budget_tier`` uses the storage vocabulary."""

    __tablename__ = "user_profiles"
    __table_args__ = (
        CheckConstraint(
            "baby_gender IN ('boy', 'girl', 'surprise')", name="ck_profile_gender"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, unique=True)
    due_date = Column(Date)
    birth_date = Column(Date)
    baby_gender = Column(String(10), default="surprise")
    baby_nickname = Column(String(100))
    budget_tier = Column(String(20), default="standard")
    color_palette = Column(String(20))
    material_focus = Column(String(20))
    eco_priority = Column(Boolean, nullable=False, default=False)
    preferred_categories = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="profile")


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(String(50), primary_key=True)
    label = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    month_start = Column(Integer, nullable=False)
    month_end = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    summary = Column(Text)


class AiCategory(Base):
    __tablename__ = "ai_categories"

    id = Column(String(50), primary_key=True)
    label = Column(String(100), nullable=False)
    description = Column(Text)
    best_practices = Column(Text)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_age_range", "age_range_months_min", "age_range_months_max"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_product_rating"),
        CheckConstraint("price_cents IS NULL OR price_cents >= 0", name="ck_product_price"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100))
    brand = Column(String(100))
    image_url = Column(String(1024))

    # Pricing in cents to avoid floating point issues
    price_cents = Column(Integer)
    currency = Column(String(3), nullable=False, default="USD")

    start_date = Column(Date)
    end_date = Column(Date)
    age_range_months_min = Column(Integer)
    age_range_months_max = Column(Integer)
    period_start_month = Column(Integer)
    period_end_month = Column(Integer)

    tags = Column(JSON, nullable=False, default=list)
    eco_friendly = Column(Boolean, nullable=False, default=False)
    premium = Column(Boolean, nullable=False, default=False)
    rating = Column(Float)
    review_count = Column(Integer, nullable=False, default=0)
    affiliate_url = Column(String(1024))
    in_stock = Column(Boolean, nullable=False, default=True, index=True)
    review_sources = Column(JSON, nullable=False, default=list)
    external_review_urls = Column(JSON, nullable=False, default=list)
    safety_notes = Column(Text)
    source_url = Column(String(1024))

    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    milestone_links = relationship(
        "ProductMilestone", lazy="selectin", order_by="ProductMilestone.milestone_id"
    )

    @property
    def milestone_ids(self) -> list[str]:
        return [link.milestone_id for link in self.milestone_links]


class ProductMilestone(Base):
    __tablename__ = "product_milestones"

    product_id = Column(String(36), ForeignKey("products.id"), primary_key=True)
    milestone_id = Column(String(50), primary_key=True, index=True)


class ProductAiCategory(Base):
    __tablename__ = "product_ai_categories"

    product_id = Column(String(36), ForeignKey("products.id"), primary_key=True)
    ai_category_id = Column(String(50), ForeignKey("ai_categories.id"), primary_key=True)


class ProductReview(Base):
    __tablename__ = "product_reviews"

    id = Column(String(36), primary_key=True, default=_uuid)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    source = Column(String(100), nullable=False)
    url = Column(String(1024))
    headline = Column(String(255))
    summary = Column(Text)
    rating = Column(Float)
    author = Column(String(100))
    published_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class UserProductRecommendation(Base):
    __tablename__ = "user_product_recommendations"
    __table_args__ = (UniqueConstraint("user_id", "product_id", name="uq_user_product_rec"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    recommendation_score = Column(Float)
    reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class UserProductInteraction(Base):
    __tablename__ = "user_product_interactions"
    __table_args__ = (
        CheckConstraint(
            "interaction_type IN ('view', 'like', 'dislike', 'purchase', 'wishlist')",
            name="ck_interaction_type",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False)
    interaction_type = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
