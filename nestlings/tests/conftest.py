import os

# Must run before anything imports nestlings.db.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GROQ_API_KEY"] = ""

import pytest
from sqlalchemy.orm import sessionmaker

from nestlings.db import models
from nestlings.db.config import DatabaseConfig
from nestlings.db.session import Base, SessionLocal, build_engine
from nestlings.milestones.repository import seed_reference_data
from nestlings.products.models import ProductCreate
from nestlings.products.service import ProductService


@pytest.fixture
def db_session():
    """A private in-memory database with milestones and AI categories seeded."""
    engine = build_engine(DatabaseConfig(url="sqlite://"))
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_product(db_session):
    """Create a product through the service; keyword overrides go into the payload."""

    def _make(**overrides):
        fields = {"name": "Test Product", "category": "play", "price_cents": 5000, "rating": 4.0}
        fields.update(overrides)
        return ProductService(db_session).create(ProductCreate(**fields)).product

    return _make


@pytest.fixture
def fresh_catalog():
    """Empty the shared app database's catalog and the app's product cache."""
    from nestlings.app import app

    with SessionLocal() as db:
        for table in (
            models.ProductAiCategory,
            models.ProductReview,
            models.ProductMilestone,
            models.UserProductRecommendation,
            models.UserProductInteraction,
            models.UserProfile,
            models.Product,
        ):
            db.query(table).delete()
        db.commit()
    app.state.product_cache.clear()
    yield
    app.state.product_cache.clear()
