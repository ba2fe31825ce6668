from unittest.mock import patch

import pytest

from nestlings.db import models
from nestlings.products.cache import TTLCache
from nestlings.products.errors import ProductNotFoundError
from nestlings.products.filters import ProductQueryOptions
from nestlings.products.models import ProductCreate, ReviewIn
from nestlings.products.repository import DEPENDENT_TABLES
from nestlings.products.service import ProductService


def _user(db):
    user = models.User(username="parent", password_hash="x")
    db.add(user)
    db.commit()
    return user


def _populated_product(db, user):
    service = ProductService(db)
    product = service.create(
        ProductCreate(
            name="Bassinet",
            category="sleeping",
            milestone_ids=["newborn"],
            ai_category_ids=["sleep-support"],
            reviews=[ReviewIn(source="Lab")],
        ),
        user_id=user.id,
    ).product
    db.add(models.UserProductRecommendation(user_id=user.id, product_id=product.id, recommendation_score=5.0))
    db.commit()
    return product


def _count(db, table, product_id):
    return db.query(table).filter(table.product_id == product_id).count()


def test_delete_removes_product_and_dependents(db_session):
    user = _user(db_session)
    product = _populated_product(db_session, user)
    for table in DEPENDENT_TABLES:
        assert _count(db_session, table, product.id) == 1

    response = ProductService(db_session).delete(product.id)

    assert response.id == product.id
    assert db_session.get(models.Product, product.id) is None
    for table in DEPENDENT_TABLES:
        assert _count(db_session, table, product.id) == 0


def test_delete_leaves_other_products_alone(db_session, make_product):
    user = _user(db_session)
    doomed = _populated_product(db_session, user)
    kept = make_product(name="Keeper", milestone_ids=["newborn"])

    ProductService(db_session).delete(doomed.id)

    assert db_session.get(models.Product, kept.id) is not None
    assert _count(db_session, models.ProductMilestone, kept.id) == 1


def test_delete_unknown_id_mutates_nothing(db_session):
    user = _user(db_session)
    product = _populated_product(db_session, user)

    with pytest.raises(ProductNotFoundError) as exc_info:
        ProductService(db_session).delete("does-not-exist")

    assert exc_info.value.product_id == "does-not-exist"
    assert db_session.query(models.Product).count() == 1
    for table in DEPENDENT_TABLES:
        assert _count(db_session, table, product.id) == 1


def test_delete_rolls_back_when_a_step_fails(db_session):
    user = _user(db_session)
    product = _populated_product(db_session, user)

    with patch.object(db_session, "expire_all", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            ProductService(db_session).delete(product.id)

    assert db_session.get(models.Product, product.id) is not None
    for table in DEPENDENT_TABLES:
        assert _count(db_session, table, product.id) == 1


def test_delete_invalidates_cached_queries(db_session, make_product):
    cache = TTLCache()
    service = ProductService(db_session, cache)
    product = make_product(name="Cached")
    assert service.query(ProductQueryOptions()).pagination.total == 1

    service.delete(product.id)

    assert service.query(ProductQueryOptions()).pagination.total == 0
