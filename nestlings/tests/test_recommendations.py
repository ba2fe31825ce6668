from datetime import date
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from nestlings.app import app
from nestlings.db import models
from nestlings.llm.config import LLMConfig
from nestlings.products.models import ProductCreate
from nestlings.products.service import ProductService
from nestlings.profiles.models import ProfileIn
from nestlings.profiles.repository import upsert_profile
from nestlings.recommendations.history import recommendation_history
from nestlings.recommendations.models import RecommendationRequest
from nestlings.recommendations.retrieval import get_recommendations

client = TestClient(app)


def _login(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _user(db):
    user = models.User(username="parent", password_hash="x")
    db.add(user)
    db.commit()
    return {"id": user.id, "username": user.username, "role": user.role}


def _seed(db):
    service = ProductService(db)
    for fields in (
        {"name": "Nursing Station", "category": "nursing", "price_cents": 18900, "rating": 4.7,
         "eco_friendly": True, "milestone_ids": ["newborn"]},
        {"name": "Bassinet", "category": "sleeping", "price_cents": 24900, "rating": 4.8,
         "milestone_ids": ["newborn"]},
        {"name": "Baby Wrap", "category": "travel", "price_cents": 8900, "rating": 4.9,
         "eco_friendly": True, "milestone_ids": ["newborn", "month3"]},
        {"name": "Art Easel", "category": "play", "price_cents": 14900, "rating": 4.3,
         "milestone_ids": ["year2"]},
        {"name": "Retired Gate", "category": "safety", "price_cents": 11900, "rating": 5.0,
         "in_stock": False},
    ):
        service.create(ProductCreate(**fields))


NO_LLM = LLMConfig(api_key="", enabled=False)


# ── Service level ────────────────────────────────────────────────────────


def test_default_profile_when_onboarding_incomplete(db_session):
    _seed(db_session)
    user = _user(db_session)

    response = get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)

    assert response.profile.budget == "balanced"
    assert response.profile.eco_priority is False
    assert response.preferred_categories == []
    assert response.total_candidates == 4
    names = [r.product.name for r in response.recommendations]
    assert "Retired Gate" not in names
    assert names[0] == "Baby Wrap"


def test_saved_profile_drives_scoring(db_session):
    _seed(db_session)
    user = _user(db_session)
    upsert_profile(db_session, user["id"], ProfileIn(
        budget="essentials", eco_priority=True, preferred_categories=["play"],
    ))

    response = get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)

    assert response.profile.budget == "essentials"
    first = response.recommendations[0]
    assert first.product.name == "Art Easel"
    assert "Matches category focus on play." in first.rationale
    wrap = next(r for r in response.recommendations if r.product.name == "Baby Wrap")
    assert wrap.score == pytest.approx(4.9 + 1.0 + 0.6)


def test_request_overrides_profile(db_session):
    _seed(db_session)
    user = _user(db_session)
    upsert_profile(db_session, user["id"], ProfileIn(preferred_categories=["play"]))

    response = get_recommendations(
        db_session,
        user,
        RecommendationRequest(preferred_categories=["sleeping"], budget="premium"),
        llm_config=NO_LLM,
    )

    assert response.preferred_categories == ["sleeping"]
    assert response.recommendations[0].product.name == "Bassinet"
    assert all("Exceeds" not in r.rationale for r in response.recommendations)


def test_milestone_scope_limits_candidates(db_session):
    _seed(db_session)
    user = _user(db_session)

    response = get_recommendations(
        db_session, user, RecommendationRequest(milestone_ids=["month3"]), llm_config=NO_LLM,
    )

    assert [r.product.name for r in response.recommendations] == ["Baby Wrap"]


def _seed_ages(db):
    service = ProductService(db)
    for fields in (
        {"name": "Newborn Swaddle", "category": "sleeping", "rating": 4.6,
         "age_range_months_min": 0, "age_range_months_max": 3},
        {"name": "Toddler Bed", "category": "sleeping", "rating": 4.4,
         "age_range_months_min": 18, "age_range_months_max": 48},
    ):
        service.create(ProductCreate(**fields))


def test_age_inferred_from_birth_date(db_session):
    _seed_ages(db_session)
    user = _user(db_session)
    upsert_profile(db_session, user["id"], ProfileIn(birth_date=date(2024, 1, 1)))

    response = get_recommendations(
        db_session, user, RecommendationRequest(), llm_config=NO_LLM, today=date(2025, 11, 1),
    )

    assert response.age_months == 22
    assert [r.product.name for r in response.recommendations] == ["Toddler Bed"]


def test_age_inferred_from_due_date_is_prenatal(db_session):
    _seed_ages(db_session)
    user = _user(db_session)
    upsert_profile(db_session, user["id"], ProfileIn(due_date=date(2026, 12, 1)))

    response = get_recommendations(
        db_session, user, RecommendationRequest(), llm_config=NO_LLM, today=date(2026, 6, 1),
    )

    assert response.age_months == -3
    assert response.recommendations == []


def test_explicit_age_wins_over_profile_dates(db_session):
    _seed_ages(db_session)
    user = _user(db_session)
    upsert_profile(db_session, user["id"], ProfileIn(birth_date=date(2024, 1, 1)))

    response = get_recommendations(
        db_session, user, RecommendationRequest(age_months=1), llm_config=NO_LLM,
        today=date(2025, 11, 1),
    )

    assert response.age_months == 1
    assert [r.product.name for r in response.recommendations] == ["Newborn Swaddle"]


def test_no_dates_means_no_age_filter(db_session):
    _seed_ages(db_session)
    user = _user(db_session)

    response = get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)

    assert response.age_months is None
    assert response.total_candidates == 2


@patch("nestlings.recommendations.retrieval.annotate_picks")
def test_llm_notes_never_reorder(mock_annotate, db_session):
    _seed(db_session)
    user = _user(db_session)
    mock_annotate.return_value = {}
    baseline = get_recommendations(db_session, user, RecommendationRequest())
    order = [r.product.id for r in baseline.recommendations]
    mock_annotate.return_value = {order[-1]: "Great for later.", "unknown": "ignored"}

    response = get_recommendations(db_session, user, RecommendationRequest())

    assert [r.product.id for r in response.recommendations] == order
    assert response.recommendations[-1].note == "Great for later."
    assert all(r.note is None for r in response.recommendations[:-1])


def test_recommendations_are_remembered_once_per_product(db_session):
    _seed(db_session)
    user = _user(db_session)

    get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)
    get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)

    rows = db_session.query(models.UserProductRecommendation).filter_by(user_id=user["id"]).all()
    assert len(rows) == 4
    assert all(r.reason for r in rows)


def test_history_merges_recommendations_and_interactions(db_session):
    _seed(db_session)
    user = _user(db_session)
    get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)
    wrap_id = db_session.query(models.Product.id).filter_by(name="Baby Wrap").scalar()
    ProductService(db_session).record_interaction(user["id"], wrap_id, "purchase")

    history = recommendation_history(db_session, user["id"])

    sources = [item.source for item in history]
    assert sources.count("recommendation") == 4
    assert sources.count("interaction") == 1
    purchase = next(i for i in history if i.source == "interaction")
    assert purchase.interaction_type == "purchase"
    assert purchase.product_id == wrap_id
    stamps = [i.recorded_at for i in history]
    assert stamps == sorted(stamps, reverse=True)


def test_history_limit(db_session):
    _seed(db_session)
    user = _user(db_session)
    get_recommendations(db_session, user, RecommendationRequest(), llm_config=NO_LLM)

    assert len(recommendation_history(db_session, user["id"], limit=2)) == 2


# ── HTTP ─────────────────────────────────────────────────────────────────


@pytest.mark.usefixtures("fresh_catalog")
def test_recommendations_endpoint():
    _login(client)
    client.post("/products", json={"name": "Wrap", "category": "travel", "price_cents": 8900, "rating": 4.9})
    client.post("/products", json={"name": "Gate", "category": "safety", "price_cents": 11900, "rating": 4.1})

    resp = client.post("/recommendations", json={"preferred_categories": ["safety"]})

    assert resp.status_code == 200
    body = resp.json()
    assert body["total_candidates"] == 2
    assert [r["product"]["name"] for r in body["recommendations"]] == ["Gate", "Wrap"]
    assert set(body["recommendations"][0]) == {"product", "score", "rationale", "note"}

    history = client.get("/recommendations/history").json()["items"]
    assert {i["name"] for i in history if i["source"] == "recommendation"} == {"Gate", "Wrap"}


@pytest.mark.usefixtures("fresh_catalog")
def test_recommendations_endpoint_with_empty_catalog():
    _login(client)
    resp = client.post("/recommendations", json={})
    assert resp.status_code == 200
    assert resp.json()["recommendations"] == []
    assert resp.json()["total_candidates"] == 0


@pytest.mark.usefixtures("fresh_catalog")
def test_recommendations_reject_bad_age():
    _login(client)
    assert client.post("/recommendations", json={"age_months": 500}).status_code == 422
