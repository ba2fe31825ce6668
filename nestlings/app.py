from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Request
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import require_admin, require_user
from .auth.users import LoginRequest, authenticate
from .db.seed import init_db
from .db.session import get_db
from .milestones.dates import reference_date
from .milestones.models import AiCategoryOut, MilestoneOut, TimelineOut
from .milestones.repository import (
    get_milestone,
    list_ai_categories,
    list_milestones,
    milestone_timeline,
)
from .products.cache import TTLCache
from .products.errors import ProductImportError, ProductNotFoundError
from .products.filters import parse_query_params
from .products.importer import import_from_url
from .products.models import (
    ImportRequest,
    InteractionRequest,
    InteractionResponse,
    ProductCreate,
    ProductCreateResponse,
    ProductDeleteResponse,
    ProductListResponse,
    ProductStats,
)
from .products.service import ProductService
from .profiles.models import ProfileIn, ProfileOut
from .profiles.repository import get_profile, upsert_profile
from .recommendations.history import recommendation_history
from .recommendations.models import (
    HistoryResponse,
    RecommendationRequest,
    RecommendationResponse,
)
from .recommendations.retrieval import get_recommendations
from .scraping.scraper import ScrapeBlockedError, ScrapeError

app = FastAPI(title="Nestlings Planner API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "nestlings-secret-change-in-production"),
)
app.state.product_cache = TTLCache(
    default_ttl=float(os.environ.get("PRODUCT_CACHE_TTL_SECONDS", "300")),
    max_entries=int(os.environ.get("PRODUCT_CACHE_MAX_ENTRIES", "1024")),
)

init_db()


def get_product_cache(request: Request) -> TTLCache:
    return request.app.state.product_cache


def get_product_service(
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_product_cache),
) -> ProductService:
    return ProductService(db, cache)


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/milestones", response_model=list[MilestoneOut])
def milestones(
    ageMonths: int | None = None,
    db: Session = Depends(get_db),
) -> list[MilestoneOut]:
    return list_milestones(db, age_months=ageMonths)


@app.get("/milestones/{milestone_id}", response_model=MilestoneOut)
def milestone_detail(milestone_id: str, db: Session = Depends(get_db)) -> MilestoneOut:
    milestone = get_milestone(db, milestone_id)
    if milestone is None:
        raise HTTPException(status_code=404, detail=f"Milestone {milestone_id} not found")
    return milestone


@app.get("/ai-categories", response_model=list[AiCategoryOut])
def ai_categories(db: Session = Depends(get_db)) -> list[AiCategoryOut]:
    return list_ai_categories(db)


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)) -> dict:
    user = authenticate(db, body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Profile endpoints ────────────────────────────────────────────────────


@app.get("/profile", response_model=ProfileOut)
def read_profile(
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> ProfileOut:
    profile = get_profile(db, user["id"])
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not completed")
    return profile


@app.put("/profile", response_model=ProfileOut)
def save_profile(
    body: ProfileIn,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> ProfileOut:
    return upsert_profile(db, user["id"], body)


@app.get("/profile/timeline", response_model=TimelineOut)
def profile_timeline(
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> TimelineOut:
    reference = reference_date(get_profile(db, user["id"]))
    if reference is None:
        raise HTTPException(status_code=404, detail="Profile has no birth or due date")
    return milestone_timeline(db, reference)


# ── Product endpoints ────────────────────────────────────────────────────


@app.get("/products", response_model=ProductListResponse)
def list_products(
    request: Request,
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    return service.query(parse_query_params(request.query_params))


@app.get("/products/stats", response_model=ProductStats)
def products_stats(
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> ProductStats:
    return service.stats()


@app.post("/products", response_model=ProductCreateResponse, status_code=201)
def create_product(
    body: ProductCreate,
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> ProductCreateResponse:
    return service.create(body, user_id=user["id"])


@app.post("/products/import", response_model=ProductCreateResponse, status_code=201)
def import_product(
    body: ImportRequest,
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> ProductCreateResponse:
    try:
        return import_from_url(service, body, user_id=user["id"])
    except ScrapeBlockedError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ScrapeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ProductImportError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.delete("/products/{product_id}", response_model=ProductDeleteResponse)
def delete_product(
    product_id: str,
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> ProductDeleteResponse:
    try:
        return service.delete(product_id)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.post("/interactions", response_model=InteractionResponse)
def interactions(
    body: InteractionRequest,
    user: dict = Depends(require_user),
    service: ProductService = Depends(get_product_service),
) -> InteractionResponse:
    try:
        service.record_interaction(user["id"], body.product_id, body.interaction_type)
    except ProductNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return InteractionResponse(
        status="recorded",
        product_id=body.product_id,
        interaction_type=body.interaction_type,
    )


# ── Recommendation endpoints ─────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_product_cache),
) -> RecommendationResponse:
    return get_recommendations(db, user, body, cache=cache)


@app.get("/recommendations/history", response_model=HistoryResponse)
def recommendations_history(
    limit: int = 50,
    user: dict = Depends(require_user),
    db: Session = Depends(get_db),
) -> HistoryResponse:
    limit = max(1, min(limit, 200))
    return HistoryResponse(items=recommendation_history(db, user["id"], limit=limit))


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats(
    user: dict = Depends(require_admin),
    cache: TTLCache = Depends(get_product_cache),
) -> dict:
    return cache.stats()
