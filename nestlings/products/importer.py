"""
Turn an arbitrary product URL into a catalog row.

The page is scraped first; the LLM then fills in structured fields. When
the LLM is unavailable or answers with something unusable, the scraped
metadata alone is used.
"""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import extract_product
from ..milestones.catalog import DEFAULT_MILESTONES, PRODUCT_CATEGORIES
from ..scraping.config import DEFAULT_SCRAPER_CONFIG, ScraperConfig
from ..scraping.scraper import ScrapedPage, scrape_product_page
from .errors import ProductImportError
from .models import ImportRequest, ProductCreate, ProductCreateResponse
from .service import ProductService

logger = logging.getLogger(__name__)

MILESTONE_IDS = [m["id"] for m in DEFAULT_MILESTONES]

# First match wins; checked against the lowercased title and description.
_CATEGORY_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("safety", ("gate", "outlet", "monitor", "corner guard", "cabinet lock")),
    ("sleeping", ("bassinet", "crib", "swaddle", "sleep", "mattress", "toddler bed")),
    ("bathing", ("tub", "bath", "towel", "washcloth")),
    ("nursing", ("nursing", "breast", "pump", "nursing pillow")),
    ("feeding", ("bottle", "high chair", "bib", "spoon", "formula", "sippy")),
    ("travel", ("stroller", "car seat", "carrier", "wrap", "diaper bag", "hospital")),
    ("play", ("toy", "play", "gym", "easel", "book", "blocks")),
]


def guess_category(page: ScrapedPage) -> str | None:
    text = " ".join(filter(None, [page.title, page.description])).lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return None


def _scraped_fields(page: ScrapedPage, request: ImportRequest) -> dict[str, Any]:
    return {
        "name": page.title,
        "description": page.description,
        "category": guess_category(page),
        "brand": page.brand,
        "image_url": page.image_url,
        "price_cents": page.price_cents,
        "rating": page.rating,
        "affiliate_url": request.source_url,
        "source_url": request.source_url,
        "milestone_ids": [request.milestone_id] if request.milestone_id else [],
        "ai_category_ids": list(request.ai_category_ids),
    }


def _overlay(base: dict[str, Any], extracted: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in extracted.items():
        if key not in ProductCreate.model_fields or value is None:
            continue
        if key == "category" and value not in PRODUCT_CATEGORIES:
            continue
        if key == "milestone_ids":
            if not isinstance(value, list):
                continue
            known = [m for m in value if m in MILESTONE_IDS]
            value = list(dict.fromkeys([*base["milestone_ids"], *known]))
        if key in ("ai_category_ids", "source_url", "affiliate_url"):
            continue
        merged[key] = value
    return merged


def _validate(fields: dict[str, Any]) -> ProductCreate | None:
    try:
        return ProductCreate(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as exc:
        logger.warning("Imported product failed validation: %s", exc.errors())
        return None


def import_from_url(
    service: ProductService,
    request: ImportRequest,
    user_id: str | None = None,
    scraper_config: ScraperConfig = DEFAULT_SCRAPER_CONFIG,
    llm_config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> ProductCreateResponse:
    """Scrape, extract and create. Scrape failures propagate as ``ScrapeError``."""
    page = scrape_product_page(request.source_url, config=scraper_config)
    base = _scraped_fields(page, request)

    extracted = extract_product(
        page.as_dict(),
        request.source_url,
        PRODUCT_CATEGORIES,
        MILESTONE_IDS,
        config=llm_config,
    )
    payload = _validate(_overlay(base, extracted)) if extracted else None
    if payload is None:
        if extracted:
            logger.warning("Falling back to scraped metadata for %s", request.source_url)
        payload = _validate(base)
    if payload is None:
        raise ProductImportError(
            f"Could not determine a product name and category from {request.source_url}"
        )

    logger.info("Importing %s as %r (%s)", request.source_url, payload.name, payload.category)
    return service.create(payload, user_id=user_id)
