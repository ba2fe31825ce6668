from __future__ import annotations

import logging
from typing import Any, List

import pandas as pd
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..products.models import ProductCreate
from ..products.repository import find_product_id_by_name
from ..products.service import ProductService
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: List[str] = ["name", "category"]

_TRUE_VALUES = {"true", "1", "yes", "y"}


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, float) and pd.isna(value)) and str(value).strip() != ""


def _to_cents(price: float | int | str | None) -> int | None:
    if not _present(price):
        return None
    try:
        value = float(str(price).replace("$", "").replace(",", "").strip())
    except (TypeError, ValueError):
        return None
    return int(round(value * 100)) if value >= 0 else None


def _normalize_rating(rating: float | int | str | None) -> float | None:
    if not _present(rating):
        return None
    raw = str(rating).strip()
    # Handle "X/5" format (e.g. "4.1/5")
    if "/" in raw:
        raw = raw.split("/")[0].strip()
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None

    # Clamp to [0, 5]
    return max(0.0, min(5.0, value))


def _to_int(value: Any) -> int | None:
    if not _present(value):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> bool:
    return _present(value) and str(value).strip().lower() in _TRUE_VALUES


def _split(value: Any, separator: str) -> list[str]:
    if not _present(value):
        return []
    return [part.strip() for part in str(value).split(separator) if part.strip()]


def _text(value: Any) -> str | None:
    return str(value).strip() if _present(value) else None


def row_to_payload(row: pd.Series, separator: str = "|") -> ProductCreate:
    """Map one CSV row to a product payload. Raises ``ValidationError`` on bad rows."""
    return ProductCreate(
        name=_text(row.get("name")) or "",
        category=_text(row.get("category")) or "",
        brand=_text(row.get("brand")),
        description=_text(row.get("description")),
        price_cents=_to_cents(row.get("price")),
        currency=_text(row.get("currency")) or "USD",
        rating=_normalize_rating(row.get("rating")),
        eco_friendly=_to_bool(row.get("eco_friendly")),
        premium=_to_bool(row.get("premium")),
        age_range_months_min=_to_int(row.get("age_range_months_min")),
        age_range_months_max=_to_int(row.get("age_range_months_max")),
        milestone_ids=_split(row.get("milestone_ids"), separator),
        tags=_split(row.get("tags"), separator),
        ai_category_ids=_split(row.get("ai_category_ids"), separator),
        affiliate_url=_text(row.get("affiliate_url")),
        safety_notes=_text(row.get("safety_notes")),
    )


def run_ingestion(db: Session, config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> int:
    """
    Load the seed catalog into the database.

    Steps:
    - Read the CSV with pandas.
    - Normalize each row into a ``ProductCreate`` payload.
    - Create products whose name is not in the catalog yet.

    Returns the number of products created.
    """
    df = pd.read_csv(config.seed_path)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Seed file {config.seed_path} is missing columns: {missing}")

    service = ProductService(db)
    created = skipped = 0
    for index, row in df.iterrows():
        try:
            payload = row_to_payload(row, config.list_separator)
        except ValidationError as exc:
            logger.warning("Skipping seed row %s: %s", index, exc.errors())
            skipped += 1
            continue
        if find_product_id_by_name(db, payload.name):
            skipped += 1
            continue
        service.create(payload)
        created += 1

    logger.info("Ingested %d products from %s (%d skipped)", created, config.seed_path, skipped)
    return created


if __name__ == "__main__":
    from ..db.seed import init_db
    from ..db.session import SessionLocal

    logging.basicConfig(level=logging.INFO)
    init_db()
    with SessionLocal() as session:
        count = run_ingestion(session)
    print(f"Ingestion complete. {count} products created.")
