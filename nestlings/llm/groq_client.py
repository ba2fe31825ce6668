from __future__ import annotations

import json
import logging
from typing import Any

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "You are a baby-registry catalog assistant. "
    "Given data scraped from a product page, return the product as structured data.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"product": {"name": "...", "description": "...", "category": "<one of the allowed categories>", '
    '"brand": "...", "image_url": "...", "price_cents": 0, "currency": "USD", '
    '"age_range_months_min": 0, "age_range_months_max": 12, "milestone_ids": ["..."], '
    '"tags": ["..."], "eco_friendly": false, "premium": false, "rating": 4.5, '
    '"review_count": 0, "in_stock": true, "safety_notes": "..."}}\n'
    "Use null for anything the page does not state. Prices are integer cents. "
    "Only use milestone ids from the provided list."
)

PICKS_PROMPT = (
    "You are a friendly baby-registry advisor. "
    "Given a caregiver's preferences and an already-ranked list of products, "
    "write one short, warm sentence per product explaining why it fits.\n\n"
    "Return ONLY valid JSON in this exact format:\n"
    '{"notes": [{"id": "<product_id>", "note": "<one sentence>"}]}\n'
    "Include only products from the provided list."
)


def _chat_json(system: str, user: str, config: LLMConfig) -> dict[str, Any] | None:
    """Run one JSON-mode completion. Returns ``None`` on any failure."""
    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            max_tokens=config.max_tokens,
            temperature=0.2,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content or ""
        parsed = json.loads(content)
        return parsed if isinstance(parsed, dict) else None
    except Exception:
        logger.warning("Groq LLM call failed, falling back to deterministic output", exc_info=True)
        return None


def _build_extraction_message(
    scraped: dict[str, Any],
    source_url: str,
    categories: list[str],
    milestone_ids: list[str],
) -> str:
    lines = [f"## Source URL\n{source_url}", "\n## Scraped Fields"]
    for key, value in scraped.items():
        if value in (None, "", []):
            continue
        if isinstance(value, list):
            value = "; ".join(str(v) for v in value)
        lines.append(f"- {key}: {value}")
    lines.append(f"\n## Allowed categories\n{', '.join(categories)}")
    lines.append(f"\n## Milestone ids\n{', '.join(milestone_ids)}")
    return "\n".join(lines)


def extract_product(
    scraped: dict[str, Any],
    source_url: str,
    categories: list[str],
    milestone_ids: list[str],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, Any]:
    """
    Ask the LLM to turn scraped page data into product fields.

    Returns the raw product dict (unvalidated), or an empty dict when the
    LLM is disabled or its answer is unusable.
    """
    if not config.enabled or not config.api_key:
        return {}

    parsed = _chat_json(
        EXTRACTION_PROMPT,
        _build_extraction_message(scraped, source_url, categories, milestone_ids),
        config,
    )
    if not parsed:
        return {}
    product = parsed.get("product")
    return product if isinstance(product, dict) else {}


def _build_picks_message(
    preferences: dict[str, Any],
    candidates: list[dict[str, Any]],
) -> str:
    lines = ["## Caregiver Preferences"]
    if preferences.get("budget"):
        lines.append(f"- Budget tier: {preferences['budget']}")
    if preferences.get("eco_priority"):
        lines.append("- Prefers eco-friendly products")
    if preferences.get("preferred_categories"):
        lines.append(f"- Focus categories: {', '.join(preferences['preferred_categories'])}")
    if preferences.get("milestone_ids"):
        lines.append(f"- Milestones: {', '.join(preferences['milestone_ids'])}")

    lines.append("\n## Ranked Products")
    lines.append("| ID | Name | Category | Price | Rating |")
    lines.append("|---|---|---|---|---|")
    for c in candidates:
        price = c.get("price")
        lines.append(
            f"| {c['id']} | {c['name']} | {c.get('category', '?')} "
            f"| {price if price is not None else 'N/A'} | {c.get('rating', 'N/A')} |"
        )
    return "\n".join(lines)


def annotate_picks(
    preferences: dict[str, Any],
    candidates: list[dict[str, Any]],
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> dict[str, str]:
    """
    Ask the LLM for a one-line note per ranked product.

    Returns a dict mapping product id -> note. Returns an empty dict on any
    failure (timeout, bad JSON, API error) or when disabled.
    """
    if not config.enabled or not config.api_key:
        return {}

    if not candidates:
        return {}

    parsed = _chat_json(PICKS_PROMPT, _build_picks_message(preferences, candidates), config)
    if not parsed:
        return {}

    known_ids = {str(c["id"]) for c in candidates}
    items = parsed.get("notes")
    if not isinstance(items, list):
        logger.warning("Groq notes payload was not a list, ignoring it")
        return {}

    notes: dict[str, str] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        pid = str(item.get("id", ""))
        note = item.get("note")
        if pid in known_ids and isinstance(note, str) and note.strip():
            notes[pid] = note.strip()
    return notes
