from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .config import DEFAULT_SCRAPER_CONFIG, ScraperConfig

logger = logging.getLogger(__name__)

_TITLE_SELECTORS = ["h1#title", ".product-title", '[data-testid="product-title"]', "h1", ".product-name"]
_PRICE_SELECTORS = [".a-price .a-offscreen", ".a-price-whole", '[data-testid="price"]', ".price", ".product-price"]
_BRAND_SELECTORS = ['[data-testid="brand-name"]', "#bylineInfo", ".brand", ".product-brand"]
_DESCRIPTION_SELECTORS = ['[data-testid="product-description"]', "#feature-bullets", ".product-description", ".description"]
_RATING_SELECTORS = [".a-icon-alt", '[data-testid="rating"]', ".rating", ".review-rating"]
_IMAGE_SELECTORS = ["#landingImage", 'img[data-testid="product-image"]', ".product-image img", 'img[class*="product"]']
_FEATURE_SELECTORS = ["#feature-bullets li", ".product-features li", ".features li"]

_RATING_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:out of|/)\s*5")


class ScrapeError(Exception):
    """The page could not be fetched or is not a scrapeable URL."""


class ScrapeBlockedError(ScrapeError):
    """The URL's host is not on the scraping allow-list."""


@dataclass
class ScrapedPage:
    url: str
    title: str | None = None
    price_cents: int | None = None
    brand: str | None = None
    description: str | None = None
    rating: float | None = None
    image_url: str | None = None
    features: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def is_host_allowed(hostname: str, allowed_hosts: tuple[str, ...]) -> bool:
    """Exact host match, or suffix match for entries written as ``*.example.com``."""
    host = hostname.lower()
    for allowed in allowed_hosts:
        if allowed.startswith("*"):
            if host.endswith(allowed[1:]):
                return True
        elif host == allowed:
            return True
    return False


def parse_price(price_str: str | None) -> int | None:
    """Parse a price string such as ``"$29.99"`` into cents."""
    if not price_str:
        return None
    match = re.search(r"\d[\d,]*(?:\.\d+)?", price_str)
    if not match:
        return None
    try:
        return int(round(float(match.group(0).replace(",", "")) * 100))
    except ValueError:
        return None


def _parse_rating(text: str | None) -> float | None:
    if not text:
        return None
    match = _RATING_RE.search(text)
    if not match:
        return None
    return max(0.0, min(5.0, float(match.group(1))))


def _first_text(soup: BeautifulSoup, selectors: list[str]) -> str | None:
    for selector in selectors:
        node = soup.select_one(selector)
        if node:
            text = " ".join(node.get_text(" ", strip=True).split())
            if text:
                return text
    return None


def _meta(soup: BeautifulSoup, prop: str) -> str | None:
    node = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    if node and node.get("content"):
        return node["content"].strip() or None
    return None


def _best_image(soup: BeautifulSoup, base_url: str) -> str | None:
    for selector in _IMAGE_SELECTORS:
        img = soup.select_one(selector)
        if not img:
            continue
        src = img.get("src") or img.get("data-src") or img.get("data-old-hires")
        if src and "placeholder" not in src and "loading" not in src:
            return urljoin(base_url, src)
    og_image = _meta(soup, "og:image")
    return urljoin(base_url, og_image) if og_image else None


def _json_ld_product(soup: BeautifulSoup) -> dict[str, Any]:
    """Return the first schema.org Product block on the page, if any."""
    for tag in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(tag.string or "")
        except (TypeError, ValueError):
            continue
        if isinstance(data, list):
            candidates = data
        elif isinstance(data, dict):
            candidates = data.get("@graph", [data])
        else:
            continue
        for item in candidates:
            if isinstance(item, dict) and item.get("@type") == "Product":
                return item
    return {}


def parse_product_html(html: str, url: str) -> ScrapedPage:
    soup = BeautifulSoup(html, "html.parser")
    ld = _json_ld_product(soup)

    offers = ld.get("offers") or {}
    if isinstance(offers, list):
        offers = offers[0] if offers else {}
    brand = ld.get("brand")
    if isinstance(brand, dict):
        brand = brand.get("name")
    aggregate = ld.get("aggregateRating") or {}

    ld_price = offers.get("price") if isinstance(offers, dict) else None
    ld_rating = aggregate.get("ratingValue") if isinstance(aggregate, dict) else None

    page = ScrapedPage(url=url)
    page.title = ld.get("name") or _first_text(soup, _TITLE_SELECTORS) or _meta(soup, "og:title")
    page.price_cents = (
        parse_price(str(ld_price)) if ld_price is not None
        else parse_price(_first_text(soup, _PRICE_SELECTORS))
    )
    page.brand = brand or _first_text(soup, _BRAND_SELECTORS)
    page.description = (
        ld.get("description")
        or _first_text(soup, _DESCRIPTION_SELECTORS)
        or _meta(soup, "og:description")
        or _meta(soup, "description")
    )
    if ld_rating is not None:
        page.rating = _parse_rating(f"{ld_rating} out of 5")
    else:
        page.rating = _parse_rating(_first_text(soup, _RATING_SELECTORS))
    page.image_url = _best_image(soup, url)
    page.features = [
        " ".join(li.get_text(" ", strip=True).split())
        for selector in _FEATURE_SELECTORS
        for li in soup.select(selector)
        if li.get_text(strip=True)
    ][:10]
    return page


def _check_url(url: str, config: ScraperConfig) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ScrapeError("Only HTTP(S) URLs can be scraped.")
    if not is_host_allowed(parsed.hostname, config.allowed_hosts):
        raise ScrapeBlockedError(f"Scraping blocked for host: {parsed.hostname}")


def _fetch(http: requests.Session, url: str, config: ScraperConfig) -> requests.Response:
    """GET ``url``, following redirects by hand so every hop passes the allow-list."""
    headers = {
        "User-Agent": config.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
    }
    for _ in range(config.max_redirects + 1):
        response = http.get(url, headers=headers, timeout=config.timeout, allow_redirects=False)
        if not response.is_redirect:
            response.raise_for_status()
            return response
        url = urljoin(url, response.headers["Location"])
        _check_url(url, config)
    raise ScrapeError(f"Too many redirects (limit {config.max_redirects})")


def scrape_product_page(
    url: str,
    config: ScraperConfig = DEFAULT_SCRAPER_CONFIG,
    session: requests.Session | None = None,
) -> ScrapedPage:
    """Fetch ``url`` and extract product hints from its HTML.

    Raises ``ScrapeBlockedError`` for hosts outside the allow-list, including
    redirect targets, and ``ScrapeError`` for non-HTTP URLs or failed fetches.
    """
    _check_url(url, config)

    try:
        if session is not None:
            response = _fetch(session, url, config)
        else:
            with requests.Session() as http:
                response = _fetch(http, url, config)
    except requests.RequestException as exc:
        raise ScrapeError(f"Failed to fetch {url}: {exc}") from exc

    page = parse_product_html(response.text, url)
    if page.description and len(page.description) > config.max_text_chars:
        page.description = page.description[: config.max_text_chars]
    logger.info("Scraped %s (title=%r, price_cents=%s)", url, page.title, page.price_cents)
    return page
