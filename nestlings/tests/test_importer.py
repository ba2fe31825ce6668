from unittest.mock import patch

import pytest

from nestlings.db import models
from nestlings.llm.config import LLMConfig
from nestlings.products.errors import ProductImportError
from nestlings.products.importer import guess_category, import_from_url
from nestlings.products.models import ImportRequest
from nestlings.products.service import ProductService
from nestlings.scraping.scraper import ScrapeBlockedError, ScrapedPage

URL = "https://amazon.com/dp/wrap"
LLM = LLMConfig(api_key="test-key")

WRAP_PAGE = ScrapedPage(
    url=URL,
    title="FeatherFlex Baby Wrap",
    price_cents=8900,
    brand="CarryKind",
    description="A stretchy baby carrier wrap.",
    rating=4.9,
)


def test_guess_category_from_keywords():
    assert guess_category(WRAP_PAGE) == "travel"
    assert guess_category(ScrapedPage(url=URL, title="Stair Gate")) == "safety"
    assert guess_category(ScrapedPage(url=URL, title="Mystery Object")) is None


@patch("nestlings.products.importer.extract_product")
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_merges_llm_fields(mock_scrape, mock_extract, db_session):
    mock_extract.return_value = {
        "name": "FeatherFlex Modal Baby Wrap",
        "category": "travel",
        "milestone_ids": ["month3"],
        "eco_friendly": True,
        "age_range_months_min": 0,
        "age_range_months_max": 12,
        "source_url": "https://elsewhere.test",
        "made_up_field": "ignored",
    }
    request = ImportRequest(source_url=URL, milestone_id="newborn", ai_category_ids=["travel-ready"])

    response = import_from_url(ProductService(db_session), request, llm_config=LLM)

    product = response.product
    assert product.name == "FeatherFlex Modal Baby Wrap"
    assert product.price_cents == 8900
    assert product.eco_friendly is True
    assert product.milestone_ids == ["month3", "newborn"]
    assert product.source_url == URL
    assert product.ai_category_ids == ["travel-ready"]


@patch("nestlings.products.importer.extract_product")
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_keeps_only_known_milestone_ids(mock_scrape, mock_extract, db_session):
    mock_extract.return_value = {"milestone_ids": ["month3", "moon-landing", "month3"]}

    response = import_from_url(ProductService(db_session), ImportRequest(source_url=URL), llm_config=LLM)

    assert response.product.milestone_ids == ["month3"]
    stored = db_session.query(models.ProductMilestone.milestone_id).all()
    assert [row[0] for row in stored] == ["month3"]


@patch("nestlings.products.importer.extract_product")
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_ignores_non_list_milestone_ids(mock_scrape, mock_extract, db_session):
    mock_extract.return_value = {"milestone_ids": "newborn", "eco_friendly": True}
    request = ImportRequest(source_url=URL, milestone_id="month6")

    response = import_from_url(ProductService(db_session), request, llm_config=LLM)

    assert response.product.milestone_ids == ["month6"]
    assert response.product.eco_friendly is True


@patch("nestlings.products.importer.extract_product")
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_rejects_llm_category_outside_catalog(mock_scrape, mock_extract, db_session):
    mock_extract.return_value = {"category": "gadgets"}

    response = import_from_url(ProductService(db_session), ImportRequest(source_url=URL), llm_config=LLM)

    assert response.product.category == "travel"


@patch("nestlings.products.importer.extract_product")
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_falls_back_when_llm_output_is_invalid(mock_scrape, mock_extract, db_session):
    mock_extract.return_value = {"rating": 42}

    response = import_from_url(ProductService(db_session), ImportRequest(source_url=URL), llm_config=LLM)

    assert response.product.name == "FeatherFlex Baby Wrap"
    assert response.product.rating == 4.9


@patch("nestlings.products.importer.extract_product", return_value={})
@patch("nestlings.products.importer.scrape_product_page", return_value=WRAP_PAGE)
def test_import_without_llm_uses_scraped_metadata(mock_scrape, mock_extract, db_session):
    user = models.User(username="importer", password_hash="x")
    db_session.add(user)
    db_session.commit()

    response = import_from_url(
        ProductService(db_session), ImportRequest(source_url=URL), user_id=user.id, llm_config=LLM,
    )

    assert response.product.brand == "CarryKind"
    assert response.product.affiliate_url == URL
    interaction = db_session.query(models.UserProductInteraction).one()
    assert interaction.interaction_type == "wishlist"


@patch("nestlings.products.importer.extract_product", return_value={})
@patch(
    "nestlings.products.importer.scrape_product_page",
    return_value=ScrapedPage(url=URL, title=None, description="nothing useful"),
)
def test_import_without_name_or_category_fails(mock_scrape, mock_extract, db_session):
    with pytest.raises(ProductImportError):
        import_from_url(ProductService(db_session), ImportRequest(source_url=URL), llm_config=LLM)
    assert db_session.query(models.Product).count() == 0


@patch("nestlings.products.importer.extract_product")
@patch(
    "nestlings.products.importer.scrape_product_page",
    side_effect=ScrapeBlockedError("Scraping blocked for host: evil.com"),
)
def test_import_propagates_scrape_errors(mock_scrape, mock_extract, db_session):
    with pytest.raises(ScrapeBlockedError):
        import_from_url(ProductService(db_session), ImportRequest(source_url="https://evil.com/x"), llm_config=LLM)
    mock_extract.assert_not_called()
