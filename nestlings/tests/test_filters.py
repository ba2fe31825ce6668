from starlette.datastructures import QueryParams

from nestlings.products.filters import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    MAX_PAGE,
    SQL_INT_MAX,
    escape_like,
    normalize_pagination,
    normalize_sort,
    parse_query_params,
    to_cents,
)


# ── Pagination / sort ────────────────────────────────────────────────────


def test_pagination_defaults():
    window = normalize_pagination(None, None)
    assert (window.page, window.limit, window.offset) == (1, DEFAULT_LIMIT, 0)


def test_pagination_clamps_bounds():
    assert normalize_pagination(0, 0).page == 1
    assert normalize_pagination(-4, 0).limit == 1
    assert normalize_pagination(2, 500).limit == MAX_LIMIT


def test_pagination_offset():
    assert normalize_pagination(3, 10).offset == 20


def test_sort_falls_back_to_created_at_desc():
    assert normalize_sort(None, None) == ("created_at", "desc")
    assert normalize_sort("password_hash", "sideways") == ("created_at", "desc")


def test_sort_accepts_known_fields_and_aliases():
    assert normalize_sort("rating", "ASC") == ("rating", "asc")
    assert normalize_sort("price", "desc") == ("price_cents", "desc")
    assert normalize_sort("createdAt", "asc") == ("created_at", "asc")


def test_to_cents_rounds():
    assert to_cents(19.99) == 1999
    assert to_cents(120) == 12000


# ── Query-string parsing ─────────────────────────────────────────────────


def test_parse_empty_params():
    options = parse_query_params({})
    assert options.page is None
    assert options.limit is None
    assert options.include_reviews is False
    assert options.filters.model_dump(exclude_none=True) == {}


def test_parse_numbers_and_booleans():
    options = parse_query_params({
        "page": "2",
        "limit": "5",
        "ageMonths": "6",
        "minPrice": "10.5",
        "maxPrice": "99",
        "minRating": "4",
        "ecoFriendly": "true",
        "premium": "false",
        "inStock": "0",
        "includeReviews": "1",
    })
    assert (options.page, options.limit) == (2, 5)
    f = options.filters
    assert f.age_months == 6
    assert f.min_price == 10.5
    assert f.max_price == 99.0
    assert f.min_rating == 4.0
    assert f.eco_friendly is True
    assert f.premium is False
    assert f.in_stock is False
    assert options.include_reviews is True


def test_parse_malformed_values_are_dropped():
    options = parse_query_params({
        "page": "two",
        "limit": "1.5",
        "ageMonths": "abc",
        "minPrice": "nan",
        "ecoFriendly": "maybe",
        "search": "   ",
    })
    assert options.page is None
    assert options.limit is None
    assert options.filters.model_dump(exclude_none=True) == {}


def test_parse_zero_is_a_real_filter():
    options = parse_query_params({"ageMonths": "0", "minPrice": "0"})
    assert options.filters.age_months == 0
    assert options.filters.min_price == 0.0


def test_parse_repeated_category():
    params = QueryParams("category=sleeping&category=travel")
    assert parse_query_params(params).filters.category == ["sleeping", "travel"]


def test_parse_comma_category():
    assert parse_query_params({"category": "sleeping,travel"}).filters.category == ["sleeping", "travel"]


def test_parse_categories_wins_over_category():
    options = parse_query_params({"categories": "play, feeding", "category": "sleeping"})
    assert options.filters.category == ["play", "feeding"]


def test_parse_milestone_ids_wins_over_milestone_id():
    options = parse_query_params({"milestoneIds": "newborn,month3", "milestoneId": "year1"})
    assert options.filters.milestone_ids == ["newborn", "month3"]

    options = parse_query_params({"milestoneId": "year1"})
    assert options.filters.milestone_ids == ["year1"]


def test_parse_text_filters_are_trimmed():
    options = parse_query_params({"search": "  wrap ", "budgetTier": " premium"})
    assert options.filters.search == "wrap"
    assert options.filters.budget_tier == "premium"


def test_parse_repeated_and_comma_milestone_id():
    params = QueryParams("milestoneId=newborn&milestoneId=month3,month6")
    assert parse_query_params(params).filters.milestone_ids == ["newborn", "month3", "month6"]


def test_pagination_caps_huge_pages():
    window = normalize_pagination(10**20, MAX_LIMIT)
    assert window.page == MAX_PAGE
    assert window.offset <= SQL_INT_MAX


def test_to_cents_saturates():
    assert to_cents(1e300) == SQL_INT_MAX
    assert to_cents(-1e300) == -SQL_INT_MAX
    assert to_cents(float("inf")) == SQL_INT_MAX


def test_escape_like():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
    assert escape_like("wrap") == "wrap"
