from services.catalog import ProductFilters, build_product_search, page_payload


def test_default_search_lists_every_product_by_name():
    query, params = build_product_search(ProductFilters())

    assert '*[_type == "product" && price >= $minPrice && price <= $maxPrice]' in query
    assert "order(title asc) [$start...$end]" in query
    assert params == {"minPrice": 0, "maxPrice": 999999, "start": 0, "end": 12}


def test_filters_add_conditions_and_params():
    filters = ProductFilters(
        search="  oak ", category="chairs", in_stock=True, featured=True, discounted=True,
        sort="price_desc", page=3,
    )
    query, params = build_product_search(filters)

    for condition in (
        'title match $search + "*"',
        "$category in categories[]->slug.current",
        "quantity > 0",
        "featured == true",
        "defined(discountPrice)",
    ):
        assert condition in query
    assert "order(price desc)" in query
    assert params["search"] == "oak"
    assert params["category"] == "chairs"
    assert (params["start"], params["end"]) == (24, 36)


def test_relevance_sort_needs_a_search_term():
    query, _ = build_product_search(ProductFilters(sort="relevance"))
    assert "order(title asc)" in query
    assert "_score" not in query

    query, _ = build_product_search(ProductFilters(search="lamp", sort="relevance"))
    assert "order(_score desc)" in query


def test_page_payload_tolerates_missing_result():
    assert page_payload(None, ProductFilters(page=2)) == {"items": [], "total": 0, "page": 2, "page_size": 12}
