"""Cache keys, invalidation patterns and canonical query serialization."""

import pytest

from adapters.resources.products import products_query, search_query
from core.domain.keys import CacheKey, KeyPattern, encode_query, require_identifier, serialize_params
from core.domain.models import ProductFilters, Role, SortOption
from core.errors import InvalidIdentifierError


def test_serialize_params_keeps_order_and_drops_empty_values():
    pairs = serialize_params([("b", 2), ("a", None), ("c", ""), ("d", []), ("e", "x")])
    assert pairs == (("b", "2"), ("e", "x"))


def test_serialize_params_formats_scalars():
    pairs = serialize_params([("flag", True), ("price", 100.0), ("rating", 4.5), ("tags", ["a", "b"]), ("role", Role.SELLER)])
    assert pairs == (
        ("flag", "true"),
        ("price", "100"),
        ("rating", "4.5"),
        ("tags", "a,b"),
        ("role", "seller"),
    )


@pytest.mark.parametrize("value", [None, "", "   "])
def test_require_identifier_rejects_empty(value):
    with pytest.raises(InvalidIdentifierError) as excinfo:
        require_identifier("product_id", value)
    assert isinstance(excinfo.value, ValueError)
    assert excinfo.value.name == "product_id"


def test_require_identifier_stringifies_numbers():
    assert require_identifier("id", 42) == "42"


def test_products_query_order_is_page_limit_filters_then_sort():
    query = products_query(
        ProductFilters(category="Electronics", min_price=100, max_price=500),
        SortOption(field="price", direction="asc"),
        1,
        20,
    )
    assert encode_query(query) == (
        "page=1&limit=20&category=Electronics&minPrice=100&maxPrice=500&sortBy=price&sortOrder=asc"
    )


def test_equal_filters_from_mapping_and_model_give_the_same_key():
    from_model = CacheKey("products", encode_query(products_query(ProductFilters(min_price=10, search="lamp"))))
    from_mapping = CacheKey("products", encode_query(products_query({"search": "lamp", "minPrice": 10})))
    assert from_model == from_mapping


def test_unknown_filter_field_is_rejected():
    with pytest.raises(ValueError):
        products_query({"colour": "red"})


def test_search_query_requires_text():
    with pytest.raises(InvalidIdentifierError):
        search_query("  ")
    assert search_query("usb hub", {"category": "Electronics"}, 2, 10) == (
        ("q", "usb hub"),
        ("page", "2"),
        ("limit", "10"),
        ("category", "Electronics"),
    )


def test_cache_key_rejects_blank_resource():
    with pytest.raises(InvalidIdentifierError):
        CacheKey("")


def test_cache_key_str_and_nesting():
    key = CacheKey.of("products.search", [("q", "desk lamp")])
    assert str(key) == "products.search?q=desk+lamp"
    assert key.is_within("products")
    assert key.is_within("products.search")
    assert not CacheKey("product", "id=1").is_within("products")
    assert not CacheKey("productsx").is_within("products")


def test_pattern_parse_forms():
    assert KeyPattern.parse("seller.products") == KeyPattern("seller.products")
    assert KeyPattern.parse("products.*") == KeyPattern("products", nested=True)
    assert KeyPattern.parse("product?id=42") == KeyPattern("product", "id=42")
    with pytest.raises(ValueError):
        KeyPattern.parse("products.*?page=1")


def test_pattern_matching():
    exact_resource = KeyPattern.parse("seller.products")
    assert exact_resource.matches(CacheKey("seller.products", "page=1&limit=20"))
    assert not exact_resource.matches(CacheKey("seller.products.archived"))

    nested = KeyPattern.parse("products.*")
    assert nested.matches(CacheKey("products", "page=1&limit=20"))
    assert nested.matches(CacheKey("products.featured"))
    assert not nested.matches(CacheKey("product", "id=1"))

    one_key = KeyPattern.parse("product?id=42")
    assert one_key.matches(CacheKey.of("product", [("id", "42")]))
    assert not one_key.matches(CacheKey.of("product", [("id", "43")]))


def test_pattern_render_encodes_identifiers():
    pattern = KeyPattern.render("product?id={product_id}", {"product_id": "a b&c"})
    assert pattern.matches(CacheKey.of("product", [("id", "a b&c")]))
    assert str(pattern) == "product?id=a+b%26c"


def test_pattern_render_requires_every_placeholder():
    with pytest.raises(InvalidIdentifierError):
        KeyPattern.render("buyer.order?id={order_id}", {})
    assert KeyPattern.render("buyer.orders", {}) == KeyPattern("buyer.orders")
