from __future__ import annotations

import pytest

from octo_adapter.core.errors import InvalidRequestError
from octo_adapter.core.filters import apply_product_filters, build_product_filters, wildcard_match
from octo_adapter.core.schemas import Product

PRODUCTS = [
    Product(product_id="1", product_name="Edinburgh Pub Crawl", default_currency="GBP"),
    Product(product_id="2", product_name="Hop-on Hop-off Bus", default_currency="EUR"),
    Product(product_id="3", product_name="Night Bus Tour", default_currency="GBP"),
]


@pytest.mark.parametrize(
    "pattern, value, expected",
    [
        ("*bus*", "Night Bus Tour", True),
        ("edinburgh*", "Edinburgh Pub Crawl", True),
        ("*crawl", "Edinburgh Pub Crawl", True),
        ("bus", "Night Bus Tour", False),
        ("n?ght*", "Night Bus Tour", True),
        ("*", None, False),
    ],
)
def test_wildcard_match(pattern, value, expected):
    assert wildcard_match(pattern, value) is expected


@pytest.mark.parametrize(
    "pattern, value, expected",
    [
        ("tour [vip]*", "Tour [VIP] Castle", True),
        ("tour [vip]*", "Tour v Castle", False),
        ("*[*", "Bus [night]", True),
        ("*]", "Bus [night]", True),
    ],
)
def test_wildcard_match_treats_brackets_literally(pattern, value, expected):
    assert wildcard_match(pattern, value) is expected


def test_filters_combine_with_and():
    clauses = build_product_filters({"productName": "*bus*", "defaultCurrency": "gbp"})
    assert [p.product_id for p in apply_product_filters(PRODUCTS, clauses)] == ["3"]


def test_empty_values_and_product_id_are_not_filters():
    assert build_product_filters({"productId": "1", "productName": "", "defaultCurrency": None}) == []
    assert apply_product_filters(PRODUCTS, []) == PRODUCTS


def test_unknown_filter_key_is_rejected():
    with pytest.raises(InvalidRequestError, match="Unsupported product filter 'city'"):
        build_product_filters({"city": "Edinburgh"})


def test_non_string_filter_value_is_rejected():
    with pytest.raises(InvalidRequestError):
        build_product_filters({"productName": ["a"]})
