from __future__ import annotations

from sales_api.repositories.sales import DEFAULT_ORDER, OrderKey, parse_ordering


def test_empty_order_uses_default() -> None:
    assert parse_ordering(None) == list(DEFAULT_ORDER)
    assert parse_ordering("") == list(DEFAULT_ORDER)
    assert parse_ordering("   ") == list(DEFAULT_ORDER)
    assert DEFAULT_ORDER == (OrderKey("saledate", descending=True),)


def test_multi_key_order_keeps_given_sequence() -> None:
    assert parse_ordering("totalamount desc, salenumber") == [
        OrderKey("totalamount", descending=True),
        OrderKey("salenumber", descending=False),
    ]


def test_field_names_are_case_insensitive_and_ignore_underscores() -> None:
    assert parse_ordering("SaleNumber DESC") == [OrderKey("salenumber", descending=True)]
    assert parse_ordering("customer_name asc") == [OrderKey("customername")]
    assert parse_ordering("branchName") == [OrderKey("branchname")]


def test_unknown_fields_are_skipped() -> None:
    assert parse_ordering("bogus desc, salenumber") == [OrderKey("salenumber")]
    assert parse_ordering("bogus, nothing desc") == list(DEFAULT_ORDER)


def test_anything_but_desc_is_ascending() -> None:
    assert parse_ordering("saledate sideways") == [OrderKey("saledate", descending=False)]
    assert parse_ordering(",, totalamount desc ,") == [OrderKey("totalamount", descending=True)]
