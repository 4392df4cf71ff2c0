"""Snapshot loading and legacy-shape migration package."""

from bookkeeper.snapshot.migration import (
    load_snapshot,
    normalize_credit,
    normalize_expense,
    normalize_product,
    normalize_sale,
    parse_date,
    parse_payment_method,
    resolve_sale_amounts,
    to_decimal,
)

__all__ = [
    "load_snapshot",
    "normalize_credit",
    "normalize_expense",
    "normalize_product",
    "normalize_sale",
    "parse_date",
    "parse_payment_method",
    "resolve_sale_amounts",
    "to_decimal",
]
