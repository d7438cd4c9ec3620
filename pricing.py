"""Derived totals for carts and orders."""

from typing import Any, Iterable, Mapping


def line_total(item: Mapping[str, Any]) -> float:
    return item["quantity"] * item["price"]


def derive_total(items: Iterable[Mapping[str, Any]]):
    """Sum of quantity x unit price over the line items; 0 when there are none.

    Carts store the result as ``totalPrice``, orders as ``totalAmount``.
    """
    return sum(line_total(item) for item in items)
