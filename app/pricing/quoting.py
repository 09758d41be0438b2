"""Whole-basket quotes: the cheapest single store that carries every cart item."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

from app.pricing.types import CartLine, CartQuote, EmptyCartError, QuotePrice, StoreQuote


def _as_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _as_product_id(value: Any) -> int | None:
    number = _as_number(value)
    if number is None or number <= 0 or not number.is_integer():
        return None
    return int(number)


def _first_present(item: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return None


def parse_cart_items(items: Iterable[Mapping[str, Any]]) -> list[CartLine]:
    """Validate loosely typed request items into cart lines.

    Accepts ``product_id`` (or ``id``) and ``qty`` (or ``quantity``). Items
    without a usable product id or a positive numeric quantity are dropped.
    """

    lines: list[CartLine] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        product_id = _as_product_id(_first_present(item, "product_id", "id"))
        quantity = _as_number(_first_present(item, "qty", "quantity"))
        if product_id is None or quantity is None or quantity <= 0:
            continue
        lines.append(CartLine(product_id=product_id, quantity=quantity))

    if not lines:
        raise EmptyCartError("Cart requires items with product_id and a positive qty")
    return lines


def collapse_lines(lines: Iterable[CartLine]) -> dict[int, float]:
    """Sum quantities per product, keeping first-seen product order."""

    quantities: dict[int, float] = {}
    for line in lines:
        if line.quantity is None or line.quantity <= 0:
            continue
        quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

    if not quantities:
        raise EmptyCartError("Cart has no line with a positive quantity")
    return quantities


def quote_cart(lines: Iterable[CartLine], price_table: Iterable[QuotePrice]) -> CartQuote:
    """Total the cart at every store that prices all of its products.

    Raw shelf prices are summed, not normalized ones: the shopper buys the
    listed packages whatever their size. Stores missing any cart product are
    left out entirely.
    """

    quantities = collapse_lines(lines)

    prices: dict[tuple[int, int], float] = {}
    stores: dict[int, QuotePrice] = {}
    for row in price_table:
        if row.product_id not in quantities:
            continue
        prices[(row.product_id, row.store_id)] = row.price
        stores.setdefault(row.store_id, row)

    candidates: list[StoreQuote] = []
    for store_id, info in stores.items():
        total = 0.0
        for product_id, quantity in quantities.items():
            price = prices.get((product_id, store_id))
            if price is None:
                break
            total += price * quantity
        else:
            candidates.append(
                StoreQuote(
                    store_id=store_id,
                    store_name=info.store_name,
                    store_logo=info.store_logo,
                    total=total,
                )
            )

    by_store = sorted(candidates, key=lambda quote: quote.total)
    return CartQuote(by_store=by_store, best_store=by_store[0] if by_store else None)
