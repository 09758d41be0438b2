import pytest

from app.pricing import CartLine, EmptyCartError, QuotePrice, collapse_lines, parse_cart_items, quote_cart


def _row(product_id: int, store_id: int, price: float) -> QuotePrice:
    return QuotePrice(product_id=product_id, store_id=store_id, price=price, store_name=f"Store {store_id}")


def test_total_is_price_times_quantity_summed_over_lines():
    lines = [CartLine(product_id=1, quantity=2), CartLine(product_id=2, quantity=3)]
    quote = quote_cart(lines, [_row(1, 10, 1000), _row(2, 10, 500)])

    assert quote.best_store is not None
    assert quote.best_store.store_id == 10
    assert quote.best_store.total == 3500


def test_only_stores_covering_every_product_qualify():
    lines = [CartLine(product_id=1, quantity=1), CartLine(product_id=2, quantity=1)]
    table = [
        _row(1, 10, 100),
        _row(2, 10, 100),
        _row(1, 20, 1),  # store 20 lacks product 2
        _row(2, 30, 50),
        _row(1, 30, 60),
    ]

    quote = quote_cart(lines, table)

    assert [store.store_id for store in quote.by_store] == [30, 10]
    assert [store.total for store in quote.by_store] == [110, 200]
    assert quote.best_store == quote.by_store[0]


def test_product_without_prices_leaves_no_qualifying_store():
    lines = [CartLine(product_id=1, quantity=1), CartLine(product_id=99, quantity=1)]

    quote = quote_cart(lines, [_row(1, 10, 100), _row(1, 20, 90)])

    assert quote.by_store == []
    assert quote.best_store is None


def test_empty_price_table_has_no_best_store():
    quote = quote_cart([CartLine(product_id=1, quantity=1)], [])

    assert quote.by_store == []
    assert quote.best_store is None


def test_quotes_use_raw_prices_not_normalized_ones():
    # no size data is needed to quote a cart
    quote = quote_cart([CartLine(product_id=5, quantity=4)], [_row(5, 1, 2.5)])

    assert quote.best_store.total == 10


def test_equal_totals_keep_store_discovery_order():
    lines = [CartLine(product_id=1, quantity=1)]
    quote = quote_cart(lines, [_row(1, 30, 100), _row(1, 10, 100), _row(1, 20, 100)])

    assert [store.store_id for store in quote.by_store] == [30, 10, 20]


def test_totals_are_ordered_before_any_rounding():
    lines = [CartLine(product_id=1, quantity=1)]
    quote = quote_cart(lines, [_row(1, 10, 100.004), _row(1, 20, 100.001)])

    assert [store.store_id for store in quote.by_store] == [20, 10]
    assert quote.best_store.total == 100.001


def test_duplicate_lines_are_collapsed():
    lines = [CartLine(product_id=1, quantity=1), CartLine(product_id=2, quantity=1), CartLine(product_id=1, quantity=2)]

    assert collapse_lines(lines) == {1: 3, 2: 1}
    assert quote_cart(lines, [_row(1, 10, 100), _row(2, 10, 10)]).best_store.total == 310


def test_collapse_rejects_carts_without_positive_quantities():
    with pytest.raises(EmptyCartError):
        collapse_lines([CartLine(product_id=1, quantity=0), CartLine(product_id=2, quantity=-1)])

    with pytest.raises(EmptyCartError):
        quote_cart([], [_row(1, 10, 100)])


def test_parse_cart_items_accepts_aliases_and_numeric_strings():
    lines = parse_cart_items(
        [
            {"product_id": 1, "qty": 2},
            {"id": "2", "quantity": "1.5"},
        ]
    )

    assert lines == [CartLine(product_id=1, quantity=2), CartLine(product_id=2, quantity=1.5)]


def test_parse_cart_items_drops_malformed_lines():
    lines = parse_cart_items(
        [
            {"product_id": 1, "qty": 1},
            {"product_id": None, "qty": 3},
            {"qty": 3},
            {"product_id": 2, "qty": "lots"},
            {"product_id": 3, "qty": 0},
            {"product_id": 4, "qty": -2},
            {"product_id": 5},
            {"product_id": True, "qty": 1},
            "not-an-item",
        ]
    )

    assert lines == [CartLine(product_id=1, quantity=1)]


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"product_id": 1, "qty": 0}],
        [{"qty": 2}, {"product_id": "x", "qty": 1}],
    ],
)
def test_parse_cart_items_rejects_carts_without_valid_lines(items):
    with pytest.raises(EmptyCartError):
        parse_cart_items(items)
