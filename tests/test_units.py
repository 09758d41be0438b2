import pytest

from app.pricing.units import normalize_price, reference_unit


@pytest.mark.parametrize(
    ("size_value", "size_unit", "price"),
    [
        (500, "g", 1000),
        (2, "kg", 4000),
        (1.5, "l", 3000),
        (250, "ml", 500),
    ],
)
def test_normalize_price_to_two_hundred_per_reference(size_value, size_unit, price):
    assert normalize_price(size_value, size_unit, price) == 200.00


def test_normalize_price_accepts_unit_synonyms_in_any_case():
    assert normalize_price(1000, " GR ", 1500) == 150.0
    assert normalize_price(1, "Kilos", 1500) == 150.0
    assert normalize_price(1, "Litros", 990) == 99.0
    assert normalize_price(1, "LT", 990) == 99.0


def test_normalize_price_rounds_to_cents():
    assert normalize_price(300, "g", 1000) == 333.33


def test_normalize_price_accepts_numeric_strings():
    assert normalize_price("500", "g", 1000) == 200.0


@pytest.mark.parametrize(
    ("size_value", "size_unit"),
    [
        (None, "g"),
        (0, "g"),
        (-5, "kg"),
        ("abc", "g"),
        (float("nan"), "g"),
        (500, None),
        (500, "unknown"),
        (6, "units"),
    ],
)
def test_normalize_price_returns_none_when_size_cannot_be_used(size_value, size_unit):
    assert normalize_price(size_value, size_unit, 1000) is None


def test_reference_unit_labels():
    assert reference_unit("kg") == "100g"
    assert reference_unit("ml") == "100ml"
    assert reference_unit("pack") is None


@pytest.mark.parametrize(
    ("size_value", "size_unit", "price"),
    [
        (4000, "g", 5),
        (8, "kg", 10),
    ],
)
def test_normalize_price_rounds_half_cents_up(size_value, size_unit, price):
    assert normalize_price(size_value, size_unit, price) == 0.13
