from contextlib import contextmanager
from datetime import timedelta

import pytest

from app.cli import compare
from app.pricing.types import now_utc
from conftest import add_price, add_product, add_store


@pytest.fixture()
def cli_session(session, monkeypatch):
    @contextmanager
    def _get_session():
        yield session

    monkeypatch.setattr(compare, "get_session", _get_session)
    monkeypatch.setattr(compare, "init_db", lambda: None)
    return session


def test_product_command_prints_ranked_table(cli_session, capsys):
    product = add_product(cli_session, "Leche", 1, "l")
    add_price(cli_session, product, add_store(cli_session, "Lider"), 1100, captured_at=now_utc())
    add_price(cli_session, product, add_store(cli_session, "Jumbo"), 990, captured_at=now_utc() - timedelta(days=5))
    cli_session.commit()

    exit_code = compare.main(["product", str(product.id)])

    output = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert output[0] == "Leche (1.0 l)"
    assert [cell.strip() for cell in output[3].split("|")] == ["Jumbo", "990.00", "99.00", "yes", "no"]
    assert output[4].startswith("Lider")


def test_product_command_unknown_product(cli_session, capsys):
    assert compare.main(["product", "42"]) == 1
    assert "not found" in capsys.readouterr().out


def test_quote_command_prints_store_totals(cli_session, capsys):
    rice = add_product(cli_session, "Arroz")
    store = add_store(cli_session, "Tottus")
    add_price(cli_session, rice, store, 1250)
    cli_session.commit()

    exit_code = compare.main(["quote", f"{rice.id}:2"])

    output = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert output[2].split(" | ") == ["Tottus", "2500.00"]


def test_quote_command_rejects_empty_cart(cli_session, capsys):
    assert compare.main(["quote", "1:0"]) == 1
    assert "positive qty" in capsys.readouterr().out


def test_quote_item_requires_separator():
    with pytest.raises(SystemExit):
        compare.parse_args(["quote", "17"])


def test_stale_hours_defaults_to_configured_value(monkeypatch):
    monkeypatch.setattr(compare.settings, "default_stale_hours", 12)

    assert compare.parse_args(["product", "1"]).stale_hours == 12
