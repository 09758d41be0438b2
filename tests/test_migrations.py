from sqlalchemy import create_engine, inspect, text

from app.db.migrations import run_schema_migrations


def test_run_schema_migrations_adds_missing_columns(tmp_path):
    db_path = tmp_path / "legacy.db"
    engine = create_engine(
        f"sqlite:///{db_path}", connect_args={"check_same_thread": False}
    )

    with engine.begin() as conn:
        conn.execute(
            text(
                """
                CREATE TABLE products (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL
                )
                """
            )
        )
        conn.execute(
            text(
                """
                CREATE TABLE prices (
                    id INTEGER PRIMARY KEY,
                    product_id INTEGER NOT NULL,
                    store_id INTEGER NOT NULL,
                    price FLOAT NOT NULL,
                    currency TEXT NOT NULL,
                    captured_at DATETIME
                )
                """
            )
        )
        conn.execute(
            text(
                "INSERT INTO prices (id, product_id, store_id, price, currency, captured_at) "
                "VALUES (1, 1, 1, 990, 'CLP', '2025-03-01 12:00:00')"
            )
        )

    run_schema_migrations(engine)

    inspector = inspect(engine)
    price_columns = {col["name"] for col in inspector.get_columns("prices")}
    assert {"expires_at", "promo_text", "url", "source", "source_ref", "updated_at"}.issubset(price_columns)

    product_columns = {col["name"] for col in inspector.get_columns("products")}
    assert {"size_value", "size_unit"}.issubset(product_columns)

    with engine.connect() as conn:
        source, updated_at = conn.execute(text("SELECT source, updated_at FROM prices WHERE id = 1")).one()
    assert source == "manual"
    assert updated_at is not None


def test_run_schema_migrations_is_a_noop_on_empty_database(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")

    run_schema_migrations(engine)

    assert inspect(engine).get_table_names() == []
