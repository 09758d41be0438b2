from __future__ import annotations

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def run_schema_migrations(engine: Engine) -> None:
    """Ensure legacy databases have columns required by the current models."""

    inspector = inspect(engine)
    table_names = set(inspector.get_table_names())
    if not {"prices", "products"} & table_names:
        return

    dialect = engine.dialect.name

    def _timestamp_type() -> str:
        return "DATETIME" if dialect == "sqlite" else "TIMESTAMP"

    def _text_type() -> str:
        return "TEXT" if dialect == "sqlite" else "VARCHAR"

    def _float_type() -> str:
        return "FLOAT" if dialect == "sqlite" else "DOUBLE PRECISION"

    try:
        with engine.begin() as connection:
            if "prices" in table_names:
                columns = {col["name"] for col in inspector.get_columns("prices")}
                statements: list[str] = []

                for name in ("captured_at", "expires_at"):
                    if name not in columns:
                        statements.append(f"ALTER TABLE prices ADD COLUMN {name} {_timestamp_type()} NULL")
                for name in ("url", "promo_text", "source_ref"):
                    if name not in columns:
                        statements.append(f"ALTER TABLE prices ADD COLUMN {name} {_text_type()} NULL")
                source_missing = "source" not in columns
                if source_missing:
                    statements.append(f"ALTER TABLE prices ADD COLUMN source {_text_type()} DEFAULT 'manual'")
                updated_missing = "updated_at" not in columns
                if updated_missing:
                    statements.append(f"ALTER TABLE prices ADD COLUMN updated_at {_timestamp_type()} NULL")

                for statement in statements:
                    logger.info("Applying migration: %s", statement)
                    connection.execute(text(statement))

                if source_missing:
                    connection.execute(text("UPDATE prices SET source = COALESCE(source, 'manual')"))
                if updated_missing:
                    connection.execute(
                        text("UPDATE prices SET updated_at = COALESCE(updated_at, captured_at, CURRENT_TIMESTAMP)")
                    )

            if "products" in table_names:
                columns = {col["name"] for col in inspector.get_columns("products")}
                if "size_value" not in columns:
                    statement = f"ALTER TABLE products ADD COLUMN size_value {_float_type()} NULL"
                    logger.info("Applying migration: %s", statement)
                    connection.execute(text(statement))
                if "size_unit" not in columns:
                    statement = f"ALTER TABLE products ADD COLUMN size_unit {_text_type()} NULL"
                    logger.info("Applying migration: %s", statement)
                    connection.execute(text(statement))

    except SQLAlchemyError:
        logger.exception("Schema migration failed")
        raise
