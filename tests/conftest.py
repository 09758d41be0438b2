from __future__ import annotations

from collections.abc import Generator
from datetime import datetime
from pathlib import Path
import sys

import pytest
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from app.api.deps import get_db, get_now  # noqa: E402
from app.core.log_buffer import reset_buffers  # noqa: E402
from app.core.metrics import metrics  # noqa: E402
from app.db import models  # noqa: E402
from app.main import app  # noqa: E402

FIXED_NOW = datetime(2025, 3, 1, 12, 0, 0)


@pytest.fixture()
def session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture()
def client(session: Session) -> Generator[TestClient, None, None]:
    def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)
        app.dependency_overrides.pop(get_now, None)


@pytest.fixture(autouse=True)
def reset_observability():
    metrics.reset()
    reset_buffers()
    yield


def add_store(session: Session, name: str, logo_url: str | None = None) -> models.Store:
    store = models.Store(name=name, logo_url=logo_url)
    session.add(store)
    session.flush()
    return store


def add_product(
    session: Session,
    name: str,
    size_value: float | None = None,
    size_unit: str | None = None,
    **extra,
) -> models.Product:
    product = models.Product(name=name, size_value=size_value, size_unit=size_unit, **extra)
    session.add(product)
    session.flush()
    return product


def add_price(
    session: Session,
    product: models.Product,
    store: models.Store,
    price: float,
    captured_at: datetime | None = FIXED_NOW,
    expires_at: datetime | None = None,
) -> models.Price:
    row = models.Price(
        product_id=product.id,
        store_id=store.id,
        price=price,
        captured_at=captured_at,
        expires_at=expires_at,
    )
    session.add(row)
    session.flush()
    return row
