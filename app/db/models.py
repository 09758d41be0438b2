from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def _utcnow() -> datetime:
    """Return a timezone-naive UTC timestamp for database storage."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


class Store(SQLModel, table=True):
    __tablename__ = "stores"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    logo_url: Optional[str] = None

    prices: List["Price"] = Relationship(back_populates="store", sa_relationship_kwargs={"lazy": "selectin"})


class Product(SQLModel, table=True):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("ean", name="uq_products_ean"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, nullable=False)
    brand: Optional[str] = Field(default=None, index=True)
    ean: Optional[str] = Field(default=None, index=True)
    category: Optional[str] = Field(default=None, index=True)
    image_url: Optional[str] = None
    size_value: Optional[float] = None
    size_unit: Optional[str] = None

    prices: List["Price"] = Relationship(back_populates="product", sa_relationship_kwargs={"lazy": "selectin"})


class Price(SQLModel, table=True):
    """Current price of a product at a store; at most one row per pair."""

    __tablename__ = "prices"
    __table_args__ = (
        UniqueConstraint("product_id", "store_id", name="uq_prices_product_store"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", nullable=False, index=True)
    store_id: int = Field(foreign_key="stores.id", nullable=False, index=True)
    price: float = Field(nullable=False)
    currency: str = Field(default="CLP", nullable=False)
    url: Optional[str] = None
    promo_text: Optional[str] = None
    captured_at: Optional[datetime] = Field(default_factory=_utcnow, index=True)
    expires_at: Optional[datetime] = Field(default=None, index=True)
    source: str = Field(default="manual")
    source_ref: Optional[str] = None
    updated_at: datetime = Field(default_factory=_utcnow, nullable=False)

    product: Product = Relationship(back_populates="prices", sa_relationship_kwargs={"lazy": "selectin"})
    store: Store = Relationship(back_populates="prices", sa_relationship_kwargs={"lazy": "selectin"})


class PriceHistory(SQLModel, table=True):
    __tablename__ = "price_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", nullable=False, index=True)
    store_id: int = Field(foreign_key="stores.id", nullable=False, index=True)
    price: float = Field(nullable=False)
    currency: str = Field(default="CLP")
    promo_text: Optional[str] = None
    url: Optional[str] = None
    captured_at: datetime = Field(default_factory=_utcnow, index=True)


__all__ = [
    "Store",
    "Product",
    "Price",
    "PriceHistory",
]
