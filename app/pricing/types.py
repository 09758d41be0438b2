from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol


def now_utc() -> datetime:
    """Return a timezone-naive UTC datetime."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SizedProduct(Protocol):
    size_value: Optional[float]
    size_unit: Optional[str]


@dataclass(frozen=True)
class PriceObservation:
    """A stored price for one (product, store) pair, detached from the ORM."""

    id: int
    store_id: int
    price: float
    captured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    currency: Optional[str] = None
    url: Optional[str] = None
    promo_text: Optional[str] = None
    store_name: Optional[str] = None
    store_logo: Optional[str] = None


@dataclass(frozen=True)
class NormalizedOffer:
    observation: PriceObservation
    normalized_price: Optional[float]
    stale: bool
    expired: bool

    @property
    def id(self) -> int:
        return self.observation.id

    @property
    def price(self) -> float:
        return self.observation.price


@dataclass(frozen=True)
class RankingPolicy:
    stale_hours: float = 48
    hide_expired: bool = True
    prefer_fresh: bool = True


@dataclass(frozen=True)
class RankingResult:
    best: Optional[NormalizedOffer]
    ranked: list[NormalizedOffer] = field(default_factory=list)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: float


@dataclass(frozen=True)
class QuotePrice:
    """One row of the (product x store) price matrix used for cart quotes."""

    product_id: int
    store_id: int
    price: float
    store_name: Optional[str] = None
    store_logo: Optional[str] = None


@dataclass(frozen=True)
class StoreQuote:
    store_id: int
    store_name: Optional[str]
    store_logo: Optional[str]
    total: float


@dataclass(frozen=True)
class CartQuote:
    by_store: list[StoreQuote]
    best_store: Optional[StoreQuote]


class EmptyCartError(ValueError):
    """Raised when a cart has no line with a product id and a positive quantity."""
