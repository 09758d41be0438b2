from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlmodel import Session, select

from app.core.config import settings
from app.db import models
from app.pricing import (
    CartLine,
    CartQuote,
    NormalizedOffer,
    PriceObservation,
    QuotePrice,
    RankingPolicy,
    RankingResult,
    annotate_offers,
    quote_cart,
    rank_offers,
)
from app.pricing.types import as_naive_utc, now_utc


logger = logging.getLogger(__name__)


@dataclass
class PriceInput:
    product_id: int
    store_id: int
    price: float
    currency: Optional[str] = None
    url: Optional[str] = None
    promo_text: Optional[str] = None
    captured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    source: Optional[str] = None
    source_ref: Optional[str] = None


def to_observation(price: models.Price) -> PriceObservation:
    store = price.store
    return PriceObservation(
        id=price.id,
        store_id=price.store_id,
        price=price.price,
        captured_at=price.captured_at,
        expires_at=price.expires_at,
        currency=price.currency,
        url=price.url,
        promo_text=price.promo_text,
        store_name=store.name if store else None,
        store_logo=store.logo_url if store else None,
    )


class PriceService:
    """Reads price snapshots for the pricing engine and writes price observations."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_product(self, product_id: int) -> models.Product:
        product = self.session.get(models.Product, product_id)
        if not product:
            raise LookupError(f"Product {product_id} not found")
        return product

    def _observations(self, product_id: int) -> list[PriceObservation]:
        statement = (
            select(models.Price)
            .where(models.Price.product_id == product_id)
            .order_by(models.Price.price, models.Price.id)
        )
        return [to_observation(price) for price in self.session.exec(statement).all()]

    def list_prices_for_product(
        self,
        product_id: int,
        *,
        stale_hours: float = settings.default_stale_hours,
        now: datetime | None = None,
    ) -> tuple[models.Product, list[NormalizedOffer]]:
        product = self.get_product(product_id)
        offers = annotate_offers(product, self._observations(product_id), stale_hours=stale_hours, now=now)
        return product, offers

    def compare_product(
        self,
        product_id: int,
        policy: RankingPolicy,
        *,
        now: datetime | None = None,
    ) -> tuple[models.Product, RankingResult]:
        product = self.get_product(product_id)
        result = rank_offers(product, self._observations(product_id), policy, now=now)
        if result.best is None:
            logger.info("No eligible offer for product=%s policy=%s", product_id, policy)
        return product, result

    def quote_cart(self, lines: Iterable[CartLine]) -> CartQuote:
        lines = list(lines)
        product_ids = sorted({line.product_id for line in lines})
        statement = (
            select(models.Price)
            .where(models.Price.product_id.in_(product_ids))
            .order_by(models.Price.id)
        )
        rows = [
            QuotePrice(
                product_id=price.product_id,
                store_id=price.store_id,
                price=price.price,
                store_name=price.store.name if price.store else None,
                store_logo=price.store.logo_url if price.store else None,
            )
            for price in self.session.exec(statement).all()
        ]
        quote = quote_cart(lines, rows)
        logger.debug(
            "Quoted cart products=%s price_rows=%d qualifying_stores=%d",
            product_ids,
            len(rows),
            len(quote.by_store),
        )
        return quote

    def upsert_price(self, payload: PriceInput) -> tuple[models.Price, bool]:
        """Insert or replace the current price for a (product, store) pair.

        Every write is also appended to ``price_history``. Returns the price row
        and whether it was newly created.
        """

        if not self.session.get(models.Product, payload.product_id):
            raise LookupError(f"Product {payload.product_id} not found")
        if not self.session.get(models.Store, payload.store_id):
            raise LookupError(f"Store {payload.store_id} not found")

        captured_at = as_naive_utc(payload.captured_at) or now_utc()
        values = {
            "price": float(payload.price),
            "currency": (payload.currency or settings.default_currency).upper(),
            "url": payload.url,
            "promo_text": payload.promo_text,
            "captured_at": captured_at,
            "expires_at": as_naive_utc(payload.expires_at),
            "source": payload.source or "manual",
            "source_ref": payload.source_ref,
            "updated_at": now_utc(),
        }

        existing = self.session.exec(
            select(models.Price).where(
                (models.Price.product_id == payload.product_id)
                & (models.Price.store_id == payload.store_id)
            )
        ).first()

        if existing:
            if existing.price != values["price"]:
                logger.info(
                    "Price change detected: product=%s store=%s old=%.2f new=%.2f %s",
                    payload.product_id,
                    payload.store_id,
                    existing.price,
                    values["price"],
                    values["currency"],
                )
            for key, value in values.items():
                setattr(existing, key, value)
            price = existing
            created = False
        else:
            price = models.Price(product_id=payload.product_id, store_id=payload.store_id, **values)
            created = True

        self.session.add(price)
        self.session.add(
            models.PriceHistory(
                product_id=payload.product_id,
                store_id=payload.store_id,
                price=values["price"],
                currency=values["currency"],
                promo_text=values["promo_text"],
                url=values["url"],
                captured_at=captured_at,
            )
        )
        self.session.commit()
        self.session.refresh(price)
        return price, created

    def delete_price(self, price_id: int) -> None:
        price = self.session.get(models.Price, price_id)
        if not price:
            raise LookupError(f"Price {price_id} not found")
        self.session.delete(price)
        self.session.commit()

    def price_history(
        self,
        product_id: int,
        *,
        store_id: int | None = None,
        limit: int = 200,
    ) -> list[models.PriceHistory]:
        statement = select(models.PriceHistory).where(models.PriceHistory.product_id == product_id)
        if store_id:
            statement = statement.where(models.PriceHistory.store_id == store_id)
        statement = (
            statement.order_by(models.PriceHistory.captured_at.desc(), models.PriceHistory.id.desc())
            .limit(limit)
        )
        return list(self.session.exec(statement).all())
