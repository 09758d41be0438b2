from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session, select

from app.api.deps import get_db, get_now, get_ranking_policy
from app.core.config import settings
from app.core.metrics import metrics
from app.db import models
from app.pricing import (
    EmptyCartError,
    NormalizedOffer,
    RankingPolicy,
    StoreQuote,
    parse_cart_items,
    reference_unit,
)
from app.services.prices import PriceInput, PriceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/prices", tags=["prices"])


class ProductOut(BaseModel):
    id: int
    name: str
    brand: str | None = None
    ean: str | None = None
    category: str | None = None
    image_url: str | None = None
    size_value: float | None = None
    size_unit: str | None = None
    reference_unit: str | None = None


class PriceOfferOut(BaseModel):
    id: int
    store_id: int
    store_name: str | None = None
    store_logo: str | None = None
    price: float
    currency: str | None = None
    url: str | None = None
    promo_text: str | None = None
    captured_at: datetime | None = None
    expires_at: datetime | None = None
    normalized_price: float | None = None
    stale: bool
    expired: bool


class ProductPricesOut(BaseModel):
    product: ProductOut
    prices: list[PriceOfferOut]


class ComparisonParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stale_hours: float = Field(alias="staleHours")
    hide_expired: bool = Field(alias="hideExpired")
    prefer_fresh: bool = Field(alias="preferFresh")


class ComparisonOut(ProductPricesOut):
    best: PriceOfferOut | None = None
    params: ComparisonParams


class PriceIn(BaseModel):
    product_id: int = Field(gt=0)
    store_id: int = Field(gt=0)
    price: float = Field(ge=0)
    currency: Optional[str] = Field(default=None, max_length=8)
    url: Optional[str] = None
    promo_text: Optional[str] = None
    captured_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    source: Optional[str] = None
    source_ref: Optional[str] = None


class PriceOut(BaseModel):
    id: int
    product_id: int
    store_id: int
    price: float
    currency: str
    url: str | None = None
    promo_text: str | None = None
    captured_at: datetime | None = None
    expires_at: datetime | None = None
    source: str
    source_ref: str | None = None
    updated_at: datetime


class PriceUpsertOut(PriceOut):
    upserted: bool


class PriceHistoryOut(BaseModel):
    id: int
    product_id: int
    store_id: int
    price: float
    currency: str
    promo_text: str | None = None
    url: str | None = None
    captured_at: datetime


class QuoteRequest(BaseModel):
    items: list[Any] = Field(default_factory=list)


class StoreQuoteOut(BaseModel):
    store_id: int
    store_name: str | None = None
    store_logo: str | None = None
    total: float


class QuoteOut(BaseModel):
    by_store: list[StoreQuoteOut]
    best_store: StoreQuoteOut | None = None


def product_out(product: models.Product) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        brand=product.brand,
        ean=product.ean,
        category=product.category,
        image_url=product.image_url,
        size_value=product.size_value,
        size_unit=product.size_unit,
        reference_unit=reference_unit(product.size_unit),
    )


def offer_out(offer: NormalizedOffer) -> PriceOfferOut:
    observation = offer.observation
    return PriceOfferOut(
        id=observation.id,
        store_id=observation.store_id,
        store_name=observation.store_name,
        store_logo=observation.store_logo,
        price=observation.price,
        currency=observation.currency,
        url=observation.url,
        promo_text=observation.promo_text,
        captured_at=observation.captured_at,
        expires_at=observation.expires_at,
        normalized_price=offer.normalized_price,
        stale=offer.stale,
        expired=offer.expired,
    )


def _store_quote_out(quote: StoreQuote) -> StoreQuoteOut:
    return StoreQuoteOut(
        store_id=quote.store_id,
        store_name=quote.store_name,
        store_logo=quote.store_logo,
        total=round(quote.total, 2),
    )


def _price_out(price: models.Price) -> dict[str, Any]:
    return PriceOut.model_validate(price, from_attributes=True).model_dump()


@router.post("", response_model=PriceUpsertOut, summary="Create or update the price of a product at a store")
def upsert_price(
    payload: PriceIn,
    response: Response,
    session: Session = Depends(get_db),
) -> PriceUpsertOut:
    service = PriceService(session)
    try:
        price, created = service.upsert_price(PriceInput(**payload.model_dump()))
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    metrics.record_price_upsert()
    response.status_code = 201 if created else 200
    return PriceUpsertOut(upserted=not created, **_price_out(price))


@router.get("", response_model=list[PriceOut], summary="List every stored price")
def list_prices(session: Session = Depends(get_db)) -> list[PriceOut]:
    prices = session.exec(select(models.Price).order_by(models.Price.id)).all()
    return [PriceOut.model_validate(price, from_attributes=True) for price in prices]


@router.get(
    "/by-product/{product_id}",
    response_model=ProductPricesOut,
    summary="Prices of a product with normalized price and freshness flags",
)
def prices_by_product(
    product_id: int,
    session: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ProductPricesOut:
    service = PriceService(session)
    try:
        product, offers = service.list_prices_for_product(product_id, now=now)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return ProductPricesOut(product=product_out(product), prices=[offer_out(offer) for offer in offers])


@router.get(
    "/compare/{product_id}",
    response_model=ComparisonOut,
    summary="Rank a product's offers by price per 100 g/ml",
)
def compare_product(
    product_id: int,
    session: Session = Depends(get_db),
    policy: RankingPolicy = Depends(get_ranking_policy),
    now: datetime = Depends(get_now),
) -> ComparisonOut:
    service = PriceService(session)
    try:
        product, result = service.compare_product(product_id, policy, now=now)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    metrics.record_comparison(found=result.best is not None)
    return ComparisonOut(
        product=product_out(product),
        best=offer_out(result.best) if result.best else None,
        prices=[offer_out(offer) for offer in result.ranked],
        params=ComparisonParams(
            stale_hours=policy.stale_hours,
            hide_expired=policy.hide_expired,
            prefer_fresh=policy.prefer_fresh,
        ),
    )


@router.get("/history/{product_id}", response_model=list[PriceHistoryOut], summary="Price history for a product")
def price_history(
    product_id: int,
    session: Session = Depends(get_db),
    store_id: Optional[int] = Query(default=None, alias="storeId"),
    limit: int = Query(default=200, ge=1, le=settings.max_history_limit),
) -> list[PriceHistoryOut]:
    entries = PriceService(session).price_history(product_id, store_id=store_id, limit=limit)
    return [PriceHistoryOut.model_validate(entry, from_attributes=True) for entry in entries]


@router.delete("/{price_id}", status_code=204, summary="Delete a price")
def delete_price(price_id: int, session: Session = Depends(get_db)) -> None:
    try:
        PriceService(session).delete_price(price_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/quote", response_model=QuoteOut, summary="Quote a whole cart at every store")
def quote_cart(payload: QuoteRequest, session: Session = Depends(get_db)) -> QuoteOut:
    try:
        lines = parse_cart_items(payload.items)
        quote = PriceService(session).quote_cart(lines)
    except EmptyCartError as exc:
        metrics.record_rejected_cart()
        logger.info("Rejected cart quote: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    metrics.record_quote(qualified_stores=len(quote.by_store))
    return QuoteOut(
        by_store=[_store_quote_out(store_quote) for store_quote in quote.by_store],
        best_store=_store_quote_out(quote.best_store) if quote.best_store else None,
    )
