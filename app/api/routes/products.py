from __future__ import annotations

import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from app.api.deps import get_db, get_now
from app.api.routes.prices import PriceOfferOut, ProductOut, offer_out, product_out
from app.db import models
from app.services.prices import PriceService

router = APIRouter(prefix="/products", tags=["products"])

EAN_PATTERN = re.compile(r"^\d{6,14}$")


class ProductSummary(ProductOut):
    price_count: int


class ProductDetail(BaseModel):
    product: ProductOut
    prices: list[PriceOfferOut]


def _price_counts(session: Session, product_ids: list[int]) -> dict[int, int]:
    if not product_ids:
        return {}
    count_stmt = (
        select(models.Price.product_id, func.count(models.Price.id))
        .where(models.Price.product_id.in_(product_ids))
        .group_by(models.Price.product_id)
    )
    return {product_id: count for product_id, count in session.exec(count_stmt).all()}


def _summaries(session: Session, products: list[models.Product]) -> list[ProductSummary]:
    counts = _price_counts(session, [product.id for product in products])
    return [
        ProductSummary(**product_out(product).model_dump(), price_count=counts.get(product.id, 0))
        for product in products
    ]


@router.get("", response_model=list[ProductSummary], summary="List products")
def list_products(
    session: Session = Depends(get_db),
    category: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> list[ProductSummary]:
    statement = select(models.Product)
    if category:
        statement = statement.where(func.lower(models.Product.category) == category.strip().lower())
    statement = statement.order_by(models.Product.id).offset(offset).limit(limit)
    return _summaries(session, list(session.exec(statement).all()))


@router.get("/search", response_model=list[ProductSummary], summary="Search products by name or EAN")
def search_products(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(get_db),
) -> list[ProductSummary]:
    query = q.strip()
    if not query:
        return []

    if EAN_PATTERN.match(query):
        by_ean = session.exec(select(models.Product).where(models.Product.ean == query).limit(10)).all()
        if by_ean:
            return _summaries(session, list(by_ean))

    pattern = f"%{query.lower()}%"
    statement = (
        select(models.Product)
        .where(func.lower(models.Product.name).like(pattern))
        .order_by(models.Product.name)
        .limit(limit)
    )
    return _summaries(session, list(session.exec(statement).all()))


@router.get("/categories", response_model=list[str], summary="Distinct product categories")
def list_categories(session: Session = Depends(get_db)) -> list[str]:
    rows = session.exec(select(models.Product.category).where(models.Product.category.is_not(None))).all()
    return sorted({category.strip() for category in rows if category and category.strip()})


@router.get("/{product_id}", response_model=ProductDetail, summary="Product with its comparable prices")
def get_product(
    product_id: int,
    session: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ProductDetail:
    service = PriceService(session)
    try:
        product, offers = service.list_prices_for_product(product_id, now=now)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail="Product not found") from exc

    return ProductDetail(
        product=product_out(product),
        prices=[offer_out(offer) for offer in offers if offer.normalized_price is not None],
    )
