from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func
from sqlmodel import Session, select

from app.api.deps import get_db
from app.db import models

router = APIRouter(prefix="/stores", tags=["stores"])


class StoreOut(BaseModel):
    id: int
    name: str
    logo_url: str | None = None


class StoreDetail(StoreOut):
    price_count: int


@router.get("", response_model=list[StoreOut], summary="List stores")
def list_stores(
    session: Session = Depends(get_db),
    q: Optional[str] = Query(default=None, description="Search by store name"),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[StoreOut]:
    statement = select(models.Store)
    if q is not None:
        normalized = q.strip()
        if normalized:
            statement = statement.where(func.lower(models.Store.name).like(f"%{normalized.lower()}%"))

    statement = (
        statement.order_by(func.lower(models.Store.name), models.Store.id)
        .offset(offset)
        .limit(limit)
    )
    return [StoreOut(id=store.id, name=store.name, logo_url=store.logo_url) for store in session.exec(statement).all()]


@router.get("/{store_id}", response_model=StoreDetail, summary="Get store detail")
def get_store(store_id: int, session: Session = Depends(get_db)) -> StoreDetail:
    store = session.get(models.Store, store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")

    count_stmt = select(func.count(models.Price.id)).where(models.Price.store_id == store_id)
    price_count = int(session.exec(count_stmt).one())
    return StoreDetail(id=store.id, name=store.name, logo_url=store.logo_url, price_count=price_count)
