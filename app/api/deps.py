from collections.abc import Generator
from datetime import datetime

from fastapi import Query
from sqlmodel import Session

from app.core.config import settings
from app.db.session import get_session
from app.pricing import RankingPolicy
from app.pricing.types import now_utc


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a database session."""

    with get_session() as session:
        yield session


def get_now() -> datetime:
    """Evaluation instant for freshness checks; overridden in tests."""

    return now_utc()


def get_ranking_policy(
    stale_hours: float = Query(default=settings.default_stale_hours, ge=0, alias="staleHours"),
    hide_expired: bool = Query(default=True, alias="hideExpired"),
    prefer_fresh: bool = Query(default=True, alias="preferFresh"),
) -> RankingPolicy:
    return RankingPolicy(stale_hours=stale_hours, hide_expired=hide_expired, prefer_fresh=prefer_fresh)
