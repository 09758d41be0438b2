from __future__ import annotations

from datetime import datetime, timedelta

from app.pricing.types import as_naive_utc, now_utc

DEFAULT_STALE_HOURS = 48


def is_stale(
    captured_at: datetime | None,
    threshold_hours: float = DEFAULT_STALE_HOURS,
    *,
    now: datetime | None = None,
) -> bool:
    """A price with no capture time is always stale."""

    if captured_at is None:
        return True
    reference = as_naive_utc(now) if now is not None else now_utc()
    return reference - as_naive_utc(captured_at) > timedelta(hours=threshold_hours)


def is_expired(expires_at: datetime | None, *, now: datetime | None = None) -> bool:
    if expires_at is None:
        return False
    reference = as_naive_utc(now) if now is not None else now_utc()
    return reference > as_naive_utc(expires_at)
