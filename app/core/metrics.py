from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from threading import Lock


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass
class PricingCounters:
    comparisons: int = 0
    comparisons_without_offer: int = 0
    quotes: int = 0
    quotes_without_store: int = 0
    rejected_carts: int = 0
    price_upserts: int = 0
    last_event_at: datetime | None = None


class PricingMetrics:
    """In-memory counters for comparison, quote and price write activity."""

    def __init__(self) -> None:
        self._counters = PricingCounters()
        self._lock = Lock()

    def _bump(self, **increments: int) -> None:
        with self._lock:
            for name, amount in increments.items():
                setattr(self._counters, name, getattr(self._counters, name) + amount)
            self._counters.last_event_at = _utcnow()

    def record_comparison(self, *, found: bool) -> None:
        self._bump(comparisons=1, comparisons_without_offer=0 if found else 1)

    def record_quote(self, *, qualified_stores: int) -> None:
        self._bump(quotes=1, quotes_without_store=0 if qualified_stores else 1)

    def record_rejected_cart(self) -> None:
        self._bump(rejected_carts=1)

    def record_price_upsert(self) -> None:
        self._bump(price_upserts=1)

    def snapshot(self) -> dict:
        with self._lock:
            data = asdict(self._counters)
        last_event_at = data.pop("last_event_at")
        data["last_event_at"] = last_event_at.isoformat() if last_event_at else None
        return data

    def reset(self) -> None:
        """TEST-ONLY: zero every counter."""

        with self._lock:
            self._counters = PricingCounters()


metrics = PricingMetrics()
