"""Single-product offer ranking by normalized (per 100 g/ml) price."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from app.pricing.freshness import DEFAULT_STALE_HOURS, is_expired, is_stale
from app.pricing.types import (
    NormalizedOffer,
    PriceObservation,
    RankingPolicy,
    RankingResult,
    SizedProduct,
    now_utc,
)
from app.pricing.units import normalize_price


def annotate_offers(
    product: SizedProduct,
    offers: Iterable[PriceObservation],
    *,
    stale_hours: float = DEFAULT_STALE_HOURS,
    now: datetime | None = None,
) -> list[NormalizedOffer]:
    """Attach normalized price and freshness flags without filtering or sorting."""

    reference = now or now_utc()
    return [
        NormalizedOffer(
            observation=offer,
            normalized_price=normalize_price(product.size_value, product.size_unit, offer.price),
            stale=is_stale(offer.captured_at, stale_hours, now=reference),
            expired=is_expired(offer.expires_at, now=reference),
        )
        for offer in offers
    ]


def _sort_key(offer: NormalizedOffer, prefer_fresh: bool) -> tuple:
    return (
        offer.normalized_price,
        offer.stale if prefer_fresh else False,
        offer.price,
        offer.id,
    )


def rank_offers(
    product: SizedProduct,
    offers: Iterable[PriceObservation],
    policy: RankingPolicy | None = None,
    *,
    now: datetime | None = None,
) -> RankingResult:
    """Rank a product's offers cheapest-per-unit first and pick the best one.

    Offers the product size cannot normalize are always dropped. Expired offers
    are dropped when ``policy.hide_expired`` is set. Ties on normalized price are
    broken by freshness (when ``policy.prefer_fresh``), then raw price, then id.
    """

    policy = policy or RankingPolicy()
    annotated = annotate_offers(product, offers, stale_hours=policy.stale_hours, now=now)

    eligible = [offer for offer in annotated if offer.normalized_price is not None]
    if policy.hide_expired:
        eligible = [offer for offer in eligible if not offer.expired]

    ranked = sorted(eligible, key=lambda offer: _sort_key(offer, policy.prefer_fresh))
    return RankingResult(best=ranked[0] if ranked else None, ranked=ranked)
