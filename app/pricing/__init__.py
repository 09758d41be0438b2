"""Price normalization, offer ranking and cart quoting."""

from app.pricing.freshness import is_expired, is_stale
from app.pricing.quoting import collapse_lines, parse_cart_items, quote_cart
from app.pricing.ranking import annotate_offers, rank_offers
from app.pricing.types import (
    CartLine,
    CartQuote,
    EmptyCartError,
    NormalizedOffer,
    PriceObservation,
    QuotePrice,
    RankingPolicy,
    RankingResult,
    StoreQuote,
)
from app.pricing.units import normalize_price, reference_unit

__all__ = [
    "CartLine",
    "CartQuote",
    "EmptyCartError",
    "NormalizedOffer",
    "PriceObservation",
    "QuotePrice",
    "RankingPolicy",
    "RankingResult",
    "StoreQuote",
    "annotate_offers",
    "collapse_lines",
    "is_expired",
    "is_stale",
    "normalize_price",
    "parse_cart_items",
    "quote_cart",
    "rank_offers",
    "reference_unit",
]
