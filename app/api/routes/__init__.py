"""API route modules."""

__all__ = [
    "health",
    "metrics",
    "prices",
    "products",
    "stores",
]
