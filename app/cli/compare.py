from __future__ import annotations

import argparse
from typing import Sequence

from app.core.config import settings
from app.db.session import get_session, init_db
from app.pricing import EmptyCartError, RankingPolicy, parse_cart_items
from app.services.prices import PriceService


def _cart_item(value: str) -> dict[str, str]:
    product_id, sep, qty = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"Expected <product_id>:<qty>, got {value!r}")
    return {"product_id": product_id, "qty": qty}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare product prices or quote a cart across stores")
    subparsers = parser.add_subparsers(dest="command", required=True)

    product = subparsers.add_parser("product", help="Rank a product's offers by price per 100 g/ml")
    product.add_argument("product_id", type=int)
    product.add_argument(
        "--stale-hours",
        type=float,
        default=settings.default_stale_hours,
        help="Age after which a price is stale",
    )
    product.add_argument("--include-expired", action="store_true", help="Keep expired promotions")
    product.add_argument("--no-prefer-fresh", action="store_true", help="Do not rank fresh prices first on ties")

    quote = subparsers.add_parser("quote", help="Cheapest store carrying the whole cart")
    quote.add_argument("items", nargs="+", type=_cart_item, metavar="PRODUCT_ID:QTY")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    init_db()

    with get_session() as session:
        service = PriceService(session)
        if args.command == "product":
            return _compare(service, args)
        return _quote(service, args)


def _compare(service: PriceService, args: argparse.Namespace) -> int:
    policy = RankingPolicy(
        stale_hours=args.stale_hours,
        hide_expired=not args.include_expired,
        prefer_fresh=not args.no_prefer_fresh,
    )
    try:
        product, result = service.compare_product(args.product_id, policy)
    except LookupError as exc:
        print(exc)
        return 1

    print(f"{product.name} ({product.size_value or '-'} {product.size_unit or ''})".rstrip())
    if not result.ranked:
        print("No comparable prices")
        return 0

    headers = ["Store", "Price", "Per 100", "Stale", "Expired"]
    rows = [
        [
            offer.observation.store_name or str(offer.observation.store_id),
            f"{offer.price:.2f}",
            f"{offer.normalized_price:.2f}",
            "yes" if offer.stale else "no",
            "yes" if offer.expired else "no",
        ]
        for offer in result.ranked
    ]
    _print_table(headers, rows)
    return 0


def _quote(service: PriceService, args: argparse.Namespace) -> int:
    try:
        quote = service.quote_cart(parse_cart_items(args.items))
    except EmptyCartError as exc:
        print(exc)
        return 1

    if not quote.by_store:
        print("No store carries every product in the cart")
        return 0

    headers = ["Store", "Total"]
    rows = [[store.store_name or str(store.store_id), f"{store.total:.2f}"] for store in quote.by_store]
    _print_table(headers, rows)
    return 0


def _print_table(headers: list[str], rows: Sequence[list[str]]) -> None:
    widths = [max(len(row[idx]) for row in ([headers] + list(rows))) for idx in range(len(headers))]
    print(" | ".join(header.ljust(widths[idx]) for idx, header in enumerate(headers)))
    print("-+-".join("-" * width for width in widths))
    for row in rows:
        print(" | ".join(value.ljust(widths[idx]) for idx, value in enumerate(row)))


if __name__ == "__main__":
    raise SystemExit(main())
