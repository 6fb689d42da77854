"""Command-line interface for the price tracker."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import load_config
from .errors import PriceFetchError
from .logging_setup import configure_logging
from .observability import NoopMetrics
from .server import run_server
from .services import PriceTracker


def _pair(value: str) -> tuple[str, str]:
    asset_id, sep, quote = value.partition(":")
    if not sep or not asset_id or not quote:
        raise argparse.ArgumentTypeError(f"invalid pair '{value}', expected id:vs")
    return asset_id, quote


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="price-tracker",
        description="Cache-aside crypto price tracker",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    serve_parser = sub.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Listen port (overrides config)"
    )

    price_parser = sub.add_parser("price", help="Look up a single price")
    price_parser.add_argument("asset_id", help="Asset id, e.g. bitcoin")
    price_parser.add_argument("quote_currency", help="Quote currency, e.g. usd")

    rates_parser = sub.add_parser("rates", help="Look up several prices concurrently")
    rates_parser.add_argument(
        "pairs",
        nargs="*",
        type=_pair,
        help="Pairs as id:vs (default: rates.pairs from config)",
    )

    return parser


async def _run(args: argparse.Namespace) -> int:
    """Execute a lookup command and return the exit code."""
    config = load_config(args.config)
    tracker = PriceTracker(config, metrics=NoopMetrics())
    await tracker.start()
    try:
        if args.command == "price":
            try:
                price = await asyncio.wait_for(
                    tracker.get_price(args.asset_id, args.quote_currency),
                    config.server.request_timeout,
                )
            except (PriceFetchError, ValueError) as e:
                print(f"error: {e}", file=sys.stderr)
                return 1
            except asyncio.TimeoutError:
                print(
                    f"error: timed out after {config.server.request_timeout}s",
                    file=sys.stderr,
                )
                return 1
            print(f"{args.asset_id}/{args.quote_currency}: {price}")
            return 0

        outcome = await tracker.get_many(
            args.pairs or None, timeout=config.server.request_timeout
        )
        print(json.dumps(outcome.prices, indent=2, sort_keys=True))
        if not outcome.ok:
            print(f"error: {outcome.error}", file=sys.stderr)
            return 1
        return 0
    finally:
        await tracker.close()


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)

    if args.command == "serve":
        run_server(load_config(args.config), port=args.port)
        return

    sys.exit(asyncio.run(_run(args)))
