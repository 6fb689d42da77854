"""HTTP API for price lookups (aiohttp.web)."""
from __future__ import annotations

import asyncio
import logging

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import AppConfig
from .errors import PriceFetchError
from .observability import PrometheusMetrics
from .services import PriceTracker

logger = logging.getLogger(__name__)

TRACKER_KEY = web.AppKey("tracker", PriceTracker)
CONFIG_KEY = web.AppKey("config", AppConfig)


def _parse_pair(raw: str) -> tuple[str, str]:
    asset_id, sep, quote = raw.partition(":")
    if not sep or not asset_id or not quote:
        raise web.HTTPBadRequest(text=f"invalid pair '{raw}', expected id:vs")
    return asset_id, quote


async def handle_ping(request: web.Request) -> web.Response:
    return web.Response(text="pong\n")


async def handle_price(request: web.Request) -> web.Response:
    asset_id = request.query.get("id", "")
    quote = request.query.get("vs", "")
    if not asset_id or not quote:
        raise web.HTTPBadRequest(text="query parameters 'id' and 'vs' are required")

    price = await _lookup(request, asset_id, quote)
    return web.json_response({"id": asset_id, "vs": quote, "price": price})


async def handle_btc_usd(request: web.Request) -> web.Response:
    price = await _lookup(request, "bitcoin", "usd")
    return web.Response(text=f"BTC/USD: {price:.2f}")


async def _lookup(request: web.Request, asset_id: str, quote: str) -> float:
    tracker = request.app[TRACKER_KEY]
    timeout = request.app[CONFIG_KEY].server.request_timeout
    try:
        return await asyncio.wait_for(tracker.get_price(asset_id, quote), timeout)
    except asyncio.TimeoutError:
        raise web.HTTPGatewayTimeout(text=f"{asset_id}->{quote}: deadline exceeded")
    except PriceFetchError as e:
        logger.warning("Price lookup failed: %s", e)
        raise web.HTTPBadGateway(text=str(e))


async def handle_rates(request: web.Request) -> web.Response:
    tracker = request.app[TRACKER_KEY]
    timeout = request.app[CONFIG_KEY].server.request_timeout

    raw_pairs = request.query.getall("pair", [])
    pairs = [_parse_pair(p) for p in raw_pairs] if raw_pairs else None

    outcome = await tracker.get_many(pairs, timeout=timeout)
    if outcome.ok:
        return web.json_response(outcome.prices)

    status = 502 if outcome.is_total_failure else 206
    return web.json_response(
        {"data": outcome.prices, "error": str(outcome.error)}, status=status
    )


async def handle_metrics(request: web.Request) -> web.Response:
    metrics = request.app[TRACKER_KEY].metrics
    if not isinstance(metrics, PrometheusMetrics):
        raise web.HTTPNotFound(text="metrics disabled")
    resp = web.Response(body=generate_latest(metrics.registry))
    resp.headers["Content-Type"] = CONTENT_TYPE_LATEST
    return resp


def create_app(config: AppConfig, tracker: PriceTracker | None = None) -> web.Application:
    """Build the aiohttp application around a tracker."""
    app = web.Application()
    app[CONFIG_KEY] = config
    app[TRACKER_KEY] = tracker if tracker is not None else PriceTracker(config)

    async def _lifecycle(app: web.Application):
        await app[TRACKER_KEY].start()
        yield
        await app[TRACKER_KEY].close()

    app.cleanup_ctx.append(_lifecycle)
    app.router.add_get("/ping", handle_ping)
    app.router.add_get("/price", handle_price)
    app.router.add_get("/btc-usd", handle_btc_usd)
    app.router.add_get("/rates", handle_rates)
    app.router.add_get("/metrics", handle_metrics)
    return app


def run_server(config: AppConfig, port: int | None = None) -> None:
    app = create_app(config)
    port = port if port is not None else config.server.port
    logger.info("Server is running on %s:%s", config.server.host, port)
    web.run_app(app, host=config.server.host, port=port, print=None)
