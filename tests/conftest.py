"""Shared test fixtures and fake collaborators."""
from __future__ import annotations

import asyncio
import textwrap
from pathlib import Path

import pytest

from price_tracker.config import (
    AppConfig,
    CacheConfig,
    CoinGeckoConfig,
    MetricsConfig,
    RatesConfig,
    RedisConfig,
    ServerConfig,
    SourceConfig,
)
from price_tracker.errors import PriceSourceError


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakePriceSource:
    """Scripted price source keyed by (asset_id, quote_currency)."""

    def __init__(
        self,
        responses: dict[tuple[str, str], float] | None = None,
        errors: dict[tuple[str, str], Exception] | None = None,
        delay: float = 0.0,
        delays: dict[tuple[str, str], float] | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.errors = dict(errors or {})
        self.delay = delay
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, str]] = []
        self.completed: list[tuple[str, str]] = []

    async def get_price(self, asset_id: str, quote_currency: str) -> float:
        key = (asset_id, quote_currency)
        self.calls.append(key)
        delay = self.delays.get(key, self.delay)
        if delay > 0:
            await asyncio.sleep(delay)
        if key in self.errors:
            raise self.errors[key]
        if key in self.responses:
            self.completed.append(key)
            return self.responses[key]
        raise PriceSourceError(f"no mock for {asset_id}:{quote_currency}")


class FakeCache:
    """Dict-backed cache that records writes and can be told to fail."""

    def __init__(
        self,
        entries: dict[str, bytes | str] | None = None,
        get_error: Exception | None = None,
        set_error: Exception | None = None,
        set_delay: float = 0.0,
    ) -> None:
        self.entries: dict[str, bytes | str] = dict(entries or {})
        self.get_error = get_error
        self.set_error = set_error
        self.set_delay = set_delay
        self.gets: list[str] = []
        self.sets: list[tuple[str, bytes]] = []

    async def get(self, key: str) -> bytes | str | None:
        self.gets.append(key)
        if self.get_error is not None:
            raise self.get_error
        return self.entries.get(key)

    async def set(self, key: str, payload: bytes) -> None:
        self.sets.append((key, payload))
        if self.set_delay > 0:
            await asyncio.sleep(self.set_delay)
        if self.set_error is not None:
            raise self.set_error
        self.entries[key] = payload


class RecordingMetrics:
    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.backend_calls: list[tuple[float, bool]] = []

    def observe_backend_call(self, duration: float, success: bool) -> None:
        self.backend_calls.append((duration, success))

    def cache_hit(self) -> None:
        self.hits += 1

    def cache_miss(self) -> None:
        self.misses += 1


@pytest.fixture()
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest.fixture()
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture()
def base_pairs() -> dict[str, str]:
    return {"bitcoin": "usd", "ethereum": "usd", "usd": "rub"}


@pytest.fixture()
def sample_prices() -> dict[tuple[str, str], float]:
    return {
        ("bitcoin", "usd"): 100.0,
        ("ethereum", "usd"): 10.0,
        ("usd", "rub"): 70.5,
    }


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        server=ServerConfig(host="127.0.0.1", port=8080, request_timeout=1.0),
        source=SourceConfig(
            provider="coingecko",
            coingecko=CoinGeckoConfig(base_url="https://cg.example.com", timeout=2.0),
        ),
        cache=CacheConfig(
            backend="memory",
            ttl_seconds=60,
            redis=RedisConfig(url="redis://localhost:6379/0"),
        ),
        metrics=MetricsConfig(enabled=False),
        rates=RatesConfig(pairs={"bitcoin": "usd", "ethereum": "usd", "usd": "rub"}),
    )


SAMPLE_YAML = textwrap.dedent("""\
    server:
      host: 127.0.0.1
      port: 9090
      request_timeout: 3.5
    source:
      provider: coingecko
      coingecko:
        base_url: "https://cg.example.com/"
        timeout: 2
        api_key: "demo-key"
    cache:
      backend: memory
      ttl_seconds: 30
      redis:
        url: "redis://cache:6379/1"
    metrics:
      enabled: false
    rates:
      pairs:
        bitcoin: usd
        solana: eur
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
