"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SOURCE_PROVIDERS = ("coingecko",)
CACHE_BACKENDS = ("redis", "memory", "none")

DEFAULT_PAIRS = {"bitcoin": "usd", "ethereum": "usd", "usd": "rub"}

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    request_timeout: float = 5.0


@dataclass(frozen=True)
class CoinGeckoConfig:
    base_url: str = "https://api.coingecko.com"
    timeout: float = 5.0
    api_key: str = ""


@dataclass(frozen=True)
class SourceConfig:
    provider: str = "coingecko"
    coingecko: CoinGeckoConfig = field(default_factory=CoinGeckoConfig)


@dataclass(frozen=True)
class RedisConfig:
    url: str = "redis://localhost:6379/0"


@dataclass(frozen=True)
class CacheConfig:
    backend: str = "redis"
    ttl_seconds: int = 60
    redis: RedisConfig = field(default_factory=RedisConfig)


@dataclass(frozen=True)
class MetricsConfig:
    enabled: bool = True


@dataclass(frozen=True)
class RatesConfig:
    pairs: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PAIRS))


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_server(raw: dict[str, Any]) -> ServerConfig:
    return ServerConfig(
        host=raw.get("host", ServerConfig.host),
        port=int(raw.get("port", ServerConfig.port)),
        request_timeout=float(raw.get("request_timeout", ServerConfig.request_timeout)),
    )


def _build_source(raw: dict[str, Any]) -> SourceConfig:
    cg = raw.get("coingecko", {}) or {}
    return SourceConfig(
        provider=raw.get("provider", "coingecko"),
        coingecko=CoinGeckoConfig(
            base_url=cg.get("base_url", CoinGeckoConfig.base_url).rstrip("/"),
            timeout=float(cg.get("timeout", CoinGeckoConfig.timeout)),
            api_key=cg.get("api_key", "") or "",
        ),
    )


def _build_cache(raw: dict[str, Any]) -> CacheConfig:
    redis_raw = raw.get("redis", {}) or {}
    return CacheConfig(
        backend=str(raw.get("backend", "redis")).lower(),
        ttl_seconds=int(raw.get("ttl_seconds", CacheConfig.ttl_seconds)),
        redis=RedisConfig(url=redis_raw.get("url") or RedisConfig.url),
    )


def _build_metrics(raw: dict[str, Any]) -> MetricsConfig:
    return MetricsConfig(enabled=bool(raw.get("enabled", True)))


def _build_rates(raw: dict[str, Any]) -> RatesConfig:
    pairs = raw.get("pairs")
    if pairs is None:
        return RatesConfig()
    return RatesConfig(pairs={str(k): str(v) for k, v in pairs.items()})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        server=_build_server(raw.get("server", {}) or {}),
        source=_build_source(raw.get("source", {}) or {}),
        cache=_build_cache(raw.get("cache", {}) or {}),
        metrics=_build_metrics(raw.get("metrics", {}) or {}),
        rates=_build_rates(raw.get("rates", {}) or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not 0 < cfg.server.port < 65536:
        raise ValueError(f"Invalid server port: {cfg.server.port}")
    if cfg.server.request_timeout <= 0:
        raise ValueError("server.request_timeout must be positive")

    if cfg.source.provider not in SOURCE_PROVIDERS:
        raise ValueError(f"Unknown price source provider '{cfg.source.provider}'")
    if cfg.source.coingecko.timeout <= 0:
        raise ValueError("source.coingecko.timeout must be positive")

    if cfg.cache.backend not in CACHE_BACKENDS:
        raise ValueError(f"Unknown cache backend '{cfg.cache.backend}'")
    if cfg.cache.ttl_seconds <= 0:
        raise ValueError("cache.ttl_seconds must be positive")

    if not cfg.rates.pairs:
        raise ValueError("At least one rate pair must be configured")
    for asset_id, quote in cfg.rates.pairs.items():
        if not asset_id or not quote:
            raise ValueError(f"Rate pair '{asset_id}: {quote}' has an empty side")
