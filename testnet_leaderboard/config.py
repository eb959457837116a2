"""Configuration helpers for the testnet activity leaderboard."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

EXPLORER_API_BASE = os.getenv(
    "EXPLORER_API_BASE", "https://testnet.blockscout-api.injective.network/api"
)
EXPLORER_API_KEY_ENV = "EXPLORER_API_KEY"
USER_AGENT = "testnet-leaderboard/1.0"

# (connect_timeout, read_timeout) in seconds
REQUEST_TIMEOUT: tuple[float, float] = (10, 30)

WEI_PER_NATIVE = 10**18

LEADERBOARD_CACHE_KEY = "leaderboard"


def _env_int(name: str, default: int) -> int:
    env_value = os.getenv(name)
    if env_value:
        try:
            return int(env_value)
        except ValueError:
            pass
    return default


@dataclass(frozen=True)
class RetryConfig:
    """Settings for the shared exponential backoff executor."""

    max_retries: int = 3
    wait_base_seconds: float = 1.0
    wait_max_seconds: float = 10.0


@dataclass(frozen=True)
class DiscoveryConfig:
    """Paging limits for the address listing endpoint."""

    page_size: int = 100
    max_pages: int = 20
    rate_limit_wait_seconds: float = 2.0
    max_rate_limit_waits: int = 10
    page_delay_seconds: float = 0.1


@dataclass(frozen=True)
class EnrichmentConfig:
    """Batching and per-address retry settings for enrichment."""

    batch_size: int = 5
    max_attempts: int = 3
    backoff_step_seconds: float = 1.0
    batch_delay_seconds: float = 1.0
    tx_page_size: int = 1000


@dataclass(frozen=True)
class LeaderboardConfig:
    sample_size: int = 200
    top_n: int = 20
    ttl_seconds: float = 600.0
    refresh_interval_seconds: float = 600.0
    cache_key: str = LEADERBOARD_CACHE_KEY


DEFAULT_RETRY_CONFIG = RetryConfig()
DEFAULT_DISCOVERY_CONFIG = DiscoveryConfig()
DEFAULT_ENRICHMENT_CONFIG = EnrichmentConfig()
DEFAULT_LEADERBOARD_CONFIG = LeaderboardConfig(
    sample_size=_env_int("LEADERBOARD_SAMPLE_SIZE", 200),
    refresh_interval_seconds=float(_env_int("LEADERBOARD_REFRESH_SECONDS", 600)),
)


def get_api_key() -> str | None:
    return os.getenv(EXPLORER_API_KEY_ENV)
