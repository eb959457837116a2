"""End-to-end leaderboard build: discover, sample, enrich, rank."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable

from .config import (
    DEFAULT_DISCOVERY_CONFIG,
    DEFAULT_ENRICHMENT_CONFIG,
    DEFAULT_LEADERBOARD_CONFIG,
    DiscoveryConfig,
    EnrichmentConfig,
    LeaderboardConfig,
)
from .discovery import discover_all
from .enrichment import BatchEnricher
from .errors import EmptyAddressSetError
from .http_utils import ExplorerClient
from .models import EnrichmentProgress, LeaderboardEntry, ProgressCallback
from .ranking import rank_entries
from .retry import RetryExecutor
from .sampler import sample_addresses

LOGGER = logging.getLogger(__name__)


def build_leaderboard(
    client: ExplorerClient,
    *,
    config: LeaderboardConfig = DEFAULT_LEADERBOARD_CONFIG,
    discovery_config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
    enrichment_config: EnrichmentConfig = DEFAULT_ENRICHMENT_CONFIG,
    executor: RetryExecutor | None = None,
    rng: random.Random | None = None,
    progress_callback: ProgressCallback | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[LeaderboardEntry]:
    """Run one full pipeline pass and return the ranked top entries.

    Raises EmptyAddressSetError when discovery yields nothing, and propagates
    first-page discovery failures; address-level failures are absorbed as
    degraded entries by the enricher.
    """
    executor = executor or RetryExecutor(sleep=sleep)
    started = time.monotonic()

    addresses = discover_all(
        client, executor=executor, config=discovery_config, sleep=sleep
    )
    if not addresses:
        raise EmptyAddressSetError()

    sample = sample_addresses(
        addresses, min(config.sample_size, len(addresses)), rng=rng
    )
    LOGGER.info("Sampled %d of %d discovered addresses", len(sample), len(addresses))
    if progress_callback is not None:
        progress_callback(EnrichmentProgress(0, len(sample)))

    enricher = BatchEnricher(client, config=enrichment_config, sleep=sleep)
    entries = enricher.enrich(sample, progress_callback)
    ranked = rank_entries(entries, config.top_n)
    LOGGER.info(
        "Leaderboard built with %d entries in %.1fs",
        len(ranked),
        time.monotonic() - started,
    )
    return ranked
