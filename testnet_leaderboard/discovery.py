"""Paginated discovery of the explorer's known address set."""

from __future__ import annotations

import logging
import time
from functools import partial
from typing import Callable

from .config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig
from .errors import ExplorerError, LeaderboardError
from .http_utils import ExplorerClient, raise_for_status, read_envelope
from .models import AddressRecord
from .retry import RetryExecutor

LOGGER = logging.getLogger(__name__)


def discover_all(
    client: ExplorerClient,
    *,
    executor: RetryExecutor | None = None,
    config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> list[AddressRecord]:
    """Page through ``listaccounts`` and return every address seen.

    Stops at the first empty or non-list page, or after ``config.max_pages``.
    A failure on the first page propagates; a failure on any later page keeps
    the addresses gathered so far. Rate-limited pages are retried after
    ``config.rate_limit_wait_seconds`` without counting as failures.
    """
    executor = executor or RetryExecutor(sleep=sleep)
    records: list[AddressRecord] = []
    seen: set[str] = set()
    page = 1
    rate_limit_waits = 0
    while page <= config.max_pages:
        try:
            response = executor.run(
                partial(client.list_accounts, page, config.page_size),
                f"fetch address page {page}",
            )
            if response.status_code == 429:
                rate_limit_waits += 1
                if rate_limit_waits > config.max_rate_limit_waits:
                    raise ExplorerError.from_status(429, client.base_url)
                LOGGER.info(
                    "Address page %d rate limited; waiting %.1fs (%d/%d)",
                    page,
                    config.rate_limit_wait_seconds,
                    rate_limit_waits,
                    config.max_rate_limit_waits,
                )
                sleep(config.rate_limit_wait_seconds)
                continue
            raise_for_status(response, client.base_url)
            results = read_envelope(response, client.base_url).get("result")
        except LeaderboardError as exc:
            if page == 1:
                raise
            LOGGER.warning(
                "Address discovery truncated at page %d after %d addresses: %s",
                page,
                len(records),
                exc,
            )
            break

        if not isinstance(results, list) or not results:
            LOGGER.debug("Address page %d empty; discovery complete", page)
            break
        for item in results:
            record = AddressRecord.from_payload(item)
            if record is None or record.address in seen:
                continue
            seen.add(record.address)
            records.append(record)
        LOGGER.info("Fetched address page %d (%d addresses so far)", page, len(records))
        page += 1
        rate_limit_waits = 0
        sleep(config.page_delay_seconds)
    return records
