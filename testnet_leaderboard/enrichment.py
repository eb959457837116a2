"""Per-address enrichment of the sampled address set.

Addresses are processed in fixed-size batches. Inside a batch every address is
fetched on its own worker thread; the whole batch is awaited before the next
one starts, which caps outbound concurrency at the batch size. Each address
gets a short linear-backoff retry loop and, if that is exhausted, a degraded
zero-stat entry so that no sampled address silently disappears.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Any, Callable

from .classifier import activity_score, classify
from .config import DEFAULT_ENRICHMENT_CONFIG, EnrichmentConfig
from .errors import LeaderboardError
from .http_utils import ExplorerClient, is_success, raise_for_status, read_envelope
from .models import (
    AddressRecord,
    Badge,
    EnrichmentProgress,
    LeaderboardEntry,
    ProgressCallback,
    TransactionRecord,
    format_amount,
    parse_wei,
    wei_to_native,
)

LOGGER = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def parse_transactions(payload: Mapping[str, Any]) -> list[TransactionRecord]:
    """Extract the valid transactions from a ``txlist`` envelope.

    A non-list ``result`` means the address has no transactions (the explorer
    answers "No transactions found" that way). Entries missing a string
    ``hash``/``value``/``gasUsed``/``timeStamp`` or holding non-integer
    amounts are dropped.
    """
    result = payload.get("result")
    if not isinstance(result, list):
        return []
    transactions = []
    for item in result:
        record = TransactionRecord.from_payload(item)
        if record is not None:
            transactions.append(record)
    dropped = len(result) - len(transactions)
    if dropped:
        LOGGER.debug("Dropped %d malformed transaction entries", dropped)
    return transactions


class BatchEnricher:
    def __init__(
        self,
        client: ExplorerClient,
        *,
        config: EnrichmentConfig = DEFAULT_ENRICHMENT_CONFIG,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.client = client
        self.config = config
        self.sleep = sleep
        self.clock = clock

    def enrich(
        self,
        sample: Sequence[AddressRecord],
        progress_callback: ProgressCallback | None = None,
    ) -> list[LeaderboardEntry]:
        total = len(sample)
        batch_size = self.config.batch_size
        batches = [sample[i : i + batch_size] for i in range(0, total, batch_size)]
        LOGGER.info(
            "Enriching %d addresses in %d batches of %d",
            total,
            len(batches),
            batch_size,
        )
        results: list[LeaderboardEntry] = []
        for batch_idx, batch in enumerate(batches):
            with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                results.extend(executor.map(self.enrich_address, batch))
            if progress_callback is not None:
                progress_callback(EnrichmentProgress(len(results), total))
            # Pause between batches to stay under the explorer's rate limit
            if batch_idx < len(batches) - 1:
                self.sleep(self.config.batch_delay_seconds)
                LOGGER.debug(
                    "Completed batch %d/%d, processed %d/%d addresses",
                    batch_idx + 1,
                    len(batches),
                    len(results),
                    total,
                )
        return results

    def enrich_address(self, record: AddressRecord) -> LeaderboardEntry:
        max_attempts = self.config.max_attempts
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                return self._fetch_entry(record)
            except Exception as exc:
                last_error = exc
                LOGGER.warning(
                    "Attempt %d/%d for %s failed: %s",
                    attempt,
                    max_attempts,
                    record.address,
                    exc,
                )
                if attempt < max_attempts:
                    self.sleep(self.config.backoff_step_seconds * attempt)
        LOGGER.warning("✗ Degrading %s to an inactive entry: %s", record.address, last_error)
        return self._degraded_entry(record)

    def _fetch_entry(self, record: AddressRecord) -> LeaderboardEntry:
        address = record.address
        response = self.client.transactions(address, offset=self.config.tx_page_size)
        raise_for_status(response, self.client.base_url)
        transactions = parse_transactions(read_envelope(response, self.client.base_url))

        tx_count = len(transactions)
        total_volume = wei_to_native(sum(tx.value for tx in transactions))
        nft_count = self._nft_count(address)
        if record.balance is not None:
            balance_wei = record.balance_wei
        else:
            balance_wei = self._balance_wei(address)
        balance = wei_to_native(balance_wei)
        return LeaderboardEntry(
            address=address,
            tx_count=tx_count,
            total_volume=format_amount(total_volume),
            balance=format_amount(balance),
            badge=classify(tx_count, balance, nft_count, total_volume),
            activity_score=activity_score(tx_count, total_volume),
            last_update=self.clock(),
            nft_count=nft_count,
        )

    def _nft_count(self, address: str) -> int:
        try:
            response = self.client.nft_transfers(address)
            if not is_success(response):
                return 0
            result = read_envelope(response).get("result")
        except LeaderboardError as exc:
            LOGGER.debug("NFT lookup for %s failed: %s", address, exc)
            return 0
        return len(result) if isinstance(result, list) else 0

    def _balance_wei(self, address: str) -> int:
        try:
            response = self.client.balance(address)
            if not is_success(response):
                return 0
            return parse_wei(read_envelope(response).get("result"))
        except LeaderboardError as exc:
            LOGGER.debug("Balance lookup for %s failed: %s", address, exc)
            return 0

    def _degraded_entry(self, record: AddressRecord) -> LeaderboardEntry:
        return LeaderboardEntry(
            address=record.address,
            tx_count=0,
            total_volume=format_amount(0),
            balance=format_amount(0),
            badge=Badge.INACTIVE,
            activity_score=0.0,
            last_update=self.clock(),
        )
