"""Single-wallet stats lookup sharing the leaderboard's classification."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import UTC, datetime
from functools import partial
from typing import Any, Callable

import requests

from .classifier import classify
from .enrichment import parse_transactions
from .errors import STATUS_MESSAGES, ErrorKind, ExplorerError, LeaderboardError
from .http_utils import ExplorerClient, raise_for_status, read_envelope
from .models import LeaderboardEntry, WalletStats, format_amount, parse_wei, wei_to_native
from .retry import RetryExecutor

LOGGER = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_address(address: str) -> bool:
    return bool(ADDRESS_PATTERN.match(address or ""))


def _fetch_envelope(
    client: ExplorerClient,
    executor: RetryExecutor,
    request: Callable[[], requests.Response],
    context: str,
) -> dict[str, Any]:
    def _call() -> dict[str, Any]:
        response = request()
        raise_for_status(response, client.base_url)
        return read_envelope(response, client.base_url)

    return executor.run(_call, context)


def fetch_wallet_stats(
    client: ExplorerClient,
    address: str,
    *,
    executor: RetryExecutor | None = None,
    leaderboard: Sequence[LeaderboardEntry] | None = None,
) -> WalletStats:
    """Fetch transactions, balance and NFT transfers for one address.

    ``rank`` comes from ``leaderboard`` (typically the cached ranking) and is
    None when the address is not on it.
    """
    address = address.strip()
    if not is_valid_address(address):
        raise ExplorerError(ErrorKind.INVALID_INPUT, STATUS_MESSAGES[400])
    executor = executor or RetryExecutor()

    tx_payload = _fetch_envelope(
        client, executor, partial(client.transactions, address), f"txlist lookup for {address}"
    )
    transactions = parse_transactions(tx_payload)
    balance_payload = _fetch_envelope(
        client, executor, partial(client.balance, address), f"balance lookup for {address}"
    )
    balance = wei_to_native(parse_wei(balance_payload.get("result")))

    nft_count = 0
    try:
        nft_payload = _fetch_envelope(
            client,
            executor,
            partial(client.nft_transfers, address),
            f"NFT lookup for {address}",
        )
        nft_result = nft_payload.get("result")
        nft_count = len(nft_result) if isinstance(nft_result, list) else 0
    except LeaderboardError as exc:
        LOGGER.info("NFT transfers unavailable for %s: %s", address, exc)

    tx_count = len(transactions)
    total_volume = wei_to_native(sum(tx.value for tx in transactions))
    last_activity = None
    if transactions:
        newest = max(tx.timestamp for tx in transactions)
        last_activity = datetime.fromtimestamp(newest, tz=UTC)

    rank = None
    for entry in leaderboard or ():
        if entry.address.lower() == address.lower():
            rank = entry.rank
            break

    return WalletStats(
        address=address,
        rank=rank,
        tx_count=tx_count,
        balance=format_amount(balance),
        nft_count=nft_count,
        total_volume=format_amount(total_volume),
        total_gas=sum(tx.gas_used for tx in transactions),
        badge=classify(tx_count, balance, nft_count, total_volume),
        last_activity=last_activity,
    )
