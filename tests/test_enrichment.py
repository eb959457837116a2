from __future__ import annotations

import threading
import time
from datetime import UTC, datetime

import pytest
import requests

from testnet_leaderboard.enrichment import BatchEnricher, parse_transactions
from testnet_leaderboard.models import AddressRecord, Badge

from fakes import (
    ExplorerSession,
    SleepRecorder,
    address,
    invalid_json,
    make_client,
    ok,
    status,
    tx,
)

FIXED_NOW = datetime(2025, 4, 1, 12, 0, tzinfo=UTC)
ETH = 10**18


def _enricher(session: ExplorerSession, sleep: SleepRecorder | None = None) -> BatchEnricher:
    return BatchEnricher(
        make_client(session),
        sleep=sleep or SleepRecorder(),
        clock=lambda: FIXED_NOW,
    )


def _twelve_transactions() -> list[dict[str, str]]:
    # 12 transactions summing to 50 native units
    values = [4 * ETH] * 11 + [6 * ETH]
    return [tx(value, index=idx) for idx, value in enumerate(values)]


def test_enrich_address_computes_stats():
    addr = address(1)
    session = ExplorerSession()
    session.add("txlist", ok(_twelve_transactions()), key=addr)
    session.add("tokennfttx", ok([]), key=addr)

    entry = _enricher(session).enrich_address(AddressRecord(addr, balance=str(3 * ETH)))

    assert entry.address == addr
    assert entry.tx_count == 12
    assert entry.total_volume == "50.0000"
    assert entry.balance == "3.0000"
    assert entry.nft_count == 0
    assert entry.badge is Badge.ACTIVE_USER
    assert entry.activity_score == pytest.approx(12 + 50 * 0.1)
    assert entry.rank == 0
    assert entry.last_update == FIXED_NOW
    assert session.count("balance") == 0
    txlist_call = session.calls[0]
    assert txlist_call["offset"] == 1000
    assert txlist_call["sort"] == "desc"


def test_missing_listing_balance_is_fetched():
    addr = address(2)
    session = ExplorerSession()
    session.add("balance", ok(str(5 * ETH)), key=addr)

    entry = _enricher(session).enrich_address(AddressRecord(addr))

    assert entry.balance == "5.0000"
    assert entry.badge is Badge.HOLDER
    assert session.count("balance", address=addr) == 1


def test_nft_failures_count_as_zero():
    addr = address(3)
    session = ExplorerSession()
    session.add("txlist", ok([tx(ETH)]), key=addr)
    session.add("tokennfttx", requests.Timeout("slow"), key=addr)

    entry = _enricher(session).enrich_address(AddressRecord(addr, balance="0"))

    assert entry.nft_count == 0
    assert entry.badge is Badge.NEW_USER


def test_nft_heavy_address_is_nft_hunter():
    addr = address(4)
    session = ExplorerSession()
    session.add("txlist", ok([tx(0, index=i) for i in range(20)]), key=addr)
    session.add("tokennfttx", ok([{}] * 11), key=addr)

    entry = _enricher(session).enrich_address(AddressRecord(addr, balance="0"))

    assert entry.nft_count == 11
    assert entry.badge is Badge.NFT_HUNTER


def test_rate_limit_consumes_attempt_with_linear_backoff():
    addr = address(5)
    session = ExplorerSession()
    session.add("txlist", status(429), ok([tx(ETH)]), key=addr)
    sleep = SleepRecorder()

    entry = _enricher(session, sleep).enrich_address(AddressRecord(addr, balance="0"))

    assert entry.tx_count == 1
    assert session.count("txlist") == 2
    assert sleep.calls == [1.0]


def test_exhausted_retries_produce_degraded_entry():
    addr = address(6)
    session = ExplorerSession()
    session.add("txlist", invalid_json(), key=addr)
    sleep = SleepRecorder()

    entry = _enricher(session, sleep).enrich_address(AddressRecord(addr, balance=str(9 * ETH)))

    assert session.count("txlist") == 3
    assert sleep.calls == [1.0, 2.0]
    assert entry.address == addr
    assert entry.tx_count == 0
    assert entry.total_volume == "0.0000"
    assert entry.balance == "0.0000"
    assert entry.badge is Badge.INACTIVE
    assert entry.activity_score == 0


def test_persistent_not_found_uses_every_attempt():
    addr = address(7)
    session = ExplorerSession().add("txlist", status(404), key=addr)
    sleep = SleepRecorder()

    entry = _enricher(session, sleep).enrich_address(AddressRecord(addr))

    assert session.count("txlist") == 3
    assert sleep.calls == [1.0, 2.0]
    assert entry.badge is Badge.INACTIVE


def test_transient_not_found_is_retried():
    addr = address(8)
    session = ExplorerSession()
    session.add("txlist", status(404), ok([tx(ETH)]), key=addr)
    sleep = SleepRecorder()

    entry = _enricher(session, sleep).enrich_address(AddressRecord(addr, balance="0"))

    assert session.count("txlist") == 2
    assert sleep.calls == [1.0]
    assert entry.tx_count == 1
    assert entry.total_volume == "1.0000"


def test_parse_transactions_drops_invalid_entries():
    payload = {
        "result": [
            tx(ETH, index=1),
            {"hash": "0x1", "value": "abc", "gasUsed": "1", "timeStamp": "1"},
            {"hash": "0x2", "value": 5, "gasUsed": "1", "timeStamp": "1"},
            {"hash": "0x3", "value": "5", "gasUsed": "1", "timestamp": "17"},
            None,
        ]
    }

    transactions = parse_transactions(payload)

    assert [t.hash for t in transactions] == [f"0x{1:064x}", "0x3"]
    assert transactions[1].timestamp == 17
    assert parse_transactions({"result": "No transactions found"}) == []


def test_enrich_batches_and_reports_progress():
    session = ExplorerSession()
    sample = [AddressRecord(address(n), balance="0") for n in range(12)]
    sleep = SleepRecorder()
    progress = []

    entries = _enricher(session, sleep).enrich(sample, progress.append)

    assert [e.address for e in entries] == [r.address for r in sample]
    assert [(p.processed, p.total) for p in progress] == [(5, 12), (10, 12), (12, 12)]
    assert progress[-1].fraction == 1.0
    assert sleep.calls == [1.0, 1.0]


def test_outbound_concurrency_is_bounded_by_batch_size():
    lock = threading.Lock()
    in_flight = {"now": 0, "max": 0}

    def slow_txlist(params):
        with lock:
            in_flight["now"] += 1
            in_flight["max"] = max(in_flight["max"], in_flight["now"])
        time.sleep(0.01)
        with lock:
            in_flight["now"] -= 1
        return ok([])

    session = ExplorerSession().handle("txlist", slow_txlist)
    sample = [AddressRecord(address(n), balance="1") for n in range(17)]

    entries = _enricher(session).enrich(sample)

    assert len(entries) == 17
    assert 1 <= in_flight["max"] <= 5
