from __future__ import annotations

import pytest
import requests

from testnet_leaderboard.discovery import discover_all
from testnet_leaderboard.errors import ErrorKind, ExplorerError, RetryExhaustedError
from testnet_leaderboard.retry import RetryExecutor

from fakes import ExplorerSession, SleepRecorder, address, invalid_json, make_client, ok, status


def _page(start: int, count: int) -> list[dict[str, str]]:
    return [
        {"address": address(n), "balance": str(n * 10**18)}
        for n in range(start, start + count)
    ]


def _discover(session: ExplorerSession, sleep: SleepRecorder | None = None, **kwargs):
    sleep = sleep or SleepRecorder()
    client = make_client(session)
    return discover_all(client, executor=RetryExecutor(sleep=sleep), sleep=sleep, **kwargs)


def test_stops_at_first_empty_page():
    session = ExplorerSession()
    session.add("listaccounts", ok(_page(0, 100)), key=1)
    session.add("listaccounts", ok(_page(100, 100)), key=2)
    session.add("listaccounts", ok([]), key=3)
    sleep = SleepRecorder()

    records = _discover(session, sleep)

    assert len(records) == 200
    assert records[0].address == address(0)
    assert records[-1].balance == str(199 * 10**18)
    assert session.count("listaccounts") == 3
    assert all(call["offset"] == 100 for call in session.calls)
    assert sleep.calls == [0.1, 0.1]


def test_rate_limited_page_is_retried_after_wait():
    session = ExplorerSession()
    session.add("listaccounts", ok(_page(0, 100)), key=1)
    session.add("listaccounts", status(429), status(429), ok(_page(100, 50)), key=2)
    session.add("listaccounts", ok([]), key=3)
    sleep = SleepRecorder()

    records = _discover(session, sleep)

    assert len(records) == 150
    assert session.count("listaccounts", page=2) == 3
    assert sleep.calls == [0.1, 2.0, 2.0, 0.1]


def test_persistent_rate_limit_on_first_page_raises():
    session = ExplorerSession().add("listaccounts", status(429))

    with pytest.raises(ExplorerError) as excinfo:
        _discover(session)

    assert excinfo.value.kind is ErrorKind.RATE_LIMITED
    assert session.count("listaccounts") == 11


def test_first_page_http_error_is_fatal():
    session = ExplorerSession().add("listaccounts", status(500))

    with pytest.raises(ExplorerError) as excinfo:
        _discover(session)

    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "Injective API temporarily down - try again in 1 minute"


def test_first_page_transport_failure_exhausts_retries():
    session = ExplorerSession().add(
        "listaccounts", requests.ConnectionError("connection refused")
    )
    sleep = SleepRecorder()

    with pytest.raises(RetryExhaustedError):
        _discover(session, sleep)

    assert session.count("listaccounts") == 4
    assert sleep.calls == [2, 4, 8]


def test_later_page_failure_truncates_to_gathered_addresses():
    session = ExplorerSession()
    session.add("listaccounts", ok(_page(0, 100)), key=1)
    session.add("listaccounts", ok(_page(100, 100)), key=2)
    session.add("listaccounts", status(503), key=3)

    records = _discover(session)

    assert len(records) == 200


def test_later_page_malformed_json_truncates():
    session = ExplorerSession()
    session.add("listaccounts", ok(_page(0, 10)), key=1)
    session.add("listaccounts", invalid_json(), key=2)

    assert len(_discover(session)) == 10


def test_non_list_result_ends_discovery():
    session = ExplorerSession()
    session.add("listaccounts", ok(_page(0, 5)), key=1)
    session.add("listaccounts", ok("Max rate limit reached"), key=2)

    assert len(_discover(session)) == 5
    assert session.count("listaccounts") == 2


def test_page_cap_bounds_discovery():
    session = ExplorerSession().handle(
        "listaccounts", lambda params: ok(_page(params["page"] * 100, 100))
    )

    records = _discover(session)

    assert session.count("listaccounts") == 20
    assert len(records) == 2000


def test_skips_invalid_and_duplicate_entries():
    page_one = _page(0, 3) + [{"balance": "1"}, "junk", {"address": 12}]
    page_two = _page(2, 3)
    session = ExplorerSession()
    session.add("listaccounts", ok(page_one), key=1)
    session.add("listaccounts", ok(page_two), key=2)
    session.add("listaccounts", ok([]), key=3)

    records = _discover(session)

    assert [r.address for r in records] == [address(n) for n in range(5)]
