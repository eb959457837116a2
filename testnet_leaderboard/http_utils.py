"""HTTP helpers for the Blockscout-style explorer API."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from .config import EXPLORER_API_BASE, REQUEST_TIMEOUT, USER_AGENT, get_api_key
from .errors import (
    CONNECTION_MESSAGE,
    MALFORMED_MESSAGE,
    ErrorKind,
    ExplorerError,
)

LOGGER = logging.getLogger(__name__)


def build_session(default_headers: Mapping[str, str] | None = None) -> requests.Session:
    session = requests.Session()
    if default_headers:
        session.headers.update(default_headers)
    return session


def is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def raise_for_status(response: requests.Response, url: str | None = None) -> None:
    """Raise a classified ExplorerError for any non-2xx response."""
    if is_success(response):
        return
    if response.status_code == 429:
        LOGGER.info(
            "Rate limited by explorer (Retry-After: %s)",
            response.headers.get("Retry-After", "unset"),
        )
    raise ExplorerError.from_status(response.status_code, url)


def read_json(response: requests.Response, url: str | None = None) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ExplorerError(ErrorKind.MALFORMED, MALFORMED_MESSAGE, url=url) from exc


def read_envelope(response: requests.Response, url: str | None = None) -> dict[str, Any]:
    """Return the decoded ``{"result": ...}`` envelope of a successful response."""
    payload = read_json(response, url)
    if not isinstance(payload, dict):
        raise ExplorerError(ErrorKind.MALFORMED, MALFORMED_MESSAGE, url=url)
    return payload


class ExplorerClient:
    """Thin wrapper around the ``module=account`` query endpoints.

    Every method issues exactly one request and returns the raw response so
    callers decide how to treat rate limiting and status codes. Connection
    level failures are wrapped as ``ErrorKind.TRANSPORT``.
    """

    def __init__(
        self,
        base_url: str = EXPLORER_API_BASE,
        *,
        session: requests.Session | None = None,
        api_key: str | None = None,
        timeout: tuple[float, float] = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url
        self.session = session or build_session({"User-Agent": USER_AGENT})
        self.api_key = api_key if api_key is not None else get_api_key()
        self.timeout = timeout

    def query(self, action: str, **params: Any) -> requests.Response:
        query_params: dict[str, Any] = {"module": "account", "action": action}
        query_params.update(params)
        if self.api_key:
            query_params["apikey"] = self.api_key
        try:
            return self.session.request(
                "GET",
                self.base_url,
                params=query_params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ExplorerError(
                ErrorKind.TRANSPORT,
                f"{CONNECTION_MESSAGE} ({exc})",
                url=self.base_url,
            ) from exc

    def list_accounts(self, page: int, offset: int) -> requests.Response:
        return self.query("listaccounts", page=page, offset=offset)

    def transactions(self, address: str, *, offset: int = 1000) -> requests.Response:
        return self.query(
            "txlist", address=address, page=1, offset=offset, sort="desc"
        )

    def nft_transfers(self, address: str) -> requests.Response:
        return self.query("tokennfttx", address=address)

    def balance(self, address: str) -> requests.Response:
        return self.query("balance", address=address)
