"""Error taxonomy for explorer API failures and user-facing messages."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    TRANSPORT = "transport"
    MALFORMED = "malformed"


NON_RETRYABLE_KINDS = frozenset({ErrorKind.NOT_FOUND, ErrorKind.INVALID_INPUT})

CONNECTION_MESSAGE = "Network timeout - please try again"
MALFORMED_MESSAGE = "Server returned invalid data - please retry"
EMPTY_RESPONSE_MESSAGE = "No data returned - address may be inactive"
DEFAULT_USER_MESSAGE = "Leaderboard unavailable"

STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request - please check address format",
    404: "Address not found on network",
    429: "Too many requests - please wait 30 seconds",
    500: "Injective API temporarily down - try again in 1 minute",
}

_STATUS_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_INPUT,
    404: ErrorKind.NOT_FOUND,
    429: ErrorKind.RATE_LIMITED,
}


def status_message(status_code: int, fallback: str | None = None) -> str:
    """Map an HTTP status to the message shown to users."""
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    return fallback if fallback is not None else f"HTTP {status_code}"


def kind_for_status(status_code: int) -> ErrorKind:
    return _STATUS_KINDS.get(status_code, ErrorKind.TRANSPORT)


class LeaderboardError(Exception):
    """Base class for failures surfaced by the leaderboard pipeline."""


class ExplorerError(LeaderboardError):
    """A classified failure talking to the block-explorer API."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.url = url

    @property
    def retryable(self) -> bool:
        return self.kind not in NON_RETRYABLE_KINDS

    @classmethod
    def from_status(cls, status_code: int, url: str | None = None) -> "ExplorerError":
        return cls(
            kind_for_status(status_code),
            status_message(status_code),
            status_code=status_code,
            url=url,
        )


class RetryExhaustedError(LeaderboardError):
    """Raised once every retry attempt for an operation has failed."""

    def __init__(self, context: str, attempts: int, last_error: BaseException | None):
        detail = str(last_error) if last_error is not None else "Unknown error"
        super().__init__(f"{context} failed after {attempts} attempts: {detail}")
        self.context = context
        self.attempts = attempts
        self.last_error = last_error


class EmptyAddressSetError(LeaderboardError):
    def __init__(self, message: str = EMPTY_RESPONSE_MESSAGE):
        super().__init__(message)


def is_retryable(exc: BaseException) -> bool:
    """Return False only for errors that retrying can never fix."""
    if isinstance(exc, ExplorerError):
        return exc.retryable
    return True


def user_message(exc: BaseException) -> str:
    """Render any pipeline failure as a single user-visible message."""
    if isinstance(exc, LeaderboardError) and str(exc):
        return str(exc)
    return DEFAULT_USER_MESSAGE
