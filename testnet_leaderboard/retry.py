"""Shared exponential backoff executor for explorer requests."""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .config import DEFAULT_RETRY_CONFIG, RetryConfig
from .errors import RetryExhaustedError, is_retryable

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Run an operation until it succeeds, fails permanently, or runs out of attempts.

    The wait before attempt ``n + 1`` is ``min(base * 2**n, max)``, so with the
    defaults the retries wait 2s, 4s and 8s. Errors classified as
    non-retryable (not found, invalid input) propagate after one attempt.
    ``consecutive_failures`` is kept for observability only.
    """

    def __init__(
        self,
        config: RetryConfig = DEFAULT_RETRY_CONFIG,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.sleep = sleep
        self.consecutive_failures = 0

    @property
    def max_attempts(self) -> int:
        return self.config.max_retries + 1

    def _retrying(self, context: str) -> Retrying:
        def _log_failure(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            LOGGER.warning(
                "%s attempt %d/%d failed: %s",
                context,
                retry_state.attempt_number,
                self.max_attempts,
                exc,
            )

        return Retrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(
                multiplier=self.config.wait_base_seconds * 2,
                max=self.config.wait_max_seconds,
            ),
            sleep=self.sleep,
            after=_log_failure,
            reraise=False,
        )

    def run(self, operation: Callable[[], T], context: str) -> T:
        try:
            result = self._retrying(context)(operation)
        except RetryError as exc:
            self.consecutive_failures += 1
            last_error = exc.last_attempt.exception()
            raise RetryExhaustedError(context, self.max_attempts, last_error) from last_error
        except Exception as exc:
            LOGGER.warning("%s failed with non-retryable error: %s", context, exc)
            raise
        self.consecutive_failures = 0
        return result
