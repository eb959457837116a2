"""Periodic leaderboard refresh backed by the in-memory TTL cache."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Callable

from .config import DEFAULT_LEADERBOARD_CONFIG, LeaderboardConfig
from .errors import user_message
from .models import EnrichmentProgress, LeaderboardEntry, LeaderboardState, ProgressCallback
from .ttl_cache import TTLCache

LOGGER = logging.getLogger(__name__)

LeaderboardPipeline = Callable[[ProgressCallback], Sequence[LeaderboardEntry]]
StateListener = Callable[[LeaderboardState], None]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RefreshScheduler:
    """Run the leaderboard pipeline now and then on a fixed interval.

    A pass first looks for a fresh result in the injected cache and publishes
    it without touching the network. Otherwise the pipeline runs and its
    ranked output is cached for ``config.ttl_seconds``. A failed pass
    publishes an error state and leaves the cache as it was. Only one pass
    runs at a time; a refresh requested while another is in flight is skipped.
    """

    def __init__(
        self,
        pipeline: LeaderboardPipeline,
        *,
        cache: TTLCache[tuple[LeaderboardEntry, ...]],
        config: LeaderboardConfig = DEFAULT_LEADERBOARD_CONFIG,
        on_update: StateListener | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.pipeline = pipeline
        self.cache = cache
        self.config = config
        self.on_update = on_update
        self.clock = clock
        self._state = LeaderboardState()
        self._state_lock = threading.Lock()
        self._pass_guard = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> LeaderboardState:
        with self._state_lock:
            return self._state

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _publish(self, state: LeaderboardState) -> None:
        with self._state_lock:
            self._state = state
        if self.on_update is not None:
            self.on_update(state)

    def _report_progress(self, progress: EnrichmentProgress) -> None:
        self._publish(replace(self.state, progress=progress))

    def cached_entries(self) -> tuple[LeaderboardEntry, ...] | None:
        """Return the cached leaderboard if it is still within its TTL."""
        cached = self.cache.get(self.config.cache_key)
        if not cached:
            return None
        age = (self.clock() - cached[0].last_update).total_seconds()
        if age < self.config.ttl_seconds:
            return cached
        return None

    def refresh(self) -> LeaderboardState:
        if not self._pass_guard.acquire(blocking=False):
            LOGGER.info("Leaderboard refresh already in progress; skipping")
            return self.state
        try:
            return self._run_pass()
        finally:
            self._pass_guard.release()

    def _run_pass(self) -> LeaderboardState:
        cached = self.cached_entries()
        if cached is not None:
            LOGGER.info("Serving cached leaderboard (%d entries)", len(cached))
            state = LeaderboardState(
                entries=cached,
                progress=EnrichmentProgress(len(cached), len(cached)),
                updated_at=cached[0].last_update,
            )
            self._publish(state)
            return state

        self._publish(
            replace(self.state, loading=True, error=None, progress=EnrichmentProgress(0, 0))
        )
        try:
            ranked = tuple(self.pipeline(self._report_progress))
        except Exception as exc:
            LOGGER.error("Leaderboard refresh failed: %s", exc, exc_info=True)
            state = LeaderboardState(error=user_message(exc), progress=self.state.progress)
            self._publish(state)
            return state

        self.cache.set(self.config.cache_key, ranked, self.config.ttl_seconds)
        state = LeaderboardState(
            entries=ranked,
            progress=self.state.progress,
            updated_at=self.clock(),
        )
        self._publish(state)
        return state

    def start(self) -> None:
        if self.running:
            return
        # each loop owns its event so one outliving a timed-out stop still exits
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(self._stop_event,),
            name="leaderboard-refresh",
            daemon=True,
        )
        self._thread.start()

    def _run_loop(self, stop_event: threading.Event) -> None:
        interval = self.config.refresh_interval_seconds
        self.refresh()
        while not stop_event.wait(interval):
            self.refresh()
        LOGGER.info("Leaderboard scheduler stopped")

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
