"""Refresh cycle joining price fetching, the reload policy and persisted counters."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from homeassistant.util import dt as dt_util

from .api import SpotPricesApiClientError
from .const import LOGGER
from .helpers import date_when_tomorrows_prices_become_available, validate_price_series
from .refresh_policy import MissingCurrentPriceError, build_timeline, failed_timeline, snapshot_entry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from .data import PriceLimits, PricePoint, RefreshState, Timeline, TimelineEntry
    from .helpers.calendar import PriceCalendar


class RefreshStateStorage(Protocol):
    """Storage of the backoff counters."""

    async def async_load(self) -> RefreshState:
        """Load the counters."""

    async def async_save(self, state: RefreshState) -> None:
        """Save the counters."""


class SpotPricesTimelineProvider:
    """Run refresh cycles with a failure boundary around fetch and decide."""

    def __init__(
        self,
        fetch_prices: Callable[[datetime], Awaitable[list[PricePoint]]],
        store: RefreshStateStorage,
        calendar: PriceCalendar,
        limits: PriceLimits | None = None,
        random_source: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            fetch_prices: Coroutine function returning the merged price series for now
            store: Storage of the backoff counters
            calendar: Calendar of the configured region
            limits: Fixed price limits, derived from the prices when omitted
            random_source: Callable returning a float in [0, 1), used for jitter

        """
        self._fetch_prices = fetch_prices
        self._store = store
        self._calendar = calendar
        self.limits = limits
        self._random_source = random_source
        self._lock = asyncio.Lock()

    async def async_get_timeline(self, now: datetime) -> Timeline:
        """
        Run one refresh cycle.

        The counters are read, the prices fetched, the decision computed and
        the new counters written while holding the lock, and only after the
        decision exists. A cancelled cycle writes nothing.

        Args:
            now: The current instant

        Returns:
            The timeline, empty with a backoff reload if the cycle failed

        """
        start_time = dt_util.utcnow()
        LOGGER.debug("Get timeline started")

        async with self._lock:
            state = await self._store.async_load()
            try:
                prices = await self._fetch_prices(now)
                self._log_series_issues(prices)
                timeline = build_timeline(
                    now,
                    prices,
                    state,
                    self._calendar,
                    date_when_tomorrows_prices_become_available(now, self._calendar),
                    limits=self.limits,
                    random_source=self._random_source,
                )
            except (SpotPricesApiClientError, MissingCurrentPriceError) as exception:
                LOGGER.error("Timeline failure %d: %s", state.failure_count, exception)
                timeline = failed_timeline(now, state, exception, self._random_source)
            except Exception as exception:  # pylint: disable=broad-except
                LOGGER.exception("Unexpected timeline failure %d", state.failure_count)
                timeline = failed_timeline(now, state, exception, self._random_source)

            await self._store.async_save(timeline.state)

        if timeline.entries:
            LOGGER.info(
                "Provided %d timeline entries from %s to %s, reload policy: %s",
                len(timeline.entries),
                timeline.entries[0].date.isoformat(),
                timeline.entries[-1].date.isoformat(),
                timeline.decision.describe(),
            )
        else:
            LOGGER.info("Provided no timeline entries, reload policy: %s", timeline.decision.describe())

        duration = (dt_util.utcnow() - start_time).total_seconds()
        LOGGER.debug("Get timeline end, duration %.3f seconds", duration)
        return timeline

    async def async_get_snapshot(self, now: datetime) -> TimelineEntry | None:
        """
        Return the entry for the current hour without touching the counters.

        Args:
            now: The current instant

        Returns:
            The current entry, or None if prices could not be provided

        """
        try:
            prices = await self._fetch_prices(now)
            entry = snapshot_entry(now, prices, self._calendar, self.limits)
        except (SpotPricesApiClientError, MissingCurrentPriceError) as exception:
            LOGGER.error("Snapshot failure: %s", exception)
            return None

        LOGGER.debug("Provided a timeline snapshot for %s", entry.date.isoformat())
        return entry

    def _log_series_issues(self, prices: list[PricePoint]) -> None:
        """Log ordering and completeness problems of the fetched prices."""
        validation_result = validate_price_series(prices, self._calendar, LOGGER)
        if not validation_result["valid"]:
            LOGGER.warning("Price series issues detected:\n- %s", "\n- ".join(validation_result["issues"]))
