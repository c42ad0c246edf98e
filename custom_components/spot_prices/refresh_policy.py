"""
Timeline and reload policy for spot_prices.

Decides which price points are materialized as timeline entries, when the
next refresh should happen and how the persisted backoff counters evolve.
Everything here is synchronous and free of I/O; fetching and persisting are
left to the caller.
"""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from .const import LOGGER, MAX_TIMELINE_ENTRIES, RETRY_DELAY_MINUTES, RETRY_JITTER_SECONDS
from .data import (
    PriceLimits,
    RefreshAfter,
    RefreshAtEnd,
    RefreshState,
    Timeline,
    TimelineEntry,
    filter_in_same_day_and_coming_night_as,
    filter_in_same_day_as,
    price_for,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .data import PricePoint, ReloadDecision
    from .helpers.calendar import PriceCalendar


class MissingCurrentPriceError(Exception):
    """Exception to indicate that the price series has no price for now."""


def retry_delay(attempt: int, random_source: Callable[[], float] | None = None) -> timedelta:
    """
    Return the delay before retry number attempt.

    Args:
        attempt: Zero based number of the retry
        random_source: Callable returning a float in [0, 1), used for jitter

    Returns:
        10, 30 or 60 minutes depending on the attempt, plus up to 30 seconds of jitter

    """
    if attempt < 0:
        msg = f"Retry attempt must not be negative, got {attempt}"
        raise ValueError(msg)

    random_source = random_source or random.random
    minutes = RETRY_DELAY_MINUTES[min(attempt, len(RETRY_DELAY_MINUTES) - 1)]
    jitter = RETRY_JITTER_SECONDS * random_source()
    return timedelta(minutes=minutes, seconds=jitter)


def build_timeline(
    now: datetime,
    prices: list[PricePoint],
    state: RefreshState,
    calendar: PriceCalendar,
    available_at: datetime,
    limits: PriceLimits | None = None,
    random_source: Callable[[], float] | None = None,
) -> Timeline:
    """
    Build the timeline entries and reload decision for one refresh cycle.

    Args:
        now: The current instant
        prices: Ascending, de-duplicated price series
        state: Backoff counters read at the start of the cycle
        calendar: Calendar of the configured region
        available_at: When tomorrow's prices are expected to be published
        limits: Fixed price limits, derived per day from the prices when omitted
        random_source: Callable returning a float in [0, 1), used for jitter

    Returns:
        Timeline with the entries, the reload decision and the new counters

    Raises:
        MissingCurrentPriceError: If the series has no price for the current hour

    """
    if price_for(prices, now, calendar) is None:
        msg = f"Missing price for the current hour ({calendar.start_of_hour(now).isoformat()})"
        raise MissingCurrentPriceError(msg)

    current_hour = calendar.start_of_hour(now).astimezone(UTC)
    entries: list[TimelineEntry] = []
    for price in prices:
        if price.date_utc < current_hour:
            # Skip past entries
            continue
        if len(entries) >= MAX_TIMELINE_ENTRIES:
            break
        day_prices = filter_in_same_day_and_coming_night_as(prices, calendar.start_of_day(price.date), calendar)
        entries.append(
            TimelineEntry(
                price_point=price,
                prices=day_prices,
                limits=limits or PriceLimits.from_prices(day_prices),
            )
        )

    has_tomorrow = bool(entries) and calendar.is_in_tomorrow(entries[-1].date, now)

    decision: ReloadDecision
    if has_tomorrow:
        decision = RefreshAtEnd()
        tomorrow_attempt_count = 0
    elif available_at <= now:
        LOGGER.warning(
            "No prices for tomorrow even though they should be available since %s (attempt %d)",
            available_at.isoformat(),
            state.tomorrow_attempt_count + 1,
        )
        decision = RefreshAfter(now + retry_delay(state.tomorrow_attempt_count, random_source))
        tomorrow_attempt_count = state.tomorrow_attempt_count + 1
    else:
        decision = RefreshAfter(available_at)
        tomorrow_attempt_count = 0

    if entries:
        LOGGER.debug(
            "Built %d timeline entries from %s to %s, reload %s",
            len(entries),
            entries[0].date.isoformat(),
            entries[-1].date.isoformat(),
            decision.describe(),
        )
    else:
        LOGGER.debug("Built no timeline entries, reload %s", decision.describe())

    # A successful cycle always clears the failure counter
    return Timeline(
        entries=entries,
        decision=decision,
        state=RefreshState(failure_count=0, tomorrow_attempt_count=tomorrow_attempt_count),
    )


def failed_timeline(
    now: datetime,
    state: RefreshState,
    error: Exception,
    random_source: Callable[[], float] | None = None,
) -> Timeline:
    """
    Build the empty timeline of a failed refresh cycle.

    Args:
        now: The current instant
        state: Backoff counters read at the start of the cycle
        error: The exception that ended the cycle
        random_source: Callable returning a float in [0, 1), used for jitter

    Returns:
        Timeline without entries that retries after a backoff delay

    """
    delay = retry_delay(state.failure_count, random_source)
    return Timeline(
        entries=[],
        decision=RefreshAfter(now + delay),
        state=RefreshState(
            failure_count=state.failure_count + 1,
            tomorrow_attempt_count=state.tomorrow_attempt_count,
        ),
        error=error,
    )


def snapshot_entry(
    now: datetime,
    prices: list[PricePoint],
    calendar: PriceCalendar,
    limits: PriceLimits | None = None,
) -> TimelineEntry:
    """
    Return the single entry describing the current hour.

    Raises:
        MissingCurrentPriceError: If the series has no price for the current hour

    """
    price = price_for(prices, now, calendar)
    if price is None:
        msg = f"Missing price for the current hour ({calendar.start_of_hour(now).isoformat()})"
        raise MissingCurrentPriceError(msg)

    day_prices = filter_in_same_day_as(prices, price.date, calendar)
    return TimelineEntry(
        price_point=price,
        prices=day_prices,
        limits=limits or PriceLimits.from_prices(day_prices),
    )
