"""Custom types for spot_prices."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .const import (
    ENTRY_DURATION,
    NIGHT_END_HOUR,
    PRICE_LEVEL_CHEAP,
    PRICE_LEVEL_EXPENSIVE,
    PRICE_LEVEL_NORMAL,
)

if TYPE_CHECKING:
    from homeassistant.loader import Integration

    from .api import SpotPricesApiClient
    from .coordinator import SpotPricesDataUpdateCoordinator
    from .helpers.calendar import PriceCalendar


class PriceLevel(str, Enum):
    """Enum for price levels."""

    CHEAP = PRICE_LEVEL_CHEAP
    NORMAL = PRICE_LEVEL_NORMAL
    EXPENSIVE = PRICE_LEVEL_EXPENSIVE


@dataclass(frozen=True)
class PricePoint:
    """Spot price for one hour."""

    date: datetime
    price: float
    currency: str = ""
    area: str = ""

    @property
    def date_utc(self) -> datetime:
        """Start of the hour in UTC, unambiguous on DST fall back days."""
        return self.date.astimezone(UTC)

    @property
    def end(self) -> datetime:
        """End of the hour this price is valid for."""
        return (self.date_utc + ENTRY_DURATION).astimezone(self.date.tzinfo)


def price_for(prices: list[PricePoint], instant: datetime, calendar: PriceCalendar) -> PricePoint | None:
    """Return the price point of the hour containing the instant."""
    # Equality across time zones is always False in a repeated hour, compare in UTC
    hour = calendar.start_of_hour(instant).astimezone(UTC)
    for price in prices:
        if price.date_utc == hour:
            return price
    return None


def filter_in_same_day_as(prices: list[PricePoint], instant: datetime, calendar: PriceCalendar) -> list[PricePoint]:
    """Return the prices on the local calendar day of the instant."""
    return [price for price in prices if calendar.is_same_day(price.date, instant)]


def filter_in_same_day_and_coming_night_as(
    prices: list[PricePoint],
    instant: datetime,
    calendar: PriceCalendar,
) -> list[PricePoint]:
    """
    Return the prices of the instant's day and of the night that follows it.

    The night is the part of the next calendar day before NIGHT_END_HOUR.

    Args:
        prices: Ascending price series
        instant: Any instant within the day of interest
        calendar: Calendar of the configured region

    Returns:
        The matching prices, in series order

    """
    start = calendar.start_of_day(instant)
    night_end = calendar.start_of_next_day(instant).replace(hour=NIGHT_END_HOUR)
    return [price for price in prices if start <= price.date < night_end]


def merge_prices(existing: list[PricePoint], fetched: list[PricePoint]) -> list[PricePoint]:
    """Merge two price series by hour, fetched prices replacing existing ones."""
    by_hour = {price.date_utc: price for price in existing}
    by_hour.update({price.date_utc: price for price in fetched})
    return [by_hour[hour] for hour in sorted(by_hour)]


@dataclass(frozen=True)
class PriceLimits:
    """Thresholds splitting prices into cheap, normal and expensive."""

    low: float
    high: float

    @classmethod
    def from_prices(cls, prices: list[PricePoint]) -> PriceLimits:
        """Derive limits from the lower and upper third of the price range."""
        if not prices:
            return cls(low=0.0, high=0.0)
        lowest = min(price.price for price in prices)
        highest = max(price.price for price in prices)
        span = highest - lowest
        return cls(low=lowest + span / 3, high=lowest + 2 * span / 3)

    def level_of(self, price: float) -> PriceLevel:
        """Classify a price against the limits."""
        if price < self.low:
            return PriceLevel.CHEAP
        if price > self.high:
            return PriceLevel.EXPENSIVE
        return PriceLevel.NORMAL


@dataclass(frozen=True)
class TimelineEntry:
    """One scheduled display snapshot with the prices of its chart."""

    price_point: PricePoint
    prices: list[PricePoint]
    limits: PriceLimits

    @property
    def date(self) -> datetime:
        """Start of the entry's validity window."""
        return self.price_point.date

    @property
    def valid_until(self) -> datetime:
        """End of the entry's validity window."""
        return self.price_point.end

    @property
    def level(self) -> PriceLevel:
        """Price level of the entry's price."""
        return self.limits.level_of(self.price_point.price)


@dataclass(frozen=True)
class RefreshState:
    """Persisted backoff counters."""

    failure_count: int = 0
    tomorrow_attempt_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RefreshState:
        """Create RefreshState from stored data, treating bad values as zero."""
        if not data:
            return cls()

        def _count(key: str) -> int:
            try:
                return max(int(data.get(key, 0)), 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            failure_count=_count("failure_count"),
            tomorrow_attempt_count=_count("tomorrow_attempt_count"),
        )

    def as_dict(self) -> dict[str, int]:
        """Return the state in its stored form."""
        return {
            "failure_count": self.failure_count,
            "tomorrow_attempt_count": self.tomorrow_attempt_count,
        }


@dataclass(frozen=True)
class RefreshAtEnd:
    """Reload once the last entry's validity window ends."""

    def describe(self) -> str:
        """Describe the decision for logging."""
        return "at end"


@dataclass(frozen=True)
class RefreshAfter:
    """Reload at an explicit instant."""

    instant: datetime

    def describe(self) -> str:
        """Describe the decision for logging."""
        return f"after {self.instant.isoformat()}"


type ReloadDecision = RefreshAtEnd | RefreshAfter


@dataclass(frozen=True)
class Timeline:
    """Result of one refresh cycle."""

    entries: list[TimelineEntry]
    decision: ReloadDecision
    state: RefreshState
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        """Whether the cycle ended in the failure boundary."""
        return self.error is not None

    def next_refresh(self) -> datetime | None:
        """
        Return the instant the timeline should be reloaded at.

        A RefreshAfter instant beyond the last entry is brought forward to the
        end of that entry, so there is always an entry for the current hour.
        """
        if isinstance(self.decision, RefreshAfter):
            if self.entries:
                return min(self.decision.instant, self.entries[-1].valid_until)
            return self.decision.instant
        if self.entries:
            return self.entries[-1].valid_until
        return None

    def entry_at(self, instant: datetime) -> TimelineEntry | None:
        """Return the entry whose validity window contains the instant."""
        instant = instant.astimezone(UTC)
        for entry in self.entries:
            if entry.price_point.date_utc <= instant < entry.valid_until:
                return entry
        return None


@dataclass
class SpotPricesData:
    """Data for the SpotPrices integration."""

    client: SpotPricesApiClient
    coordinator: SpotPricesDataUpdateCoordinator
    integration: Integration
    calendar: PriceCalendar
