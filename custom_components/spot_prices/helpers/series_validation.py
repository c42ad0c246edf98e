"""Helper module for price series validation in the Electricity Spot Prices integration."""

from __future__ import annotations

from collections import Counter
from datetime import UTC, date, timedelta
from typing import TYPE_CHECKING, Any

from .const import HOURS_IN_DAY, SPRING_FORWARD_HOURS

if TYPE_CHECKING:
    from ..data import PricePoint
    from .calendar import PriceCalendar


def is_dst_transition_day(day: date, calendar: PriceCalendar) -> bool:
    """Check if the local day is a DST transition day."""
    return calendar.hours_in_day(day) != HOURS_IN_DAY


def is_spring_forward(day: date, calendar: PriceCalendar) -> bool:
    """Check if the local day is a spring-forward day (lose an hour)."""
    return calendar.hours_in_day(day) == SPRING_FORWARD_HOURS


def validate_price_series(
    prices: list[PricePoint],
    calendar: PriceCalendar,
    logger: Any,
) -> dict[str, Any]:
    """
    Validate ordering and completeness of a price series.

    Args:
        prices: The price series to check
        calendar: Calendar of the configured region
        logger: Logger instance

    Returns:
        Dictionary with validation results

    """
    result = {"valid": True, "issues": [], "days": {}}

    if not prices:
        result["valid"] = False
        result["issues"].append("Price series is empty")
        return result

    # Step 1: Ordering and duplicates
    for previous, current in zip(prices, prices[1:], strict=False):
        if current.date_utc == previous.date_utc:
            result["valid"] = False
            result["issues"].append(f"Duplicate price for {current.date.isoformat()}")
        elif current.date_utc < previous.date_utc:
            result["valid"] = False
            result["issues"].append(f"Price for {current.date.isoformat()} is out of order")

    # Step 2: Completeness per local day
    days = sorted({calendar.as_local(price.date).date() for price in prices})
    for day in days:
        day_result = validate_day_completeness(prices, day, calendar, logger)
        result["days"][day] = day_result
        if not day_result["valid"]:
            result["valid"] = False
            result["issues"].extend(day_result["issues"])

    return result


def validate_day_completeness(
    prices: list[PricePoint],
    day: date,
    calendar: PriceCalendar,
    logger: Any,
) -> dict[str, Any]:
    """
    Validate that a local day has a price for every hour.

    Args:
        prices: The price series to check
        day: The local day to check
        calendar: Calendar of the configured region
        logger: Logger instance

    Returns:
        Dictionary with validation results for the day

    """
    expected_hours = calendar.hours_in_day(day)
    result = {"valid": True, "issues": [], "expected_hours": expected_hours, "hours": 0}

    day_prices = [price for price in prices if calendar.as_local(price.date).date() == day]
    result["hours"] = len(day_prices)

    if len(day_prices) < expected_hours:
        missing = _find_missing_hours(day_prices, day, calendar)
        logger.debug(
            "Incomplete prices for %s (%d/%d hours), missing hours: %s",
            day.isoformat(),
            len(day_prices),
            expected_hours,
            ", ".join(str(hour) for hour in missing) or "none",
        )
        result["valid"] = False
        result["issues"].append(f"Incomplete prices for {day.isoformat()} ({len(day_prices)}/{expected_hours} hours)")
        result["missing_hours"] = missing
    elif len(day_prices) > expected_hours:
        result["valid"] = False
        result["issues"].append(f"Too many prices for {day.isoformat()} ({len(day_prices)}/{expected_hours} hours)")

    # On a fall-back day one local hour occurs twice
    if result["valid"] and is_dst_transition_day(day, calendar) and not is_spring_forward(day, calendar):
        hour_frequency = Counter(calendar.as_local(price.date).hour for price in day_prices)
        duplicates = [hour for hour, count in hour_frequency.items() if count > 1]
        if len(duplicates) != 1:
            result["valid"] = False
            result["issues"].append(f"Unexpected repeated hours on DST fall back day {day.isoformat()}: {duplicates}")

    return result


def _find_missing_hours(day_prices: list[PricePoint], day: date, calendar: PriceCalendar) -> list[int]:
    """Return the local hours of the day that have no price."""
    present = {calendar.as_local(price.date).hour for price in day_prices}
    start = calendar.start_of_date(day).astimezone(UTC)
    expected = {calendar.as_local(start + timedelta(hours=offset)).hour for offset in range(calendar.hours_in_day(day))}
    return sorted(expected - present)
