"""Publication schedule of the day-ahead prices."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from ..const import TOMORROW_PRICES_AVAILABLE_AT

if TYPE_CHECKING:
    from .calendar import PriceCalendar


def date_when_tomorrows_prices_become_available(now: datetime, calendar: PriceCalendar) -> datetime:
    """
    Return the instant when tomorrow's prices are expected to be published.

    Args:
        now: The current instant
        calendar: Calendar of the configured region

    Returns:
        The publication time on the local calendar day of now

    """
    today = calendar.as_local(now).date()
    return datetime.combine(today, TOMORROW_PRICES_AVAILABLE_AT, tzinfo=calendar.time_zone)
