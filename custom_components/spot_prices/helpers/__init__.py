"""Helper modules for the Electricity Spot Prices integration."""

from .availability import date_when_tomorrows_prices_become_available
from .calendar import PriceCalendar
from .series_validation import (
    is_dst_transition_day,
    is_spring_forward,
    validate_day_completeness,
    validate_price_series,
)

__all__ = [
    "PriceCalendar",
    "date_when_tomorrows_prices_become_available",
    "is_dst_transition_day",
    "is_spring_forward",
    "validate_day_completeness",
    "validate_price_series",
]
