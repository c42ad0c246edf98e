"""Constants for spot_prices."""

from datetime import time, timedelta
from logging import Logger, getLogger
from typing import Final

LOGGER: Logger = getLogger(__package__)

# Integration constants
DOMAIN = "spot_prices"
NAME = "Electricity Spot Prices"
VERSION = "0.1.0"
ATTRIBUTION = "Data provided by elprisetjustnu.se"

# Price API constants
PRICE_API_URL = "https://www.elprisetjustnu.se/api/v1/prices/{year}/{month:02d}-{day:02d}_{area}.json"
DEFAULT_TIMEOUT = 10
MAX_RETRIES = 3
RETRY_DELAY = 1.0
HTTP_NOT_FOUND = 404

# Configuration constants
CONF_PRICE_AREA = "price_area"
CONF_CURRENCY = "currency"
CONF_LOW_PRICE_LIMIT = "low_price_limit"
CONF_HIGH_PRICE_LIMIT = "high_price_limit"

PRICE_AREAS: Final = ["SE1", "SE2", "SE3", "SE4"]
CURRENCY_SEK = "SEK"
CURRENCY_EUR = "EUR"
CURRENCIES: Final = [CURRENCY_SEK, CURRENCY_EUR]

# Default values
DEFAULT_PRICE_AREA = "SE3"
DEFAULT_CURRENCY = CURRENCY_SEK

# Timeline constants
MAX_TIMELINE_ENTRIES: Final = 12  # More entries have not improved the display, only the payload
ENTRY_DURATION: Final = timedelta(hours=1)
NIGHT_END_HOUR: Final = 6  # The "coming night" of a day ends at 06:00 the next day

# Retry schedule for missing tomorrow data and failed cycles
RETRY_DELAY_MINUTES: Final = [10, 30, 60]
RETRY_JITTER_SECONDS: Final = 30

# Day-ahead prices are published around 12:45 CET
TOMORROW_PRICES_AVAILABLE_AT: Final = time(13, 0)

# Storage
STORAGE_VERSION = 1

# Entity constants
ATTR_AREA = "area"
ATTR_CURRENCY = "currency"
ATTR_PRICE_LEVEL = "price_level"
ATTR_STARTS_AT = "starts_at"
ATTR_PRICES = "prices"
ATTR_LOW_LIMIT = "low_limit"
ATTR_HIGH_LIMIT = "high_limit"
ATTR_NEXT_REFRESH = "next_refresh"

# Price level names
PRICE_LEVEL_CHEAP = "cheap"
PRICE_LEVEL_NORMAL = "normal"
PRICE_LEVEL_EXPENSIVE = "expensive"

# Services
SERVICE_REFRESH = "refresh"
