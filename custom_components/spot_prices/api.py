"""Spot price API client for the spot_prices integration."""

from __future__ import annotations

import asyncio
import socket
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

import aiohttp
import async_timeout
from homeassistant.util import dt as dt_util

from .const import (
    DEFAULT_TIMEOUT,
    HTTP_NOT_FOUND,
    LOGGER,
    MAX_RETRIES,
    PRICE_API_URL,
    RETRY_DELAY,
)
from .data import PricePoint, merge_prices
from .helpers import date_when_tomorrows_prices_become_available, validate_day_completeness

if TYPE_CHECKING:
    from .helpers.calendar import PriceCalendar


class SpotPricesApiClientError(Exception):
    """Exception to indicate a general API error."""


class SpotPricesApiClientCommunicationError(SpotPricesApiClientError):
    """Exception to indicate a communication error."""


class SpotPricesApiClientDecodeError(SpotPricesApiClientError):
    """Exception to indicate a malformed API response."""


def _verify_response_or_raise(response: aiohttp.ClientResponse) -> bool:
    """Verify that the response is valid, returning False if no prices are published."""
    if response.status == HTTP_NOT_FOUND:
        return False

    response.raise_for_status()
    return True


def decode_prices(payload: Any, area: str, currency: str) -> list[PricePoint]:
    """
    Decode a day of prices, averaging sub-hour intervals into hourly prices.

    Args:
        payload: The decoded JSON response
        area: The price area the prices belong to
        currency: The currency to read prices in

    Returns:
        Ascending list of hourly price points

    Raises:
        SpotPricesApiClientDecodeError: If the payload is malformed

    """
    if not isinstance(payload, list):
        msg = f"Expected a list of prices, got {type(payload).__name__}"
        raise SpotPricesApiClientDecodeError(msg)

    price_key = f"{currency}_per_kWh"
    hourly: dict[datetime, list[float]] = {}
    for item in payload:
        try:
            starts_at = dt_util.parse_datetime(item["time_start"])
            value = float(item[price_key])
        except (KeyError, TypeError, ValueError) as exception:
            msg = f"Malformed price entry {item!r}: {exception}"
            raise SpotPricesApiClientDecodeError(msg) from exception

        if starts_at is None or starts_at.tzinfo is None:
            msg = f"Invalid start time in price entry {item!r}"
            raise SpotPricesApiClientDecodeError(msg)

        hour = starts_at.replace(minute=0, second=0, microsecond=0)
        hourly.setdefault(hour, []).append(value)

    return [
        PricePoint(date=hour, price=sum(values) / len(values), currency=currency, area=area)
        for hour, values in sorted(hourly.items())
    ]


class SpotPricesApiClient:
    """Spot price API client for the spot_prices integration."""

    def __init__(
        self,
        area: str,
        currency: str,
        session: aiohttp.ClientSession,
        calendar: PriceCalendar,
    ) -> None:
        """
        Initialize the spot price API client.

        Args:
            area: The price area, for example SE3
            currency: The currency prices are reported in
            session: The aiohttp client session
            calendar: Calendar of the configured region

        """
        self.area = area
        self.currency = currency
        self._session = session
        self._calendar = calendar
        self._prices: list[PricePoint] = []

    @property
    def prices(self) -> list[PricePoint]:
        """Prices fetched so far."""
        return list(self._prices)

    async def async_get_day_prices(self, day: date) -> list[PricePoint]:
        """
        Get the prices of one day.

        Args:
            day: The local calendar day

        Returns:
            Hourly prices of the day, empty if they are not published yet

        """
        url = PRICE_API_URL.format(year=day.year, month=day.month, day=day.day, area=self.area)
        payload = await self._request_with_retries(url)
        if payload is None:
            LOGGER.debug("No prices published for %s in %s yet", day.isoformat(), self.area)
            return []
        return decode_prices(payload, self.area, self.currency)

    async def async_fetch_and_merge_prices(self, now: datetime) -> list[PricePoint]:
        """
        Fetch missing days and merge them with the prices fetched before.

        Today's prices are fetched unless they are complete already, tomorrow's
        once they are expected to be published. Prices from before yesterday
        are dropped.

        Args:
            now: The current instant

        Returns:
            Ascending, de-duplicated price series

        """
        today = self._calendar.as_local(now).date()
        tomorrow = today + timedelta(days=1)
        fetched: list[PricePoint] = []

        if not validate_day_completeness(self._prices, today, self._calendar, LOGGER)["valid"]:
            fetched.extend(await self.async_get_day_prices(today))

        if now >= date_when_tomorrows_prices_become_available(now, self._calendar) and not validate_day_completeness(
            self._prices, tomorrow, self._calendar, LOGGER
        )["valid"]:
            fetched.extend(await self.async_get_day_prices(tomorrow))

        keep_from = self._calendar.start_of_date(today - timedelta(days=1))
        self._prices = [price for price in merge_prices(self._prices, fetched) if price.date >= keep_from]

        LOGGER.debug(
            "Merged %d fetched prices, %d prices for %s from %s to %s",
            len(fetched),
            len(self._prices),
            self.area,
            self._prices[0].date.isoformat() if self._prices else "-",
            self._prices[-1].date.isoformat() if self._prices else "-",
        )
        return list(self._prices)

    async def _request_with_retries(self, url: str) -> Any:
        """
        Execute a GET request with retry logic.

        Args:
            url: The URL to request

        Returns:
            The decoded JSON response, or None if the prices are not published

        Raises:
            SpotPricesApiClientError: If the request fails after all retries

        """
        retry_count = 0
        last_exception = None

        while retry_count < MAX_RETRIES:
            try:
                return await self._api_wrapper(method="get", url=url)

            except SpotPricesApiClientCommunicationError as exception:
                last_exception = exception
                if retry_count + 1 == MAX_RETRIES:
                    break

                # For network errors, retry with linear backoff
                wait_time = RETRY_DELAY * (retry_count + 1)
                LOGGER.warning(
                    "Communication error, retrying in %s seconds (attempt %s/%s): %s",
                    wait_time,
                    retry_count + 1,
                    MAX_RETRIES,
                    exception,
                )
                await asyncio.sleep(wait_time)

            retry_count += 1

        # If we get here, all retries have failed
        msg = f"Failed to fetch prices after {MAX_RETRIES} attempts"
        raise SpotPricesApiClientCommunicationError(msg) from last_exception

    async def _api_wrapper(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Get information from the API with proper error handling.

        Args:
            method: The HTTP method to use
            url: The URL to request
            headers: Optional headers to include in the request

        Returns:
            The decoded JSON response, or None if the prices are not published

        Raises:
            SpotPricesApiClientCommunicationError: On communication errors
            SpotPricesApiClientDecodeError: On malformed responses
            SpotPricesApiClientError: On unexpected errors

        """
        try:
            async with async_timeout.timeout(DEFAULT_TIMEOUT):
                response = await self._session.request(
                    method=method,
                    url=url,
                    headers=headers,
                )
                if not _verify_response_or_raise(response):
                    return None
                return await response.json()

        except TimeoutError as exception:
            msg = f"Timeout error fetching prices - {exception}"
            raise SpotPricesApiClientCommunicationError(msg) from exception

        except (aiohttp.ClientError, socket.gaierror) as exception:
            msg = f"Error fetching prices - {exception}"
            raise SpotPricesApiClientCommunicationError(msg) from exception

        except ValueError as exception:
            msg = f"Invalid JSON in price response - {exception}"
            raise SpotPricesApiClientDecodeError(msg) from exception

        except Exception as exception:  # pylint: disable=broad-except
            msg = f"Unexpected error while fetching prices - {exception}"
            raise SpotPricesApiClientError(msg) from exception
