"""Tests for the spot price API client."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any

import aiohttp
import pytest
from conftest import local

from custom_components.spot_prices import api
from custom_components.spot_prices.api import (
    SpotPricesApiClient,
    SpotPricesApiClientCommunicationError,
    SpotPricesApiClientDecodeError,
    decode_prices,
)


def day_payload(start: datetime, hours: int = 24, step: timedelta = timedelta(hours=1)) -> list[dict[str, Any]]:
    """Return an API payload with one interval per step, priced by hour."""
    intervals = int(timedelta(hours=hours) / step)
    payload = []
    for index in range(intervals):
        starts_at = start + index * step
        payload.append(
            {
                "SEK_per_kWh": float(starts_at.hour) + index % 2 * 0.1,
                "EUR_per_kWh": float(starts_at.hour) / 10,
                "EXR": 10.0,
                "time_start": starts_at.isoformat(),
                "time_end": (starts_at + step).isoformat(),
            }
        )
    return payload


class FakeResponse:
    """Minimal aiohttp response."""

    def __init__(self, status: int = 200, payload: Any = None, body: str | None = None) -> None:
        self.status = status
        self._payload = payload
        self._body = body

    def raise_for_status(self) -> None:
        if self.status >= 400:
            msg = f"HTTP {self.status}"
            raise aiohttp.ClientError(msg)

    async def json(self) -> Any:
        if self._body is not None:
            return json.loads(self._body)
        return self._payload


class FakeSession:
    """Session answering from a URL keyed table of responses or exceptions."""

    def __init__(self, responses: dict[str, Any] | None = None, default: Any = None) -> None:
        self.responses = responses or {}
        self.default = default if default is not None else FakeResponse(status=404)
        self.requested: list[str] = []

    async def request(self, method: str, url: str, headers: dict[str, str] | None = None) -> FakeResponse:
        self.requested.append(url)
        response = self.responses.get(url, self.default)
        if isinstance(response, Exception):
            raise response
        return response


def url_for(day: datetime, area: str = "SE3") -> str:
    return f"https://www.elprisetjustnu.se/api/v1/prices/{day.year}/{day.month:02d}-{day.day:02d}_{area}.json"


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch: pytest.MonkeyPatch) -> None:
    """Retry without waiting."""
    monkeypatch.setattr(api, "RETRY_DELAY", 0)


class TestDecodePrices:
    """Tests for decoding price payloads."""

    def test_hourly_payload(self) -> None:
        prices = decode_prices(day_payload(local(2025, 1, 15)), "SE3", "EUR")

        assert len(prices) == 24
        assert prices[0].date == local(2025, 1, 15)
        assert prices[13].price == pytest.approx(1.3)
        assert prices[0].currency == "EUR"
        assert prices[0].area == "SE3"

    def test_quarter_hours_are_averaged(self) -> None:
        payload = day_payload(local(2025, 1, 15), step=timedelta(minutes=15))

        prices = decode_prices(payload, "SE3", "SEK")

        assert len(prices) == 24
        assert prices[5].date == local(2025, 1, 15, 5)
        assert prices[5].price == pytest.approx(5.05)

    def test_payload_must_be_a_list(self) -> None:
        with pytest.raises(SpotPricesApiClientDecodeError, match="Expected a list"):
            decode_prices({"prices": []}, "SE3", "SEK")

    def test_missing_currency(self) -> None:
        payload = [{"time_start": local(2025, 1, 15).isoformat(), "EUR_per_kWh": 0.1}]

        with pytest.raises(SpotPricesApiClientDecodeError, match="Malformed"):
            decode_prices(payload, "SE3", "SEK")

    def test_time_without_offset(self) -> None:
        payload = [{"time_start": "2025-01-15T00:00:00", "SEK_per_kWh": 0.1}]

        with pytest.raises(SpotPricesApiClientDecodeError, match="Invalid start time"):
            decode_prices(payload, "SE3", "SEK")

    def test_unparseable_time(self) -> None:
        payload = [{"time_start": "yesterday", "SEK_per_kWh": 0.1}]

        with pytest.raises(SpotPricesApiClientDecodeError):
            decode_prices(payload, "SE3", "SEK")


class TestSpotPricesApiClient:
    """Tests for fetching and merging day prices."""

    def client(self, session: FakeSession, calendar) -> SpotPricesApiClient:
        return SpotPricesApiClient(area="SE3", currency="SEK", session=session, calendar=calendar)

    async def test_unpublished_day_is_empty(self, calendar) -> None:
        session = FakeSession()

        prices = await self.client(session, calendar).async_get_day_prices(local(2025, 1, 16).date())

        assert prices == []
        assert session.requested == [url_for(local(2025, 1, 16))]

    async def test_before_publication_only_today_is_fetched(self, calendar) -> None:
        today = local(2025, 1, 15)
        session = FakeSession({url_for(today): FakeResponse(payload=day_payload(today))})

        prices = await self.client(session, calendar).async_fetch_and_merge_prices(local(2025, 1, 15, 10))

        assert len(prices) == 24
        assert session.requested == [url_for(today)]

    async def test_after_publication_tomorrow_is_fetched(self, calendar) -> None:
        today = local(2025, 1, 15)
        tomorrow = local(2025, 1, 16)
        session = FakeSession(
            {
                url_for(today): FakeResponse(payload=day_payload(today)),
                url_for(tomorrow): FakeResponse(payload=day_payload(tomorrow)),
            }
        )

        prices = await self.client(session, calendar).async_fetch_and_merge_prices(local(2025, 1, 15, 13, 30))

        assert len(prices) == 48
        assert prices[-1].date == local(2025, 1, 16, 23)

    async def test_complete_days_are_not_fetched_again(self, calendar) -> None:
        today = local(2025, 1, 15)
        tomorrow = local(2025, 1, 16)
        session = FakeSession(
            {
                url_for(today): FakeResponse(payload=day_payload(today)),
                url_for(tomorrow): FakeResponse(payload=day_payload(tomorrow)),
            }
        )
        client = self.client(session, calendar)

        await client.async_fetch_and_merge_prices(local(2025, 1, 15, 14))
        session.requested.clear()
        prices = await client.async_fetch_and_merge_prices(local(2025, 1, 15, 15))

        assert session.requested == []
        assert len(prices) == 48

    async def test_unpublished_tomorrow_is_retried(self, calendar) -> None:
        today = local(2025, 1, 15)
        session = FakeSession({url_for(today): FakeResponse(payload=day_payload(today))})
        client = self.client(session, calendar)

        await client.async_fetch_and_merge_prices(local(2025, 1, 15, 14))
        session.requested.clear()
        await client.async_fetch_and_merge_prices(local(2025, 1, 15, 14, 10))

        assert session.requested == [url_for(local(2025, 1, 16))]

    async def test_prices_before_yesterday_are_dropped(self, calendar) -> None:
        days = [local(2025, 1, 15), local(2025, 1, 16), local(2025, 1, 17), local(2025, 1, 18)]
        session = FakeSession({url_for(day): FakeResponse(payload=day_payload(day)) for day in days})
        client = self.client(session, calendar)

        await client.async_fetch_and_merge_prices(local(2025, 1, 15, 14))
        await client.async_fetch_and_merge_prices(local(2025, 1, 17, 14))

        assert client.prices[0].date == local(2025, 1, 16)
        assert client.prices[-1].date == local(2025, 1, 18, 23)

    async def test_communication_errors_are_retried(self, calendar) -> None:
        today = local(2025, 1, 15)
        session = FakeSession(default=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(SpotPricesApiClientCommunicationError, match="after 3 attempts"):
            await self.client(session, calendar).async_get_day_prices(today.date())

        assert session.requested == [url_for(today)] * 3

    async def test_no_wait_after_the_last_attempt(self, calendar, caplog: pytest.LogCaptureFixture) -> None:
        session = FakeSession(default=aiohttp.ClientConnectionError("refused"))

        with caplog.at_level(logging.WARNING), pytest.raises(SpotPricesApiClientCommunicationError):
            await self.client(session, calendar).async_get_day_prices(local(2025, 1, 15).date())

        retries = [record for record in caplog.records if "retrying in" in record.getMessage()]
        assert len(retries) == 2
        assert len(session.requested) == 3

    async def test_timeout_is_a_communication_error(self, calendar) -> None:
        session = FakeSession(default=TimeoutError())

        with pytest.raises(SpotPricesApiClientCommunicationError):
            await self.client(session, calendar).async_get_day_prices(local(2025, 1, 15).date())

    async def test_server_error_is_a_communication_error(self, calendar) -> None:
        session = FakeSession(default=FakeResponse(status=500))

        with pytest.raises(SpotPricesApiClientCommunicationError):
            await self.client(session, calendar).async_get_day_prices(local(2025, 1, 15).date())

    async def test_invalid_json_is_not_retried(self, calendar) -> None:
        session = FakeSession(default=FakeResponse(body="<html>"))

        with pytest.raises(SpotPricesApiClientDecodeError, match="Invalid JSON"):
            await self.client(session, calendar).async_get_day_prices(local(2025, 1, 15).date())

        assert len(session.requested) == 1
