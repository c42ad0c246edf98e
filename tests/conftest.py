"""Shared test fixtures for the Electricity Spot Prices integration."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from custom_components.spot_prices.data import PricePoint, RefreshState
from custom_components.spot_prices.helpers import PriceCalendar

STOCKHOLM = ZoneInfo("Europe/Stockholm")


def local(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Return a Stockholm local datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=STOCKHOLM)


def hourly_prices(start: datetime, count: int, area: str = "SE3", currency: str = "SEK") -> list[PricePoint]:
    """Return count ascending hourly prices starting at start, priced by their index."""
    return [
        PricePoint(date=start + timedelta(hours=index), price=float(index), currency=currency, area=area)
        for index in range(count)
    ]


class FakeRefreshStateStore:
    """In-memory replacement of RefreshStateStore recording every call."""

    def __init__(self, state: RefreshState | None = None) -> None:
        self.state = state or RefreshState()
        self.saved: list[RefreshState] = []
        self.calls: list[str] = []

    async def async_load(self) -> RefreshState:
        self.calls.append("load")
        return self.state

    async def async_save(self, state: RefreshState) -> None:
        self.calls.append("save")
        self.saved.append(state)
        self.state = state


@pytest.fixture
def calendar() -> PriceCalendar:
    """Return a calendar for the Swedish price areas."""
    return PriceCalendar(STOCKHOLM)


@pytest.fixture
def store() -> FakeRefreshStateStore:
    """Return an empty in-memory refresh state store."""
    return FakeRefreshStateStore()
