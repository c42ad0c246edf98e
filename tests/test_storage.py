"""Tests for the persisted refresh counters."""

from typing import Any

import pytest

from custom_components.spot_prices import storage
from custom_components.spot_prices.data import RefreshState
from custom_components.spot_prices.storage import RefreshStateStore


class FakeStore:
    """In-memory stand-in for Home Assistant's Store."""

    instances: list["FakeStore"] = []

    def __init__(self, hass: Any, version: int, key: str) -> None:
        self.version = version
        self.key = key
        self.data: Any = None
        self.removed = False
        FakeStore.instances.append(self)

    async def async_load(self) -> Any:
        return self.data

    async def async_save(self, data: Any) -> None:
        self.data = data

    async def async_remove(self) -> None:
        self.removed = True
        self.data = None


@pytest.fixture
def fake_store(monkeypatch: pytest.MonkeyPatch) -> type[FakeStore]:
    FakeStore.instances = []
    monkeypatch.setattr(storage, "Store", FakeStore)
    return FakeStore


class TestRefreshStateStore:
    """Tests for loading and saving the counters."""

    async def test_key_is_per_entry(self, fake_store) -> None:
        RefreshStateStore(hass=None, entry_id="abc123")

        assert fake_store.instances[0].key == "spot_prices.abc123.refresh_state"
        assert fake_store.instances[0].version == 1

    async def test_nothing_stored_loads_zero_counters(self, fake_store) -> None:
        assert await RefreshStateStore(hass=None, entry_id="abc").async_load() == RefreshState()

    async def test_saved_counters_load_again(self, fake_store) -> None:
        store = RefreshStateStore(hass=None, entry_id="abc")

        await store.async_save(RefreshState(failure_count=2, tomorrow_attempt_count=1))

        assert fake_store.instances[0].data == {"failure_count": 2, "tomorrow_attempt_count": 1}
        assert await store.async_load() == RefreshState(failure_count=2, tomorrow_attempt_count=1)

    async def test_remove(self, fake_store) -> None:
        store = RefreshStateStore(hass=None, entry_id="abc")
        await store.async_save(RefreshState(failure_count=1))

        await store.async_remove()

        assert fake_store.instances[0].removed
        assert await store.async_load() == RefreshState()
