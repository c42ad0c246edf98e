"""Persistent storage of the refresh backoff counters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.storage import Store

from .const import DOMAIN, LOGGER, STORAGE_VERSION
from .data import RefreshState

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class RefreshStateStore:
    """Load and save RefreshState in Home Assistant storage."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        """Initialize the store for one config entry."""
        self._store: Store[dict[str, int]] = Store(hass, STORAGE_VERSION, f"{DOMAIN}.{entry_id}.refresh_state")

    async def async_load(self) -> RefreshState:
        """Load the counters, starting from zero when nothing is stored."""
        stored_data = await self._store.async_load()
        if stored_data is None:
            LOGGER.debug("No stored refresh state, starting with zero counters")
        return RefreshState.from_dict(stored_data)

    async def async_save(self, state: RefreshState) -> None:
        """Save the counters."""
        await self._store.async_save(state.as_dict())

    async def async_remove(self) -> None:
        """Remove the stored counters."""
        await self._store.async_remove()
