"""
Custom integration to show electricity spot prices in Home Assistant.

Prices are fetched per Swedish price area and published as a short
timeline of hourly snapshots that refreshes itself once tomorrow's
prices are available.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import Platform
from homeassistant.core import ServiceCall, callback
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.event import async_track_time_change
from homeassistant.loader import async_get_loaded_integration

from .api import SpotPricesApiClient
from .const import (
    CONF_CURRENCY,
    CONF_HIGH_PRICE_LIMIT,
    CONF_LOW_PRICE_LIMIT,
    CONF_PRICE_AREA,
    DEFAULT_CURRENCY,
    DOMAIN,
    LOGGER,
    SERVICE_REFRESH,
)
from .coordinator import SpotPricesDataUpdateCoordinator
from .data import PriceLimits, SpotPricesData
from .helpers import PriceCalendar
from .storage import RefreshStateStore
from .timeline import SpotPricesTimelineProvider

if TYPE_CHECKING:
    from datetime import datetime

    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.typing import ConfigType

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
]

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


async def async_setup(hass: HomeAssistant, _config: ConfigType) -> bool:
    """Set up the Electricity Spot Prices component and its services."""

    async def _handle_refresh(_call: ServiceCall) -> None:
        """Refresh all configured price areas."""
        for runtime_data in hass.data.get(DOMAIN, {}).values():
            await runtime_data.coordinator.async_refresh()

    hass.services.async_register(DOMAIN, SERVICE_REFRESH, _handle_refresh)
    return True


def _price_limits(entry: ConfigEntry) -> PriceLimits | None:
    """Return fixed price limits from the options, if both are set."""
    low = entry.options.get(CONF_LOW_PRICE_LIMIT)
    high = entry.options.get(CONF_HIGH_PRICE_LIMIT)
    if low is None or high is None:
        return None
    return PriceLimits(low=float(low), high=float(high))


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up this integration using UI."""
    hass.data.setdefault(DOMAIN, {})

    calendar = PriceCalendar()

    # Create API client for the configured area
    client = SpotPricesApiClient(
        area=entry.data[CONF_PRICE_AREA],
        currency=entry.options.get(CONF_CURRENCY, entry.data.get(CONF_CURRENCY, DEFAULT_CURRENCY)),
        session=async_get_clientsession(hass),
        calendar=calendar,
    )

    provider = SpotPricesTimelineProvider(
        fetch_prices=client.async_fetch_and_merge_prices,
        store=RefreshStateStore(hass, entry.entry_id),
        calendar=calendar,
        limits=_price_limits(entry),
    )

    # Create coordinator
    coordinator = SpotPricesDataUpdateCoordinator(
        hass=hass,
        provider=provider,
        config_entry=entry,
    )

    # Create runtime data
    runtime_data = SpotPricesData(
        client=client,
        coordinator=coordinator,
        integration=async_get_loaded_integration(hass, entry.domain),
        calendar=calendar,
    )

    # Store runtime data in hass.data
    hass.data[DOMAIN][entry.entry_id] = runtime_data

    # Entities switch to the next timeline entry at every full hour
    @callback
    def _handle_hour_change(_: datetime) -> None:
        """Handle a new hour."""
        LOGGER.debug("Updating entities for the new hour")
        coordinator.async_update_listeners()

    remove_hour_listener = async_track_time_change(hass, _handle_hour_change, minute=0, second=0)

    # Initial refresh, a failed cycle has already scheduled its retry
    await coordinator.async_refresh()

    # Forward the setup to each platform
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Register cleanup listeners
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    entry.async_on_unload(remove_hour_listener)

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Handle removal of an entry."""
    if not await hass.config_entries.async_unload_platforms(entry, PLATFORMS):
        return False

    # Clean up the scheduled refresh
    if DOMAIN in hass.data and entry.entry_id in hass.data[DOMAIN]:
        runtime_data = hass.data[DOMAIN].pop(entry.entry_id)
        runtime_data.coordinator.cancel_scheduled_updates()

    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Remove the stored refresh state of a deleted entry."""
    await RefreshStateStore(hass, entry.entry_id).async_remove()


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload config entry."""
    await hass.config_entries.async_reload(entry.entry_id)
