"""Sensor platform for spot_prices."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import SensorEntity, SensorStateClass

from .const import (
    ATTR_AREA,
    ATTR_CURRENCY,
    ATTR_HIGH_LIMIT,
    ATTR_LOW_LIMIT,
    ATTR_NEXT_REFRESH,
    ATTR_PRICE_LEVEL,
    ATTR_PRICES,
    ATTR_STARTS_AT,
    DOMAIN,
)
from .entity import SpotPricesEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import SpotPricesDataUpdateCoordinator


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the sensor platform."""
    runtime_data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([SpotPricesCurrentPriceSensor(runtime_data.coordinator, runtime_data.client.currency)])


class SpotPricesCurrentPriceSensor(SpotPricesEntity, SensorEntity):
    """Price of the current hour with the day's prices as attributes."""

    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_suggested_display_precision = 2

    def __init__(self, coordinator: SpotPricesDataUpdateCoordinator, currency: str) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "current_price")
        self._attr_native_unit_of_measurement = f"{currency}/kWh"

    @property
    def available(self) -> bool:
        """Return True if there is an entry for the current hour, even after a failed refresh."""
        return self.coordinator.current_entry() is not None

    @property
    def native_value(self) -> float | None:
        """Return the price of the current hour."""
        entry = self.coordinator.current_entry()
        return entry.price_point.price if entry else None

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return the chart prices and the limits of the current entry."""
        entry = self.coordinator.current_entry()
        if entry is None:
            return None

        next_refresh = self.coordinator.next_refresh
        return {
            ATTR_AREA: entry.price_point.area,
            ATTR_CURRENCY: entry.price_point.currency,
            ATTR_STARTS_AT: entry.date.isoformat(),
            ATTR_PRICE_LEVEL: entry.level.value,
            ATTR_LOW_LIMIT: entry.limits.low,
            ATTR_HIGH_LIMIT: entry.limits.high,
            ATTR_PRICES: [{"starts_at": price.date.isoformat(), "price": price.price} for price in entry.prices],
            ATTR_NEXT_REFRESH: next_refresh.isoformat() if next_refresh else None,
        }
