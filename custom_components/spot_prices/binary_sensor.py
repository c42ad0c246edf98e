"""Binary sensor platform for spot_prices."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.binary_sensor import BinarySensorEntity

from .const import DOMAIN
from .data import RefreshAtEnd
from .entity import SpotPricesEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the binary_sensor platform."""
    runtime_data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([SpotPricesTomorrowAvailableBinarySensor(runtime_data.coordinator, "tomorrow_available")])


class SpotPricesTomorrowAvailableBinarySensor(SpotPricesEntity, BinarySensorEntity):
    """On when the timeline reaches into tomorrow."""

    @property
    def is_on(self) -> bool | None:
        """Return True if tomorrow's prices are part of the timeline."""
        if self.coordinator.data is None:
            return None
        return isinstance(self.coordinator.data.decision, RefreshAtEnd)
