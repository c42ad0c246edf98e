"""Adds config flow for Electricity Spot Prices."""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry, ConfigFlow, ConfigFlowResult, OptionsFlow
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.util import dt as dt_util

from .api import (
    SpotPricesApiClient,
    SpotPricesApiClientCommunicationError,
    SpotPricesApiClientDecodeError,
    SpotPricesApiClientError,
)
from .const import (
    CONF_CURRENCY,
    CONF_HIGH_PRICE_LIMIT,
    CONF_LOW_PRICE_LIMIT,
    CONF_PRICE_AREA,
    CURRENCIES,
    DEFAULT_CURRENCY,
    DEFAULT_PRICE_AREA,
    DOMAIN,
    PRICE_AREAS,
)
from .helpers import PriceCalendar


async def validate_price_area(hass: HomeAssistant, area: str, currency: str) -> int:
    """Validate the price area by fetching today's prices, returning their count."""
    calendar = PriceCalendar()
    client = SpotPricesApiClient(
        area=area,
        currency=currency,
        session=async_get_clientsession(hass),
        calendar=calendar,
    )
    prices = await client.async_get_day_prices(calendar.as_local(dt_util.now()).date())
    return len(prices)


def _select(options: list[str]) -> selector.SelectSelector:
    return selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=[selector.SelectOptionDict(value=option, label=option) for option in options],
            mode=selector.SelectSelectorMode.DROPDOWN,
        )
    )


class SpotPricesConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Electricity Spot Prices."""

    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Handle the initial step."""
        errors = {}

        if user_input is not None:
            area = user_input[CONF_PRICE_AREA]

            # One entry per price area
            await self.async_set_unique_id(area)
            self._abort_if_unique_id_configured()

            try:
                price_count = await validate_price_area(self.hass, area, user_input[CONF_CURRENCY])
            except SpotPricesApiClientCommunicationError:
                errors["base"] = "connection"
            except SpotPricesApiClientDecodeError:
                errors["base"] = "invalid_response"
            except SpotPricesApiClientError:
                errors["base"] = "unknown"
            else:
                if price_count == 0:
                    errors["base"] = "no_prices"
                else:
                    return self.async_create_entry(
                        title=area,
                        data={CONF_PRICE_AREA: area},
                        options={CONF_CURRENCY: user_input[CONF_CURRENCY]},
                    )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_PRICE_AREA, default=DEFAULT_PRICE_AREA): _select(PRICE_AREAS),
                    vol.Required(CONF_CURRENCY, default=DEFAULT_CURRENCY): _select(CURRENCIES),
                }
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> OptionsFlow:
        """Get the options flow for this handler."""
        return SpotPricesOptionsFlow()


class SpotPricesOptionsFlow(OptionsFlow):
    """Handle options for the Electricity Spot Prices integration."""

    async def async_step_init(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        """Handle options flow."""
        errors = {}

        if user_input is not None:
            low = user_input.get(CONF_LOW_PRICE_LIMIT)
            high = user_input.get(CONF_HIGH_PRICE_LIMIT)
            if (low is None) != (high is None):
                errors["base"] = "incomplete_limits"
            elif low is not None and high is not None and low > high:
                errors["base"] = "invalid_limits"
            else:
                return self.async_create_entry(title="", data=user_input)

        options = self.config_entry.options
        limit_selector = selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=-10,
                max=100,
                step=0.01,
                mode=selector.NumberSelectorMode.BOX,
            )
        )

        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_CURRENCY, default=options.get(CONF_CURRENCY, DEFAULT_CURRENCY)): _select(
                        CURRENCIES
                    ),
                    vol.Optional(
                        CONF_LOW_PRICE_LIMIT,
                        description={"suggested_value": options.get(CONF_LOW_PRICE_LIMIT)},
                    ): limit_selector,
                    vol.Optional(
                        CONF_HIGH_PRICE_LIMIT,
                        description={"suggested_value": options.get(CONF_HIGH_PRICE_LIMIT)},
                    ): limit_selector,
                }
            ),
            errors=errors,
        )
