"""DataUpdateCoordinator for spot_prices."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Final

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_track_point_in_time
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from .api import SpotPricesApiClientCommunicationError
from .const import DOMAIN, LOGGER
from .data import Timeline

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .data import TimelineEntry
    from .timeline import SpotPricesTimelineProvider

# Never schedule a reload closer than this to avoid tight loops
MIN_RELOAD_DELAY: Final = timedelta(seconds=5)


# https://developers.home-assistant.io/docs/integration_fetching_data#coordinated-single-api-poll-for-data-for-all-entities
class SpotPricesDataUpdateCoordinator(DataUpdateCoordinator[Timeline]):
    """Class running refresh cycles and scheduling the next one from their reload decision."""

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        provider: SpotPricesTimelineProvider,
        **kwargs: Any,
    ) -> None:
        """Initialize coordinator without a fixed update interval."""
        # Reloads are scheduled from each timeline's decision instead
        kwargs["update_interval"] = None

        super().__init__(
            hass=hass,
            logger=LOGGER,
            name=DOMAIN,
            **kwargs,
        )
        self.provider = provider
        self.last_timeline: Timeline | None = None
        self.next_refresh: datetime | None = None
        self.snapshot: TimelineEntry | None = None
        self._unsub_reload: CALLBACK_TYPE | None = None

    async def _async_update_data(self) -> Timeline:
        """Run one refresh cycle and schedule the next one."""
        now = dt_util.now()
        timeline = await self.provider.async_get_timeline(now)
        self.last_timeline = timeline
        self._schedule_next_refresh(timeline, now)

        if timeline.failed:
            # An unreachable source cannot provide a snapshot either
            if not isinstance(timeline.error, SpotPricesApiClientCommunicationError):
                self.snapshot = await self.provider.async_get_snapshot(now)
            msg = f"Could not provide a price timeline: {timeline.error}"
            raise UpdateFailed(msg) from timeline.error

        self.snapshot = None
        return timeline

    @callback
    def _schedule_next_refresh(self, timeline: Timeline, now: datetime) -> None:
        """Translate the reload decision into a point in time refresh."""
        self.cancel_scheduled_updates()

        next_refresh = timeline.next_refresh()
        if next_refresh is None:
            LOGGER.warning("Timeline has no reload time, waiting for a manual refresh")
            self.next_refresh = None
            return

        next_refresh = max(next_refresh, now + MIN_RELOAD_DELAY)
        self.next_refresh = next_refresh
        LOGGER.debug(
            "Scheduling next refresh at %s (%s)",
            next_refresh.isoformat(),
            timeline.decision.describe(),
        )
        self._unsub_reload = async_track_point_in_time(self.hass, self._handle_scheduled_refresh, next_refresh)

    async def _handle_scheduled_refresh(self, _now: datetime) -> None:
        """Handle the scheduled refresh."""
        self._unsub_reload = None
        await self.async_refresh()

    def cancel_scheduled_updates(self) -> None:
        """Cancel the scheduled refresh."""
        if self._unsub_reload is not None:
            self._unsub_reload()
            self._unsub_reload = None

    def current_entry(self) -> TimelineEntry | None:
        """Return the timeline entry valid right now, falling back to the snapshot of a failed cycle."""
        now = dt_util.now()
        if self.data is not None:
            entry = self.data.entry_at(now)
            if entry is not None:
                return entry
        if self.snapshot is not None and self.snapshot.price_point.date_utc <= now < self.snapshot.valid_until:
            return self.snapshot
        return None
