"""Time zone aware calendar operations used to slice price series."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta, tzinfo

from homeassistant.util import dt as dt_util


class PriceCalendar:
    """
    Calendar capability for the configured region.

    All answers are given in the calendar's time zone, regardless of the
    time zone the instants were created in.
    """

    def __init__(self, time_zone: tzinfo | None = None) -> None:
        """Initialize the calendar, defaulting to Home Assistant's time zone."""
        self.time_zone = time_zone or dt_util.get_default_time_zone()

    def as_local(self, instant: datetime) -> datetime:
        """Convert an instant to the calendar's time zone."""
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.time_zone)
        return instant.astimezone(self.time_zone)

    def start_of_hour(self, instant: datetime) -> datetime:
        """Return the start of the hour containing the instant."""
        return self.as_local(instant).replace(minute=0, second=0, microsecond=0)

    def start_of_day(self, instant: datetime) -> datetime:
        """Return local midnight of the day containing the instant."""
        return self._midnight(self.as_local(instant).date())

    def start_of_next_day(self, instant: datetime) -> datetime:
        """Return local midnight of the day after the one containing the instant."""
        return self._midnight(self.as_local(instant).date() + timedelta(days=1))

    def is_same_day(self, first: datetime, second: datetime) -> bool:
        """Check whether both instants fall on the same local calendar day."""
        return self.as_local(first).date() == self.as_local(second).date()

    def is_in_tomorrow(self, instant: datetime, relative_to: datetime) -> bool:
        """Check whether the instant falls on the day after relative_to."""
        tomorrow = self.as_local(relative_to).date() + timedelta(days=1)
        return self.as_local(instant).date() == tomorrow

    def start_of_date(self, day: date) -> datetime:
        """Return local midnight of a calendar date."""
        return self._midnight(day)

    def hours_in_day(self, day: date) -> int:
        """Return the number of hours in a local day (23 or 25 on DST transitions)."""
        start = self._midnight(day).astimezone(UTC)
        end = self._midnight(day + timedelta(days=1)).astimezone(UTC)
        return round((end - start).total_seconds() / 3600)

    def _midnight(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.time_zone)
