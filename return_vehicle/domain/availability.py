"""
Vehicle availability rules.

Two independent checks:

* **Booking gate** -- a vehicle accepts bookings only while both its
  ``is_active`` and ``is_available`` flags are set, and no confirmed or
  started booking for it is scheduled within the conflict window
  (default +/- 2 h, inclusive at both ends).  The window is a fixed
  turnaround buffer, not a route-aware estimate.
* **Opening hours** -- weekday and local ``HH:MM`` of the instant must fall
  inside the vehicle's weekly schedule.  Used for listings and the
  availability endpoint; booking creation does not enforce it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from .clock import ensure_utc
from .enums import WEEKDAYS, Weekday

DEFAULT_CONFLICT_WINDOW = timedelta(hours=2)


@dataclass(frozen=True)
class VehicleAvailability:
    is_active: bool = True
    is_available: bool = True
    available_days: tuple[Weekday, ...] = field(default_factory=lambda: WEEKDAYS)
    hours_start: str = "06:00"
    hours_end: str = "22:00"

    def accepts_bookings(self) -> bool:
        return self.is_active and self.is_available

    def is_open_at(self, instant: datetime, tz: str = "UTC") -> bool:
        """Weekday + time-of-day check (``HH:MM`` strings compared lexically)."""
        local = ensure_utc(instant).astimezone(ZoneInfo(tz))
        day = WEEKDAYS[local.weekday()]
        time_of_day = local.strftime("%H:%M")

        day_ok = day in {Weekday(d) for d in self.available_days}
        time_ok = self.hours_start <= time_of_day <= self.hours_end
        return day_ok and time_ok


def conflict_window(
    scheduled_at: datetime, window: timedelta = DEFAULT_CONFLICT_WINDOW
) -> tuple[datetime, datetime]:
    """Inclusive ``[t - window, t + window]`` range for the conflict query."""
    at = ensure_utc(scheduled_at)
    return at - window, at + window

