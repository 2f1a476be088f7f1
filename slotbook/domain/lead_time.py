"""
Minimum notice for same-day bookings.
"""

from datetime import date, datetime

from .models import parse_clock

DEFAULT_LEAD_TIME_MINUTES = 120


class LeadTimeGuard:
    """
    Flags same-day slots that start too soon after "now".

    Only the selected date matters for the same-day check; slots on other
    dates are never too soon.
    """

    def __init__(self, buffer_minutes: int = DEFAULT_LEAD_TIME_MINUTES):
        if buffer_minutes < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {buffer_minutes}")
        self.buffer_minutes = buffer_minutes

    def earliest_minute(self, now: datetime, buffer_minutes: int | None = None) -> int:
        """First bookable minute of today, given ``now``."""
        buffer = self.buffer_minutes if buffer_minutes is None else buffer_minutes
        return now.hour * 60 + now.minute + buffer

    def is_too_soon(
        self,
        slot_time: str,
        selected_date: date,
        now: datetime,
        buffer_minutes: int | None = None
    ) -> bool:
        """
        Check whether a slot is inside the lead time.

        Args:
            slot_time: Slot start as ``HH:MM``
            selected_date: Date the slot belongs to
            now: Current time in the business's timezone
            buffer_minutes: Override for the configured buffer

        Returns:
            True if the slot is today and starts before now + buffer
        """
        if selected_date != now.date():
            return False
        return parse_clock(slot_time) < self.earliest_minute(now, buffer_minutes)
