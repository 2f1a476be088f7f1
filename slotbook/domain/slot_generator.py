"""
Core logic for generating bookable slot start times.

Pure domain logic: no clock, no storage, no I/O.
"""

from datetime import date
from typing import List, Tuple

from .models import BreakSet, Interval, WeeklySchedule, format_clock

DEFAULT_INTERVAL_MINUTES = 45
DEFAULT_FALLBACK_HOURS = Interval(start=12 * 60, end=20 * 60)


class SlotGenerator:
    """
    Generates the slot start times of one calendar date.

    Algorithm:
    1. Resolve the weekday's open intervals (fallback hours if the whole
       schedule is empty)
    2. Walk each interval in fixed steps from its start
    3. Drop steps that fall inside a break
    4. Concatenate in interval order
    """

    def __init__(
        self,
        interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
        fallback_hours: Interval = DEFAULT_FALLBACK_HOURS
    ):
        if interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be greater than zero, got {interval_minutes}")
        self.interval_minutes = interval_minutes
        self.fallback_hours = fallback_hours

    def generate(
        self,
        target_date: date,
        schedule: WeeklySchedule,
        breaks: BreakSet,
        interval_minutes: int | None = None
    ) -> List[str]:
        """
        Generate slot times for a date.

        Args:
            target_date: The calendar date
            schedule: Parsed weekly opening hours
            breaks: Parsed break hours, applied to every open interval
            interval_minutes: Step override; defaults to the generator's step

        Returns:
            Ordered list of ``HH:MM`` strings

        Raises:
            ValueError: If the step override is not positive
        """
        if interval_minutes is not None and interval_minutes <= 0:
            raise ValueError(f"interval_minutes must be greater than zero, got {interval_minutes}")
        step = interval_minutes or self.interval_minutes
        slots: List[str] = []

        for interval in self.day_intervals(target_date, schedule):
            minute = interval.start
            while minute < interval.end:
                if not breaks.covers(minute):
                    slots.append(format_clock(minute))
                minute += step

        return slots

    def day_intervals(self, target_date: date, schedule: WeeklySchedule) -> Tuple[Interval, ...]:
        """
        Open intervals for a date.

        An empty schedule means "no usable hours configured" and falls back
        to the default hours every day. A non-empty schedule without
        intervals for this weekday means closed.
        """
        if schedule.is_empty():
            return (self.fallback_hours,)
        return schedule.intervals_for(target_date.weekday())
