"""
Clock abstraction so lead-time checks can be tested with a fixed "now".
"""

from typing import Protocol

import pendulum
from pendulum import DateTime


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> DateTime:
        """Return the current, timezone-aware time."""


class SystemClock:
    """Wall clock in the business's timezone."""

    def __init__(self, timezone: str = "Europe/Berlin"):
        self.timezone = timezone

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)
