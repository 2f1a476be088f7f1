"""
Parsing of break hours ("14:30-17:00, 21:00-21:30").
"""

import logging
from functools import lru_cache
from typing import List

from .hours_parser import TIME_RANGE
from .models import BreakSet, Interval, parse_clock

logger = logging.getLogger(__name__)


class BreakParser:
    """Turns comma-separated break text into a ``BreakSet``."""

    def parse(self, raw: str | None) -> BreakSet:
        """
        Parse break text. Items that do not hold a valid range are dropped.

        No merging happens; overlapping breaks are checked independently.
        """
        intervals: List[Interval] = []

        for item in (raw or "").split(","):
            item = item.strip()
            if not item:
                continue

            match = TIME_RANGE.search(item)
            if not match:
                logger.debug("Skipping break item without time range: %r", item)
                continue

            try:
                intervals.append(
                    Interval(start=parse_clock(match.group(1)), end=parse_clock(match.group(2)))
                )
            except ValueError:
                logger.debug("Skipping unusable break range: %r", item)

        return BreakSet(intervals=tuple(intervals))


@lru_cache(maxsize=256)
def parse_breaks(raw: str | None) -> BreakSet:
    """Parse break text, cached on the text content."""
    return BreakParser().parse(raw)
