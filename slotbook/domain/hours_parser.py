"""
Parsing of free-text weekly opening hours.

Accepted input is a list of segments separated by newlines or semicolons:

    Mo-Fr 12:00-15:00, 17:30-22:00
    Sa, So 11:00–23:00

A segment may start with day tokens (``Mo Di Mi Do Fr Sa So``), either as a
list or as a range that may wrap over the weekend (``Fr-Mo``). Without day
tokens the ranges apply to all seven days. Broken ranges are skipped; parsing
never fails as a whole.
"""

import logging
import re
from functools import lru_cache
from typing import Dict, List, Set

from .models import WEEKDAY_TOKENS, Interval, WeeklySchedule, parse_clock

logger = logging.getLogger(__name__)

_DAY = "|".join(WEEKDAY_TOKENS)

SEGMENT_SEPARATOR = re.compile(r"[\n;]+")
TIME_RANGE = re.compile(r"(\d{1,2}:\d{2})\s*[–-]\s*(\d{1,2}:\d{2})")
DAY_RANGE = re.compile(rf"\b({_DAY})\b\.?\s*[–-]\s*\b({_DAY})\b\.?", re.IGNORECASE)
DAY_TOKEN = re.compile(rf"\b({_DAY})\b", re.IGNORECASE)

ALL_DAYS = frozenset(range(7))


def _weekday_index(token: str) -> int:
    return [t.lower() for t in WEEKDAY_TOKENS].index(token.lower())


class HoursParser:
    """
    Turns weekly-hours text into a ``WeeklySchedule`` and back.

    The parser is stateless; use ``parse_weekly_hours`` when the same text
    is parsed repeatedly.
    """

    def parse(self, raw: str | None) -> WeeklySchedule:
        """
        Parse weekly-hours text.

        Args:
            raw: Free-text opening hours

        Returns:
            WeeklySchedule, empty if nothing usable was found
        """
        collected: Dict[int, List[Interval]] = {weekday: [] for weekday in range(7)}

        for segment in SEGMENT_SEPARATOR.split(raw or ""):
            segment = segment.strip()
            if not segment:
                continue

            ranges = list(TIME_RANGE.finditer(segment))
            if not ranges:
                logger.debug("Skipping hours segment without time range: %r", segment)
                continue

            target_days = self._parse_days(segment[:ranges[0].start()])

            for match in ranges:
                interval = self._parse_range(match.group(1), match.group(2))
                if interval is None:
                    logger.debug("Skipping unusable time range %r in %r", match.group(0), segment)
                    continue
                for weekday in target_days:
                    collected[weekday].append(interval)

        return WeeklySchedule.from_mapping(collected)

    def serialize(self, schedule: WeeklySchedule) -> str:
        """
        Render a schedule in the canonical text form.

        Days with identical hours are grouped, runs of three or more days are
        written as ranges. Parsing the result yields the same schedule.
        """
        groups: Dict[tuple, List[int]] = {}
        for weekday in range(7):
            intervals = schedule.intervals_for(weekday)
            if intervals:
                groups.setdefault(intervals, []).append(weekday)

        if len(groups) == 1:
            intervals, weekdays = next(iter(groups.items()))
            if len(weekdays) == 7:
                return self._format_intervals(intervals)

        lines = [
            f"{self._format_days(weekdays)} {self._format_intervals(intervals)}"
            for intervals, weekdays in sorted(groups.items(), key=lambda item: item[1][0])
        ]
        return "\n".join(lines)

    @staticmethod
    def _parse_range(start: str, end: str) -> Interval | None:
        try:
            return Interval(start=parse_clock(start), end=parse_clock(end))
        except ValueError:
            return None

    @staticmethod
    def _parse_days(prefix: str) -> Set[int]:
        """
        Resolve the day tokens in front of the first time range.

        Ranges are inclusive and wrap across the week boundary.
        """
        days: Set[int] = set()

        for match in DAY_RANGE.finditer(prefix):
            first = _weekday_index(match.group(1))
            last = _weekday_index(match.group(2))
            span = (last - first) % 7
            days.update((first + offset) % 7 for offset in range(span + 1))

        remainder = DAY_RANGE.sub(" ", prefix)
        days.update(_weekday_index(match.group(1)) for match in DAY_TOKEN.finditer(remainder))

        return days or set(ALL_DAYS)

    @staticmethod
    def _format_intervals(intervals) -> str:
        return ", ".join(str(interval) for interval in intervals)

    @staticmethod
    def _format_days(weekdays: List[int]) -> str:
        runs: List[List[int]] = []
        for weekday in weekdays:
            if runs and runs[-1][-1] == weekday - 1:
                runs[-1].append(weekday)
            else:
                runs.append([weekday])

        parts: List[str] = []
        for run in runs:
            if len(run) >= 3:
                parts.append(f"{WEEKDAY_TOKENS[run[0]]}-{WEEKDAY_TOKENS[run[-1]]}")
            else:
                parts.extend(WEEKDAY_TOKENS[weekday] for weekday in run)
        return ", ".join(parts)


@lru_cache(maxsize=256)
def parse_weekly_hours(raw: str | None) -> WeeklySchedule:
    """Parse weekly hours, cached on the text content (results are immutable)."""
    return HoursParser().parse(raw)


def parse_single_range(raw: str) -> Interval:
    """
    Parse exactly one ``H:MM-H:MM`` range.

    Raises:
        ValueError: If the text does not hold exactly one valid range
    """
    matches = TIME_RANGE.findall(raw or "")
    if len(matches) != 1:
        raise ValueError(f"Expected a single time range like '12:00-20:00', got '{raw}'")
    start, end = matches[0]
    return Interval(start=parse_clock(start), end=parse_clock(end))
