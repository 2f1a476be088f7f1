"""
Domain models for opening hours, slots and reservations.

All clock times inside the core are minutes since midnight. The string form
exchanged with callers is the zero-padded 24-hour ``HH:MM``.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

import pendulum
from pendulum import DateTime

MINUTES_PER_DAY = 24 * 60

WEEKDAY_TOKENS: Tuple[str, ...] = ("Mo", "Di", "Mi", "Do", "Fr", "Sa", "So")

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_clock(value: str) -> int:
    """
    Convert an ``H:MM`` / ``HH:MM`` string to minutes since midnight.

    ``24:00`` is accepted as the end of the day.

    Raises:
        ValueError: If the string is not a valid clock time
    """
    match = _CLOCK_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Not a clock time: '{value}'")

    hour, minute = int(match.group(1)), int(match.group(2))
    total = hour * 60 + minute
    if minute >= 60 or total > MINUTES_PER_DAY:
        raise ValueError(f"Clock time out of range: '{value}'")
    return total


def format_clock(minutes: int) -> str:
    """Convert minutes since midnight to the canonical ``HH:MM`` string."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_clock(value: str) -> str:
    """
    Return the canonical ``HH:MM`` form of a start time (``9:00`` -> ``09:00``).

    Unlike ``parse_clock``, ``24:00`` is refused: nothing can start at the end of the day.
    """
    minutes = parse_clock(value)
    if minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Not a start time: '{value}'")
    return format_clock(minutes)


def parse_iso_date(value: str) -> date:
    """
    Parse an ISO calendar date (``YYYY-MM-DD``).

    Raises:
        ValueError: If the string is not an ISO date
    """
    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
    except (AttributeError, TypeError, ValueError) as exc:
        raise ValueError(f"Not an ISO date: '{value}'") from exc


@dataclass(frozen=True)
class Interval:
    """
    Half-open span of minutes ``[start, end)`` within one day.

    Invariant: ``0 <= start < end <= 1440``.
    """
    start: int
    end: int

    def __post_init__(self):
        if not 0 <= self.start < self.end <= MINUTES_PER_DAY:
            raise ValueError(
                f"Invalid interval {self.start}-{self.end}: "
                f"expected 0 <= start < end <= {MINUTES_PER_DAY}"
            )

    @classmethod
    def from_clock(cls, start: str, end: str) -> "Interval":
        """Build an interval from two clock strings."""
        return cls(start=parse_clock(start), end=parse_clock(end))

    def contains(self, minute: int) -> bool:
        """Check whether a minute falls inside the interval (end exclusive)."""
        return self.start <= minute < self.end

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def __str__(self) -> str:
        return f"{format_clock(self.start)}-{format_clock(self.end)}"


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """
    Sort intervals and merge the ones that touch or overlap.

    Example: [12:00-15:00, 14:00-18:00, 18:00-19:00] -> [12:00-19:00]
    """
    sorted_intervals = sorted(intervals, key=lambda i: (i.start, i.end))
    if not sorted_intervals:
        return []

    merged: List[Interval] = [sorted_intervals[0]]
    for current in sorted_intervals[1:]:
        last = merged[-1]
        if current.start <= last.end:
            merged[-1] = Interval(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


@dataclass(frozen=True)
class WeeklySchedule:
    """
    Open intervals per weekday (0=Monday .. 6=Sunday).

    Invariant: every day's intervals are sorted and merged, so no two
    intervals of the same day touch or overlap.
    """
    days: Tuple[Tuple[Interval, ...], ...] = field(
        default_factory=lambda: tuple(() for _ in range(7))
    )

    def __post_init__(self):
        if len(self.days) != 7:
            raise ValueError(f"A weekly schedule needs 7 days, got {len(self.days)}")
        for weekday, intervals in enumerate(self.days):
            for previous, current in zip(intervals, intervals[1:]):
                if current.start <= previous.end:
                    raise ValueError(
                        f"Intervals for weekday {weekday} are not sorted and merged: "
                        f"{previous} / {current}"
                    )

    @classmethod
    def from_mapping(cls, mapping: Dict[int, Sequence[Interval]]) -> "WeeklySchedule":
        """Build a schedule from weekday -> intervals, sorting and merging each day."""
        return cls(days=tuple(
            tuple(merge_intervals(mapping.get(weekday, ())))
            for weekday in range(7)
        ))

    def intervals_for(self, weekday: int) -> Tuple[Interval, ...]:
        """Return the open intervals of a weekday (0=Monday)."""
        return self.days[weekday]

    def __getitem__(self, weekday: int) -> Tuple[Interval, ...]:
        return self.intervals_for(weekday)

    def is_empty(self) -> bool:
        """True when no day has any open interval."""
        return not any(self.days)

    def open_weekdays(self) -> List[int]:
        """Weekdays with at least one open interval."""
        return [weekday for weekday, intervals in enumerate(self.days) if intervals]


@dataclass(frozen=True)
class BreakSet:
    """
    Break intervals applied to every open interval of every day.

    Overlapping or duplicate entries are allowed; each is checked on its own.
    """
    intervals: Tuple[Interval, ...] = ()

    def covers(self, minute: int) -> bool:
        """Check whether a minute falls inside any break."""
        return any(interval.contains(minute) for interval in self.intervals)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self.intervals)

    def __len__(self) -> int:
        return len(self.intervals)


@dataclass(frozen=True)
class Slot:
    """A concrete bookable offering. Computed on demand, never stored."""
    business_id: str
    date: date
    time: str


@dataclass(frozen=True)
class SlotAvailability:
    """One entry of a slot listing as returned to the UI/API layer."""
    time: str
    full: bool
    too_soon: bool
    remaining: int = 0

    @property
    def bookable(self) -> bool:
        return not self.full and not self.too_soon


class BusinessType(str, Enum):
    """Kind of business; decides which guest fields are required."""
    RESTAURANT = "restaurant"
    SALON = "friseur"

    @classmethod
    def from_raw(cls, value: object) -> "BusinessType":
        """Map a stored service type to a member, defaulting to restaurant."""
        for member in cls:
            if isinstance(value, str) and value.strip().lower() == member.value:
                return member
        return cls.RESTAURANT


@dataclass
class Business:
    """
    The parts of a business record the core reads.

    ``slot_capacity`` is kept raw; see ``resolve_capacity`` for the policy.
    ``email`` is internal and never echoed back to guests.
    """
    business_id: str
    name: str = ""
    hours_text: str = ""
    break_text: str | None = None
    slot_capacity: object = None
    business_type: BusinessType = BusinessType.RESTAURANT
    email: str | None = None


@dataclass
class GuestInfo:
    """Guest-supplied booking details."""
    name: str = ""
    email: str | None = None
    phone: str | None = None
    party_size: int | None = None
    service: str | None = None
    note: str | None = None


@dataclass
class NewReservation:
    """A validated reservation row about to be written."""
    business: Business
    date: date
    time: str
    guest: GuestInfo


@dataclass
class Reservation:
    """
    A persisted reservation, restricted to guest-safe fields.
    """
    reservation_id: str
    business_id: str
    date: date
    time: str
    guest_name: str
    guest_email: str | None = None
    phone: str | None = None
    party_size: int | None = None
    service: str | None = None
    note: str | None = None
    created_at: DateTime | None = None
