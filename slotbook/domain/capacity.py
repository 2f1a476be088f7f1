"""
Per-slot capacity policy and reservation counting.
"""

import math
from datetime import date
from typing import Dict, Protocol

DEFAULT_CAPACITY = 3
MIN_CAPACITY = 1
MAX_CAPACITY = 3


def resolve_capacity(raw: object) -> int:
    """
    Resolve a business's configured slot capacity.

    Missing or non-numeric values fall back to the default; numeric values
    are clamped to ``[MIN_CAPACITY, MAX_CAPACITY]``.
    """
    if raw is None or isinstance(raw, bool):
        return DEFAULT_CAPACITY

    try:
        value = float(str(raw).strip())
    except ValueError:
        return DEFAULT_CAPACITY

    if math.isnan(value):
        return DEFAULT_CAPACITY

    return int(max(MIN_CAPACITY, min(MAX_CAPACITY, value)))


class ReservationCounter(Protocol):
    """The counting half of the reservation store."""

    def count_reservations(self, business_id: str, target_date: date, time: str) -> int:
        """Return the number of reservations at one exact slot."""

    def count_reservations_by_time(self, business_id: str, target_date: date) -> Dict[str, int]:
        """Return reservation counts per ``HH:MM`` for one date."""


class CapacityLedger:
    """
    Answers "how many reservations" and "is this slot full".

    Counts are read live from the store on every call; nothing is cached.
    Times must already be in canonical ``HH:MM`` form, matching is exact.
    """

    def __init__(self, store: ReservationCounter):
        self._store = store

    def count_for(self, business_id: str, target_date: date, time: str) -> int:
        """Current number of reservations for the exact slot."""
        return self._store.count_reservations(business_id, target_date, time)

    def is_full(self, business_id: str, target_date: date, time: str, capacity: int) -> bool:
        """True if the slot has reached ``capacity``."""
        return self.count_for(business_id, target_date, time) >= capacity

    def counts_for_date(self, business_id: str, target_date: date) -> Dict[str, int]:
        """Reservation counts of every booked time on a date, in one query."""
        return dict(self._store.count_reservations_by_time(business_id, target_date))

    @staticmethod
    def remaining(count: int, capacity: int) -> int:
        """Seats left in a slot, never negative."""
        return max(capacity - count, 0)
