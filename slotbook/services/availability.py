"""
Application service for listing bookable slots.

The service resolves the business record through the store, derives the
schedule from its raw text (cached on the text content only), generates
the day's slots and annotates each with capacity and lead-time state.
Nothing is kept between calls apart from the parse cache, so two listings
without a booking in between are identical.
"""

import logging
from datetime import date
from typing import List, Tuple

from ..clock import Clock, SystemClock
from ..config import AppConfig
from ..domain.break_parser import parse_breaks
from ..domain.capacity import CapacityLedger, resolve_capacity
from ..domain.hours_parser import parse_weekly_hours
from ..domain.lead_time import LeadTimeGuard
from ..domain.models import (
    BreakSet,
    Business,
    Reservation,
    Slot,
    SlotAvailability,
    WeeklySchedule,
)
from ..domain.slot_generator import SlotGenerator
from .protocols import ReservationStoreProtocol

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Orchestrates schedule parsing, slot generation and capacity lookup.
    """

    def __init__(
        self,
        store: ReservationStoreProtocol,
        slot_generator: SlotGenerator,
        lead_time_guard: LeadTimeGuard,
        clock: Clock,
    ) -> None:
        self._store = store
        self._slot_generator = slot_generator
        self._lead_time_guard = lead_time_guard
        self._clock = clock
        self._ledger = CapacityLedger(store)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: ReservationStoreProtocol,
        clock: Clock | None = None,
    ) -> "AvailabilityService":
        """Build the service with the configured slot step, fallback and lead time."""
        return cls(
            store=store,
            slot_generator=SlotGenerator(
                interval_minutes=config.booking.interval_minutes,
                fallback_hours=config.booking.get_fallback_interval(),
            ),
            lead_time_guard=LeadTimeGuard(buffer_minutes=config.booking.lead_time_minutes),
            clock=clock or SystemClock(config.timezone),
        )

    @property
    def ledger(self) -> CapacityLedger:
        return self._ledger

    @property
    def lead_time_guard(self) -> LeadTimeGuard:
        return self._lead_time_guard

    @staticmethod
    def schedule_for(business: Business) -> Tuple[WeeklySchedule, BreakSet]:
        """Parsed opening and break hours of a business."""
        return parse_weekly_hours(business.hours_text or ""), parse_breaks(business.break_text or "")

    def offered_slots(self, business: Business, target_date: date) -> List[Slot]:
        """All slots a business offers on a date, ignoring bookings and lead time."""
        schedule, breaks = self.schedule_for(business)
        return [
            Slot(business_id=business.business_id, date=target_date, time=time)
            for time in self._slot_generator.generate(target_date, schedule, breaks)
        ]

    def get_available_slots(self, business_id: str, target_date: date) -> List[SlotAvailability]:
        """
        List the day's slots with their booking state.

        Args:
            business_id: Business identifier (slug)
            target_date: Calendar date

        Returns:
            Ordered slot entries with ``full``, ``too_soon`` and remaining seats

        Raises:
            PersistenceError: If the store cannot be read
        """
        business = self._store.get_business(business_id)
        capacity = resolve_capacity(business.slot_capacity)
        counts = self._ledger.counts_for_date(business_id, target_date)
        now = self._clock.now()

        availability: List[SlotAvailability] = []
        for slot in self.offered_slots(business, target_date):
            count = counts.get(slot.time, 0)
            availability.append(SlotAvailability(
                time=slot.time,
                full=count >= capacity,
                too_soon=self._lead_time_guard.is_too_soon(slot.time, target_date, now),
                remaining=CapacityLedger.remaining(count, capacity),
            ))

        logger.debug(
            "Listed %d slots for %s on %s (capacity %d)",
            len(availability), business_id, target_date, capacity,
        )
        return availability

    def list_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        """Reservations of a day, ordered by time (owner view)."""
        return self._store.list_reservations(business_id, target_date)
