"""
Booking submission: validate, re-check capacity, insert.

States::

    VALIDATING -> CAPACITY_CHECKING -> INSERTING -> COMMITTED
         |                |                |
         v                v                v
      REJECTED        SLOT_FULL         REJECTED

The capacity re-check and the insert are two separate store calls. Two
requests racing for the last seat can both pass the check, so a slot can
end up over capacity by the number of concurrent racers. No in-process lock
is taken; the count is always re-read at submission time and never reused
from an earlier listing.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict

from ..clock import Clock, SystemClock
from ..config import AppConfig
from ..domain.capacity import resolve_capacity
from ..domain.exceptions import BookingValidationError, BusinessNotFoundError, PersistenceError
from ..domain.models import (
    Business,
    BusinessType,
    GuestInfo,
    NewReservation,
    Reservation,
    normalize_clock,
    parse_iso_date,
)
from .availability import AvailabilityService
from .protocols import ReservationStoreProtocol

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class BookingState(str, Enum):
    VALIDATING = "validating"
    CAPACITY_CHECKING = "capacity_checking"
    INSERTING = "inserting"
    COMMITTED = "committed"
    SLOT_FULL = "slot_full"
    REJECTED = "rejected"


@dataclass
class BookingResult:
    """
    Outcome of a booking submission.

    ``errors`` is filled for input problems ("fix this field");
    ``SLOT_FULL`` means "pick another time"; ``reason == "persistence"``
    means the store failed and ``retryable`` carries its classification.
    """
    status: BookingState
    reservation: Reservation | None = None
    errors: Dict[str, str] = field(default_factory=dict)
    reason: str | None = None
    retryable: bool = False

    @classmethod
    def committed(cls, reservation: Reservation) -> "BookingResult":
        return cls(status=BookingState.COMMITTED, reservation=reservation)

    @classmethod
    def slot_full(cls) -> "BookingResult":
        return cls(status=BookingState.SLOT_FULL, reason="slot_full")

    @classmethod
    def invalid(cls, errors: Dict[str, str]) -> "BookingResult":
        return cls(status=BookingState.REJECTED, errors=dict(errors), reason="validation")

    @classmethod
    def failed(cls, exc: PersistenceError) -> "BookingResult":
        return cls(status=BookingState.REJECTED, reason="persistence", retryable=exc.retryable)

    @property
    def is_committed(self) -> bool:
        return self.status is BookingState.COMMITTED

    @property
    def is_slot_full(self) -> bool:
        return self.status is BookingState.SLOT_FULL

    @property
    def is_rejected(self) -> bool:
        return self.status is BookingState.REJECTED


class BookingCoordinator:
    """
    Single authoritative path for committing a reservation.

    Capacity default and clamp, the schedule and the lead time are applied
    here with the same rules the slot listing uses.
    """

    def __init__(
        self,
        store: ReservationStoreProtocol,
        availability: AvailabilityService,
        clock: Clock,
        enforce_lead_time: bool = True,
        enforce_schedule: bool = True,
        require_guest_contact: bool = False,
    ) -> None:
        self._store = store
        self._availability = availability
        self._clock = clock
        self.enforce_lead_time = enforce_lead_time
        self.enforce_schedule = enforce_schedule
        self.require_guest_contact = require_guest_contact

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        store: ReservationStoreProtocol,
        clock: Clock | None = None,
    ) -> "BookingCoordinator":
        """Build the coordinator and its availability service from configuration."""
        clock = clock or SystemClock(config.timezone)
        return cls(
            store=store,
            availability=AvailabilityService.from_config(config, store, clock),
            clock=clock,
            enforce_lead_time=config.booking.enforce_lead_time,
            enforce_schedule=config.booking.enforce_schedule,
            require_guest_contact=config.booking.require_guest_contact,
        )

    def submit_booking(
        self,
        business_id: str,
        target_date: date | str,
        time: str,
        guest: GuestInfo,
    ) -> BookingResult:
        """
        Validate and commit a reservation.

        Never retries: a timed-out insert may have landed, and a retry
        could double-book.

        Returns:
            BookingResult in state COMMITTED, SLOT_FULL or REJECTED
        """
        state = BookingState.VALIDATING
        try:
            business = self._store.get_business(business_id)
            record = self._validate(business, target_date, time, guest)

            state = BookingState.CAPACITY_CHECKING
            capacity = resolve_capacity(business.slot_capacity)
            count = self._availability.ledger.count_for(business_id, record.date, record.time)
            if count >= capacity:
                logger.info(
                    "Slot full for %s on %s at %s (%d/%d)",
                    business_id, record.date, record.time, count, capacity,
                )
                return BookingResult.slot_full()

            state = BookingState.INSERTING
            reservation = self._store.insert_reservation(record)

        except BusinessNotFoundError as exc:
            logger.info("Booking rejected: %s", exc)
            return BookingResult.invalid({"business_id": "unknown business"})

        except BookingValidationError as exc:
            logger.info("Booking rejected for %s: %s", business_id, exc)
            return BookingResult.invalid(exc.errors)

        except PersistenceError as exc:
            logger.warning(
                "Booking for %s rejected during %s: %s (retryable=%s)",
                business_id, state.value, exc, exc.retryable,
            )
            return BookingResult.failed(exc)

        logger.info(
            "Reservation %s committed for %s on %s at %s",
            reservation.reservation_id, business_id, reservation.date, reservation.time,
        )
        return BookingResult.committed(reservation)

    def _validate(
        self,
        business: Business,
        target_date: date | str,
        time: str,
        guest: GuestInfo,
    ) -> NewReservation:
        """
        Check the input and build the record to insert.

        Raises:
            BookingValidationError: With one message per offending field
        """
        errors: Dict[str, str] = {}

        parsed_date: date | None = None
        if isinstance(target_date, datetime):
            parsed_date = target_date.date()
        elif isinstance(target_date, date):
            parsed_date = target_date
        elif not target_date:
            errors["date"] = "required"
        else:
            try:
                parsed_date = parse_iso_date(target_date)
            except ValueError:
                errors["date"] = "must be an ISO date (YYYY-MM-DD)"

        canonical_time: str | None = None
        if not time:
            errors["time"] = "required"
        else:
            try:
                canonical_time = normalize_clock(time)
            except ValueError:
                errors["time"] = "must be a time like HH:MM"

        guest, guest_errors = self._clean_guest(business, guest)
        errors.update(guest_errors)

        if parsed_date is not None and canonical_time is not None:
            errors.update(self._check_timing(business, parsed_date, canonical_time))

        if errors:
            raise BookingValidationError(errors)

        return NewReservation(business=business, date=parsed_date, time=canonical_time, guest=guest)

    def _clean_guest(self, business: Business, guest: GuestInfo):
        errors: Dict[str, str] = {}

        def clean(value):
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        cleaned = replace(
            guest,
            name=clean(guest.name) or "",
            email=clean(guest.email),
            phone=clean(guest.phone),
            service=clean(guest.service),
            note=clean(guest.note),
        )

        if not cleaned.name:
            errors["name"] = "required"

        if cleaned.email and not EMAIL_PATTERN.match(cleaned.email):
            errors["email"] = "invalid email address"

        if cleaned.phone and not any(char.isdigit() for char in cleaned.phone):
            errors["phone"] = "invalid phone number"

        if self.require_guest_contact and not (cleaned.email or cleaned.phone):
            errors["contact"] = "email or phone required"

        if business.business_type is BusinessType.SALON:
            if not cleaned.service:
                errors["service"] = "required"
            cleaned.party_size = 1
        else:
            if cleaned.party_size is None:
                errors["party_size"] = "required"
            elif isinstance(cleaned.party_size, bool) or not isinstance(cleaned.party_size, int):
                errors["party_size"] = "must be a whole number"
            elif cleaned.party_size < 1:
                errors["party_size"] = "must be at least 1"

        return cleaned, errors

    def _check_timing(self, business: Business, target_date: date, time: str) -> Dict[str, str]:
        errors: Dict[str, str] = {}

        if self.enforce_schedule:
            offered = {slot.time for slot in self._availability.offered_slots(business, target_date)}
            if time not in offered:
                errors["time"] = "not an offered slot on this date"
                return errors

        if self.enforce_lead_time:
            now = self._clock.now()
            if target_date < now.date():
                errors["date"] = "lies in the past"
            elif self._availability.lead_time_guard.is_too_soon(time, target_date, now):
                errors["time"] = "too short notice for a booking today"

        return errors
