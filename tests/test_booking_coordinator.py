"""
Tests for the BookingCoordinator submission flow.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pendulum
import pytest

from slotbook.adapters.memory_store import InMemoryReservationStore
from slotbook.config import AppConfig, BookingDefaults
from slotbook.domain.exceptions import PersistenceError
from slotbook.domain.models import GuestInfo, NewReservation
from slotbook.services.booking import BookingCoordinator, BookingState

from conftest import TZ, FixedClock, make_restaurant, seed_reservations

DAY = pendulum.date(2024, 5, 1)


def _coordinator(store, clock, **booking) -> BookingCoordinator:
    config = AppConfig(booking=BookingDefaults(**booking))
    return BookingCoordinator.from_config(config, store, clock)


def _guest(**overrides) -> GuestInfo:
    values = dict(name="Anna", email="anna@example.com", phone="+49 170 123456", party_size=2)
    values.update(overrides)
    return GuestInfo(**values)


class TestSubmitBooking:
    """Tests for the happy path and the capacity check."""

    def test_commit(self, store, clock):
        """Test that a valid booking is stored and returned."""
        coordinator = _coordinator(store, clock)

        result = coordinator.submit_booking("luigi", "2024-05-01", "18:00", _guest(note="Fensterplatz"))

        assert result.is_committed
        assert result.status is BookingState.COMMITTED
        assert result.reservation.time == "18:00"
        assert result.reservation.date == DAY
        assert result.reservation.note == "Fensterplatz"
        assert store.count_reservations("luigi", DAY, "18:00") == 1

    def test_time_is_normalized(self, store, clock):
        """Test that a single digit hour is stored zero padded."""
        business = make_restaurant(hours_text="09:00-12:00")
        store.add_business(business)
        coordinator = _coordinator(store, clock)

        result = coordinator.submit_booking("luigi", DAY, "9:00", _guest())

        assert result.is_committed
        assert result.reservation.time == "09:00"

    def test_slot_full_does_not_insert(self, store, restaurant, clock):
        """Test that a full slot is refused before any write."""
        seed_reservations(store, restaurant, DAY, "18:00", 3)
        coordinator = _coordinator(store, clock)

        result = coordinator.submit_booking("luigi", DAY, "18:00", _guest())

        assert result.is_slot_full
        assert result.reason == "slot_full"
        assert result.reservation is None
        assert store.count_reservations("luigi", DAY, "18:00") == 3

    def test_full_check_uses_clamped_capacity(self, clock):
        """Test that the booking path applies the same clamp as the listing."""
        business = make_restaurant(slot_capacity=0)
        store = InMemoryReservationStore([business])
        seed_reservations(store, business, DAY, "18:00", 1)
        coordinator = _coordinator(store, clock)

        assert coordinator.submit_booking("luigi", DAY, "18:00", _guest()).is_slot_full
        assert coordinator.submit_booking("luigi", DAY, "18:45", _guest()).is_committed

    def test_count_is_reread_after_listing(self, store, restaurant, clock):
        """Test that a listing showing free seats does not let a full slot through."""
        coordinator = _coordinator(store, clock)
        listing = coordinator._availability.get_available_slots("luigi", DAY)
        assert not listing[0].full

        seed_reservations(store, restaurant, DAY, "18:00", 3)

        assert coordinator.submit_booking("luigi", DAY, "18:00", _guest()).is_slot_full

    def test_unknown_business(self, store, clock):
        """Test that an unknown business id is a validation error."""
        result = _coordinator(store, clock).submit_booking("nobody", DAY, "18:00", _guest())

        assert result.is_rejected
        assert result.errors == {"business_id": "unknown business"}


class TestValidation:
    """Tests for field validation."""

    @pytest.mark.parametrize("guest, field", [
        (dict(name="  "), "name"),
        (dict(email="anna@"), "email"),
        (dict(phone="keine"), "phone"),
        (dict(party_size=0), "party_size"),
        (dict(party_size=None), "party_size"),
        (dict(party_size="2"), "party_size"),
        (dict(party_size=True), "party_size"),
    ])
    def test_guest_fields(self, store, clock, guest, field):
        """Test that each bad guest field is reported under its name."""
        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest(**guest))

        assert result.is_rejected
        assert result.reason == "validation"
        assert field in result.errors
        assert store.count_reservations("luigi", DAY, "18:00") == 0

    @pytest.mark.parametrize("target_date, time, field", [
        ("", "18:00", "date"),
        ("01.05.2024", "18:00", "date"),
        ("2024-05-01", "", "time"),
        ("2024-05-01", "abends", "time"),
        ("2024-05-01", "18:10", "time"),
        ("2024-05-01", "22:00", "time"),
    ])
    def test_date_and_time(self, store, clock, target_date, time, field):
        """Test malformed and not-offered date/time input."""
        result = _coordinator(store, clock).submit_booking("luigi", target_date, time, _guest())

        assert result.is_rejected
        assert field in result.errors

    def test_all_errors_are_reported_together(self, store, clock):
        """Test that validation collects every offending field."""
        result = _coordinator(store, clock).submit_booking(
            "luigi", "2024-05-01", "18:00", _guest(name="", email="x", party_size=0),
        )

        assert set(result.errors) == {"name", "email", "party_size"}

    def test_off_grid_time_accepted_without_schedule_check(self, store, clock):
        """Test that disabling the schedule check accepts any valid time."""
        coordinator = _coordinator(store, clock, enforce_schedule=False)

        assert coordinator.submit_booking("luigi", DAY, "18:10", _guest()).is_committed

    def test_end_of_day_time_rejected_without_schedule_check(self, store, clock):
        """Test that 24:00 is not bookable even when any valid time is accepted."""
        coordinator = _coordinator(store, clock, enforce_schedule=False)

        result = coordinator.submit_booking("luigi", DAY, "24:00", _guest())

        assert result.is_rejected
        assert "time" in result.errors
        assert store.list_reservations("luigi", DAY) == []

    @pytest.mark.parametrize("target_date", [
        datetime(2024, 5, 1, 0, 0),
        pendulum.datetime(2024, 5, 1, 9, 30, tz=TZ),
    ])
    def test_datetime_is_reduced_to_its_date(self, store, clock, target_date):
        """Test that a datetime is booked on its calendar date."""
        result = _coordinator(store, clock).submit_booking("luigi", target_date, "18:00", _guest())

        assert result.is_committed
        assert result.reservation.date == DAY

    def test_contact_required_when_configured(self, store, clock):
        """Test the optional email-or-phone requirement."""
        coordinator = _coordinator(store, clock, require_guest_contact=True)

        result = coordinator.submit_booking("luigi", DAY, "18:00", _guest(email=None, phone=None))
        assert result.errors == {"contact": "email or phone required"}

        assert coordinator.submit_booking("luigi", DAY, "18:00", _guest(email=None)).is_committed


class TestLeadTime:
    """Tests for the lead-time and past-date rules on submission."""

    def test_too_soon_today(self, store):
        """Test that a slot inside the buffer is refused."""
        clock = FixedClock(pendulum.datetime(2024, 5, 1, 17, 0, tz=TZ))
        coordinator = _coordinator(store, clock)

        result = coordinator.submit_booking("luigi", DAY, "18:45", _guest())
        assert result.errors == {"time": "too short notice for a booking today"}

        assert coordinator.submit_booking("luigi", DAY, "19:30", _guest()).is_committed

    def test_past_date(self, store):
        """Test that past dates are refused."""
        clock = FixedClock(pendulum.datetime(2024, 5, 2, 9, 0, tz=TZ))

        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest())

        assert result.errors == {"date": "lies in the past"}

    def test_lead_time_can_be_disabled(self, store):
        """Test the configuration switch."""
        clock = FixedClock(pendulum.datetime(2024, 5, 1, 17, 55, tz=TZ))
        coordinator = _coordinator(store, clock, enforce_lead_time=False)

        assert coordinator.submit_booking("luigi", DAY, "18:00", _guest()).is_committed


class TestSalon:
    """Tests for the salon business type."""

    def setup_method(self):
        self.store = InMemoryReservationStore.with_demo_data()
        self.clock = FixedClock(pendulum.datetime(2024, 4, 30, 12, 0, tz=TZ))

    def test_service_required(self):
        """Test that a salon booking needs a service."""
        result = _coordinator(self.store, self.clock).submit_booking("salon-demo", DAY, "09:00", _guest())

        assert result.errors == {"service": "required"}

    def test_party_size_forced_to_one(self):
        """Test that salon bookings are always for one person."""
        result = _coordinator(self.store, self.clock).submit_booking(
            "salon-demo", DAY, "09:00", _guest(service="Schnitt", party_size=4),
        )

        assert result.is_committed
        assert result.reservation.party_size == 1
        assert result.reservation.service == "Schnitt"

    def test_capacity_one(self):
        """Test that a second booking of the same slot is refused."""
        coordinator = _coordinator(self.store, self.clock)
        guest = _guest(service="Färben")

        assert coordinator.submit_booking("salon-demo", DAY, "09:45", guest).is_committed
        assert coordinator.submit_booking("salon-demo", DAY, "09:45", guest).is_slot_full

    def test_break_slot_not_offered(self):
        """Test that a slot inside the break is refused."""
        result = _coordinator(self.store, self.clock).submit_booking(
            "salon-demo", DAY, "12:45", _guest(service="Schnitt"),
        )

        assert "time" in result.errors


class TestPersistenceFailures:
    """Tests for store failures during submission."""

    def _failing_store(self, restaurant, exc):
        store = MagicMock()
        store.get_business.return_value = restaurant
        store.count_reservations.return_value = 0
        store.insert_reservation.side_effect = exc
        return store

    def test_insert_failure_is_not_retried(self, restaurant, clock):
        """Test that a failed insert is reported once and never retried."""
        store = self._failing_store(restaurant, PersistenceError("timeout", retryable=True))

        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest())

        assert result.is_rejected
        assert result.reason == "persistence"
        assert result.retryable is True
        assert store.insert_reservation.call_count == 1

    def test_non_retryable_failure(self, restaurant, clock):
        """Test that the retryable flag is carried through."""
        store = self._failing_store(restaurant, PersistenceError("bad request"))

        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest())

        assert result.retryable is False

    def test_count_failure_skips_insert(self, restaurant, clock):
        """Test that a failed capacity read aborts before writing."""
        store = self._failing_store(restaurant, None)
        store.count_reservations.side_effect = PersistenceError("down", retryable=True)

        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest())

        assert result.reason == "persistence"
        store.insert_reservation.assert_not_called()


class RacingStore(InMemoryReservationStore):
    """Store that lets a competing request insert right after each count."""

    def __init__(self, businesses, competitor):
        super().__init__(businesses)
        self._competitor = competitor
        self._raced = False

    def count_reservations(self, business_id, target_date, time):
        count = super().count_reservations(business_id, target_date, time)
        if not self._raced:
            self._raced = True
            self.insert_reservation(self._competitor)
        return count


class TestCheckThenActRace:
    """Tests documenting the bounded overbooking window."""

    def test_racing_insert_overbooks_by_one(self, restaurant, clock):
        """Test that a concurrent insert between check and write overbooks the slot."""
        competitor = NewReservation(
            business=restaurant, date=DAY, time="18:00", guest=GuestInfo(name="Rival", party_size=2),
        )
        store = RacingStore([restaurant], competitor)
        seed_reservations(store, restaurant, DAY, "18:00", 2)

        result = _coordinator(store, clock).submit_booking("luigi", DAY, "18:00", _guest())

        assert result.is_committed
        assert len(store.list_reservations("luigi", DAY)) == 4
