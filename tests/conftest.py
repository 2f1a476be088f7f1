"""
Shared fixtures: a fixed clock and a seeded in-memory store.
"""

import pendulum
import pytest

from slotbook.adapters.memory_store import InMemoryReservationStore
from slotbook.domain.models import Business, BusinessType, GuestInfo, NewReservation

TZ = "Europe/Berlin"


class FixedClock:
    """Clock stub returning a settable instant."""

    def __init__(self, now):
        self.current = now

    def now(self):
        return self.current


def make_restaurant(**overrides) -> Business:
    values = dict(
        business_id="luigi",
        name="Da Luigi",
        hours_text="18:00-22:00",
        break_text=None,
        slot_capacity=3,
        business_type=BusinessType.RESTAURANT,
        email="owner@luigi.example",
    )
    values.update(overrides)
    return Business(**values)


def seed_reservations(store, business: Business, day, time: str, count: int) -> None:
    """Insert ``count`` reservations for one slot directly into the store."""
    for index in range(count):
        store.insert_reservation(NewReservation(
            business=business,
            date=day,
            time=time,
            guest=GuestInfo(name=f"Gast {index + 1}", party_size=2),
        ))


@pytest.fixture
def clock():
    """Clock at 2024-04-30 12:00 Berlin (the day before the test date)."""
    return FixedClock(pendulum.datetime(2024, 4, 30, 12, 0, tz=TZ))


@pytest.fixture
def restaurant() -> Business:
    return make_restaurant()


@pytest.fixture
def store(restaurant) -> InMemoryReservationStore:
    return InMemoryReservationStore([restaurant])
