"""
In-process reservation store for demos and tests, no database required.
"""

import itertools
import json
import threading
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List

import pendulum

from ..domain.exceptions import BusinessNotFoundError
from ..domain.models import Business, BusinessType, NewReservation, Reservation

DEMO_DATA_FILE = Path(__file__).parent / "demo_businesses.json"


class InMemoryReservationStore:
    """
    Store that keeps businesses and reservations in memory.

    A lock protects the internal lists so concurrent calls see consistent
    data, like a database would. It does not span the coordinator's
    count-then-insert sequence.
    """

    def __init__(self, businesses: Iterable[Business] = ()):
        self._businesses: Dict[str, Business] = {b.business_id: b for b in businesses}
        self._reservations: List[Reservation] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @classmethod
    def from_json(cls, data_file: Path) -> "InMemoryReservationStore":
        """
        Load businesses from a JSON file shaped like the ``companies`` table.

        Args:
            data_file: Path to a JSON list of business rows

        Returns:
            Store seeded with the businesses
        """
        with open(data_file, "r", encoding="utf-8") as f:
            rows = json.load(f)

        return cls(
            Business(
                business_id=row["slug"],
                name=row.get("name", ""),
                hours_text=row.get("hours", ""),
                break_text=row.get("break_hours"),
                slot_capacity=row.get("slot_capacity"),
                business_type=BusinessType.from_raw(row.get("service_type")),
                email=row.get("email"),
            )
            for row in rows
        )

    @classmethod
    def with_demo_data(cls) -> "InMemoryReservationStore":
        """Store seeded with the bundled demo businesses."""
        return cls.from_json(DEMO_DATA_FILE)

    def add_business(self, business: Business) -> None:
        with self._lock:
            self._businesses[business.business_id] = business

    def get_business(self, business_id: str) -> Business:
        with self._lock:
            business = self._businesses.get(business_id)
        if business is None:
            raise BusinessNotFoundError(business_id)
        return business

    def count_reservations(self, business_id: str, target_date: date, time: str) -> int:
        with self._lock:
            return sum(
                1 for r in self._reservations
                if r.business_id == business_id and r.date == target_date and r.time == time
            )

    def count_reservations_by_time(self, business_id: str, target_date: date) -> Dict[str, int]:
        with self._lock:
            return dict(Counter(
                r.time for r in self._reservations
                if r.business_id == business_id and r.date == target_date
            ))

    def insert_reservation(self, record: NewReservation) -> Reservation:
        guest = record.guest
        with self._lock:
            reservation = Reservation(
                reservation_id=str(next(self._ids)),
                business_id=record.business.business_id,
                date=record.date,
                time=record.time,
                guest_name=guest.name,
                guest_email=guest.email,
                phone=guest.phone,
                party_size=guest.party_size,
                service=guest.service,
                note=guest.note,
                created_at=pendulum.now("UTC"),
            )
            self._reservations.append(reservation)
        return reservation

    def list_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        with self._lock:
            rows = [
                r for r in self._reservations
                if r.business_id == business_id and r.date == target_date
            ]
        return sorted(rows, key=lambda r: r.time)
