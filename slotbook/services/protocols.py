"""
Collaborator protocols consumed by the service layer.
"""

from datetime import date
from typing import Dict, List, Protocol

from ..domain.models import Business, NewReservation, Reservation


class ReservationStoreProtocol(Protocol):
    """
    Protocol describing the persistence behaviour needed by the services.

    Implementations raise ``PersistenceError`` (or ``BusinessNotFoundError``)
    and classify it as retryable or not.
    """

    def get_business(self, business_id: str) -> Business:
        """Return the business record."""

    def count_reservations(self, business_id: str, target_date: date, time: str) -> int:
        """Return the number of reservations at one exact slot."""

    def count_reservations_by_time(self, business_id: str, target_date: date) -> Dict[str, int]:
        """Return reservation counts per ``HH:MM`` for one date."""

    def insert_reservation(self, record: NewReservation) -> Reservation:
        """Write a reservation and return the stored row."""

    def list_reservations(self, business_id: str, target_date: date) -> List[Reservation]:
        """Return the reservations of one date ordered by time."""
