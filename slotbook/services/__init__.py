"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService
from .booking import BookingCoordinator, BookingResult, BookingState
from .protocols import ReservationStoreProtocol

__all__ = [
    "AvailabilityService",
    "BookingCoordinator",
    "BookingResult",
    "BookingState",
    "ReservationStoreProtocol",
]
