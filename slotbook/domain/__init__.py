"""
Domain layer - Pure business logic, no storage or network access.
"""

from .break_parser import BreakParser, parse_breaks
from .capacity import CapacityLedger, resolve_capacity
from .hours_parser import HoursParser, parse_weekly_hours
from .lead_time import LeadTimeGuard
from .models import (
    BreakSet,
    Business,
    BusinessType,
    GuestInfo,
    Interval,
    NewReservation,
    Reservation,
    Slot,
    SlotAvailability,
    WeeklySchedule,
)
from .slot_generator import SlotGenerator

__all__ = [
    "BreakParser",
    "BreakSet",
    "Business",
    "BusinessType",
    "CapacityLedger",
    "GuestInfo",
    "HoursParser",
    "Interval",
    "LeadTimeGuard",
    "NewReservation",
    "Reservation",
    "Slot",
    "SlotAvailability",
    "SlotGenerator",
    "WeeklySchedule",
    "parse_breaks",
    "parse_weekly_hours",
    "resolve_capacity",
]
