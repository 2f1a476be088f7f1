"""
Domain-specific exception hierarchy for the booking core.
"""

from typing import Dict


class SlotbookError(Exception):
    """Base class for all application-level errors."""


class BookingValidationError(SlotbookError):
    """
    Raised when booking input is missing or malformed.

    Carries field-level messages so callers can point the guest at the
    field that needs fixing.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        details = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(f"Invalid booking input ({details})")


class PersistenceError(SlotbookError):
    """
    Raised when the storage collaborator fails.

    ``retryable`` is the store's own classification (timeouts, connection
    problems, server errors). The core never retries on its own.
    """

    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class BusinessNotFoundError(PersistenceError):
    """Raised when a business id does not resolve to a record."""

    def __init__(self, business_id: str):
        super().__init__(f"Unknown business: '{business_id}'", retryable=False)
        self.business_id = business_id
