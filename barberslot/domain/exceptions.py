"""
Domain-specific exception hierarchy for barberslot.
"""

from typing import List, Sequence


class SchedulingError(Exception):
    """Base class for all application-level errors."""


class InvalidConfigurationError(SchedulingError, ValueError):
    """Raised when scheduling inputs violate a precondition."""


class BookingNotFoundError(SchedulingError):
    """Raised when a booking id is unknown to the store."""


class BookingStoreError(SchedulingError):
    """Raised when bookings cannot be fetched from or written to the store."""


class SlotConflictError(SchedulingError):
    """
    Raised when a proposed interval collides with existing bookings.

    ``conflicts`` holds the colliding bookings when they are known and
    ``alternatives`` the freshly recomputed candidate slots, if the caller
    recomputed them.
    """

    def __init__(
        self,
        message: str,
        conflicts: Sequence = (),
        alternatives: Sequence = (),
    ) -> None:
        super().__init__(message)
        self.conflicts: List = list(conflicts)
        self.alternatives: List = list(alternatives)
