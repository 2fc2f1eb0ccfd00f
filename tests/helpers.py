"""
Value builders shared by the test modules.
"""

import pendulum

from barberslot.domain.models import BookingInterval, BookingStatus

TZ = "America/Sao_Paulo"


def at(value: str):
    """Parse a local wall-clock time in the shop timezone."""
    return pendulum.parse(value, tz=TZ)


def booking(start: str, end: str, booking_id: str = "", professional_id: str = "luis",
            status: BookingStatus = BookingStatus.SCHEDULED) -> BookingInterval:
    return BookingInterval(
        start=at(start),
        end=at(end),
        booking_id=booking_id,
        professional_id=professional_id,
        status=status,
    )
