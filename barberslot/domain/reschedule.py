"""
Collision checks for moving an existing booking to a new time.
"""

from dataclasses import dataclass
from typing import Iterable, List

from pendulum import DateTime

from .exceptions import SlotConflictError
from .models import BookingInterval, TimeRange


@dataclass(frozen=True)
class RescheduleProposal:
    """Target interval for a dragged booking that passed the collision check."""
    booking_id: str
    start: DateTime
    end: DateTime

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)


def find_conflicts(
    candidate: TimeRange,
    bookings: Iterable[BookingInterval],
    exclude_booking_id: str | None = None,
) -> List[BookingInterval]:
    """
    Return the bookings that share any instant with ``candidate``.

    Cancelled bookings never conflict. ``exclude_booking_id`` skips the
    booking being moved so it does not collide with its own old position.
    """
    return [
        booking for booking in bookings
        if booking.status.blocks_calendar
        and booking.booking_id != exclude_booking_id
        and booking.overlaps(candidate.start, candidate.end)
    ]


def plan_reschedule(
    booking: BookingInterval,
    new_start: DateTime,
    other_bookings: Iterable[BookingInterval],
) -> RescheduleProposal:
    """
    Move ``booking`` to ``new_start`` keeping its duration.

    Raises:
        SlotConflictError: If the moved booking would overlap another one
    """
    new_end = new_start.add(minutes=booking.duration_minutes())
    candidate = TimeRange(start=new_start, end=new_end)

    conflicts = find_conflicts(candidate, other_bookings, exclude_booking_id=booking.booking_id)
    if conflicts:
        taken = ", ".join(str(conflict.time_range) for conflict in conflicts)
        raise SlotConflictError(f"{candidate} collides with existing booking(s): {taken}", conflicts=conflicts)

    return RescheduleProposal(booking_id=booking.booking_id, start=new_start, end=new_end)


def move_to_day(start: DateTime, target_day: DateTime) -> DateTime:
    """Same time of day as ``start`` but on ``target_day`` (month view drops)."""
    return target_day.set(
        hour=start.hour,
        minute=start.minute,
        second=0,
        microsecond=0,
    )
