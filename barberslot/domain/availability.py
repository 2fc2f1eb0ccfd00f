"""
Core business logic for calculating bookable appointment slots.

Pure domain logic: the caller hands in a snapshot of the day's bookings and
the current time, nothing here performs I/O or reads the clock.
"""

from typing import Dict, Iterable, List

from pendulum import DateTime

from .exceptions import InvalidConfigurationError
from .models import BookingInterval, CandidateSlot, OperatingHours


class AvailabilityCalculator:
    """
    Calculates the start times a professional can still be booked at.

    Algorithm:
    1. Enumerate every granularity-aligned instant from opening until closing
    2. Drop instants closer to ``now`` than the lead time (today only)
    3. Drop instants whose service would run past closing
    4. Drop instants whose service overlaps an existing booking
    5. Return the survivors in enumeration order
    """

    def __init__(
        self,
        operating_hours: OperatingHours,
        slot_granularity_minutes: int = 10,
        minimum_lead_time_minutes: int = 20,
    ):
        if slot_granularity_minutes <= 0:
            raise InvalidConfigurationError(
                f"slot_granularity_minutes must be positive, got {slot_granularity_minutes}"
            )
        if minimum_lead_time_minutes < 0:
            raise InvalidConfigurationError(
                f"minimum_lead_time_minutes must not be negative, got {minimum_lead_time_minutes}"
            )

        self.operating_hours = operating_hours
        self.slot_granularity_minutes = slot_granularity_minutes
        self.minimum_lead_time_minutes = minimum_lead_time_minutes

    def find_available_slots(
        self,
        day: DateTime,
        service_duration_minutes: int,
        existing_bookings: Iterable[BookingInterval],
        now: DateTime,
    ) -> List[CandidateSlot]:
        """
        Find every bookable start time on ``day``.

        Args:
            day: The calendar day; its time of day is ignored
            service_duration_minutes: Length of the requested service
            existing_bookings: Bookings of the professional on that day
            now: Current wall-clock time

        Returns:
            CandidateSlot objects ordered by start. An empty list means
            nothing is available, which is not an error.

        Raises:
            InvalidConfigurationError: If the duration is not positive
        """
        if service_duration_minutes <= 0:
            raise InvalidConfigurationError(
                f"service_duration_minutes must be positive, got {service_duration_minutes}"
            )

        window = self.operating_hours.window_for(day)
        if window is None:
            return []

        if service_duration_minutes > self.operating_hours.window_minutes:
            return []

        bookings = list(existing_bookings)
        earliest_start = self._earliest_start(day, now)

        slots: List[CandidateSlot] = []
        pointer = window.start

        while pointer < window.end:
            slot_end = pointer.add(minutes=service_duration_minutes)

            if earliest_start is not None and pointer < earliest_start:
                pointer = pointer.add(minutes=self.slot_granularity_minutes)
                continue

            if slot_end > window.end:
                # Every later candidate ends even later.
                break

            if not any(booking.overlaps(pointer, slot_end) for booking in bookings):
                slots.append(CandidateSlot(start=pointer, end=slot_end))

            pointer = pointer.add(minutes=self.slot_granularity_minutes)

        return slots

    def _earliest_start(self, day: DateTime, now: DateTime) -> DateTime | None:
        """
        Earliest bookable instant when ``day`` is today, None otherwise.

        ``now`` is brought to the same kind as ``day``: a naive day gets
        the wall clock of ``now``, an aware day reads a naive ``now`` as
        wall-clock time in the day's zone.
        """
        if day.tzinfo is None:
            if now.tzinfo is not None:
                now = now.naive()
        elif now.tzinfo is None:
            now = now.replace(tzinfo=day.tzinfo)
        else:
            now = now.in_timezone(day.tzinfo)

        if now.date() != day.date():
            return None

        return now.add(minutes=self.minimum_lead_time_minutes)


def group_slots_by_hour(slots: Iterable[CandidateSlot]) -> Dict[int, List[CandidateSlot]]:
    """
    Group slots under their starting hour for the hour > minutes timeline.

    Hours without slots are left out; keys come out in ascending order when
    the input is ordered.
    """
    grouped: Dict[int, List[CandidateSlot]] = {}

    for slot in slots:
        grouped.setdefault(slot.hour, []).append(slot)

    return grouped
