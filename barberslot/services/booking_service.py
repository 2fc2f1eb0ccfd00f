"""
Application services for offering, booking and moving appointments.

The service coordinates fetching bookings via a store adapter and delegates
the slot and collision calculations to the domain layer. Every call works on
a fresh snapshot of the store; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Protocol

import pendulum
from pendulum import DateTime

from ..domain.availability import AvailabilityCalculator
from ..domain.exceptions import InvalidConfigurationError, SlotConflictError
from ..domain.grid_mapper import GridMapper
from ..domain.models import BookingInterval, CandidateSlot, OperatingHours, TimeRange
from ..domain.reschedule import RescheduleProposal, find_conflicts, move_to_day, plan_reschedule

logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Protocol describing the persistence behaviour needed by the service."""

    async def fetch_bookings(
        self,
        professional_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BookingInterval]:
        """Return all bookings of the professional overlapping the range."""

    async def get_booking(self, booking_id: str) -> BookingInterval:
        """Return one booking or raise BookingNotFoundError."""

    async def create_booking(
        self,
        professional_id: str,
        start: DateTime,
        end: DateTime,
        **metadata: Any,
    ) -> str:
        """Persist a booking and return its id, or raise SlotConflictError."""

    async def reschedule_booking(
        self,
        booking_id: str,
        new_start: DateTime,
        new_end: DateTime,
    ) -> None:
        """Move a booking, or raise SlotConflictError."""


class BookingService:
    """
    Orchestrates booking retrieval, slot calculation and writes.

    Operating hours can be overridden per professional; other rules
    (granularity, lead time) come from the shared calculator.
    """

    def __init__(
        self,
        store: BookingStoreProtocol,
        calculator: AvailabilityCalculator,
        grid_mapper: GridMapper | None = None,
        hours_by_professional: Mapping[str, OperatingHours] | None = None,
        timezone: str = "America/Sao_Paulo",
    ) -> None:
        self._store = store
        self._calculator = calculator
        self._grid_mapper = grid_mapper or GridMapper()
        self._hours_by_professional: Dict[str, OperatingHours] = dict(hours_by_professional or {})
        self._timezone = timezone

    async def fetch_day_bookings(self, professional_id: str, day: DateTime) -> List[BookingInterval]:
        """Fetch the bookings that still occupy the professional's day."""
        day_start = self._localize(day).start_of("day")
        return await self.fetch_active_bookings(professional_id, day_start, day_start.add(days=1))

    async def fetch_active_bookings(
        self,
        professional_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BookingInterval]:
        """Fetch the non-cancelled bookings overlapping ``[range_start, range_end)``."""
        bookings = await self._store.fetch_bookings(
            professional_id=professional_id,
            range_start=range_start,
            range_end=range_end,
        )

        active = [booking for booking in bookings if booking.status.blocks_calendar]
        logger.debug(
            "Fetched %d booking(s) for %s between %s and %s, %d active",
            len(bookings), professional_id, range_start, range_end, len(active),
        )
        return active

    async def available_slots(
        self,
        professional_id: str,
        day: DateTime,
        service_duration_minutes: int,
        now: DateTime | None = None,
    ) -> List[CandidateSlot]:
        """Retrieve the day's bookings and compute the bookable slots."""
        bookings = await self.fetch_day_bookings(professional_id, day)
        return self.calculate_slots(
            professional_id=professional_id,
            day=day,
            service_duration_minutes=service_duration_minutes,
            bookings=bookings,
            now=now,
        )

    def calculate_slots(
        self,
        *,
        professional_id: str,
        day: DateTime,
        service_duration_minutes: int,
        bookings: List[BookingInterval],
        now: DateTime | None = None,
    ) -> List[CandidateSlot]:
        """Calculate bookable slots from an already fetched snapshot."""
        calculator = self.calculator_for(professional_id)
        return calculator.find_available_slots(
            day=self._localize(day),
            service_duration_minutes=service_duration_minutes,
            existing_bookings=bookings,
            now=now or pendulum.now(self._timezone),
        )

    def calculator_for(self, professional_id: str) -> AvailabilityCalculator:
        """Calculator using the professional's own hours when configured."""
        hours = self._hours_by_professional.get(professional_id)
        if hours is None:
            return self._calculator

        return AvailabilityCalculator(
            operating_hours=hours,
            slot_granularity_minutes=self._calculator.slot_granularity_minutes,
            minimum_lead_time_minutes=self._calculator.minimum_lead_time_minutes,
        )

    async def book_slot(
        self,
        professional_id: str,
        slot: CandidateSlot,
        now: DateTime | None = None,
        **metadata: Any,
    ) -> str:
        """
        Book ``slot`` after checking it against a fresh snapshot.

        Raises:
            SlotConflictError: If the slot is no longer bookable. The error
                carries the recomputed ``alternatives`` so the caller can
                re-render instead of retrying the same slot.
        """
        duration = slot.duration_minutes()
        bookings = await self.fetch_day_bookings(professional_id, slot.start)
        fresh_slots = self.calculate_slots(
            professional_id=professional_id,
            day=slot.start,
            service_duration_minutes=duration,
            bookings=bookings,
            now=now,
        )

        if slot not in fresh_slots:
            conflicts = find_conflicts(TimeRange(start=slot.start, end=slot.end), bookings)
            logger.info("Slot %s for %s is no longer available", slot.label, professional_id)
            raise SlotConflictError(
                f"{slot.start.format('DD/MM/YYYY HH:mm')} is no longer available",
                conflicts=conflicts,
                alternatives=fresh_slots,
            )

        try:
            booking_id = await self._store.create_booking(professional_id, slot.start, slot.end, **metadata)
        except SlotConflictError as exc:
            logger.info("Store rejected slot %s for %s: %s", slot.label, professional_id, exc)
            alternatives = await self.available_slots(professional_id, slot.start, duration, now=now)
            raise SlotConflictError(str(exc), conflicts=exc.conflicts, alternatives=alternatives) from exc

        logger.info("Booked %s for %s at %s", booking_id, professional_id, slot.start.to_iso8601_string())
        return booking_id

    async def propose_drop(self, booking_id: str, day: DateTime, offset_pixels: float) -> RescheduleProposal:
        """
        Interpret a drop at ``offset_pixels`` on ``day`` for a dragged booking.

        Raises:
            BookingNotFoundError: If the booking does not exist
            SlotConflictError: If the target overlaps another booking
        """
        new_start = self._grid_mapper.offset_to_time(self._localize(day), offset_pixels)
        return await self._propose_move(booking_id, new_start)

    async def propose_day_move(self, booking_id: str, target_day: DateTime) -> RescheduleProposal:
        """Move a booking to another day at the same time of day."""
        booking = await self._store.get_booking(booking_id)
        new_start = move_to_day(booking.start, self._localize(target_day))
        return await self._propose_move(booking_id, new_start, booking=booking)

    async def reschedule_by_drop(self, booking_id: str, day: DateTime, offset_pixels: float) -> RescheduleProposal:
        """Check a drop and persist it. Store conflicts propagate unchanged."""
        proposal = await self.propose_drop(booking_id, day, offset_pixels)
        await self.apply(proposal)
        return proposal

    async def apply(self, proposal: RescheduleProposal) -> None:
        await self._store.reschedule_booking(proposal.booking_id, proposal.start, proposal.end)
        logger.info("Moved %s to %s", proposal.booking_id, proposal.time_range)

    async def _propose_move(
        self,
        booking_id: str,
        new_start: DateTime,
        booking: BookingInterval | None = None,
    ) -> RescheduleProposal:
        if booking is None:
            booking = await self._store.get_booking(booking_id)
        if not booking.professional_id:
            raise InvalidConfigurationError(f"Booking {booking_id} is not assigned to a professional")

        # Covers the whole moved interval, which may run past midnight.
        range_start = new_start.start_of("day")
        range_end = max(range_start.add(days=1), new_start.add(minutes=booking.duration_minutes()))
        others = await self.fetch_active_bookings(booking.professional_id, range_start, range_end)
        return plan_reschedule(booking, new_start, others)

    def _localize(self, moment: DateTime) -> DateTime:
        """Read a naive datetime as wall-clock time in the shop timezone."""
        return pendulum.instance(moment, tz=self._timezone)
