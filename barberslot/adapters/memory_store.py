"""
In-memory booking store for demos, mock mode and tests.
"""

import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pendulum
from pendulum import DateTime

from ..domain.exceptions import BookingNotFoundError, SlotConflictError
from ..domain.models import BookingInterval, BookingStatus, TimeRange
from ..domain.reschedule import find_conflicts

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_bookings.json"


class InMemoryBookingStore:
    """
    Dict-backed store honouring the persistence contract.

    Like the real backend it refuses to let two active bookings of the same
    professional overlap, answering with SlotConflictError.
    """

    def __init__(self, bookings: Iterable[BookingInterval] = ()):
        self._bookings: Dict[str, BookingInterval] = {}
        self.metadata: Dict[str, Dict[str, Any]] = {}

        for booking in bookings:
            booking_id = booking.booking_id or self._new_id()
            self._bookings[booking_id] = replace(booking, booking_id=booking_id)

    @classmethod
    def from_json(cls, data_file: Path | None = None, timezone: str = "America/Sao_Paulo") -> "InMemoryBookingStore":
        """
        Load bookings from a JSON list of
        ``{"id", "professional_id", "start", "end", "status"}`` objects.

        Entries that cannot be parsed are skipped.
        """
        data_file = data_file or DEFAULT_DATA_FILE

        with open(data_file, "r", encoding="utf-8") as f:
            raw_bookings = json.load(f)

        bookings: List[BookingInterval] = []
        for entry in raw_bookings:
            try:
                bookings.append(
                    BookingInterval(
                        start=pendulum.parse(entry["start"], tz=timezone),
                        end=pendulum.parse(entry["end"], tz=timezone),
                        booking_id=str(entry.get("id", "")),
                        professional_id=entry["professional_id"],
                        status=BookingStatus(entry.get("status", BookingStatus.SCHEDULED.value)),
                    )
                )
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping mock booking %r: %s", entry, exc)

        return cls(bookings)

    async def fetch_bookings(
        self,
        professional_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BookingInterval]:
        bookings = [
            booking for booking in self._bookings.values()
            if booking.professional_id == professional_id
            and booking.overlaps(range_start, range_end)
        ]
        return sorted(bookings, key=lambda b: b.start)

    async def get_booking(self, booking_id: str) -> BookingInterval:
        try:
            return self._bookings[booking_id]
        except KeyError:
            raise BookingNotFoundError(f"Booking not found: {booking_id}") from None

    async def create_booking(
        self,
        professional_id: str,
        start: DateTime,
        end: DateTime,
        **metadata: Any,
    ) -> str:
        self._ensure_free(professional_id, TimeRange(start=start, end=end))

        booking_id = self._new_id()
        self._bookings[booking_id] = BookingInterval(
            start=start,
            end=end,
            booking_id=booking_id,
            professional_id=professional_id,
        )
        self.metadata[booking_id] = dict(metadata)
        return booking_id

    async def reschedule_booking(self, booking_id: str, new_start: DateTime, new_end: DateTime) -> None:
        booking = await self.get_booking(booking_id)
        self._ensure_free(booking.professional_id, TimeRange(start=new_start, end=new_end), exclude=booking_id)

        self._bookings[booking_id] = replace(booking, start=new_start, end=new_end)

    def all_bookings(self) -> List[BookingInterval]:
        return sorted(self._bookings.values(), key=lambda b: b.start)

    def _ensure_free(self, professional_id: str, candidate: TimeRange, exclude: str | None = None) -> None:
        same_professional = (b for b in self._bookings.values() if b.professional_id == professional_id)
        conflicts = find_conflicts(candidate, same_professional, exclude_booking_id=exclude)
        if conflicts:
            raise SlotConflictError(f"{candidate} was just taken", conflicts=conflicts)

    @staticmethod
    def _new_id() -> str:
        return uuid.uuid4().hex

