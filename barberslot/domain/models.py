"""
Domain models for bookings, candidate slots and operating hours.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from pendulum import DateTime

from .exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range shares any instant with another (half-open)."""
        return self.start < other.end and self.end > other.start

    def intersect(self, other: "TimeRange") -> "TimeRange | None":
        """
        Calculate the intersection of two time ranges.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeRange(start=max(self.start, other.start), end=min(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start.format('DD/MM/YYYY HH:mm')} - {self.end.format('HH:mm')}"


class BookingStatus(str, Enum):
    """Lifecycle of an appointment on the agenda."""
    SCHEDULED = "agendado"
    IN_SERVICE = "atendimento"
    FINISHED = "finalizado"
    CANCELLED = "cancelado"
    NO_SHOW = "noshow"

    @property
    def blocks_calendar(self) -> bool:
        """Cancelled appointments free their time, everything else occupies it."""
        return self is not BookingStatus.CANCELLED


@dataclass(frozen=True)
class BookingInterval:
    """
    One existing reservation occupying time on a professional's calendar.

    ``professional_id`` is an opaque identifier; display names never take
    part in matching bookings to professionals.
    """
    start: DateTime
    end: DateTime
    booking_id: str = ""
    professional_id: str = ""
    status: BookingStatus = BookingStatus.SCHEDULED

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Booking start {self.start} must be before end {self.end}")

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    def duration_minutes(self) -> int:
        return self.time_range.duration_minutes()

    def overlaps(self, start: DateTime, end: DateTime) -> bool:
        """Half-open overlap test against ``[start, end)``."""
        return self.start < end and self.end > start


@dataclass(frozen=True)
class CandidateSlot:
    """
    A bookable start time offered to the client.

    The label is derived from ``start`` and is never stored separately.
    """
    start: DateTime
    end: DateTime

    @property
    def label(self) -> str:
        return self.start.format("HH:mm")

    @property
    def hour(self) -> int:
        return self.start.hour

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)


def at_hour(day: DateTime, hour: int) -> DateTime:
    """Return ``day`` at ``hour:00``; hour 24 means the following midnight."""
    if hour == 24:
        return day.start_of("day").add(days=1)
    return day.set(hour=hour, minute=0, second=0, microsecond=0)


@dataclass
class OperatingHours:
    """
    Opening and closing hour of the shop (or of one professional).
    """
    open_hour: int
    close_hour: int
    closed_weekdays: List[int] = field(default_factory=list)  # 0=Monday, 6=Sunday

    def __post_init__(self):
        if not 0 <= self.open_hour <= 23:
            raise InvalidConfigurationError(f"open_hour must be between 0 and 23, got {self.open_hour}")
        if not 1 <= self.close_hour <= 24:
            raise InvalidConfigurationError(f"close_hour must be between 1 and 24, got {self.close_hour}")
        if self.close_hour <= self.open_hour:
            raise InvalidConfigurationError(
                f"close_hour ({self.close_hour}) must be later than open_hour ({self.open_hour})"
            )

    @property
    def window_minutes(self) -> int:
        return (self.close_hour - self.open_hour) * 60

    def is_open_on(self, day: DateTime) -> bool:
        return day.weekday() not in self.closed_weekdays

    def window_for(self, day: DateTime) -> TimeRange | None:
        """
        Get the opening window for a specific day.
        Returns None if the shop is closed that weekday.
        """
        if not self.is_open_on(day):
            return None

        return TimeRange(start=at_hour(day, self.open_hour), end=at_hour(day, self.close_hour))
