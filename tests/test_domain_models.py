"""
Tests for domain models.
"""

import pytest

from barberslot.domain.exceptions import InvalidConfigurationError
from barberslot.domain.models import (
    BookingInterval,
    BookingStatus,
    CandidateSlot,
    OperatingHours,
    TimeRange,
)
from helpers import at, booking


class TestTimeRange:
    """Tests for TimeRange model."""

    def test_create_valid_time_range(self):
        """Test creating a valid time range."""
        tr = TimeRange(start=at("2024-11-25 08:00"), end=at("2024-11-25 19:00"))

        assert tr.duration_minutes() == 660

    def test_invalid_time_range_raises_error(self):
        """Test that creating an invalid time range raises ValueError."""
        with pytest.raises(ValueError, match="Start time .* must be before end time"):
            TimeRange(start=at("2024-11-25 19:00"), end=at("2024-11-25 08:00"))

    def test_overlaps_is_half_open(self):
        """Ranges that only touch do not overlap."""
        morning = TimeRange(start=at("2024-11-25 09:00"), end=at("2024-11-25 10:00"))
        late_morning = TimeRange(start=at("2024-11-25 09:30"), end=at("2024-11-25 11:00"))
        after = TimeRange(start=at("2024-11-25 10:00"), end=at("2024-11-25 11:00"))

        assert morning.overlaps(late_morning)
        assert late_morning.overlaps(morning)
        assert not morning.overlaps(after)
        assert not after.overlaps(morning)

    def test_intersect(self):
        """Test intersection calculation."""
        tr1 = TimeRange(start=at("2024-11-25 09:00"), end=at("2024-11-25 12:00"))
        tr2 = TimeRange(start=at("2024-11-25 11:00"), end=at("2024-11-25 14:00"))

        intersection = tr1.intersect(tr2)

        assert intersection == TimeRange(start=at("2024-11-25 11:00"), end=at("2024-11-25 12:00"))
        assert tr1.intersect(TimeRange(start=at("2024-11-25 13:00"), end=at("2024-11-25 14:00"))) is None


class TestBookingInterval:
    """Tests for BookingInterval model."""

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError):
            BookingInterval(start=at("2024-11-25 10:00"), end=at("2024-11-25 10:00"))

    def test_overlaps(self):
        b = booking("2024-11-25 10:00", "2024-11-25 10:30")

        assert b.overlaps(at("2024-11-25 09:45"), at("2024-11-25 10:15"))
        assert not b.overlaps(at("2024-11-25 09:30"), at("2024-11-25 10:00"))
        assert not b.overlaps(at("2024-11-25 10:30"), at("2024-11-25 11:00"))

    def test_duration(self):
        assert booking("2024-11-25 10:00", "2024-11-25 10:45").duration_minutes() == 45

    def test_only_cancelled_frees_the_calendar(self):
        """Every status except cancelled keeps occupying time."""
        assert not BookingStatus.CANCELLED.blocks_calendar
        for status in (BookingStatus.SCHEDULED, BookingStatus.IN_SERVICE,
                       BookingStatus.FINISHED, BookingStatus.NO_SHOW):
            assert status.blocks_calendar

    def test_status_values(self):
        assert BookingStatus("agendado") is BookingStatus.SCHEDULED
        assert BookingStatus("noshow") is BookingStatus.NO_SHOW


class TestCandidateSlot:
    """Tests for CandidateSlot model."""

    def test_label_and_hour_derive_from_start(self):
        slot = CandidateSlot(start=at("2024-11-25 09:40"), end=at("2024-11-25 10:10"))

        assert slot.label == "09:40"
        assert slot.hour == 9
        assert slot.duration_minutes() == 30


class TestOperatingHours:
    """Tests for OperatingHours model."""

    def test_window_for_day(self):
        hours = OperatingHours(open_hour=8, close_hour=19)

        window = hours.window_for(at("2024-11-25 15:20"))

        assert window.start == at("2024-11-25 08:00")
        assert window.end == at("2024-11-25 19:00")
        assert hours.window_minutes == 660

    def test_closing_at_midnight(self):
        hours = OperatingHours(open_hour=10, close_hour=24)

        window = hours.window_for(at("2024-11-25"))

        assert window.end == at("2024-11-26 00:00")

    def test_closed_weekday(self):
        hours = OperatingHours(open_hour=8, close_hour=19, closed_weekdays=[6])

        assert hours.window_for(at("2024-11-24")) is None  # Sunday
        assert hours.window_for(at("2024-11-25")) is not None

    @pytest.mark.parametrize("open_hour,close_hour", [(19, 8), (8, 8), (-1, 10), (8, 25)])
    def test_invalid_hours_fail_fast(self, open_hour, close_hour):
        with pytest.raises(InvalidConfigurationError):
            OperatingHours(open_hour=open_hour, close_hour=close_hour)
