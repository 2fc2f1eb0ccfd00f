"""
Tests for the availability calculator.
"""

import pendulum
import pytest

from barberslot.domain.availability import AvailabilityCalculator, group_slots_by_hour
from barberslot.domain.exceptions import InvalidConfigurationError
from barberslot.domain.models import OperatingHours
from helpers import TZ, at, booking


def _calculator(open_hour: int = 8, close_hour: int = 19, **kwargs) -> AvailabilityCalculator:
    return AvailabilityCalculator(
        operating_hours=OperatingHours(open_hour=open_hour, close_hour=close_hour, **kwargs),
        slot_granularity_minutes=10,
        minimum_lead_time_minutes=20,
    )


def _labels(slots):
    return [slot.label for slot in slots]


class TestAvailabilityCalculator:
    """Tests for AvailabilityCalculator."""

    def test_empty_day_offers_every_aligned_start(self, monday):
        """A free future day yields 08:00 ... 18:30 for a 30 minute service."""
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[],
            now=at("2024-11-20 12:00"),
        )

        labels = _labels(slots)
        assert labels[0] == "08:00"
        assert labels[1] == "08:10"
        assert labels[-1] == "18:30"
        assert "18:40" not in labels
        assert len(slots) == 64
        assert slots[-1].end == at("2024-11-25 19:00")

    def test_slots_around_existing_booking(self, monday):
        """The last slot before a booking ends exactly when the booking starts."""
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[booking("2024-11-25 10:00", "2024-11-25 10:30")],
            now=at("2024-11-20 12:00"),
        )

        labels = _labels(slots)
        assert "09:30" in labels
        for taken in ("09:40", "09:50", "10:00", "10:10", "10:20"):
            assert taken not in labels
        assert "10:30" in labels

    def test_lead_time_applies_today(self, monday):
        """With now at 14:03 nothing before 14:23 is offered, so 14:30 comes first."""
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[],
            now=at("2024-11-25 14:03"),
        )

        assert slots[0].label == "14:30"
        assert all(slot.start >= at("2024-11-25 14:23") for slot in slots)

    def test_lead_time_ignored_on_other_days(self, monday):
        """Late the evening before, the next day still opens at 08:00."""
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[],
            now=at("2024-11-24 18:55"),
        )

        assert slots[0].label == "08:00"

    def test_lead_time_in_another_timezone(self, monday):
        """``now`` is compared on the day's own calendar."""
        now_utc = at("2024-11-25 14:03").in_timezone("UTC")

        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[],
            now=now_utc,
        )

        assert slots[0].label == "14:30"

    def test_naive_day_with_aware_now(self):
        """A naive day is read as wall-clock time when ``now`` carries a timezone."""
        slots = _calculator().find_available_slots(
            day=pendulum.naive(2024, 11, 25),
            service_duration_minutes=30,
            existing_bookings=[],
            now=pendulum.datetime(2024, 11, 25, 14, 3, tz=TZ),
        )

        assert slots[0].label == "14:30"
        assert slots[0].start.tzinfo is None

    def test_aware_day_with_naive_now(self, monday):
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[],
            now=pendulum.naive(2024, 11, 25, 14, 3),
        )

        assert slots[0].label == "14:30"

    def test_service_longer_than_window_is_empty(self, monday):
        """A 10 hour service in an 8 hour day gives no slots and no error."""
        slots = _calculator(open_hour=8, close_hour=16).find_available_slots(
            day=monday,
            service_duration_minutes=600,
            existing_bookings=[],
            now=at("2024-11-20 12:00"),
        )

        assert slots == []

    def test_service_filling_whole_window(self, monday):
        slots = _calculator(open_hour=8, close_hour=16).find_available_slots(
            day=monday,
            service_duration_minutes=480,
            existing_bookings=[],
            now=at("2024-11-20 12:00"),
        )

        assert _labels(slots) == ["08:00"]

    def test_booking_spanning_midnight_obstructs(self, monday):
        """A booking started the previous evening blocks the morning."""
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[booking("2024-11-24 22:00", "2024-11-25 09:00")],
            now=at("2024-11-20 12:00"),
        )

        assert slots[0].label == "09:00"

    def test_booking_past_closing_obstructs(self, monday):
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[booking("2024-11-25 18:00", "2024-11-25 20:00")],
            now=at("2024-11-20 12:00"),
        )

        assert _labels(slots)[-1] == "17:30"

    def test_closed_weekday_is_empty(self):
        slots = _calculator(closed_weekdays=[6]).find_available_slots(
            day=at("2024-11-24"),
            service_duration_minutes=30,
            existing_bookings=[],
            now=at("2024-11-20 12:00"),
        )

        assert slots == []

    def test_whole_day_booked_is_empty(self, monday):
        slots = _calculator().find_available_slots(
            day=monday,
            service_duration_minutes=10,
            existing_bookings=[booking("2024-11-25 08:00", "2024-11-25 19:00")],
            now=at("2024-11-20 12:00"),
        )

        assert slots == []

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_fails_fast(self, monday, duration):
        with pytest.raises(InvalidConfigurationError):
            _calculator().find_available_slots(
                day=monday,
                service_duration_minutes=duration,
                existing_bookings=[],
                now=at("2024-11-20 12:00"),
            )

    def test_invalid_rules_fail_fast(self):
        hours = OperatingHours(open_hour=8, close_hour=19)

        with pytest.raises(InvalidConfigurationError):
            AvailabilityCalculator(operating_hours=hours, slot_granularity_minutes=0)
        with pytest.raises(InvalidConfigurationError):
            AvailabilityCalculator(operating_hours=hours, minimum_lead_time_minutes=-1)


class TestAvailabilityProperties:
    """Invariants that hold for any day's bookings."""

    BOOKINGS = [
        booking("2024-11-25 08:30", "2024-11-25 09:15"),
        booking("2024-11-25 11:00", "2024-11-25 12:00"),
        booking("2024-11-25 12:05", "2024-11-25 12:35"),
        booking("2024-11-25 17:50", "2024-11-25 18:20"),
    ]
    NOW = at("2024-11-25 10:07")

    @pytest.mark.parametrize("duration", [10, 25, 30, 45, 90])
    def test_invariants(self, monday, duration):
        calculator = _calculator()
        slots = calculator.find_available_slots(monday, duration, self.BOOKINGS, self.NOW)

        assert slots
        for slot in slots:
            assert slot.end == slot.start.add(minutes=duration)
            assert at("2024-11-25 08:00") <= slot.start
            assert slot.end <= at("2024-11-25 19:00")
            assert slot.start >= self.NOW.add(minutes=20)
            assert slot.start.minute % 10 == 0
            for b in self.BOOKINGS:
                assert not (b.start < slot.end and b.end > slot.start)

        starts = [slot.start for slot in slots]
        assert all(earlier < later for earlier, later in zip(starts, starts[1:]))

    def test_idempotent(self, monday):
        calculator = _calculator()

        first = calculator.find_available_slots(monday, 30, self.BOOKINGS, self.NOW)
        second = calculator.find_available_slots(monday, 30, self.BOOKINGS, self.NOW)

        assert first == second

    def test_booking_order_does_not_matter(self, monday):
        calculator = _calculator()

        ordered = calculator.find_available_slots(monday, 30, self.BOOKINGS, self.NOW)
        reversed_ = calculator.find_available_slots(monday, 30, list(reversed(self.BOOKINGS)), self.NOW)

        assert ordered == reversed_


class TestGroupSlotsByHour:
    """Tests for the hour > minutes grouping."""

    def test_groups_and_skips_empty_hours(self, monday):
        slots = _calculator(open_hour=8, close_hour=11).find_available_slots(
            day=monday,
            service_duration_minutes=30,
            existing_bookings=[booking("2024-11-25 09:00", "2024-11-25 10:00")],
            now=at("2024-11-20 12:00"),
        )

        grouped = group_slots_by_hour(slots)

        assert list(grouped) == [8, 10]
        assert _labels(grouped[8]) == ["08:00", "08:10", "08:20", "08:30"]
        assert _labels(grouped[10]) == ["10:00", "10:10", "10:20", "10:30"]

    def test_empty_input(self):
        assert group_slots_by_hour([]) == {}
