"""
Conversion between agenda grid pixels and wall-clock times.
"""

import math

from pendulum import DateTime

from .exceptions import InvalidConfigurationError


class GridMapper:
    """
    Maps vertical pixel offsets on the agenda timeline to times and back.

    The grid starts at ``start_hour`` and shows ``hour_count`` rows of
    ``pixels_per_hour`` pixels each. Pointer positions are snapped to
    ``rounding_minutes`` and clamped into the grid, so a stray coordinate
    never produces an out-of-range time.
    """

    def __init__(
        self,
        start_hour: int = 9,
        hour_count: int = 14,
        pixels_per_hour: float = 90,
        rounding_minutes: int = 15,
    ):
        if not 0 <= start_hour <= 23:
            raise InvalidConfigurationError(f"start_hour must be between 0 and 23, got {start_hour}")
        if hour_count <= 0 or start_hour + hour_count > 24:
            raise InvalidConfigurationError(
                f"Grid of {hour_count} hours starting at {start_hour}:00 does not fit in a day"
            )
        if pixels_per_hour <= 0:
            raise InvalidConfigurationError(f"pixels_per_hour must be positive, got {pixels_per_hour}")
        if rounding_minutes <= 0 or 60 % rounding_minutes != 0:
            raise InvalidConfigurationError(
                f"rounding_minutes must be a positive divisor of 60, got {rounding_minutes}"
            )

        self.start_hour = start_hour
        self.hour_count = hour_count
        self.pixels_per_hour = pixels_per_hour
        self.rounding_minutes = rounding_minutes

    @property
    def height(self) -> float:
        """Total height of the grid in pixels."""
        return self.hour_count * self.pixels_per_hour

    @property
    def end_hour(self) -> int:
        return self.start_hour + self.hour_count

    def time_to_offset(self, moment: DateTime) -> float:
        """Vertical offset of ``moment`` from the top of the grid."""
        minutes = (moment.hour - self.start_hour) * 60 + moment.minute
        return minutes / 60 * self.pixels_per_hour

    def duration_to_height(self, minutes: int) -> float:
        """Height of a booking card lasting ``minutes``."""
        return minutes / 60 * self.pixels_per_hour

    def offset_to_minutes(self, offset: float) -> int:
        """
        Minutes after the grid start for a pointer offset, snapped and clamped.

        Halfway points round up. The result never exceeds the last start
        time that still lies inside the grid.
        """
        offset = min(max(offset, 0.0), self.height)
        minutes_from_top = offset / self.pixels_per_hour * 60

        steps = math.floor(minutes_from_top / self.rounding_minutes + 0.5)
        snapped = steps * self.rounding_minutes

        last_start = self.hour_count * 60 - self.rounding_minutes
        return min(snapped, last_start)

    def offset_to_time(self, day: DateTime, offset: float) -> DateTime:
        """Concrete timestamp on ``day`` for a click or drop at ``offset``."""
        minutes = self.offset_to_minutes(offset)
        hour = self.start_hour + minutes // 60
        return day.set(hour=hour, minute=minutes % 60, second=0, microsecond=0)

    def current_time_offset(self, now: DateTime) -> float | None:
        """Offset of the "now" indicator line, None when outside the grid."""
        if not self.start_hour <= now.hour < self.end_hour:
            return None
        return self.time_to_offset(now)

    def column_to_day(
        self,
        week_start: DateTime,
        x_offset: float,
        column_width: float,
        columns: int = 7,
    ) -> DateTime:
        """
        Day under a horizontal pointer position in the week view.

        Positions left of the first or right of the last column clamp to
        that column.
        """
        if column_width <= 0:
            raise InvalidConfigurationError(f"column_width must be positive, got {column_width}")

        index = math.floor(x_offset / column_width)
        index = min(max(index, 0), columns - 1)
        return week_start.start_of("day").add(days=index)
