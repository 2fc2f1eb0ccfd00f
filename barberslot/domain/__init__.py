"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability import AvailabilityCalculator, group_slots_by_hour
from .grid_mapper import GridMapper
from .models import BookingInterval, BookingStatus, CandidateSlot, OperatingHours, TimeRange
from .reschedule import RescheduleProposal, find_conflicts, move_to_day, plan_reschedule

__all__ = [
    "AvailabilityCalculator",
    "BookingInterval",
    "BookingStatus",
    "CandidateSlot",
    "GridMapper",
    "OperatingHours",
    "RescheduleProposal",
    "TimeRange",
    "find_conflicts",
    "group_slots_by_hour",
    "move_to_day",
    "plan_reschedule",
]
