"""
Adapters layer - Booking persistence backends.
"""

from .memory_store import InMemoryBookingStore
from .rest_store import RestBookingStore

__all__ = ["InMemoryBookingStore", "RestBookingStore"]
