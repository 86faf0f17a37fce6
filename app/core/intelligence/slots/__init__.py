"""Booking slot extraction module."""

from .types import BookingRequest
from .extractor import (
    SlotExtractor,
    get_slot_extractor,
    extract_booking_requests,
)

__all__ = [
    # Types
    "BookingRequest",
    # Extractor
    "SlotExtractor",
    "get_slot_extractor",
    "extract_booking_requests",
]
