"""
Intelligence Layer Module

Understands inbound appointment messages: what the sender wants, and
which hours they asked for.

Usage:
    from app.core.intelligence import classify_intent, extract_booking_requests

    # Classify intent
    result = await classify_intent("Appointment", "When is the doctor free?")
    print(result.intent)  # AppointmentIntent.AVAILABILITY_REQUEST

    # Extract requested slots
    requests = await extract_booking_requests("Booking", "Monday 1 PM to 3 PM")
    print(requests)  # [BookingRequest("Monday", "1:00 PM"), BookingRequest("Monday", "2:00 PM")]
"""

# Intent Classification
from app.core.intelligence.intent.types import AppointmentIntent, IntentResult
from app.core.intelligence.intent.classifier import (
    IntentClassifier,
    get_intent_classifier,
    classify_intent,
)

# Slot Extraction
from app.core.intelligence.slots.types import BookingRequest
from app.core.intelligence.slots.extractor import (
    SlotExtractor,
    get_slot_extractor,
    extract_booking_requests,
)

__all__ = [
    # Intent
    "AppointmentIntent",
    "IntentResult",
    "IntentClassifier",
    "get_intent_classifier",
    "classify_intent",
    # Slots
    "BookingRequest",
    "SlotExtractor",
    "get_slot_extractor",
    "extract_booking_requests",
]
