"""
Reply text for appointment messages.

Every outcome of the engine maps to one plain-text reply built here.
Replies never include internal identifiers or error details.
"""

import logging
from typing import Optional

from app.config import get_settings
from app.core.intelligence.slots.types import BookingRequest
from app.core.scheduling.availability import format_time_label
from app.core.scheduling.slots import Slot

logger = logging.getLogger(__name__)


TABLE_RULE = "═" * 60
DAY_RULE = "─" * 40


class ResponseGenerator:
    """
    Template-based reply generator.

    Replies are deterministic so a patient always gets the same wording
    for the same outcome, and so tests can assert on them.
    """

    def __init__(self, arrival_notice_minutes: Optional[int] = None):
        """Initialize generator.

        Args:
            arrival_notice_minutes: How early patients should arrive (defaults to settings)
        """
        if arrival_notice_minutes is None:
            arrival_notice_minutes = get_settings().arrival_notice_minutes
        self.arrival_notice_minutes = arrival_notice_minutes

    # === Availability ===

    def not_configured(self, doctor_name: str) -> str:
        """Reply when no availability rows exist for the doctor."""
        return (
            f"Sorry, no availability information is currently set for {doctor_name}. "
            f"Please contact us directly."
        )

    def no_remaining_slots(self, doctor_name: str) -> str:
        """Reply when every slot this week has already passed."""
        return (
            f"Sorry, there are no remaining available slots for {doctor_name} this week. "
            f"Please check back next week."
        )

    def availability_table(self, slots: list[Slot], doctor_name: str) -> str:
        """Format available slots as a plain-text table grouped by day.

        Args:
            slots: Available slots, in display order
            doctor_name: Doctor name for the heading

        Returns:
            Table text
        """
        if not slots:
            return (
                f"Sorry, {doctor_name} has no available slots for this week. "
                f"Please check back next week or contact us for alternative arrangements."
            )

        # Group by day, keeping first-seen order
        grouped: dict[str, list[Slot]] = {}
        for slot in slots:
            grouped.setdefault(slot.day.value, []).append(slot)

        lines = [f"Available Appointment Slots for {doctor_name} (This Week)", TABLE_RULE, ""]

        for day, day_slots in grouped.items():
            lines.append(f"📅 {day} ({day_slots[0].date_str})")
            lines.append(DAY_RULE)
            for slot in day_slots:
                lines.append(
                    f"   🕐 {format_time_label(slot.start.time())} - "
                    f"{format_time_label(slot.end.time())}"
                )
            lines.append("")

        lines.append(TABLE_RULE)
        lines.append("To book an appointment, please reply with your preferred date and time.")
        return "\n".join(lines) + "\n"

    # === Booking ===

    def restate_request(self, doctor_name: str) -> str:
        """Reply when no day/time could be read from a booking message."""
        return (
            f"Thank you for your interest in booking an appointment with {doctor_name}. "
            f"Unfortunately, I couldn't determine your preferred time slot. "
            f'Please reply with a specific day and time (e.g., "Monday at 10:00 AM").'
        )

    def booking_confirmed(
        self,
        booked: list[Slot],
        doctor_name: str,
        failed: Optional[list[BookingRequest]] = None,
    ) -> str:
        """Confirmation listing every booked slot.

        Args:
            booked: Committed slots (at least one)
            doctor_name: Doctor name
            failed: Requests that could not be honored

        Returns:
            Confirmation text
        """
        plural = len(booked) > 1
        details = "\n\n".join(
            f"📅 Date: {slot.date_str}\n🕐 Time: {slot.label}" for slot in booked
        )

        text = (
            f"Your appointment{'s' if plural else ''} with {doctor_name} "
            f"{'have' if plural else 'has'} been confirmed! ✅\n\n"
            f"{details}\n\n"
            f"Please arrive {self.arrival_notice_minutes} minutes before your appointment time.\n"
        )

        if failed:
            count = len(failed)
            text += (
                f"⚠️ Note: {count} requested slot{'s' if count > 1 else ''} could not be "
                f"booked as {'they were' if count > 1 else 'it was'} not available.\n\n"
            )

        text += "Thank you!"
        return text

    def booking_unavailable(self, available: list[Slot], doctor_name: str) -> str:
        """Apology plus current availability, when nothing could be booked."""
        return (
            f"Thank you for your interest in booking with {doctor_name}.\n\n"
            f"Unfortunately, the requested time slot(s) are not available this week.\n\n"
            f"Here are the currently available slots:\n\n"
            f"{self.availability_table(available, doctor_name)}"
        )

    # === Fallbacks ===

    def clarification(self, doctor_name: str) -> str:
        """Reply when the message intent could not be determined."""
        return (
            f"Thank you for contacting us about an appointment with {doctor_name}. "
            f"Could you let us know whether you'd like to see the available times, "
            f'or reply with a specific day and time to book (e.g., "Monday at 10:00 AM")?'
        )

    def internal_error(self) -> str:
        """Generic non-committal reply after an internal fault."""
        return (
            "Thank you for your message. We weren't able to process your appointment "
            "request automatically, so a member of our team will follow up with you shortly."
        )

    @staticmethod
    def reply_subject(subject: str) -> str:
        """Subject for a reply in the same thread."""
        subject = (subject or "").strip()
        if subject.lower().startswith("re:"):
            return subject
        return f"Re: {subject}" if subject else "Re: Your appointment request"


# Singleton
_generator: Optional[ResponseGenerator] = None


def get_response_generator() -> ResponseGenerator:
    """Get singleton ResponseGenerator."""
    global _generator
    if _generator is None:
        _generator = ResponseGenerator()
    return _generator
