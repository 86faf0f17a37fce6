"""Intent types for appointment message classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AppointmentIntent(str, Enum):
    """What an appointment message is asking for."""

    AVAILABILITY_REQUEST = "AVAILABILITY_REQUEST"    # "When is the doctor free?"
    BOOKING_CONFIRMATION = "BOOKING_CONFIRMATION"    # "Monday at 10 AM works"


@dataclass
class IntentResult:
    """Result of intent classification."""

    intent: AppointmentIntent

    # Model that answered
    model: Optional[str] = None

    # Raw LLM output for debugging
    raw_response: Optional[str] = None

    # Processing time
    processing_time_ms: float = 0.0

    @property
    def is_booking(self) -> bool:
        """Check if the sender picked specific slots."""
        return self.intent == AppointmentIntent.BOOKING_CONFIRMATION

