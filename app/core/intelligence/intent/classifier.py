"""
LLM-based intent classification for appointment messages.

Decides whether a message asks for availability or picks specific slots.
"""

import logging
import time
from typing import Optional

from app.core.errors import IntentClassificationError
from app.infra.claude import ClaudeClient, ClaudeClientError, get_claude_client, strip_code_fences
from .types import AppointmentIntent, IntentResult

logger = logging.getLogger(__name__)


CLASSIFICATION_PROMPT = """You are analyzing an email sent to a medical clinic about an appointment.

Email Subject: {subject}
Email Body: {body}

Determine the intent. Respond with EXACTLY ONE of:
AVAILABILITY_REQUEST
BOOKING_CONFIRMATION

RULES:
AVAILABILITY_REQUEST:
- The sender is asking what time slots are available.
- They have NOT selected a specific slot.
- Examples: "What times are available?", "When is the doctor free this week?"

BOOKING_CONFIRMATION:
- The sender selects or confirms one or more specific days and times.
- Examples: "Monday at 10 AM works.", "Please book Tuesday 2 PM.", "1 PM to 3 PM on Friday."

If the email clearly includes specific date/time selections, answer BOOKING_CONFIRMATION.

Respond with ONLY the label. No explanation."""


class IntentClassifier:
    """
    Claude-backed classifier for appointment intents.

    Only the two known labels are ever returned; anything else the model
    says is treated as a classification failure.
    """

    def __init__(self, claude_client: Optional[ClaudeClient] = None):
        """Initialize classifier.

        Args:
            claude_client: Optional Claude client (for testing)
        """
        self._client = claude_client

    async def _get_client(self) -> ClaudeClient:
        """Get or create Claude client."""
        if self._client is None:
            self._client = await get_claude_client()
        return self._client

    async def classify(self, subject: str, body: str) -> IntentResult:
        """
        Classify an appointment message.

        Args:
            subject: Message subject
            body: Message body text

        Returns:
            IntentResult with the detected intent

        Raises:
            IntentClassificationError: If the model fails or gives an unknown label
        """
        start_time = time.time()
        prompt = CLASSIFICATION_PROMPT.format(subject=subject.strip(), body=body.strip())

        try:
            client = await self._get_client()
            response = await client.generate(
                prompt=prompt,
                max_tokens=20,
                temperature=0,  # Deterministic
            )
        except ClaudeClientError as e:
            logger.error(f"Claude API error: {e}")
            raise IntentClassificationError(str(e)) from e

        result = self._parse_response(response.content)
        result.model = response.model
        result.processing_time_ms = (time.time() - start_time) * 1000

        logger.info(f"Appointment intent: {result.intent.value}")
        return result

    def _parse_response(self, response: str) -> IntentResult:
        """Parse the single-label response."""
        label = strip_code_fences(response).strip().strip(".").upper()

        try:
            intent = AppointmentIntent(label)
        except ValueError:
            logger.warning(f"Unexpected intent label: {label!r}")
            raise IntentClassificationError(f"Unexpected intent label: {label!r}")

        return IntentResult(intent=intent, raw_response=response)


# Singleton
_classifier: Optional[IntentClassifier] = None


async def get_intent_classifier() -> IntentClassifier:
    """Get singleton IntentClassifier."""
    global _classifier
    if _classifier is None:
        _classifier = IntentClassifier()
    return _classifier


async def classify_intent(subject: str, body: str) -> IntentResult:
    """Convenience function to classify intent."""
    classifier = await get_intent_classifier()
    return await classifier.classify(subject, body)
