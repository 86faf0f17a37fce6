"""
LLM-based extraction of requested booking slots.

Turns "1 PM to 3 PM on Monday" into one BookingRequest per hour.
"""

import json
import logging
import time
from typing import Optional

from app.core.errors import SlotExtractionError
from app.infra.claude import ClaudeClient, ClaudeClientError, get_claude_client, strip_code_fences
from .types import BookingRequest

logger = logging.getLogger(__name__)

# Max characters of raw model output written to logs
LOG_EXCERPT_CHARS = 80


EXTRACTION_PROMPT = """You are extracting appointment booking slots from an email. Each slot is 1 hour.

Email Subject: {subject}
Email Body: {body}

## Task

Extract ALL requested 1-hour appointment slots.

## Time Ranges

- A range like "1 PM to 3 PM" becomes one slot per hour: 1:00 PM and 2:00 PM
- "2 hours starting 9 AM" becomes 9:00 AM and 10:00 AM
- A single time like "10 AM" is one slot
- The end of a range is NOT a slot start (1 PM to 3 PM = 1:00 PM, 2:00 PM)

## Examples

Input: "Book me 10 AM on Tuesday and 2 PM to 4 PM on Wednesday"
Output: [{{"day": "Tuesday", "time": "10:00 AM"}}, {{"day": "Wednesday", "time": "2:00 PM"}}, {{"day": "Wednesday", "time": "3:00 PM"}}]

Input: "I want 3 hours starting 9 AM Friday"
Output: [{{"day": "Friday", "time": "9:00 AM"}}, {{"day": "Friday", "time": "10:00 AM"}}, {{"day": "Friday", "time": "11:00 AM"}}]

## Rules

- "day" is the full weekday name (Monday, Tuesday, ...), or YYYY-MM-DD if a full date is given
- "time" is 12-hour format with AM/PM (e.g., "1:00 PM")
- If no valid slot is found, return []

## Response

Respond with ONLY a JSON array. No explanation, no markdown."""


class SlotExtractor:
    """Claude-backed extraction of requested slots."""

    def __init__(self, claude_client: Optional[ClaudeClient] = None):
        """Initialize extractor.

        Args:
            claude_client: Optional Claude client (for testing)
        """
        self._client = claude_client

    async def _get_client(self) -> ClaudeClient:
        """Get or create Claude client."""
        if self._client is None:
            self._client = await get_claude_client()
        return self._client

    async def extract(self, subject: str, body: str) -> list[BookingRequest]:
        """
        Extract requested slots, in the order the sender listed them.

        Args:
            subject: Message subject
            body: Message body text

        Returns:
            Requested slots (empty if none were found)

        Raises:
            SlotExtractionError: If the model fails or returns unparseable output
        """
        start_time = time.time()
        prompt = EXTRACTION_PROMPT.format(subject=subject.strip(), body=body.strip())

        try:
            client = await self._get_client()
            response = await client.generate(
                prompt=prompt,
                max_tokens=1024,
                temperature=0,
            )
        except ClaudeClientError as e:
            logger.error(f"Claude API error: {e}")
            raise SlotExtractionError(str(e)) from e

        requests = self._parse_response(response.content)

        logger.info(
            f"Extracted {len(requests)} booking slot(s) "
            f"in {(time.time() - start_time) * 1000:.0f}ms"
        )
        return requests

    def _parse_response(self, response: str) -> list[BookingRequest]:
        """Parse the JSON array response."""
        cleaned = strip_code_fences(response)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(
                f"Failed to parse extractor output: {e} "
                f"(excerpt: {cleaned[:LOG_EXCERPT_CHARS]!r})"
            )
            raise SlotExtractionError(f"Unparseable extractor output: {e}") from e

        if not isinstance(data, list):
            raise SlotExtractionError("Extractor output is not a JSON array")

        requests = []
        for item in data:
            if not isinstance(item, dict):
                continue
            request = BookingRequest.from_dict(item)
            if request.day and request.time:
                requests.append(request)
            else:
                logger.warning(f"Dropping incomplete slot request: {item}")

        return requests


# Singleton
_extractor: Optional[SlotExtractor] = None


async def get_slot_extractor() -> SlotExtractor:
    """Get singleton SlotExtractor."""
    global _extractor
    if _extractor is None:
        _extractor = SlotExtractor()
    return _extractor


async def extract_booking_requests(subject: str, body: str) -> list[BookingRequest]:
    """Convenience function to extract requested slots."""
    extractor = await get_slot_extractor()
    return await extractor.extract(subject, body)
