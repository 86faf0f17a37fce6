"""Tests for LLM booking slot extraction."""

import pytest
from unittest.mock import AsyncMock
from dataclasses import dataclass

from app.core.errors import SlotExtractionError
from app.core.intelligence.slots.types import BookingRequest
from app.core.intelligence.slots.extractor import LOG_EXCERPT_CHARS, SlotExtractor
from app.infra.claude import ClaudeClientError


@dataclass
class MockClaudeResponse:
    """Mock Claude response."""
    content: str
    model: str = "claude-sonnet-4-20250514"
    input_tokens: int = 200
    output_tokens: int = 60
    stop_reason: str = "end_turn"
    latency_ms: float = 80.0


class TestSlotExtractor:
    """Test LLM-based slot extraction."""

    @pytest.fixture
    def mock_claude_client(self):
        """Mock Claude client."""
        return AsyncMock()

    @pytest.fixture
    def extractor(self, mock_claude_client):
        """Create extractor with mock client."""
        return SlotExtractor(claude_client=mock_claude_client)

    def _mock_response(self, mock_client, text: str):
        """Helper to mock Claude response."""
        mock_client.generate.return_value = MockClaudeResponse(content=text)

    @pytest.mark.asyncio
    async def test_single_slot(self, extractor, mock_claude_client):
        self._mock_response(mock_claude_client, '[{"day": "Monday", "time": "10:00 AM"}]')

        requests = await extractor.extract("Re: Slots", "Monday 10 AM please")

        assert requests == [BookingRequest(day="Monday", time="10:00 AM")]

    @pytest.mark.asyncio
    async def test_range_keeps_order(self, extractor, mock_claude_client):
        self._mock_response(
            mock_claude_client,
            '''
            [
                {"day": "Wednesday", "time": "2:00 PM"},
                {"day": "Wednesday", "time": "3:00 PM"},
                {"day": "Tuesday", "time": "10:00 AM"}
            ]
            ''',
        )

        requests = await extractor.extract("", "Wed 2-4 PM and Tue 10 AM")

        assert [str(r) for r in requests] == [
            "Wednesday 2:00 PM",
            "Wednesday 3:00 PM",
            "Tuesday 10:00 AM",
        ]

    @pytest.mark.asyncio
    async def test_markdown_fences_stripped(self, extractor, mock_claude_client):
        self._mock_response(
            mock_claude_client,
            '```json\n[{"day": "2025-06-06", "time": "9:00 AM"}]\n```',
        )

        requests = await extractor.extract("", "June 6th at 9")

        assert requests == [BookingRequest(day="2025-06-06", time="9:00 AM")]

    @pytest.mark.asyncio
    async def test_empty_array(self, extractor, mock_claude_client):
        self._mock_response(mock_claude_client, "[]")

        assert await extractor.extract("", "Sometime next week maybe") == []

    @pytest.mark.asyncio
    async def test_incomplete_items_dropped(self, extractor, mock_claude_client):
        self._mock_response(
            mock_claude_client,
            '[{"day": "Monday"}, "Tuesday 2 PM", {"day": "Friday", "time": "11:00 AM"}]',
        )

        requests = await extractor.extract("", "...")

        assert requests == [BookingRequest(day="Friday", time="11:00 AM")]

    @pytest.mark.asyncio
    async def test_null_fields_dropped(self, extractor, mock_claude_client):
        self._mock_response(
            mock_claude_client,
            '[{"day": null, "time": null}, {"day": "Monday", "time": null}]',
        )

        assert await extractor.extract("", "Yes please book it") == []

    @pytest.mark.asyncio
    async def test_parse_error_logs_excerpt_only(self, extractor, mock_claude_client, caplog):
        body = "Sure! " + "my back has hurt since the accident " * 10
        self._mock_response(mock_claude_client, body)

        with pytest.raises(SlotExtractionError):
            await extractor.extract("", "Monday at 10 AM")

        assert body not in caplog.text
        assert body[:LOG_EXCERPT_CHARS] in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_json(self, extractor, mock_claude_client):
        self._mock_response(mock_claude_client, "Monday at 10 AM")

        with pytest.raises(SlotExtractionError):
            await extractor.extract("", "Monday at 10 AM")

    @pytest.mark.asyncio
    async def test_non_array_json(self, extractor, mock_claude_client):
        self._mock_response(mock_claude_client, '{"day": "Monday", "time": "10:00 AM"}')

        with pytest.raises(SlotExtractionError):
            await extractor.extract("", "Monday at 10 AM")

    @pytest.mark.asyncio
    async def test_claude_error_wrapped(self, extractor, mock_claude_client):
        mock_claude_client.generate.side_effect = ClaudeClientError("timeout")

        with pytest.raises(SlotExtractionError):
            await extractor.extract("", "Monday at 10 AM")


class TestBookingRequest:
    """Test BookingRequest parsing."""

    def test_from_dict_strips(self):
        request = BookingRequest.from_dict({"day": " Monday ", "time": "10:00 AM "})

        assert request == BookingRequest(day="Monday", time="10:00 AM")

    def test_from_dict_missing_fields(self):
        request = BookingRequest.from_dict({})

        assert request.day == ""
        assert request.time == ""

    def test_from_dict_null_fields(self):
        request = BookingRequest.from_dict({"day": None, "time": None})

        assert request.day == ""
        assert request.time == ""

    def test_to_dict(self):
        assert BookingRequest("Friday", "9:00 AM").to_dict() == {"day": "Friday", "time": "9:00 AM"}
