"""
Scheduling Engine - Main Orchestrator.

Takes one inbound appointment message, works out what the sender wants,
and answers it:

- Availability requests get this week's open slots for the doctor.
- Booking confirmations get each requested hour matched against the open
  slots and committed to the calendar, then a confirmation (or an apology
  with the remaining availability).

Messages are processed one at a time. Within a message, requested slots
are matched and committed in order, and each committed slot leaves the
pool before the next request is matched.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from email.utils import parseaddr
from typing import Callable, Optional

from app.config import get_settings
from app.core.errors import CollaboratorUnavailable, ConfigurationAbsent
from app.core.intelligence import (
    AppointmentIntent,
    BookingRequest,
    IntentClassifier,
    SlotExtractor,
    get_intent_classifier,
    get_slot_extractor,
)
from app.core.scheduling.availability import AvailabilityStore, AvailabilityWindow
from app.core.scheduling.calendar_client import (
    CalendarReader,
    CalendarWriter,
    get_calendar_client,
)
from app.core.scheduling.response import ResponseGenerator, get_response_generator
from app.core.scheduling.slots import (
    Slot,
    SlotPool,
    generate_slots,
    remove_booked_slots,
)
from app.core.scheduling.state import OrchestratorState, can_transition
from app.infra.notifications import ReplySender, get_reply_sender

logger = logging.getLogger(__name__)


@dataclass
class InboundMessage:
    """An appointment message handed over by the transport."""

    sender: str  # "Jane Doe <jane@example.com>" or a bare address
    subject: str
    body: str
    message_id: Optional[str] = None

    @property
    def sender_email(self) -> str:
        """Bare address of the sender."""
        _, address = parseaddr(self.sender)
        return address or self.sender.strip()

    @property
    def sender_name(self) -> str:
        """Display name, falling back to the address local part."""
        name, _ = parseaddr(self.sender)
        name = name.replace('"', "").strip()
        if name:
            return name
        return self.sender_email.split("@")[0]


@dataclass
class BookingOutcome:
    """What one booking run committed, and what it couldn't."""

    booked: list[Slot] = field(default_factory=list)
    failed: list[BookingRequest] = field(default_factory=list)


@dataclass
class EngineResponse:
    """Response from scheduling engine."""

    message: str
    state: OrchestratorState
    intent: Optional[AppointmentIntent] = None
    outcome: Optional[BookingOutcome] = None
    available_slots: Optional[list[Slot]] = None
    reply_sent: bool = False
    processing_time_ms: Optional[float] = None


class SchedulingEngine:
    """
    Main orchestrator for appointment messages.

    Coordinates:
    - Intent classification
    - Availability loading and slot generation
    - Calendar conflict filtering
    - Slot matching and booking
    - Reply composition and delivery

    ``process`` never raises: every message gets exactly one reply attempt.
    """

    def __init__(
        self,
        availability_store: Optional[AvailabilityStore] = None,
        calendar_reader: Optional[CalendarReader] = None,
        calendar_writer: Optional[CalendarWriter] = None,
        intent_classifier: Optional[IntentClassifier] = None,
        slot_extractor: Optional[SlotExtractor] = None,
        reply_sender: Optional[ReplySender] = None,
        response_generator: Optional[ResponseGenerator] = None,
        doctor_name: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize engine with optional dependencies.

        Args:
            availability_store: Weekly availability source
            calendar_reader: Calendar used for conflict checks
            calendar_writer: Calendar used for bookings
            intent_classifier: Appointment intent classifier
            slot_extractor: Requested-slot extractor
            reply_sender: Outbound reply channel
            response_generator: Reply text templates
            doctor_name: Doctor to schedule for (defaults to settings)
            clock: Returns "now" as an aware datetime (defaults to clinic time)
        """
        settings = get_settings()
        self.doctor_name = doctor_name or settings.doctor_name
        self._availability_store = availability_store
        self._calendar_reader = calendar_reader
        self._calendar_writer = calendar_writer
        self._intent_classifier = intent_classifier
        self._slot_extractor = slot_extractor
        self._reply_sender = reply_sender
        self._response_generator = response_generator
        self._clock = clock or (lambda: datetime.now(settings.tz))

        # One message at a time
        self._lock = asyncio.Lock()

    def _get_availability_store(self) -> AvailabilityStore:
        """Get availability store."""
        if self._availability_store is None:
            self._availability_store = AvailabilityStore(get_settings().availability_csv_path)
        return self._availability_store

    def _get_calendar_reader(self) -> CalendarReader:
        """Get calendar reader."""
        if self._calendar_reader is None:
            self._calendar_reader = get_calendar_client()
        return self._calendar_reader

    def _get_calendar_writer(self) -> CalendarWriter:
        """Get calendar writer."""
        if self._calendar_writer is None:
            self._calendar_writer = get_calendar_client()
        return self._calendar_writer

    async def _get_intent_classifier(self) -> IntentClassifier:
        """Get intent classifier."""
        if self._intent_classifier is None:
            self._intent_classifier = await get_intent_classifier()
        return self._intent_classifier

    async def _get_slot_extractor(self) -> SlotExtractor:
        """Get slot extractor."""
        if self._slot_extractor is None:
            self._slot_extractor = await get_slot_extractor()
        return self._slot_extractor

    def _get_reply_sender(self) -> ReplySender:
        """Get reply sender."""
        if self._reply_sender is None:
            self._reply_sender = get_reply_sender()
        return self._reply_sender

    def _get_response_generator(self) -> ResponseGenerator:
        """Get response generator."""
        if self._response_generator is None:
            self._response_generator = get_response_generator()
        return self._response_generator

    # === Entry point ===

    async def process(self, message: InboundMessage) -> EngineResponse:
        """Process one inbound appointment message.

        Args:
            message: Inbound message

        Returns:
            EngineResponse with the reply text and booking outcome
        """
        async with self._lock:
            return await self._process(message)

    async def _process(self, message: InboundMessage) -> EngineResponse:
        start_time = time.time()
        generator = self._get_response_generator()

        state = OrchestratorState.IDLE
        intent: Optional[AppointmentIntent] = None
        outcome: Optional[BookingOutcome] = None
        available: Optional[list[Slot]] = None

        logger.info(f"Processing appointment message from {message.sender_email}")
        state = self._advance(state, OrchestratorState.CLASSIFY_INTENT)

        try:
            classifier = await self._get_intent_classifier()
            result = await classifier.classify(message.subject, message.body)
            intent = result.intent
        except CollaboratorUnavailable as e:
            logger.warning(f"Intent classification unavailable: {e}")
            reply_text = generator.clarification(self.doctor_name)
        except Exception as e:
            logger.error(f"Intent classification failed: {e}", exc_info=True)
            reply_text = generator.internal_error()

        if intent is not None:
            flow_state = (
                OrchestratorState.BOOKING_FLOW
                if result.is_booking
                else OrchestratorState.AVAILABILITY_FLOW
            )
            state = self._advance(state, flow_state)

            try:
                if flow_state == OrchestratorState.BOOKING_FLOW:
                    reply_text, outcome, available = await self._booking_flow(message)
                else:
                    reply_text, available = await self._availability_flow()
            except Exception as e:
                logger.error(f"Error processing appointment message: {e}", exc_info=True)
                reply_text = generator.internal_error()
                outcome = None
                available = None

        reply_sent = await self._send_reply(message, reply_text)
        state = self._advance(state, OrchestratorState.REPLIED)

        return EngineResponse(
            message=reply_text,
            state=state,
            intent=intent,
            outcome=outcome,
            available_slots=available,
            reply_sent=reply_sent,
            processing_time_ms=(time.time() - start_time) * 1000,
        )

    def _advance(
        self,
        current: OrchestratorState,
        next_state: OrchestratorState,
    ) -> OrchestratorState:
        """Move the state machine forward."""
        if not can_transition(current, next_state):
            raise RuntimeError(f"Invalid transition {current.value} -> {next_state.value}")
        logger.debug(f"State {current.value} -> {next_state.value}")
        return next_state

    # === Flows ===

    async def _availability_flow(self) -> tuple[str, Optional[list[Slot]]]:
        """Reply with this week's open slots.

        Returns:
            Tuple of (reply_text, available_slots)
        """
        generator = self._get_response_generator()

        try:
            windows = self._read_windows(required=True)
        except ConfigurationAbsent as e:
            logger.warning(str(e))
            return generator.not_configured(self.doctor_name), None

        generated, available = await self._offerable_slots(windows)
        if not generated:
            return generator.no_remaining_slots(self.doctor_name), []

        logger.info(f"{len(available)} of {len(generated)} slots available")
        return generator.availability_table(available, self.doctor_name), available

    async def _booking_flow(
        self,
        message: InboundMessage,
    ) -> tuple[str, Optional[BookingOutcome], Optional[list[Slot]]]:
        """Match and commit the requested slots.

        Returns:
            Tuple of (reply_text, outcome, slots_offered_before_booking)
        """
        generator = self._get_response_generator()
        extractor = await self._get_slot_extractor()

        try:
            requests = await extractor.extract(message.subject, message.body)
        except CollaboratorUnavailable as e:
            logger.warning(f"Slot extraction unavailable: {e}")
            requests = []

        if not requests:
            logger.info("Could not extract booking slots from message")
            return generator.restate_request(self.doctor_name), None, None

        windows = self._read_windows(required=False)
        _, available = await self._offerable_slots(windows)

        outcome = await self._book_requests(requests, available, message)

        if outcome.booked:
            logger.info(
                f"{len(outcome.booked)} appointment(s) booked for {message.sender_name}, "
                f"{len(outcome.failed)} failed"
            )
            reply_text = generator.booking_confirmed(
                outcome.booked, self.doctor_name, outcome.failed
            )
        else:
            logger.info("No requested slot could be booked, sending availability")
            reply_text = generator.booking_unavailable(available, self.doctor_name)

        return reply_text, outcome, available

    async def _book_requests(
        self,
        requests: list[BookingRequest],
        available: list[Slot],
        message: InboundMessage,
    ) -> BookingOutcome:
        """Match and commit each request in order against a shrinking pool."""
        writer = self._get_calendar_writer()
        pool = SlotPool(available)
        outcome = BookingOutcome()

        for request in requests:
            slot = pool.find(request.day, request.time)
            if slot is None:
                logger.info(f"No open slot for requested {request}")
                outcome.failed.append(request)
                continue

            try:
                await writer.create_event(
                    summary=f"Appointment - {message.sender_name}",
                    description=(
                        f"Patient: {message.sender_name}\n"
                        f"Email: {message.sender_email}\n"
                        f"Booked via email automation"
                    ),
                    start=slot.start,
                    end=slot.end,
                )
            except Exception as e:
                logger.error(f"Error booking slot {slot.label}: {e}")
                outcome.failed.append(request)
                continue

            outcome.booked.append(slot)
            pool.remove(slot)
            logger.info(f"Slot booked: {slot.label}")

        return outcome

    # === Helpers ===

    def _read_windows(self, required: bool) -> list[AvailabilityWindow]:
        """Read the doctor's windows.

        Raises:
            ConfigurationAbsent: If required and none are configured
        """
        windows = self._get_availability_store().read(self.doctor_name)
        if required and not windows:
            raise ConfigurationAbsent(self.doctor_name)
        return windows

    async def _offerable_slots(
        self,
        windows: list[AvailabilityWindow],
    ) -> tuple[list[Slot], list[Slot]]:
        """Generate this week's slots and drop the ones already booked.

        A failed calendar read is not fatal: the unfiltered slots are used.

        Returns:
            Tuple of (generated_slots, available_slots)
        """
        generated = generate_slots(windows, self._clock())
        logger.info(f"Generated {len(generated)} potential time slots")
        if not generated:
            return [], []

        range_start = min(slot.start for slot in generated)
        range_end = max(slot.end for slot in generated) + timedelta(days=1)

        try:
            events = await self._get_calendar_reader().events_in_range(range_start, range_end)
        except Exception as e:
            logger.warning(f"Could not check calendar, offering all generated slots: {e}")
            return generated, generated

        return generated, remove_booked_slots(generated, events)

    async def _send_reply(self, message: InboundMessage, text: str) -> bool:
        """Send the reply; failures are logged only."""
        generator = self._get_response_generator()

        try:
            return await self._get_reply_sender().send(
                to=message.sender_email,
                subject=generator.reply_subject(message.subject),
                body=text,
                in_reply_to=message.message_id,
            )
        except Exception as e:
            logger.error(f"Failed to send reply to {message.sender_email}: {e}")
            return False

    # === Read-only view ===

    async def current_availability(self) -> list[Slot]:
        """This week's open slots for the doctor, without replying to anyone.

        Raises:
            ConfigurationAbsent: If no availability is configured
        """
        windows = self._read_windows(required=True)
        _, available = await self._offerable_slots(windows)
        return available


# Singleton
_engine: Optional[SchedulingEngine] = None


def get_scheduling_engine() -> SchedulingEngine:
    """Get singleton SchedulingEngine."""
    global _engine
    if _engine is None:
        _engine = SchedulingEngine()
    return _engine


async def process_message(message: InboundMessage) -> EngineResponse:
    """Convenience function to process a message.

    Args:
        message: Inbound appointment message

    Returns:
        EngineResponse
    """
    engine = get_scheduling_engine()
    return await engine.process(message)
