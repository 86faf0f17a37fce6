"""
Scheduling Module

Availability loading, slot generation, calendar reconciliation, booking
and reply composition for inbound appointment messages.

Usage:
    from app.core.scheduling import InboundMessage, process_message

    response = await process_message(
        InboundMessage(
            sender="Jane Doe <jane@example.com>",
            subject="Appointment",
            body="Monday at 10 AM works for me",
            message_id="<abc@mail.example.com>",
        )
    )
    print(response.message)  # Reply text that was sent
    print(response.outcome)  # BookingOutcome(booked=[...], failed=[...])
"""

# Availability
from app.core.scheduling.availability import (
    AvailabilityStore,
    AvailabilityWindow,
    Weekday,
    parse_time_of_day,
)

# Calendar
from app.core.scheduling.calendar_client import (
    CalendarEvent,
    CalendarReader,
    CalendarWriter,
    GoogleCalendarClient,
    get_calendar_client,
)

# Slots
from app.core.scheduling.slots import (
    Slot,
    SlotPool,
    generate_slots,
    remove_booked_slots,
    find_matching_slot,
)

# Response Generator
from app.core.scheduling.response import (
    ResponseGenerator,
    get_response_generator,
)

# Scheduling Engine (main orchestrator)
from app.core.scheduling.state import OrchestratorState
from app.core.scheduling.engine import (
    SchedulingEngine,
    InboundMessage,
    BookingOutcome,
    EngineResponse,
    get_scheduling_engine,
    process_message,
)

__all__ = [
    # Availability
    "AvailabilityStore",
    "AvailabilityWindow",
    "Weekday",
    "parse_time_of_day",
    # Calendar
    "CalendarEvent",
    "CalendarReader",
    "CalendarWriter",
    "GoogleCalendarClient",
    "get_calendar_client",
    # Slots
    "Slot",
    "SlotPool",
    "generate_slots",
    "remove_booked_slots",
    "find_matching_slot",
    # Response Generator
    "ResponseGenerator",
    "get_response_generator",
    # Scheduling Engine
    "OrchestratorState",
    "SchedulingEngine",
    "InboundMessage",
    "BookingOutcome",
    "EngineResponse",
    "get_scheduling_engine",
    "process_message",
]
