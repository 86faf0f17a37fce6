"""
Appointment API Endpoints.

Entry point for inbound appointment messages handed over by the mail
transport, plus a read-only view of current availability.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from app.core.errors import ConfigurationAbsent
from app.core.scheduling import InboundMessage, get_scheduling_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


class MessageRequest(BaseModel):
    """Inbound appointment message."""

    sender: str = Field(
        ...,
        min_length=3,
        description="From header of the inbound message",
        examples=["Jane Doe <jane@example.com>"],
    )
    subject: str = Field(
        default="",
        max_length=998,
        description="Message subject",
        examples=["Appointment request"],
    )
    body: str = Field(
        ...,
        min_length=1,
        max_length=20000,
        description="Plain-text message body",
        examples=["Could I book Monday at 10 AM?"],
    )
    message_id: Optional[str] = Field(
        default=None,
        description="Message-ID of the inbound message, used to thread the reply",
        examples=["<CAF=abc123@mail.gmail.com>"],
    )


class SlotResponse(BaseModel):
    """One bookable hour."""

    day: str
    date: str
    start: str
    end: str
    label: str


class RequestedSlot(BaseModel):
    """A requested day/time that could not be booked."""

    day: str
    time: str


class MessageResponse(BaseModel):
    """Result of processing an inbound message."""

    reply: str = Field(..., description="Reply text sent to the sender")
    state: str = Field(..., description="Final orchestrator state")
    intent: Optional[str] = Field(default=None, description="Classified intent")
    booked: list[SlotResponse] = Field(default_factory=list)
    failed: list[RequestedSlot] = Field(default_factory=list)
    reply_sent: bool = Field(..., description="Whether the reply was handed to SMTP")
    processing_time_ms: Optional[float] = None


class AvailabilityResponse(BaseModel):
    """Current availability for the configured doctor."""

    doctor: str
    slots: list[SlotResponse]


@router.post(
    "/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Process an appointment message",
    description="Classify, book if requested, and reply to an inbound appointment message.",
)
async def process_appointment_message(request: MessageRequest) -> MessageResponse:
    """
    Process an inbound appointment message.

    The engine always replies to the sender, even when booking fails,
    so this endpoint only errors on invalid input.
    """
    engine = get_scheduling_engine()
    response = await engine.process(
        InboundMessage(
            sender=request.sender,
            subject=request.subject,
            body=request.body,
            message_id=request.message_id,
        )
    )

    outcome = response.outcome
    return MessageResponse(
        reply=response.message,
        state=response.state.value,
        intent=response.intent.value if response.intent else None,
        booked=[SlotResponse(**slot.to_dict()) for slot in outcome.booked] if outcome else [],
        failed=[RequestedSlot(**req.to_dict()) for req in outcome.failed] if outcome else [],
        reply_sent=response.reply_sent,
        processing_time_ms=response.processing_time_ms,
    )


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    summary="Current availability",
    description="Open slots for the configured doctor this week, after removing booked time.",
    responses={
        404: {"description": "No availability configured"},
    },
)
async def get_availability() -> AvailabilityResponse:
    """List this week's open slots."""
    engine = get_scheduling_engine()

    try:
        slots = await engine.current_availability()
    except ConfigurationAbsent as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )

    return AvailabilityResponse(
        doctor=engine.doctor_name,
        slots=[SlotResponse(**slot.to_dict()) for slot in slots],
    )
