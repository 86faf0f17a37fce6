"""
Health Check Endpoints

Provides health, readiness, and liveness probes for monitoring
and load balancers.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

# Track application start time for uptime calculation
_start_time: Optional[datetime] = None


def set_start_time() -> None:
    """Set application start time. Called once on startup."""
    global _start_time
    _start_time = datetime.now(timezone.utc)


def get_uptime_seconds() -> Optional[float]:
    """Get application uptime in seconds."""
    if _start_time is None:
        return None
    return (datetime.now(timezone.utc) - _start_time).total_seconds()


class HealthResponse(BaseModel):
    """Basic health check response."""
    status: str
    timestamp: datetime
    version: str
    environment: str


class ReadyResponse(BaseModel):
    """Readiness check response with configuration status."""
    status: str
    timestamp: datetime
    checks: dict[str, str]


class LiveResponse(BaseModel):
    """Liveness check response."""
    status: str
    timestamp: datetime
    uptime_seconds: Optional[float] = None


def configuration_checks() -> dict[str, str]:
    """Check that every collaborator has what it needs to run."""
    return {
        "availability_file": "ok" if Path(settings.availability_csv_path).exists() else "missing",
        "anthropic": "ok" if settings.anthropic_api_key else "missing",
        "google_calendar": "ok" if settings.calendar_configured else "missing",
        "smtp": "ok" if settings.email_user and settings.email_app_password else "missing",
    }


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the application is running. Does not check configuration.",
)
async def health() -> HealthResponse:
    """
    Basic health check.

    Always returns 200 if the application is running.
    Use /health/ready for configuration checks.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version="1.0.0",
        environment=settings.app_env,
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Checks that availability, Claude, calendar and SMTP are configured. Returns 503 otherwise.",
    responses={
        200: {"description": "All collaborators are configured"},
        503: {"description": "One or more collaborators are not configured"},
    },
)
async def ready() -> ReadyResponse:
    """
    Readiness probe.

    Only checks configuration; no calls are made to external services.
    """
    checks = configuration_checks()
    all_ok = all(v == "ok" for v in checks.values())

    if not all_ok:
        missing = [name for name, value in checks.items() if value != "ok"]
        logger.warning(f"Readiness check: missing configuration for {', '.join(missing)}")

    response = ReadyResponse(
        status="ready" if all_ok else "not_ready",
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )

    # Return 503 if not ready
    if not all_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(mode="json"),
        )

    return response


@router.get(
    "/live",
    response_model=LiveResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    description="Returns 200 if the process is alive.",
)
async def live() -> LiveResponse:
    """Liveness probe. Always returns 200 if the process is running."""
    return LiveResponse(
        status="alive",
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=get_uptime_seconds(),
    )
