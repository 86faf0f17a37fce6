#!/usr/bin/env python3
"""
Setup Verification Script

Validates configuration and collaborator access before running the service.
Run this after setting up your .env file to ensure everything is configured correctly.

Usage:
    python scripts/verify_setup.py
"""

import asyncio
import os
import smtplib
import ssl
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Load environment variables
from dotenv import load_dotenv
load_dotenv()


def print_header(title: str) -> None:
    """Print section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_result(name: str, success: bool, message: str = "") -> None:
    """Print check result."""
    status = "[PASS]" if success else "[FAIL]"
    color = "\033[92m" if success else "\033[91m"
    reset = "\033[0m"
    msg = f" - {message}" if message else ""
    print(f"  {color}{status}{reset} {name}{msg}")


def check_env_file() -> bool:
    """Check if .env file exists."""
    env_path = project_root / ".env"
    exists = env_path.exists()
    if not exists:
        print_result(".env file", False, "File not found. Copy .env.example to .env")
    else:
        print_result(".env file", True, "Found")
    return exists


def check_required_vars() -> dict[str, bool]:
    """Check required environment variables."""
    results = {}

    required = [
        ("ANTHROPIC_API_KEY", "Required for intent and slot extraction"),
        ("GOOGLE_CLIENT_ID", "Required for Google Calendar"),
        ("GOOGLE_CLIENT_SECRET", "Required for Google Calendar"),
        ("GOOGLE_REFRESH_TOKEN", "Required for Google Calendar"),
        ("EMAIL_USER", "Required for sending replies"),
        ("EMAIL_APP_PASSWORD", "Required for sending replies"),
    ]

    for var, description in required:
        value = os.getenv(var, "")

        if not value:
            print_result(var, False, f"Not set - {description}")
            results[var] = False
        elif var == "ANTHROPIC_API_KEY" and value == "your-api-key-here":
            print_result(var, False, "Still using placeholder value")
            results[var] = False
        else:
            # Mask sensitive values
            if "KEY" in var or "SECRET" in var or "PASSWORD" in var or "TOKEN" in var:
                masked = f"{value[:8]}...{value[-4:]}" if len(value) > 12 else "***"
            else:
                masked = value
            print_result(var, True, f"Set ({masked})")
            results[var] = True

    return results


def check_optional_vars() -> None:
    """Check optional environment variables."""
    optional = [
        ("DOCTOR_NAME", "Dr Rishabh"),
        ("AVAILABILITY_CSV_PATH", "storage/availability.csv"),
        ("CLINIC_TIMEZONE", "Asia/Kolkata"),
        ("GOOGLE_CALENDAR_ID", "primary"),
        ("APP_ENV", "development"),
        ("PORT", "8000"),
    ]

    for var, default in optional:
        value = os.getenv(var, default)
        print_result(var, True, f"{value}")


def check_availability() -> bool:
    """Verify the availability table has rows for the doctor."""
    from app.config import get_settings
    from app.core.scheduling.availability import AvailabilityStore

    settings = get_settings()
    path = Path(settings.availability_csv_path)
    if not path.exists():
        print_result("Availability table", False, f"{path} not found")
        return False

    windows = AvailabilityStore(path).read(settings.doctor_name)
    if not windows:
        print_result("Availability table", False, f"No rows for {settings.doctor_name}")
        return False

    print_result("Availability table", True, f"{len(windows)} window(s) for {settings.doctor_name}")
    return True


async def check_anthropic() -> bool:
    """Verify Anthropic API key works."""
    from app.config import get_settings
    from app.infra.claude import ClaudeClient, ClaudeClientError

    try:
        client = ClaudeClient()
        await client.generate(prompt="Hi", max_tokens=10, use_fallback_on_error=False)
        await client.close()

        print_result("Anthropic API", True, f"Key validated with {get_settings().claude_model}")
        return True

    except ClaudeClientError as e:
        error_msg = str(e)
        if "authentication" in error_msg.lower() or "api_key" in error_msg.lower():
            print_result("Anthropic API", False, "Invalid API key")
        elif "rate" in error_msg.lower():
            print_result("Anthropic API", True, "Key valid (rate limited)")
            return True
        else:
            print_result("Anthropic API", False, error_msg[:50])
        return False


async def check_calendar() -> bool:
    """Verify the refresh token can read the calendar."""
    from app.config import get_settings
    from app.core.errors import CalendarError
    from app.core.scheduling.calendar_client import GoogleCalendarClient

    now = datetime.now(get_settings().tz)
    try:
        events = await GoogleCalendarClient().events_in_range(now, now + timedelta(days=7))
    except CalendarError as e:
        print_result("Google Calendar", False, str(e)[:60])
        return False

    print_result("Google Calendar", True, f"{len(events)} event(s) in the next 7 days")
    return True


def check_smtp() -> bool:
    """Verify the SMTP account accepts the app password."""
    from app.config import get_settings

    settings = get_settings()
    try:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(
            settings.smtp_host, settings.smtp_port, context=context, timeout=10
        ) as server:
            server.login(settings.email_user, settings.email_app_password)
    except (smtplib.SMTPException, OSError) as e:
        print_result("SMTP", False, str(e)[:50])
        return False

    print_result("SMTP", True, f"Logged in to {settings.smtp_host}")
    return True


def check_dependencies() -> bool:
    """Check if required Python packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "pydantic",
        "pydantic_settings",
        "httpx",
        "anthropic",
        "googleapiclient",
        "google.auth",
    ]

    missing = []
    for package in required_packages:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    if missing:
        print_result("Python packages", False, f"Missing: {', '.join(missing)}")
        return False
    else:
        print_result("Python packages", True, "All required packages installed")
        return True


async def main():
    """Run all verification checks."""
    print("\n" + "="*60)
    print(" Clinic Scheduler - Setup Verification")
    print("="*60)

    all_passed = True
    critical_failed = False

    print_header("Environment File")
    if not check_env_file():
        all_passed = False

    print_header("Python Dependencies")
    if not check_dependencies():
        print("\n  Install dependencies first: pip install -e .\n")
        return 1

    print_header("Required Environment Variables")
    var_results = check_required_vars()
    if not all(var_results.values()):
        all_passed = False

    print_header("Optional Environment Variables")
    check_optional_vars()

    print_header("Availability")
    if not check_availability():
        # Availability requests will get the "not configured" reply
        all_passed = False

    print_header("Service Connections")

    if var_results.get("ANTHROPIC_API_KEY"):
        if not await check_anthropic():
            critical_failed = True
    else:
        print_result("Anthropic API", False, "Skipped - ANTHROPIC_API_KEY not set")
        critical_failed = True

    if all(var_results.get(v) for v in ("GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "GOOGLE_REFRESH_TOKEN")):
        if not await check_calendar():
            critical_failed = True
    else:
        print_result("Google Calendar", False, "Skipped - OAuth credentials not set")
        critical_failed = True

    if var_results.get("EMAIL_USER") and var_results.get("EMAIL_APP_PASSWORD"):
        if not check_smtp():
            all_passed = False
    else:
        print_result("SMTP", False, "Skipped - EMAIL_USER / EMAIL_APP_PASSWORD not set")
        all_passed = False

    print_header("Summary")

    if critical_failed:
        print("\n  \033[91mCRITICAL: Some required services failed.\033[0m")
        print("  Please fix the issues above before running the application.")
        print()
        return 1
    elif not all_passed:
        print("\n  \033[93mWARNING: Some optional checks failed.\033[0m")
        print("  The application may run with limited functionality.")
        print()
        return 0
    else:
        print("\n  \033[92mAll checks passed!\033[0m")
        print("  You can start the application with:")
        print("    uvicorn app.main:app --reload")
        print()
        return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
