"""
Clinic Scheduler Tests

Running Tests:
    # Unit tests (no network, all collaborators mocked)
    pytest tests/unit -v

    # Smoke tests against a running instance (real credentials)
    pytest tests/e2e/smoke_test_e2e.py -v

Test Coverage:
    - Availability table parsing
    - Slot generation, conflict filtering and matching
    - Intent classification and slot extraction
    - Google Calendar client
    - Reply text and SMTP delivery
    - Scheduling engine flows
    - HTTP endpoints
"""
