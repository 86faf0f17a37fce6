"""Exceptions shared by the scheduling core and its collaborators."""


class SchedulingError(Exception):
    """Base class for scheduling errors."""
    pass


class ConfigurationAbsent(SchedulingError):
    """No availability rows are configured for the doctor."""

    def __init__(self, doctor_name: str):
        self.doctor_name = doctor_name
        super().__init__(f"No availability configured for {doctor_name}")


class CollaboratorUnavailable(SchedulingError):
    """An external collaborator failed or timed out."""
    pass


class CalendarError(CollaboratorUnavailable):
    """Calendar read or write failed."""
    pass


class IntentClassificationError(CollaboratorUnavailable):
    """Intent could not be determined for a message."""
    pass


class SlotExtractionError(CollaboratorUnavailable):
    """Requested slots could not be extracted from a message."""
    pass
