"""Slot request types for booking extraction."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BookingRequest:
    """One requested hour, as the sender phrased it."""

    day: str   # "Monday" or "2025-06-02"
    time: str  # "10:00 AM"

    @classmethod
    def from_dict(cls, data: dict) -> "BookingRequest":
        """Create from extractor JSON item."""
        return cls(
            day=str(data.get("day") or "").strip(),
            time=str(data.get("time") or "").strip(),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"day": self.day, "time": self.time}

    def __str__(self) -> str:
        return f"{self.day} {self.time}"
