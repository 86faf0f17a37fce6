"""Intent classification module."""

from .types import AppointmentIntent, IntentResult
from .classifier import (
    IntentClassifier,
    get_intent_classifier,
    classify_intent,
)

__all__ = [
    # Types
    "AppointmentIntent",
    "IntentResult",
    # Classifier
    "IntentClassifier",
    "get_intent_classifier",
    "classify_intent",
]
