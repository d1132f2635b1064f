"""Workout event parsing.

Provides functionality for:
- Decoding event envelopes into validated workout events
- Rejecting malformed input
"""

from .normalizer import normalize_event
from .schemas import EventDetail, WorkoutEvent

__all__ = [
    "EventDetail",
    "WorkoutEvent",
    "normalize_event",
]
