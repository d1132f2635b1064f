"""Validate inbound event envelopes and extract workout events."""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..exceptions import InvalidEventError
from .schemas import EventDetail, WorkoutEvent

REQUIRED_FIELDS = ("user_id", "distance_in_meters")


def normalize_event(envelope: Any) -> WorkoutEvent:
    """Extract a WorkoutEvent from an event envelope.

    The envelope must carry a ``detail`` mapping with ``user_id`` and
    ``distance_in_meters``. A distance of ``0`` is valid.

    Args:
        envelope: Raw event as delivered by the trigger source

    Returns:
        Validated workout event

    Raises:
        InvalidEventError: If a required field is missing or fails decoding
    """
    if not isinstance(envelope, Mapping):
        raise InvalidEventError("Event envelope must be an object")

    detail = envelope.get("detail")
    if not isinstance(detail, Mapping):
        raise InvalidEventError("Event envelope is missing 'detail'")

    missing = [name for name in REQUIRED_FIELDS if name not in detail]
    if missing:
        raise InvalidEventError(f"Event detail is missing: {', '.join(missing)}")

    try:
        parsed = EventDetail.model_validate(dict(detail))
    except ValidationError as e:
        raise InvalidEventError(f"Event detail failed validation: {e}") from e

    return WorkoutEvent(
        user_id=parsed.user_id,
        distance_in_meters=parsed.distance_in_meters,
        timestamp_local=parsed.timestamp_local,
        activity_type=parsed.activity_type,
    )
