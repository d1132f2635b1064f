"""Schemas for inbound workout events."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class EventDetail(BaseModel):
    """The ``detail`` object of a workout event envelope."""

    user_id: str = Field(..., min_length=1)
    distance_in_meters: float = Field(..., ge=0, allow_inf_nan=False)
    timestamp_local: Optional[datetime] = None  # ISO string or epoch seconds
    activity_type: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("distance_in_meters", mode="before")
    @classmethod
    def reject_bool(cls, v):
        """Booleans are not distances."""
        if isinstance(v, bool):
            raise ValueError("distance_in_meters must be a number")
        return v


@dataclass
class WorkoutEvent:
    """A validated workout event."""

    user_id: str
    distance_in_meters: float
    timestamp_local: Optional[datetime] = None
    activity_type: Optional[str] = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def event_day(self) -> date:
        """Calendar day the workout counts toward.

        ISO timestamps count on the date they are written with, with or
        without an offset. Epoch timestamps carry no offset and count on
        their UTC date. Without a timestamp the UTC date of receipt is used.
        """
        moment = self.timestamp_local or self.received_at
        return moment.date()
