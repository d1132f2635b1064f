"""Pydantic schemas for challenge records."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ChallengeStatus(str, Enum):
    """Status labels stored on challenge records."""

    CURRENT = "current"  # Eligible under the time-window policy
    ACTIVE = "active"  # Eligible under the status-only policy
    COMPLETED = "completed"


class ChallengeCreate(BaseModel):
    """Schema for loading a challenge record into storage."""

    user_id: str = Field(..., min_length=1)
    challenge_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=200)
    status: ChallengeStatus = ChallengeStatus.CURRENT
    target_meters: float = Field(..., gt=0)
    completed_meters: float = Field(0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    activity_type: Optional[str] = Field(None, max_length=50)

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, v, info):
        """Validate end date is not before start date."""
        start = info.data.get("start_date")
        if v is not None and start is not None and v < start:
            raise ValueError("end_date must not be before start_date")
        return v


class ChallengeResponse(BaseModel):
    """Schema for challenge responses."""

    user_id: str
    challenge_id: str
    name: Optional[str] = None
    status: ChallengeStatus
    target_meters: float
    completed_meters: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    activity_type: Optional[str] = None
    completed_at: Optional[str] = None

    model_config = {"from_attributes": True}
