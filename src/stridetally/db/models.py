"""SQLAlchemy ORM models for the challenge store.

Tables:
- challenges: Distance challenge records keyed by (user_id, challenge_id)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Float, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import ChallengeStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def utc_now() -> str:
    """Current UTC time as an ISO string."""
    return datetime.now(timezone.utc).isoformat()


class Challenge(Base):
    """Challenge model - a per-user distance goal."""

    __tablename__ = "challenges"

    # Partition and sort key
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    challenge_id: Mapped[str] = mapped_column(String(128), primary_key=True)

    name: Mapped[Optional[str]] = mapped_column(String(200))
    status: Mapped[str] = mapped_column(
        String(20), default=ChallengeStatus.CURRENT.value, index=True
    )

    # Target and accumulated distance
    target_meters: Mapped[float] = mapped_column(Float, nullable=False)
    completed_meters: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    # Inclusive time window, ISO dates
    start_date: Mapped[Optional[str]] = mapped_column(String(10))
    end_date: Mapped[Optional[str]] = mapped_column(String(10))

    # Informational only, not used for matching
    activity_type: Mapped[Optional[str]] = mapped_column(String(50))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[str] = mapped_column(String(32), default=utc_now, onupdate=utc_now)
    completed_at: Mapped[Optional[str]] = mapped_column(String(32))

    def __repr__(self) -> str:
        return (
            f"<Challenge(user_id={self.user_id}, challenge_id={self.challenge_id}, "
            f"{self.completed_meters}/{self.target_meters}, status='{self.status}')>"
        )

    @property
    def progress_percent(self) -> float:
        """Calculate progress percentage."""
        if self.target_meters <= 0:
            return 0.0
        return min(100.0, (self.completed_meters / self.target_meters) * 100)

    @property
    def is_complete(self) -> bool:
        """Check if the accumulated distance has reached the target."""
        return self.completed_meters >= self.target_meters

    @property
    def remaining_meters(self) -> float:
        """Distance still needed to reach the target."""
        return max(0.0, self.target_meters - self.completed_meters)
