"""Schemas for challenge matching and progress updates."""

from dataclasses import dataclass
from enum import Enum

from ..db.schemas import ChallengeStatus


class MatchPolicy(str, Enum):
    """How challenges are selected for an event."""

    TIME_WINDOW = "time_window"  # status "current" and event day inside the window
    STATUS_ONLY = "status_only"  # status "active", superseded schema

    @property
    def eligible_status(self) -> ChallengeStatus:
        """Status label a challenge must carry to receive distance."""
        if self is MatchPolicy.STATUS_ONLY:
            return ChallengeStatus.ACTIVE
        return ChallengeStatus.CURRENT

    @property
    def rewrites_status(self) -> bool:
        """Whether every update writes the status field explicitly."""
        return self is MatchPolicy.TIME_WINDOW


@dataclass
class ProgressUpdate:
    """Outcome of applying an event's distance to one challenge."""

    challenge_id: str
    completed_meters: float
    target_meters: float
    status: str
    applied: bool = True  # False when the challenge left the eligible status first
    just_completed: bool = False
