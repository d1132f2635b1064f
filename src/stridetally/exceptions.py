"""Exceptions raised while accumulating challenge progress."""

from typing import Optional


class StrideTallyError(Exception):
    """Base class for stridetally errors."""


class InvalidEventError(StrideTallyError):
    """The inbound event envelope is malformed."""


class NoEligibleChallenges(StrideTallyError):
    """The user has no challenges eligible for the event.

    This is a terminal condition rather than a failure.
    """

    def __init__(self, user_id: str):
        super().__init__(f"No eligible challenges for user {user_id}")
        self.user_id = user_id


class StorageError(StrideTallyError):
    """A query or update against the challenge store failed."""

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(message)
        self.user_id = user_id
