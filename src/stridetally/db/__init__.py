"""Database module for the SQLite challenge store."""

from .models import Challenge
from .schemas import ChallengeCreate, ChallengeResponse, ChallengeStatus
from .sqlite import Database, get_db

__all__ = [
    "Challenge",
    "ChallengeCreate",
    "ChallengeResponse",
    "ChallengeStatus",
    "Database",
    "get_db",
]
