"""Distance challenges module.

Provides functionality for:
- Matching a workout event to a user's eligible challenges
- Accumulating distance and detecting completion
"""

from .matcher import ChallengeMatcher
from .progress import ProgressUpdater
from .schemas import MatchPolicy, ProgressUpdate

__all__ = [
    "ChallengeMatcher",
    "ProgressUpdater",
    "MatchPolicy",
    "ProgressUpdate",
]
