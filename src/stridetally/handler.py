"""Progress accumulator entry point.

Runs an event envelope through normalize -> match -> update and shapes the
outcome into an HTTP-style result. Every failure is converted into a
result; nothing propagates to the invoking infrastructure.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from .challenges import ChallengeMatcher, MatchPolicy, ProgressUpdate, ProgressUpdater
from .config import Config, get_config
from .db.sqlite import Database, get_db
from .events import normalize_event
from .exceptions import InvalidEventError, NoEligibleChallenges

logger = logging.getLogger(__name__)

INVALID_EVENT_MESSAGE = (
    "Invalid event structure. Must include event.detail with user_id and "
    "distance_in_meters."
)
NOT_FOUND_MESSAGE = "No active challenges found for the user."
SUCCESS_MESSAGE = "Challenges updated successfully."
INTERNAL_ERROR_MESSAGE = "Failed to update challenges due to an internal error."


@dataclass
class AccumulatorResult:
    """Result envelope for one event."""

    status_code: int
    body: dict[str, str]
    updates: list[ProgressUpdate] = field(default_factory=list)

    @classmethod
    def ok(cls, updates: list[ProgressUpdate]) -> "AccumulatorResult":
        return cls(200, {"message": SUCCESS_MESSAGE}, updates)

    @classmethod
    def invalid(cls) -> "AccumulatorResult":
        return cls(400, {"error": INVALID_EVENT_MESSAGE})

    @classmethod
    def not_found(cls) -> "AccumulatorResult":
        return cls(404, {"message": NOT_FOUND_MESSAGE})

    @classmethod
    def failed(cls) -> "AccumulatorResult":
        return cls(500, {"error": INTERNAL_ERROR_MESSAGE})

    def to_response(self) -> dict[str, Any]:
        """Render as ``{"statusCode": ..., "body": "<json>"}``."""
        return {"statusCode": self.status_code, "body": json.dumps(self.body)}


class ProgressAccumulator:
    """Wires the normalizer, matcher and updater together."""

    def __init__(self, db: Optional[Database] = None, config: Optional[Config] = None):
        """Initialize accumulator.

        Args:
            db: Database instance
            config: Configuration, defaults to the environment
        """
        self.config = config or get_config()
        self.db = db or get_db(str(self.config.db_path))
        self.policy = MatchPolicy(self.config.match_policy)
        self.matcher = ChallengeMatcher(self.db, self.policy)
        self.updater = ProgressUpdater(
            self.db, self.policy, max_workers=self.config.update_workers
        )

    def handle(self, envelope: Any) -> AccumulatorResult:
        """Process one event envelope.

        Args:
            envelope: Raw event as delivered by the trigger source

        Returns:
            200 when updates were issued, 400 for a malformed event,
            404 when the user has no eligible challenges, 500 when storage
            failed. A 500 may follow partially applied updates.
        """
        try:
            event = normalize_event(envelope)
        except InvalidEventError as e:
            logger.error("Invalid event structure (%s): %r", e, envelope)
            return AccumulatorResult.invalid()

        try:
            challenges = self.matcher.find_eligible(event)
            updates = self.updater.apply(challenges, event)
        except NoEligibleChallenges:
            logger.info("No eligible challenges found for user %s", event.user_id)
            return AccumulatorResult.not_found()
        except Exception:
            logger.exception("Error updating challenges for user %s", event.user_id)
            return AccumulatorResult.failed()

        logger.info(
            "Updated %d challenge(s) for user %s with %.1f m",
            sum(1 for u in updates if u.applied),
            event.user_id,
            event.distance_in_meters,
        )
        return AccumulatorResult.ok(updates)


# Global accumulator instance, built on first invocation and reused
_accumulator: Optional[ProgressAccumulator] = None


def get_accumulator() -> ProgressAccumulator:
    """Get or create the global accumulator instance."""
    global _accumulator
    if _accumulator is None:
        _accumulator = ProgressAccumulator()
    return _accumulator


def reset_handler() -> None:
    """Reset the global accumulator instance. Used for testing."""
    global _accumulator
    _accumulator = None


def handler(event: Any, context: Any = None) -> dict[str, Any]:
    """Function entry point for event triggers."""
    try:
        accumulator = get_accumulator()
    except Exception:
        # Not cached, the next invocation builds it again
        logger.exception("Failed to initialize the progress accumulator")
        return AccumulatorResult.failed().to_response()
    return accumulator.handle(event).to_response()
