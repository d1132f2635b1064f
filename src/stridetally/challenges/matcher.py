"""Select the challenges an event should count toward."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..db.models import Challenge
from ..db.sqlite import Database, get_db
from ..events.schemas import WorkoutEvent
from ..exceptions import NoEligibleChallenges, StorageError
from .schemas import MatchPolicy

logger = logging.getLogger(__name__)


class ChallengeMatcher:
    """Queries the challenge store for a user's eligible challenges."""

    def __init__(
        self,
        db: Optional[Database] = None,
        policy: MatchPolicy = MatchPolicy.TIME_WINDOW,
    ):
        """Initialize challenge matcher.

        Args:
            db: Database instance
            policy: Selection policy
        """
        self.db = db or get_db()
        self.policy = policy

    def find_eligible(self, event: WorkoutEvent) -> list[Challenge]:
        """Find the challenges the event counts toward.

        Args:
            event: Validated workout event

        Returns:
            Eligible challenges in storage order

        Raises:
            NoEligibleChallenges: If nothing matches
            StorageError: If the query fails
        """
        stmt = select(Challenge).where(
            Challenge.user_id == event.user_id,
            Challenge.status == self.policy.eligible_status.value,
        )

        if self.policy is MatchPolicy.TIME_WINDOW:
            day = event.event_day.isoformat()
            stmt = stmt.where(
                Challenge.start_date <= day,
                Challenge.end_date >= day,
            )

        stmt = stmt.order_by(Challenge.challenge_id)

        try:
            with self.db.get_session() as session:
                challenges = session.execute(stmt).scalars().all()
                for c in challenges:
                    session.expunge(c)
        except SQLAlchemyError as e:
            raise StorageError(
                f"Challenge query failed for user {event.user_id}: {e}",
                user_id=event.user_id,
            ) from e

        if not challenges:
            raise NoEligibleChallenges(event.user_id)

        logger.debug(
            "Matched %d challenge(s) for user %s", len(challenges), event.user_id
        )
        return list(challenges)
