"""Apply workout distance to matched challenges.

Each challenge gets one UPDATE statement that adds the distance in SQL
(``completed_meters = completed_meters + :distance``) and derives the new
status from the incremented value in the same statement. Nothing is
computed from the values read by the matcher, so two invocations for the
same user cannot lose each other's distance.

Updates are independent of each other. A failure part way through leaves
the earlier updates committed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from sqlalchemy import case, literal, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..db.models import Challenge, utc_now
from ..db.schemas import ChallengeStatus
from ..db.sqlite import Database, get_db
from ..events.schemas import WorkoutEvent
from ..exceptions import StorageError
from .schemas import MatchPolicy, ProgressUpdate

logger = logging.getLogger(__name__)


class ProgressUpdater:
    """Increments challenge progress and detects completion."""

    def __init__(
        self,
        db: Optional[Database] = None,
        policy: MatchPolicy = MatchPolicy.TIME_WINDOW,
        max_workers: int = 1,
    ):
        """Initialize progress updater.

        Args:
            db: Database instance
            policy: Selection policy the challenges were matched with
            max_workers: Concurrent updates per event; 1 runs them in order
        """
        self.db = db or get_db()
        self.policy = policy
        self.max_workers = max(1, max_workers)

    def apply(
        self, challenges: list[Challenge], event: WorkoutEvent
    ) -> list[ProgressUpdate]:
        """Add the event's distance to every challenge.

        Args:
            challenges: Challenges returned by the matcher
            event: Validated workout event

        Returns:
            One ProgressUpdate per challenge, in input order

        Raises:
            StorageError: If any update fails. Updates that already
                committed are not rolled back.
        """
        # An in-memory store has a single shared connection
        if self.max_workers == 1 or len(challenges) <= 1 or self.db.is_memory:
            return [self.apply_one(c, event) for c in challenges]

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self.apply_one, c, event) for c in challenges]

        # Every future has finished once the pool shuts down
        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            raise errors[0]
        return [f.result() for f in futures]

    def apply_one(self, challenge: Challenge, event: WorkoutEvent) -> ProgressUpdate:
        """Atomically add the event's distance to a single challenge.

        Args:
            challenge: Challenge to update, only its key is used
            event: Validated workout event

        Returns:
            The stored state after the update

        Raises:
            StorageError: If the update fails
        """
        eligible = self.policy.eligible_status.value
        new_total = Challenge.completed_meters + event.distance_in_meters
        reached = new_total >= Challenge.target_meters

        if self.policy.rewrites_status:
            fallback_status = literal(eligible)
        else:
            fallback_status = Challenge.status

        stmt = (
            update(Challenge)
            .where(
                Challenge.user_id == challenge.user_id,
                Challenge.challenge_id == challenge.challenge_id,
                Challenge.status == eligible,
            )
            .values(
                completed_meters=new_total,
                status=case(
                    (reached, ChallengeStatus.COMPLETED.value), else_=fallback_status
                ),
                completed_at=case((reached, utc_now()), else_=Challenge.completed_at),
            )
            .execution_options(synchronize_session=False)
        )

        try:
            with self.db.get_session() as session:
                result = session.execute(stmt)
                applied = result.rowcount > 0
                row = session.execute(
                    select(
                        Challenge.completed_meters,
                        Challenge.target_meters,
                        Challenge.status,
                    ).where(
                        Challenge.user_id == challenge.user_id,
                        Challenge.challenge_id == challenge.challenge_id,
                    )
                ).one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(
                f"Update of challenge {challenge.challenge_id} failed: {e}",
                user_id=challenge.user_id,
            ) from e

        if row is None:
            logger.warning(
                "Challenge %s for user %s no longer exists, skipped",
                challenge.challenge_id,
                challenge.user_id,
            )
            return ProgressUpdate(
                challenge_id=challenge.challenge_id,
                completed_meters=challenge.completed_meters,
                target_meters=challenge.target_meters,
                status=challenge.status,
                applied=False,
            )

        update_result = ProgressUpdate(
            challenge_id=challenge.challenge_id,
            completed_meters=row.completed_meters,
            target_meters=row.target_meters,
            status=row.status,
            applied=applied,
            just_completed=applied and row.status == ChallengeStatus.COMPLETED.value,
        )

        if not applied:
            logger.warning(
                "Challenge %s for user %s is no longer %s, skipped",
                challenge.challenge_id,
                challenge.user_id,
                eligible,
            )
        elif update_result.just_completed:
            logger.info(
                "Challenge %s for user %s completed (%.1f/%.1f m)",
                challenge.challenge_id,
                challenge.user_id,
                row.completed_meters,
                row.target_meters,
            )

        return update_result
