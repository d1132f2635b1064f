"""Tests for ProgressUpdater."""

from unittest.mock import patch

import pytest

from stridetally.challenges import MatchPolicy, ProgressUpdater
from stridetally.db import ChallengeCreate, Database
from stridetally.db.models import Challenge
from stridetally.db.schemas import ChallengeStatus
from stridetally.events import WorkoutEvent
from stridetally.exceptions import StorageError


class TestProgressUpdater:
    """Tests for the canonical time-window updater."""

    @pytest.fixture
    def updater(self, db):
        """Create updater instance."""
        return ProgressUpdater(db, MatchPolicy.TIME_WINDOW)

    def test_increments_distance(self, updater, db, make_challenge):
        """Test completed_meters grows by exactly the event distance."""
        challenge = make_challenge(completed_meters=1000, target_meters=5000)

        updates = updater.apply([challenge], WorkoutEvent("u1", 1500))

        stored = db.get_challenge("u1", "c1")
        assert stored.completed_meters == 2500
        assert stored.status == ChallengeStatus.CURRENT.value
        assert stored.completed_at is None
        assert updates[0].applied
        assert not updates[0].just_completed

    def test_reaching_target_completes(self, updater, db, make_challenge):
        """Test the status flips when the target is reached exactly."""
        challenge = make_challenge(completed_meters=3500, target_meters=5000)

        updates = updater.apply([challenge], WorkoutEvent("u1", 1500))

        stored = db.get_challenge("u1", "c1")
        assert stored.completed_meters == 5000
        assert stored.status == ChallengeStatus.COMPLETED.value
        assert stored.completed_at is not None
        assert updates[0].just_completed

    def test_overshoot_not_clamped(self, updater, db, make_challenge):
        """Test completed_meters may exceed target_meters."""
        challenge = make_challenge(completed_meters=4000, target_meters=5000)

        updater.apply([challenge], WorkoutEvent("u1", 1500))

        stored = db.get_challenge("u1", "c1")
        assert stored.completed_meters == 5500
        assert stored.status == ChallengeStatus.COMPLETED.value

    def test_zero_distance(self, updater, db, make_challenge):
        """Test a zero distance event leaves progress unchanged."""
        challenge = make_challenge(completed_meters=1000)

        updater.apply([challenge], WorkoutEvent("u1", 0))

        assert db.get_challenge("u1", "c1").completed_meters == 1000

    def test_increment_uses_stored_value(self, updater, db, make_challenge):
        """Test the increment ignores the value read at match time."""
        challenge = make_challenge(completed_meters=1000)
        stale = db.get_challenge("u1", "c1")

        # Another invocation adds distance after the match
        updater.apply([challenge], WorkoutEvent("u1", 500))
        updater.apply([stale], WorkoutEvent("u1", 700))

        assert db.get_challenge("u1", "c1").completed_meters == 2200

    def test_completed_challenge_not_updated(self, updater, db, make_challenge):
        """Test a challenge completed since matching is left alone."""
        stale = make_challenge(completed_meters=4900, target_meters=5000)
        updater.apply([stale], WorkoutEvent("u1", 200))

        updates = updater.apply([stale], WorkoutEvent("u1", 300))

        stored = db.get_challenge("u1", "c1")
        assert stored.completed_meters == 5100
        assert stored.status == ChallengeStatus.COMPLETED.value
        assert not updates[0].applied
        assert not updates[0].just_completed

    def test_multiple_challenges_independent(self, updater, db, make_challenge):
        """Test each challenge is updated against its own target."""
        short = make_challenge(challenge_id="5k", completed_meters=4000, target_meters=5000)
        long = make_challenge(challenge_id="100k", completed_meters=4000, target_meters=100000)

        updates = updater.apply([short, long], WorkoutEvent("u1", 1500))

        assert [u.challenge_id for u in updates] == ["5k", "100k"]
        assert db.get_challenge("u1", "5k").status == ChallengeStatus.COMPLETED.value
        assert db.get_challenge("u1", "100k").status == ChallengeStatus.CURRENT.value
        assert db.get_challenge("u1", "100k").completed_meters == 5500

    def test_failure_raises_storage_error(self, updater, db, make_challenge):
        """Test update failures are wrapped as StorageError."""
        challenge = make_challenge()
        db.drop_tables()

        with pytest.raises(StorageError) as exc_info:
            updater.apply([challenge], WorkoutEvent("u1", 100))

        assert exc_info.value.user_id == "u1"

    def test_partial_failure_keeps_earlier_updates(self, updater, db, make_challenge):
        """Test a later failure does not roll back committed updates."""
        first = make_challenge(challenge_id="a", completed_meters=0)
        second = make_challenge(challenge_id="b", completed_meters=0)
        original = updater.apply_one

        def flaky(challenge, event):
            if challenge.challenge_id == "b":
                raise StorageError("write rejected", user_id="u1")
            return original(challenge, event)

        with patch.object(updater, "apply_one", side_effect=flaky):
            with pytest.raises(StorageError):
                updater.apply([first, second], WorkoutEvent("u1", 800))

        assert db.get_challenge("u1", "a").completed_meters == 800
        assert db.get_challenge("u1", "b").completed_meters == 0


class TestStatusOnlyUpdater:
    """Tests for the superseded status-only updater."""

    @pytest.fixture
    def updater(self, db):
        """Create updater instance."""
        return ProgressUpdater(db, MatchPolicy.STATUS_ONLY)

    def test_status_unchanged_below_target(self, updater, db, make_challenge):
        """Test status stays 'active' when the target is not reached."""
        challenge = make_challenge(status=ChallengeStatus.ACTIVE, completed_meters=100)

        updater.apply([challenge], WorkoutEvent("u1", 100))

        stored = db.get_challenge("u1", "c1")
        assert stored.completed_meters == 200
        assert stored.status == ChallengeStatus.ACTIVE.value

    def test_completes_at_target(self, updater, db, make_challenge):
        """Test status flips to completed at the target."""
        challenge = make_challenge(
            status=ChallengeStatus.ACTIVE, completed_meters=4000, target_meters=5000
        )

        updater.apply([challenge], WorkoutEvent("u1", 1000))

        assert db.get_challenge("u1", "c1").status == ChallengeStatus.COMPLETED.value


class TestConcurrentUpdates:
    """Tests for the thread pool fan-out."""

    def test_same_totals_as_sequential(self, db, make_challenge):
        """Test concurrent updates store the same totals."""
        challenges = [
            make_challenge(challenge_id=f"c{i}", completed_meters=i * 1000, target_meters=4500)
            for i in range(5)
        ]
        updater = ProgressUpdater(db, MatchPolicy.TIME_WINDOW, max_workers=4)

        updates = updater.apply(challenges, WorkoutEvent("u1", 1000))

        assert [u.challenge_id for u in updates] == [f"c{i}" for i in range(5)]
        for i in range(5):
            stored = db.get_challenge("u1", f"c{i}")
            assert stored.completed_meters == i * 1000 + 1000
            expected = "completed" if i * 1000 + 1000 >= 4500 else "current"
            assert stored.status == expected

    def test_failure_surfaces_after_all_attempts(self, db, make_challenge):
        """Test one failure is raised after the other updates finish."""
        challenges = [make_challenge(challenge_id=f"c{i}") for i in range(3)]
        updater = ProgressUpdater(db, MatchPolicy.TIME_WINDOW, max_workers=3)
        original = updater.apply_one

        def flaky(challenge, event):
            if challenge.challenge_id == "c0":
                raise StorageError("write rejected", user_id="u1")
            return original(challenge, event)

        with patch.object(updater, "apply_one", side_effect=flaky):
            with pytest.raises(StorageError):
                updater.apply(challenges, WorkoutEvent("u1", 250))

        assert db.get_challenge("u1", "c1").completed_meters == 250
        assert db.get_challenge("u1", "c2").completed_meters == 250

    def test_in_memory_store_runs_sequentially(self):
        """Test updates on a shared in-memory connection never overlap."""
        memory = Database(":memory:")
        memory.create_tables()
        challenges = [
            memory.put_challenge(
                ChallengeCreate(user_id="u1", challenge_id=f"c{i}", target_meters=1000)
            )
            for i in range(8)
        ]
        updater = ProgressUpdater(memory, MatchPolicy.TIME_WINDOW, max_workers=8)

        with patch("stridetally.challenges.progress.ThreadPoolExecutor") as pool:
            for _ in range(30):
                updater.apply(challenges, WorkoutEvent("u1", 1))

        pool.assert_not_called()
        assert [c.completed_meters for c in memory.list_challenges("u1")] == [30] * 8


class TestMissingChallenge:
    """Tests for challenges removed between matching and updating."""

    def test_deleted_challenge_skipped(self, db, make_challenge):
        """Test a deleted challenge is reported as not applied."""
        challenge = make_challenge(completed_meters=100)
        with db.get_session() as session:
            session.delete(session.get(Challenge, ("u1", "c1")))

        updates = ProgressUpdater(db).apply([challenge], WorkoutEvent("u1", 500))

        assert not updates[0].applied
        assert not updates[0].just_completed
        assert db.get_challenge("u1", "c1") is None
