"""Pytest configuration and shared fixtures.

This module provides fixtures for testing stridetally, including a
temporary challenge store, configuration and challenge factories.
"""

import os
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest

from stridetally.config import Config, reset_config
from stridetally.db.schemas import ChallengeCreate, ChallengeStatus
from stridetally.db.sqlite import Database, reset_db
from stridetally.handler import reset_handler


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path(tmp_path: Path) -> Path:
    """Temporary database file path."""
    return tmp_path / "challenges.db"


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()
    reset_handler()

    os.environ["STRIDETALLY_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    reset_db()
    reset_config()
    reset_handler()
    database.engine.dispose()
    if "STRIDETALLY_DB_PATH" in os.environ:
        del os.environ["STRIDETALLY_DB_PATH"]


@pytest.fixture
def config(temp_db_path: Path) -> Config:
    """Time-window configuration pointing at the test database."""
    return Config(
        db_path=temp_db_path,
        match_policy="time_window",
        update_workers=1,
        log_level="DEBUG",
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def make_challenge(db: Database) -> Callable[..., object]:
    """Factory that stores a challenge with a window around the UTC day."""
    today = datetime.now(timezone.utc).date()

    def _make(
        user_id: str = "u1",
        challenge_id: str = "c1",
        completed_meters: float = 0,
        target_meters: float = 5000,
        status: ChallengeStatus = ChallengeStatus.CURRENT,
        start_date: date = today - timedelta(days=7),
        end_date: date = today + timedelta(days=7),
        **extra,
    ):
        return db.put_challenge(
            ChallengeCreate(
                user_id=user_id,
                challenge_id=challenge_id,
                completed_meters=completed_meters,
                target_meters=target_meters,
                status=status,
                start_date=start_date,
                end_date=end_date,
                **extra,
            )
        )

    return _make


def workout(user_id: str = "u1", distance: float = 1500, **detail) -> dict:
    """Build an event envelope."""
    return {"detail": {"user_id": user_id, "distance_in_meters": distance, **detail}}


@pytest.fixture
def envelope() -> Callable[..., dict]:
    """Factory for event envelopes."""
    return workout
