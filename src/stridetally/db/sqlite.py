"""SQLite challenge store.

Handles database connection, session management, and the record-level
operations used to load and inspect challenges.
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base, Challenge
from .schemas import ChallengeCreate, ChallengeStatus


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses
                     STRIDETALLY_DB_PATH env var or default location.
        """
        if db_path is None:
            db_path = os.environ.get(
                "STRIDETALLY_DB_PATH",
                str(Path.home() / ".stridetally" / "challenges.db"),
            )

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            # Writers from the update pool wait on the file lock instead of failing
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def is_memory(self) -> bool:
        """Whether every session shares one in-memory connection."""
        return self._is_memory

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Challenge Operations
    # ========================================================================

    def put_challenge(self, data: ChallengeCreate) -> Challenge:
        """Insert or replace a challenge record keyed by (user_id, challenge_id)."""
        with self.get_session() as session:
            challenge = Challenge(
                user_id=data.user_id,
                challenge_id=data.challenge_id,
                name=data.name,
                status=data.status.value,
                target_meters=data.target_meters,
                completed_meters=data.completed_meters,
                start_date=data.start_date.isoformat() if data.start_date else None,
                end_date=data.end_date.isoformat() if data.end_date else None,
                activity_type=data.activity_type,
            )
            challenge = session.merge(challenge)
            session.commit()
            session.refresh(challenge)
            session.expunge(challenge)
            return challenge

    def get_challenge(self, user_id: str, challenge_id: str) -> Optional[Challenge]:
        """Get a challenge by its key."""
        with self.get_session() as session:
            challenge = session.get(Challenge, (user_id, challenge_id))
            if challenge:
                session.expunge(challenge)
            return challenge

    def list_challenges(
        self,
        user_id: str,
        status: Optional[ChallengeStatus] = None,
    ) -> list[Challenge]:
        """List a user's challenges in key order."""
        with self.get_session() as session:
            stmt = select(Challenge).where(Challenge.user_id == user_id)
            if status:
                stmt = stmt.where(Challenge.status == status.value)
            stmt = stmt.order_by(Challenge.challenge_id)

            challenges = session.execute(stmt).scalars().all()
            for c in challenges:
                session.expunge(c)
            return list(challenges)


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
