"""Configuration management for stridetally.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

MATCH_POLICIES = ("time_window", "status_only")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Matching
    match_policy: str

    # Fan-out
    update_workers: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "STRIDETALLY_DB_PATH",
            str(Path.home() / ".stridetally" / "challenges.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            match_policy=os.environ.get("STRIDETALLY_MATCH_POLICY", "time_window")
            .strip()
            .lower(),
            update_workers=int(os.environ.get("STRIDETALLY_UPDATE_WORKERS", "1")),
            log_level=os.environ.get("STRIDETALLY_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.match_policy not in MATCH_POLICIES:
            errors.append(
                f"Unknown match policy '{self.match_policy}' "
                f"(expected one of: {', '.join(MATCH_POLICIES)})"
            )

        if self.update_workers < 1:
            errors.append("update_workers must be at least 1")

        # Check database directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the CLI and handler entry points."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
