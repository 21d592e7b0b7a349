"""Application-wide settings and configuration."""

from pathlib import Path


class Settings:
    """Centralized application settings."""

    # Log files go under the working directory
    LOGS_DIR = Path("logs")

    # Query defaults
    DEFAULT_PAGE = 1
    DEFAULT_LIMIT = 10
    RESERVED_PARAMS = frozenset({"page", "limit"})

    # Marker for a CSV field that is absent from a short row
    MISSING_VALUE = "-"

    @classmethod
    def ensure_directories(cls) -> None:
        """Ensure all required directories exist."""
        cls.LOGS_DIR.mkdir(parents=True, exist_ok=True)
