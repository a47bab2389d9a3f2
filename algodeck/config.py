from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Datetimes stay naive so they round-trip through SQLite, which doesn't
    store tz info.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def today_iso(now: datetime | None = None) -> str:
    """Return the calendar date of ``now`` (default: current UTC) as YYYY-MM-DD."""
    return (now or utcnow()).date().isoformat()


class Settings(BaseSettings):
    app_name: str = "AlgoDeck"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'algodeck.db'}"
    search_fts_enabled: bool = True
    reminder_hour: int = 9
    reminder_minute: int = 0
    session_ttl_seconds: int = 7200  # 2 hours
    log_level: str = "INFO"
    debug: bool = False

    model_config = {"env_prefix": "ALGODECK_", "env_file": ".env"}


settings = Settings()
