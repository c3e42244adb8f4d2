# src/infrastructure/settings.py

from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
import os

from dotenv import load_dotenv

load_dotenv()


DEFAULT_HOLD_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration read from the environment (and .env).
    """

    database_url: str | None
    hold_ttl_seconds: float
    db_connect_max_retries: int
    db_connect_retry_delay: float
    reaper_interval_seconds: float
    log_level: str

    @property
    def hold_ttl(self) -> timedelta:
        return timedelta(seconds=self.hold_ttl_seconds)


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL"),
        hold_ttl_seconds=_positive_float("HOLD_TTL_SECONDS", DEFAULT_HOLD_TTL_SECONDS),
        db_connect_max_retries=int(os.getenv("DB_CONNECT_MAX_RETRIES", "30")),
        db_connect_retry_delay=float(os.getenv("DB_CONNECT_RETRY_DELAY", "1.5")),
        reaper_interval_seconds=_positive_float("REAPER_INTERVAL_SECONDS", 30.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
