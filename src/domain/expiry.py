# src/domain/expiry.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; every stored value is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class ExpiryPolicy:
    """
    Freshness rule for seat holds.

    A hold is fresh up to and including held_at + ttl and stale strictly
    after it. Nothing sweeps the table on a schedule, so every reader and
    writer applies this rule itself.
    """

    ttl: timedelta

    def __post_init__(self) -> None:
        if self.ttl <= timedelta(0):
            raise ValueError("Hold TTL must be positive")

    def cutoff(self, now: datetime) -> datetime:
        """Holds taken strictly before this instant are stale."""
        return as_utc(now) - self.ttl

    def expires_at(self, held_at: datetime) -> datetime:
        return as_utc(held_at) + self.ttl

    def is_stale(self, held_at: datetime | None, now: datetime) -> bool:
        if held_at is None:
            return False
        return as_utc(held_at) < self.cutoff(now)
