from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from src.application.guards import distinct_seat_ids, ensure_caller_is_buyer
from src.domain.expiry import Clock, ExpiryPolicy, as_utc, utc_now
from src.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)


class HoldOutcome(str, Enum):
    HELD = "held"
    PARTIAL = "partial"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class HoldResult:
    held_seat_ids: list[str]
    failed_seat_ids: list[str]
    requested_count: int
    held_at: datetime
    hold_expires_at: datetime
    outcome: HoldOutcome = field(init=False)

    def __post_init__(self) -> None:
        if not self.held_seat_ids:
            outcome = HoldOutcome.UNAVAILABLE
        elif self.failed_seat_ids:
            outcome = HoldOutcome.PARTIAL
        else:
            outcome = HoldOutcome.HELD
        object.__setattr__(self, "outcome", outcome)

    @property
    def held_count(self) -> int:
        return len(self.held_seat_ids)

    @property
    def message(self) -> str:
        if self.outcome is HoldOutcome.UNAVAILABLE:
            return "No seats available. They may have been taken by another buyer."
        if self.outcome is HoldOutcome.PARTIAL:
            return f"Only {self.held_count} of {self.requested_count} seats were available"
        return f"Held {self.held_count} seats"


class ReservationService:
    """
    Places time-limited holds on seats.

    Seats in one request are decided independently: each one is a single
    conditional upsert, and losing a race on one seat does not affect the
    others. Contention is reported in the result, never raised.
    """

    def __init__(
        self,
        db: Session,
        policy: ExpiryPolicy,
        clock: Clock = utc_now,
    ):
        self.db = db
        self.policy = policy
        self.clock = clock
        self.seat_repository = SeatRepository(db)

    def hold(
        self,
        seat_ids: Iterable[str],
        buyer_id: str,
        *,
        caller_id: str | None,
    ) -> HoldResult:
        ensure_caller_is_buyer(buyer_id, caller_id)
        requested = distinct_seat_ids(seat_ids, "No seats selected")

        now = as_utc(self.clock())
        cutoff = self.policy.cutoff(now)
        identities = self.seat_repository.identities(requested)

        # Row locks are taken in seat id order, like the purchase and cancel locks.
        claimed: set[str] = set()
        for seat_id in sorted(identities):
            if self.seat_repository.try_hold(identities[seat_id], buyer_id, now, cutoff):
                claimed.add(seat_id)

        self.db.flush()

        held = [seat_id for seat_id in requested if seat_id in claimed]
        failed = [seat_id for seat_id in requested if seat_id not in claimed]

        result = HoldResult(
            held_seat_ids=held,
            failed_seat_ids=failed,
            requested_count=len(requested),
            held_at=now,
            hold_expires_at=self.policy.expires_at(now),
        )
        logger.info(
            "Hold for buyer=%s requested=%s held=%s failed=%s",
            buyer_id,
            result.requested_count,
            result.held_count,
            failed,
        )
        return result
