import logging
from typing import Iterable

from sqlalchemy.orm import Session

from src.application.guards import (
    distinct_seat_ids,
    ensure_caller_is_buyer,
    verify_buyer_holds,
)
from src.domain.exceptions import ConcurrentModificationError, SeatEngineError
from src.domain.expiry import Clock, ExpiryPolicy, utc_now
from src.domain.state_machine import SeatStatus
from src.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)


class CancellationService:
    """
    Releases a buyer's holds on request, all or nothing.

    Cancelling twice is reported as an error the second time (the seat is no
    longer held), which callers can treat as "nothing left to cancel".
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

    def cancel(
        self,
        seat_ids: Iterable[str],
        buyer_id: str,
        *,
        caller_id: str | None,
    ) -> list[str]:
        ensure_caller_is_buyer(buyer_id, caller_id)
        requested = distinct_seat_ids(seat_ids, "No seats to cancel")

        now = self.clock()
        seats = self.seat_repository.lock_seats(requested)
        try:
            verify_buyer_holds(
                requested,
                seats,
                buyer_id,
                self.policy,
                now,
                target=SeatStatus.AVAILABLE,
            )
        except SeatEngineError as exc:
            logger.warning("Cancel rejected for buyer=%s: %s", buyer_id, exc)
            raise

        released = self.seat_repository.release(
            requested,
            buyer_id=buyer_id,
            cutoff=self.policy.cutoff(now),
        )
        if released != len(requested):
            raise ConcurrentModificationError(requested)

        logger.info("Released %s seats for buyer=%s", released, buyer_id)
        return requested
