import logging

from sqlalchemy.orm import Session

from src.domain.expiry import Clock, ExpiryPolicy, utc_now
from src.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)


class ExpiryReaper:
    """
    Optional hygiene pass that flips stale holds back to available.
    Readers and writers already treat stale holds as free, so nothing
    depends on when (or whether) this runs.
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

    def release_expired_holds(self) -> int:
        released = self.seat_repository.release_expired(self.policy.cutoff(self.clock()))
        if released:
            logger.info("Released %s expired holds", released)
        return released
