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
from src.infrastructure.db.models import Order
from src.infrastructure.repositories.order_repository import OrderRepository
from src.infrastructure.repositories.seat_repository import SeatRepository

logger = logging.getLogger(__name__)


class PurchaseService:
    """
    Turns a buyer's fresh holds into a sale.

    Everything happens in the caller's unit of work: any raised error leaves
    the session to be rolled back, so no seat is sold and no order exists.
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
        self.order_repository = OrderRepository(db)

    def purchase(
        self,
        seat_ids: Iterable[str],
        buyer_id: str,
        *,
        caller_id: str | None,
    ) -> Order:
        ensure_caller_is_buyer(buyer_id, caller_id)
        requested = distinct_seat_ids(seat_ids, "No seats to purchase")

        now = self.clock()
        priced_seats = self.seat_repository.lock_with_prices(requested)
        try:
            verify_buyer_holds(
                requested,
                (seat for seat, _ in priced_seats),
                buyer_id,
                self.policy,
                now,
                target=SeatStatus.SOLD,
            )
        except SeatEngineError as exc:
            logger.warning("Purchase rejected for buyer=%s: %s", buyer_id, exc)
            raise

        order = self.order_repository.create_order(buyer_id, priced_seats)

        sold = self.seat_repository.mark_sold(
            requested,
            buyer_id=buyer_id,
            order_id=order.id,
            cutoff=self.policy.cutoff(now),
        )
        if sold != len(requested):
            # A hold changed between the locked read and the write.
            raise ConcurrentModificationError(requested)

        logger.info(
            "Order %s created for buyer=%s seats=%s total=%s",
            order.id,
            buyer_id,
            len(requested),
            order.total_amount,
        )
        return order
