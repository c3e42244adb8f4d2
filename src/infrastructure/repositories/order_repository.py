# src/infrastructure/repositories/order_repository.py

from decimal import Decimal

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select

from src.infrastructure.db.models import Order, OrderLine, Seat
from src.domain.state_machine import PaymentStatus


class OrderRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_for_buyer(
        self,
        order_id: str,
        buyer_id: str,
    ) -> Order | None:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .where(Order.buyer_id == buyer_id)
            .options(selectinload(Order.lines))
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_for_buyer(self, buyer_id: str) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.buyer_id == buyer_id)
            .order_by(Order.created_at.desc())
            .options(selectinload(Order.lines))
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_order(
        self,
        buyer_id: str,
        priced_seats: list[tuple[Seat, Decimal]],
    ) -> Order:
        """
        Adds the order and one line per seat. Seat prices are copied so
        later section price changes never touch a past sale.
        """
        total_amount = sum((price for _, price in priced_seats), Decimal("0"))

        order = Order(
            buyer_id=buyer_id,
            total_amount=total_amount,
            payment_status=PaymentStatus.COMPLETED,
        )
        self.db.add(order)
        self.db.flush()

        self.db.add_all(
            OrderLine(
                order_id=order.id,
                seat_id=seat.id,
                seat_label=seat.seat_label,
                price=price,
            )
            for seat, price in priced_seats
        )
        self.db.flush()
        return order
