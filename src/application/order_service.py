from sqlalchemy.orm import Session

from src.domain.exceptions import OrderNotFoundError
from src.infrastructure.db.models import Order
from src.infrastructure.repositories.order_repository import OrderRepository


class OrderService:
    """Order lookups, scoped to the buyer who placed them."""

    def __init__(self, db: Session):
        self.order_repository = OrderRepository(db)

    def get_order(self, order_id: str, buyer_id: str) -> Order:
        order = self.order_repository.get_for_buyer(order_id, buyer_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(self, buyer_id: str) -> list[Order]:
        return self.order_repository.list_for_buyer(buyer_id)
