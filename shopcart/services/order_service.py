# shopcart/services/order_service.py
from typing import List

from sqlalchemy.orm import Session

from shopcart.domain.errors import NotFoundError
from shopcart.domain.models import Order
from shopcart.repos.order_repo import OrderRepo


class OrderService:
    """Read side of the order store. Orders are only created by checkout."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepo(db)

    def get_order(self, order_id: int, user_id: int) -> Order:
        order = self.repo.get_order(order_id)

        #other users' orders look the same as missing ones
        if not order or order.user_id != user_id:
            raise NotFoundError(f"Order {order_id} not found")

        return order

    def list_orders(self, user_id: int) -> List[Order]:
        return self.repo.list_orders(user_id)
