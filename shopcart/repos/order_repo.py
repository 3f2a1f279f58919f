# shopcart/repos/order_repo.py
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopcart.data.models.order import OrderModel
from shopcart.data.models.order_item import OrderItemModel
from shopcart.domain.models import Order, PurchasedItem


class OrderRepo:
    """Append-only order store. Orders are written once and never updated."""

    def __init__(self, db: Session):
        self.db = db

    def create_order(self, user_id: int, items: List[PurchasedItem], total: Decimal) -> Order:
        order = OrderModel(user_id=user_id, total=total)
        self.db.add(order)
        self.db.flush()

        self.db.add_all(
            OrderItemModel(
                order_id=order.id,
                product_id=i.product_id,
                product_name=i.product_name,
                quantity=i.quantity,
                unit_price=i.unit_price,
                line_total=i.line_total,
            )
            for i in items
        )
        self.db.flush()

        return Order(
            id=order.id,
            user_id=order.user_id,
            total=order.total,
            created_at=order.created_at,
            items=list(items),
        )

    def get_order(self, order_id: int) -> Order | None:
        order = self.db.get(OrderModel, order_id)
        if not order:
            return None
        return self._to_record(order)

    def list_orders(self, user_id: int) -> List[Order]:
        rows = self.db.execute(
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        ).scalars().all()
        return [self._to_record(o) for o in rows]

    def _to_record(self, order: OrderModel) -> Order:
        items = self.db.execute(
            select(OrderItemModel)
            .where(OrderItemModel.order_id == order.id)
            .order_by(OrderItemModel.id)
        ).scalars().all()
        return Order(
            id=order.id,
            user_id=order.user_id,
            total=order.total,
            created_at=order.created_at,
            items=[PurchasedItem.model_validate(i) for i in items],
        )
