# shopcart/repos/cart_repo.py
from typing import List

from sqlalchemy import and_, delete, select, update
from sqlalchemy.orm import Session

from shopcart.data.models.cart import CartModel
from shopcart.data.models.cart_item import CartItemModel
from shopcart.data.models.product import ProductModel
from shopcart.domain.models import Cart, LineItem, PricedLineItem
from shopcart.utils.settings import MAX_QUANTITY


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int) -> Cart | None:
        row = self.db.execute(
            select(CartModel).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()
        return Cart.model_validate(row) if row else None

    def get_or_create_cart(self, user_id: int) -> Cart:
        existing = self.get_cart_by_user(user_id)
        if existing:
            return existing

        #a concurrent first add for the same user hits the unique constraint on flush
        cart = CartModel(user_id=user_id)
        self.db.add(cart)
        self.db.flush()
        return Cart.model_validate(cart)

    def get_line_items(self, cart_id: int) -> List[LineItem]:
        rows = self.db.execute(
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        ).scalars().all()
        return [LineItem.model_validate(r) for r in rows]

    def get_priced_items(self, cart_id: int) -> List[PricedLineItem]:
        """Line items joined with the product's current name and price."""
        rows = self.db.execute(
            select(
                CartItemModel.product_id,
                ProductModel.name.label("product_name"),
                CartItemModel.quantity,
                ProductModel.price.label("unit_price"),
            )
            .join(ProductModel, ProductModel.id == CartItemModel.product_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
        ).all()
        return [PricedLineItem.model_validate(r) for r in rows]

    def get_line_item(self, cart_id: int, product_id: int) -> LineItem | None:
        row = self.db.execute(
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return LineItem.model_validate(row) if row else None

    def increment_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        #atomic check-and-increment, rowcount 0 means no row yet or the sum would pass MAX_QUANTITY
        result = self.db.execute(
            update(CartItemModel)
            .where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
                CartItemModel.quantity <= MAX_QUANTITY - quantity,
            )
            .values(quantity=CartItemModel.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def insert_line_item(self, cart_id: int, product_id: int, quantity: int) -> None:
        self.db.add(CartItemModel(cart_id=cart_id, product_id=product_id, quantity=quantity))
        self.db.flush()

    def set_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_line_item(self, cart_id: int, product_id: int) -> bool:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def clear(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_purchased(self, cart_id: int, items: List[LineItem]) -> bool:
        """Delete exactly the rows that were read for checkout.

        Each row must still carry the quantity that was read; returns False
        if any of them changed or disappeared in the meantime.
        """
        deleted = 0
        for item in items:
            result = self.db.execute(
                delete(CartItemModel)
                .where(
                    and_(
                        CartItemModel.id == item.id,
                        CartItemModel.cart_id == cart_id,
                        CartItemModel.quantity == item.quantity,
                    )
                )
                .execution_options(synchronize_session=False)
            )
            deleted += result.rowcount
        return deleted == len(items)
