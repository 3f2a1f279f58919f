# shopcart/services/checkout_service.py
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from shopcart.data.database import transaction
from shopcart.domain.errors import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    OutOfRangeError,
    TransactionAbortError,
)
from shopcart.domain.models import Order, PurchasedItem
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.order_repo import OrderRepo
from shopcart.repos.product_repo import ProductRepo
from shopcart.services.cart_service import calculate_line_total, ensure_non_empty
from shopcart.utils.retry import checkout_retry
from shopcart.utils.settings import MAX_ORDER_TOTAL
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns a user's cart into an order in one transaction.

    1. read the cart lines (the set being purchased)
    2. re-read price and stock of every product, reject the whole cart on the
       first line the stock cannot cover
    3. decrement stock with a conditional update per product
    4. write the order with a price snapshot per line
    5. delete the purchased cart lines (the cart itself stays)

    Nothing is visible to other transactions before the commit; any error
    rolls back stock, order and cart together.
    """

    def __init__(self, db: Session):
        self.db = db
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.orders = OrderRepo(db)

    @checkout_retry()
    def checkout(self, user_id: int) -> Order:
        logger.info(f"Checkout started for user {user_id}")

        with transaction(self.db):
            cart = self.carts.get_cart_by_user(user_id)
            if not cart:
                raise NotFoundError(f"User {user_id} has no cart")

            items = self.carts.get_line_items(cart.id)
            try:
                ensure_non_empty(items)
            except EmptyCartError:
                logger.info(f"Checkout rejected for user {user_id}: cart {cart.id} is empty")
                raise

            products = self.products.lock_for_checkout(i.product_id for i in items)

            #validate every line before touching stock
            for item in items:
                product = products[item.product_id]
                if product.stock < item.quantity:
                    logger.info(
                        f"Checkout rejected for user {user_id}: product {product.id} "
                        f"requested {item.quantity}, in stock {product.stock}"
                    )
                    raise InsufficientStockError(product.id, item.quantity, product.stock)

            purchased: List[PurchasedItem] = []
            total = Decimal("0.00")
            for item in items:
                product = products[item.product_id]

                #stock may have moved since the read above, the conditional update decides
                if not self.products.decrement_stock(product.id, item.quantity):
                    current = self.products.lookup(product.id)
                    logger.info(
                        f"Checkout rejected for user {user_id}: product {product.id} "
                        f"sold out concurrently, in stock {current.stock}"
                    )
                    raise InsufficientStockError(product.id, item.quantity, current.stock)

                line_total = calculate_line_total(product.price, item.quantity)
                total += line_total
                purchased.append(
                    PurchasedItem(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=item.quantity,
                        unit_price=product.price,
                        line_total=line_total,
                    )
                )

            if total > MAX_ORDER_TOTAL:
                logger.info(f"Checkout rejected for user {user_id}: total {total} over limit")
                raise OutOfRangeError(f"Order total exceeds {MAX_ORDER_TOTAL}")

            order = self.orders.create_order(user_id, purchased, total)

            if not self.carts.delete_purchased(cart.id, items):
                #the cart changed under us (or was checked out twice), start over
                raise TransactionAbortError(f"Cart {cart.id} changed during checkout")

        logger.info(f"Order {order.id} created for user {user_id}, total {order.total}")
        return order
