from decimal import Decimal
from typing import Any, Dict, Sequence

from sqlalchemy.orm import Session

from shopcart.data.database import transaction
from shopcart.domain.errors import EmptyCartError, InvalidQuantityError, NotFoundError
from shopcart.domain.models import Cart, PricedLineItem
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.product_repo import ProductRepo
from shopcart.utils.retry import cart_retry
from shopcart.utils.settings import MAX_QUANTITY
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


def calculate_line_total(unit_price: Decimal, quantity: int) -> Decimal:
    """Unit price times quantity. Callers pass the price that is current for them."""
    return unit_price * quantity


def ensure_non_empty(items: Sequence[Any]) -> None:
    if not items:
        raise EmptyCartError()


def _validate_quantity(quantity: int) -> None:
    if quantity < 1 or quantity > MAX_QUANTITY:
        raise InvalidQuantityError(f"Quantity must be between 1 and {MAX_QUANTITY}")


class CartService:
    """
    Cart use cases for a single, explicitly passed user.
    commands (add, update, remove, clear) run in their own transaction
    queries (get_cart, get_total) only read
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self.repo.get_cart_by_user(user_id)
        items = self.repo.get_priced_items(cart.id) if cart else []

        return {
            "cart_id": cart.id if cart else None,
            "user_id": user_id,
            "items": [self._item_view(i) for i in items],
            "total": self._total(items) if items else None,
        }

    def get_total(self, user_id: int) -> Decimal:
        cart = self._require_cart(user_id)
        items = self.repo.get_priced_items(cart.id)
        ensure_non_empty(items)
        return self._total(items)

    #commands
    @cart_retry()
    def add_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        _validate_quantity(quantity)

        with transaction(self.db):
            self.products.lookup(product_id)
            cart = self.repo.get_or_create_cart(user_id)

            if self.repo.increment_quantity(cart.id, product_id, quantity):
                logger.info(f"Product {product_id} already in cart {cart.id}, quantity +{quantity}")
            elif self.repo.get_line_item(cart.id, product_id):
                raise InvalidQuantityError(f"Quantity must be between 1 and {MAX_QUANTITY}")
            else:
                #a concurrent insert of the same row fails on u_cart_product and is retried
                self.repo.insert_line_item(cart.id, product_id, quantity)
                logger.info(f"Added product {product_id} x{quantity} to cart {cart.id}")

        return self.get_cart(user_id)

    def update_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        _validate_quantity(quantity)

        with transaction(self.db):
            cart = self._require_cart(user_id)
            if not self.repo.set_quantity(cart.id, product_id, quantity):
                raise NotFoundError(f"Product {product_id} is not in the cart")

        logger.info(f"Set product {product_id} quantity to {quantity} in cart {cart.id}")
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, product_id: int) -> None:
        with transaction(self.db):
            cart = self._require_cart(user_id)
            if not self.repo.delete_line_item(cart.id, product_id):
                raise NotFoundError(f"Product {product_id} is not in the cart")

        logger.info(f"Removed product {product_id} from cart {cart.id}")

    def clear(self, user_id: int) -> None:
        with transaction(self.db):
            cart = self.repo.get_cart_by_user(user_id)
            removed = self.repo.clear(cart.id) if cart else 0

        logger.info(f"Cleared {removed} items from cart of user {user_id}")

    def _require_cart(self, user_id: int) -> Cart:
        cart = self.repo.get_cart_by_user(user_id)
        if not cart:
            raise NotFoundError(f"User {user_id} has no cart")
        return cart

    @staticmethod
    def _total(items: Sequence[PricedLineItem]) -> Decimal:
        return sum((calculate_line_total(i.unit_price, i.quantity) for i in items), Decimal("0.00"))

    @staticmethod
    def _item_view(item: PricedLineItem) -> Dict[str, Any]:
        return {
            "product_id": item.product_id,
            "name": item.product_name,
            "quantity": item.quantity,
            "price": item.unit_price,
            "line_total": calculate_line_total(item.unit_price, item.quantity),
        }
