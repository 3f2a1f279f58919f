# shopcart/domain/errors.py


class ShopCartError(Exception):
    """Base class for errors surfaced by cart and checkout use cases."""


class NotFoundError(ShopCartError):
    pass


class OutOfRangeError(ShopCartError, ValueError):
    """A quantity or amount that does not fit the allowed range."""


class InvalidQuantityError(OutOfRangeError):
    pass


class EmptyCartError(ShopCartError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InsufficientStockError(ShopCartError):
    """Raised when a product cannot cover the requested quantity.

    Carries the product id so the caller can show which item blocked checkout.
    """

    def __init__(self, product_id: int, requested: int, available: int | None = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class TransactionAbortError(ShopCartError):
    """Storage conflict, deadlock or lock timeout. Safe to retry from scratch."""
