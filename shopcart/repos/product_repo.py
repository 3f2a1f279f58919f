# shopcart/repos/product_repo.py
from typing import Dict, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel
from shopcart.domain.errors import NotFoundError
from shopcart.domain.models import Product


class ProductRepo:
    """Catalog access used by the cart and checkout: lookups and stock decrement."""

    def __init__(self, db: Session):
        self.db = db

    def lookup(self, product_id: int) -> Product:
        row = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")
        return Product.model_validate(row)

    def lock_for_checkout(self, product_ids: Iterable[int]) -> Dict[int, Product]:
        """Read current price and stock, row-locking where the backend supports it.

        Rows are locked in id order so concurrent checkouts cannot deadlock
        on each other. SQLite ignores FOR UPDATE; the conditional decrement
        still guards the stock there.
        """
        ids = sorted(set(product_ids))
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()

        products = {row.id: Product.model_validate(row) for row in rows}
        missing = [pid for pid in ids if pid not in products]
        if missing:
            raise NotFoundError(f"Product {missing[0]} not found")
        return products

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        #UPDATE products SET stock = stock - q WHERE id = ? AND stock >= q
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
