from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, UniqueConstraint

from shopcart.data.database import Base
from shopcart.utils.settings import MAX_QUANTITY


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="u_cart_product"),
        CheckConstraint(
            f"quantity > 0 AND quantity <= {MAX_QUANTITY}",
            name="ck_cart_items_quantity_range",
        ),
    )
