#shopcart/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer

from shopcart.data.database import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    #one cart per user, reused across checkouts
    user_id = Column(Integer, nullable=False, unique=True, index=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
