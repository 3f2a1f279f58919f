# shopcart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from shopcart.utils.settings import MAX_QUANTITY

#ids are int32 columns on PostgreSQL
MAX_ID = 2**31 - 1


class ItemIn(BaseModel):
    """Adding a product to the cart."""

    product_id: int = Field(..., gt=0, le=MAX_ID, description="Product id")
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY, description="Quantity to add")


class QuantityIn(BaseModel):
    """Setting a line item's quantity. Zero is rejected, use DELETE to remove."""

    quantity: int = Field(..., ge=1, le=MAX_QUANTITY, description="New quantity")


class CartItemOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int | None = None
    user_id: int
    items: List[CartItemOut]
    total: Decimal | None = None


class CartTotalOut(BaseModel):
    user_id: int
    total: Decimal


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    user_id: int
    total: Decimal
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    order_id: int
    total: Decimal
    message: str
