# shopcart/domain/models.py
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """Plain read-only data handed out by the repos (no lazy loading)."""

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Product(Record):
    id: int
    name: str
    price: Decimal
    stock: int


class Cart(Record):
    id: int
    user_id: int


class LineItem(Record):
    id: int
    cart_id: int
    product_id: int
    quantity: int


class PricedLineItem(Record):
    """A cart line joined with the product's current name and price."""

    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal


class PurchasedItem(Record):
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class Order(Record):
    id: int
    user_id: int
    total: Decimal
    created_at: datetime
    items: List[PurchasedItem]
