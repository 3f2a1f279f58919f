from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from shopcart.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    #snapshot taken at purchase time, independent of later catalog changes
    product_id = Column(Integer, nullable=False)
    product_name = Column(String(255), nullable=False)

    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
