# shopcart/data/seed.py
from decimal import Decimal

from shopcart.data.database import Base, SessionLocal, engine
from shopcart.data.models import ProductModel
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"id": 1, "name": "Apple", "price": Decimal("100.00"), "stock": 10},
    {"id": 2, "name": "Banana", "price": Decimal("50.00"), "stock": 5},
    {"id": 3, "name": "Cherry", "price": Decimal("200.00"), "stock": 20},
]


def seed(session_factory=SessionLocal):
    db = session_factory()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products")
    finally:
        db.close()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    seed()
