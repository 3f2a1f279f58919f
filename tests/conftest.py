import os

#keep the module-level engine off disk and retries fast
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CHECKOUT_RETRY_MIN_WAIT", "0.01")
os.environ.setdefault("CHECKOUT_RETRY_MAX_WAIT", "0.05")

import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

import shopcart.data.models  # noqa: F401
from shopcart.data.database import Base, build_engine, build_session_factory, get_db
from shopcart.data.models import CartItemModel, OrderModel, ProductModel
from shopcart.data.seed import seed
from shopcart.main import create_app

APPLE, BANANA, CHERRY = 1, 2, 3


@pytest.fixture()
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'shopcart.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    factory = build_session_factory(engine)
    seed(factory)
    return factory


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    app = create_app(create_tables=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


class Store:
    """Reads committed state through a fresh session."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def stock(self, product_id):
        with self.session_factory() as s:
            return s.get(ProductModel, product_id).stock

    def set_product(self, product_id, **values):
        with self.session_factory() as s:
            product = s.get(ProductModel, product_id)
            for k, v in values.items():
                setattr(product, k, v)
            s.commit()

    def order_count(self, user_id=None):
        with self.session_factory() as s:
            q = select(func.count(OrderModel.id))
            if user_id is not None:
                q = q.where(OrderModel.user_id == user_id)
            return s.execute(q).scalar_one()

    def cart_rows(self):
        with self.session_factory() as s:
            rows = s.execute(select(CartItemModel).order_by(CartItemModel.id)).scalars().all()
            return [(r.cart_id, r.product_id, r.quantity) for r in rows]


@pytest.fixture()
def store(session_factory):
    return Store(session_factory)


def run_concurrently(session_factory, fns):
    """Run each fn(session) in its own thread, released together by a barrier.

    Returns one ("ok", value) or ("error", exception) per fn, in order.
    """
    barrier = threading.Barrier(len(fns))
    results = [None] * len(fns)

    def worker(index, fn):
        session = session_factory()
        try:
            barrier.wait()
            results[index] = ("ok", fn(session))
        except Exception as e:
            results[index] = ("error", e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(fns)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results
