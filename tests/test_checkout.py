"""Tests for the checkout transaction: totals, snapshots, rollback and retry."""

from decimal import Decimal

import pytest

from conftest import APPLE, BANANA, CHERRY
from shopcart.domain.errors import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    OutOfRangeError,
    TransactionAbortError,
)
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.order_repo import OrderRepo
from shopcart.services.cart_service import CartService
from shopcart.services.checkout_service import CheckoutService
from shopcart.services.order_service import OrderService
from shopcart.utils.settings import CHECKOUT_MAX_ATTEMPTS, MAX_QUANTITY

USER = 11


def _fill_cart(db, *lines):
    svc = CartService(db)
    for product_id, quantity in lines:
        svc.add_item(USER, product_id, quantity)
    return svc


class TestSuccessfulCheckout:
    def test_two_line_cart(self, db, store):
        _fill_cart(db, (APPLE, 2), (BANANA, 1))

        order = CheckoutService(db).checkout(USER)

        assert order.total == Decimal("250.00")
        assert order.user_id == USER
        assert store.stock(APPLE) == 8
        assert store.stock(BANANA) == 4
        assert store.cart_rows() == []
        assert store.order_count(USER) == 1

    def test_order_snapshots_purchase_price(self, db, store):
        _fill_cart(db, (APPLE, 2), (BANANA, 1))
        order = CheckoutService(db).checkout(USER)

        store.set_product(APPLE, price=Decimal("999.00"))

        saved = OrderService(db).get_order(order.id, USER)
        assert saved.total == Decimal("250.00")
        apple = next(i for i in saved.items if i.product_id == APPLE)
        assert apple.unit_price == Decimal("100.00")
        assert apple.quantity == 2
        assert apple.line_total == Decimal("200.00")
        assert apple.product_name == "Apple"

    def test_total_matches_sum_of_lines(self, db):
        _fill_cart(db, (APPLE, 3), (BANANA, 2), (CHERRY, 5))

        order = CheckoutService(db).checkout(USER)

        assert order.total == sum(i.unit_price * i.quantity for i in order.items)
        assert order.total == Decimal("1400.00")

    def test_checkout_uses_price_at_checkout_time(self, db, store):
        _fill_cart(db, (APPLE, 1))
        store.set_product(APPLE, price=Decimal("80.00"))

        order = CheckoutService(db).checkout(USER)

        assert order.total == Decimal("80.00")

    def test_cart_is_reused_after_checkout(self, db):
        svc = _fill_cart(db, (APPLE, 1))
        cart_id = svc.get_cart(USER)["cart_id"]
        CheckoutService(db).checkout(USER)

        assert svc.add_item(USER, BANANA, 1)["cart_id"] == cart_id

    def test_second_checkout_of_same_cart_is_rejected(self, db, store):
        _fill_cart(db, (APPLE, 2))
        checkout = CheckoutService(db)
        checkout.checkout(USER)

        with pytest.raises(EmptyCartError):
            checkout.checkout(USER)

        assert store.stock(APPLE) == 8
        assert store.order_count(USER) == 1

    def test_stock_can_reach_zero(self, db, store):
        _fill_cart(db, (BANANA, 5))

        CheckoutService(db).checkout(USER)

        assert store.stock(BANANA) == 0


class TestRejectedCheckout:
    def test_insufficient_stock_changes_nothing(self, db, store):
        _fill_cart(db, (APPLE, 20))

        with pytest.raises(InsufficientStockError) as exc_info:
            CheckoutService(db).checkout(USER)

        assert exc_info.value.product_id == APPLE
        assert exc_info.value.requested == 20
        assert exc_info.value.available == 10
        assert store.stock(APPLE) == 10
        assert store.order_count() == 0
        assert store.cart_rows()[0][1:] == (APPLE, 20)

    def test_one_short_line_blocks_the_whole_cart(self, db, store):
        _fill_cart(db, (APPLE, 2), (BANANA, 6), (CHERRY, 1))

        with pytest.raises(InsufficientStockError) as exc_info:
            CheckoutService(db).checkout(USER)

        assert exc_info.value.product_id == BANANA
        assert store.stock(APPLE) == 10
        assert store.stock(BANANA) == 5
        assert store.stock(CHERRY) == 20
        assert len(store.cart_rows()) == 3

    def test_total_over_limit_changes_nothing(self, db, store):
        store.set_product(APPLE, price=Decimal("99999999.99"), stock=MAX_QUANTITY)
        _fill_cart(db, (APPLE, 200))

        with pytest.raises(OutOfRangeError):
            CheckoutService(db).checkout(USER)

        assert store.stock(APPLE) == MAX_QUANTITY
        assert store.order_count() == 0
        assert store.cart_rows()[0][1:] == (APPLE, 200)

    def test_empty_cart(self, db, store):
        svc = _fill_cart(db, (APPLE, 1))
        svc.clear(USER)

        with pytest.raises(EmptyCartError):
            CheckoutService(db).checkout(USER)

        assert store.stock(APPLE) == 10
        assert store.order_count() == 0

    def test_user_without_cart(self, db):
        with pytest.raises(NotFoundError):
            CheckoutService(db).checkout(USER)

    def test_failure_while_writing_order_rolls_everything_back(self, db, store, monkeypatch):
        _fill_cart(db, (APPLE, 2), (BANANA, 1))

        def broken_create_order(self, user_id, items, total):
            raise RuntimeError("order store unavailable")

        monkeypatch.setattr(OrderRepo, "create_order", broken_create_order)

        with pytest.raises(RuntimeError):
            CheckoutService(db).checkout(USER)

        assert store.stock(APPLE) == 10
        assert store.stock(BANANA) == 5
        assert store.order_count() == 0
        assert len(store.cart_rows()) == 2


class TestCheckoutRetry:
    def test_conflict_is_retried_from_scratch(self, db, store, monkeypatch):
        _fill_cart(db, (APPLE, 2))
        real_delete = CartRepo.delete_purchased
        calls = []

        def flaky_delete(self, cart_id, items):
            calls.append(cart_id)
            if len(calls) == 1:
                return False
            return real_delete(self, cart_id, items)

        monkeypatch.setattr(CartRepo, "delete_purchased", flaky_delete)

        order = CheckoutService(db).checkout(USER)

        assert len(calls) == 2
        assert order.total == Decimal("200.00")
        assert store.stock(APPLE) == 8
        assert store.order_count() == 1
        assert store.cart_rows() == []

    def test_persistent_conflict_surfaces_after_bounded_attempts(self, db, store, monkeypatch):
        _fill_cart(db, (APPLE, 2))
        calls = []

        def always_conflicting(self, cart_id, items):
            calls.append(cart_id)
            return False

        monkeypatch.setattr(CartRepo, "delete_purchased", always_conflicting)

        with pytest.raises(TransactionAbortError):
            CheckoutService(db).checkout(USER)

        assert len(calls) == CHECKOUT_MAX_ATTEMPTS
        assert store.stock(APPLE) == 10
        assert store.order_count() == 0
        assert len(store.cart_rows()) == 1

    def test_insufficient_stock_is_not_retried(self, db):
        _fill_cart(db, (APPLE, 20))
        svc = CheckoutService(db)
        reads = []
        real_lock_for_checkout = svc.products.lock_for_checkout

        def counting_lock(product_ids):
            reads.append(1)
            return real_lock_for_checkout(product_ids)

        svc.products.lock_for_checkout = counting_lock

        with pytest.raises(InsufficientStockError):
            svc.checkout(USER)

        assert len(reads) == 1
