"""Tests for OrderService: stock-safe creation, checkout, update, delete and queries."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config.database import Base
from common.exceptions import (
    InsufficientStockError, InvalidInputError, InvalidStateError, NotFoundError,
)
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.catalog.models import Product
from modules.catalog.service import product_service
from modules.order.models import Order, OrderItem
from modules.order.service import order_service
from modules.pricing.calculator import order_total_discounted
from modules.user.service import user_service


def _order_count(db):
    db.expire_all()
    return db.query(Order).count()


class TestCreateOrder:
    def test_snapshots_prices_and_computes_totals(self, db, make_user, make_product, stock_of):
        user = make_user()
        lamp = make_product("Lamp", price="19.99", stock=10, discount="0.10")
        mug = make_product("Mug", price="5.00", stock=4)

        order = order_service.create_order(
            db, user.id, [(lamp.id, 3), (mug.id, 2)],
            payment_method="card", global_discount=Decimal("0.05"),
        )

        items = order_service.get_order_items(db, order.id)
        assert [(it.product_id, it.quantity) for it in items] == [(lamp.id, 3), (mug.id, 2)]
        assert items[0].price == Decimal("19.99")
        assert items[0].discount == Decimal("0.10")
        assert items[0].total_price == Decimal("53.97")
        assert items[1].total_price == Decimal("10.00")

        assert order.total_amount == Decimal("63.97")
        # 63.97 * 0.95 = 60.7715
        assert order.total_amount_discounted == Decimal("60.77")
        assert order.total_amount == sum(it.total_price for it in items)
        assert order.tax == 0
        assert order.payment_method == "card"

        assert stock_of(lamp.id) == 7
        assert stock_of(mug.id) == 2

    def test_snapshot_does_not_follow_later_price_changes(self, db, make_user, make_product):
        user = make_user()
        product = make_product(price="8.00", stock=5)
        order = order_service.create_order(db, user.id, [(product.id, 1)])

        product_service.update(db, product.id, {"price": Decimal("12.00")})

        item = order_service.get_order_items(db, order.id)[0]
        assert item.price == Decimal("8.00")
        assert item.total_price == Decimal("8.00")

    def test_stock_can_reach_exactly_zero(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=2)

        order_service.create_order(db, user.id, [(product.id, 2)])

        assert stock_of(product.id) == 0

    def test_insufficient_stock_persists_nothing(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_order(db, user.id, [(product.id, 4)])

        assert exc_info.value.available == 3
        assert stock_of(product.id) == 3
        assert _order_count(db) == 0

    def test_repeated_product_is_checked_cumulatively(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            order_service.create_order(db, user.id, [(product.id, 2), (product.id, 2)])

        assert exc_info.value.available == 1
        assert stock_of(product.id) == 3
        assert _order_count(db) == 0

    def test_global_discount_stored_at_column_scale(self, db, make_user, make_product):
        user = make_user()
        product = make_product(price="100.00", stock=1)

        order = order_service.create_order(
            db, user.id, [(product.id, 1)], global_discount=Decimal("0.12345"),
        )

        db.expire_all()
        stored = order_service.get_order_by_id(db, order.id)
        assert stored.global_discount == Decimal("0.1235")
        assert stored.total_amount_discounted == Decimal("87.65")
        assert stored.total_amount_discounted == order_total_discounted(
            stored.total_amount, stored.global_discount,
        )

    def test_unknown_product_rolls_back_earlier_decrements(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=5)

        with pytest.raises(NotFoundError):
            order_service.create_order(db, user.id, [(product.id, 2), (999, 1)])

        assert stock_of(product.id) == 5
        assert _order_count(db) == 0
        assert db.query(OrderItem).count() == 0

    def test_later_shortage_rolls_back_earlier_decrements(self, db, make_user, make_product, stock_of):
        user = make_user()
        plenty = make_product("Plenty", stock=10)
        scarce = make_product("Scarce", stock=1)

        with pytest.raises(InsufficientStockError):
            order_service.create_order(db, user.id, [(plenty.id, 4), (scarce.id, 2)])

        assert stock_of(plenty.id) == 10
        assert stock_of(scarce.id) == 1

    def test_unknown_user(self, db, make_product, stock_of):
        product = make_product(stock=5)
        with pytest.raises(NotFoundError):
            order_service.create_order(db, 404, [(product.id, 1)])
        assert stock_of(product.id) == 5

    def test_empty_items(self, db, make_user):
        user = make_user()
        with pytest.raises(InvalidStateError):
            order_service.create_order(db, user.id, [])

    def test_zero_quantity(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=5)
        with pytest.raises(InvalidInputError):
            order_service.create_order(db, user.id, [(product.id, 0)])
        assert stock_of(product.id) == 5


class TestDecrementStock:
    def test_uses_database_value_not_loaded_copy(self, db, make_product):
        product = make_product(stock=5)
        assert product.stock == 5
        # Another writer takes stock behind this session's back
        db.query(Product).filter(Product.id == product.id).update(
            {Product.stock: 1}, synchronize_session=False,
        )

        with pytest.raises(InsufficientStockError) as exc_info:
            product_service.decrement_stock_if_available(db, product, 3)

        assert exc_info.value.available == 1
        db.rollback()

    def test_returns_remaining(self, db, make_product):
        product = make_product(stock=5)
        assert product_service.decrement_stock_if_available(db, product, 2) == 3
        db.rollback()


class TestCheckoutCart:
    def test_creates_order_and_clears_cart(self, db, make_user, make_product, stock_of):
        user = make_user()
        a = make_product("A", price="10.00", stock=5)
        b = make_product("B", price="2.50", stock=5)
        cart_service.add_or_update(db, user.id, a.id, 2)
        cart_service.add_or_update(db, user.id, b.id, 4)

        order = order_service.checkout_cart(db, user.id, payment_method="cash")

        assert order.total_amount == Decimal("30.00")
        assert [(it.product_id, it.quantity) for it in order.items] == [(a.id, 2), (b.id, 4)]
        assert stock_of(a.id) == 3
        assert stock_of(b.id) == 1
        assert db.query(CartItem).filter(CartItem.user_id == user.id).count() == 0

    def test_stale_cart_fails_without_side_effects(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=5)
        cart_service.add_or_update(db, user.id, product.id, 3)

        # Someone else bought most of the stock
        product.stock = 1
        db.commit()

        with pytest.raises(InsufficientStockError):
            order_service.checkout_cart(db, user.id)

        assert stock_of(product.id) == 1
        assert _order_count(db) == 0
        assert db.query(CartItem).filter(CartItem.user_id == user.id).count() == 1

    def test_line_added_during_checkout_stays_in_cart(self, db, make_user, make_product, monkeypatch):
        user = make_user()
        ordered = make_product("Ordered", stock=5)
        late = make_product("Late", stock=5)
        cart_service.add_or_update(db, user.id, ordered.id, 2)
        user_id, ordered_id, late_id = user.id, ordered.id, late.id

        place_order = order_service._place_order

        def place_then_add_line(*args, **kwargs):
            order = place_order(*args, **kwargs)
            # Written after checkout read the cart, before the cart cleanup
            db.add(CartItem(user_id=user_id, product_id=late_id, quantity=1))
            db.flush()
            return order

        monkeypatch.setattr(order_service, "_place_order", place_then_add_line)

        order = order_service.checkout_cart(db, user_id)

        assert [(it.product_id, it.quantity) for it in order.items] == [(ordered_id, 2)]
        db.expire_all()
        remaining = db.query(CartItem).filter(CartItem.user_id == user_id).all()
        assert [(it.product_id, it.quantity) for it in remaining] == [(late_id, 1)]

    def test_empty_cart(self, db, make_user):

        user = make_user()
        with pytest.raises(InvalidStateError):
            order_service.checkout_cart(db, user.id)

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            order_service.checkout_cart(db, 77)


class TestUpdateOrder:
    @pytest.fixture
    def hundred_order(self, db, make_user, make_product):
        user = make_user()
        product = make_product(price="50.00", stock=10)
        return order_service.create_order(db, user.id, [(product.id, 2)], payment_method="card")

    def test_discount_change_recomputes_discounted_total(self, db, hundred_order):
        assert hundred_order.total_amount_discounted == Decimal("100.00")

        order = order_service.update_order(db, hundred_order.id, global_discount=Decimal("0.05"))

        assert order.global_discount == Decimal("0.05")
        assert order.total_amount == Decimal("100.00")
        assert order.total_amount_discounted == Decimal("95.00")

    def test_repeated_update_does_not_drift(self, db, hundred_order):
        order_service.update_order(db, hundred_order.id, global_discount=Decimal("0.05"))
        order = order_service.update_order(db, hundred_order.id, global_discount=Decimal("0.05"))

        assert order.total_amount_discounted == Decimal("95.00")

    def test_discount_rounded_to_stored_scale(self, db, hundred_order):
        order_service.update_order(db, hundred_order.id, global_discount=Decimal("0.12345"))

        db.expire_all()
        order = order_service.get_order_by_id(db, hundred_order.id)
        assert order.global_discount == Decimal("0.1235")
        assert order.total_amount_discounted == Decimal("87.65")

    def test_unchanged_values_are_noop(self, db, hundred_order):
        order = order_service.update_order(
            db, hundred_order.id, payment_method="card", global_discount=Decimal("0"),
        )
        assert order.payment_method == "card"
        assert order.total_amount_discounted == Decimal("100.00")

    def test_payment_method_only(self, db, hundred_order):
        order = order_service.update_order(db, hundred_order.id, payment_method="transfer")
        assert order.payment_method == "transfer"
        assert order.total_amount_discounted == Decimal("100.00")

    def test_items_untouched(self, db, hundred_order, stock_of):
        item = order_service.get_order_items(db, hundred_order.id)[0]
        order_service.update_order(db, hundred_order.id, global_discount=Decimal("0.2"))

        items = order_service.get_order_items(db, hundred_order.id)
        assert [(it.id, it.quantity, it.total_price) for it in items] == [(item.id, 2, Decimal("100.00"))]
        assert stock_of(item.product_id) == 8

    def test_unknown_order(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            order_service.update_order(db, 5, payment_method="card")
        assert exc_info.value.message == "Order with id 5 not found"


class TestDeleteOrder:
    def test_removes_order_and_items_without_restocking(self, db, make_user, make_product, stock_of):
        user = make_user()
        product = make_product(stock=5)
        order = order_service.create_order(db, user.id, [(product.id, 2)])
        order_id = order.id

        order_service.delete_order(db, order_id)

        assert _order_count(db) == 0
        assert db.query(OrderItem).count() == 0
        assert stock_of(product.id) == 3

    def test_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            order_service.delete_order(db, 1)


class TestQueries:
    def test_user_orders_and_all_orders(self, db, make_user, make_product):
        alice, bob = make_user("alice"), make_user("bob")
        product = make_product(stock=10)
        first = order_service.create_order(db, alice.id, [(product.id, 1)])
        second = order_service.create_order(db, bob.id, [(product.id, 1)])

        assert [o.id for o in order_service.get_all_orders(db)] == [second.id, first.id]
        assert [o.id for o in order_service.get_user_orders(db, alice.id)] == [first.id]
        assert order_service.get_user_orders(db, make_user().id) == []

    def test_user_orders_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            order_service.get_user_orders(db, 3)

    def test_order_item_lookups(self, db, make_user, make_product):
        user = make_user()
        a, b = make_product("A", stock=5), make_product("B", stock=5)
        order = order_service.create_order(db, user.id, [(a.id, 1), (b.id, 2)])
        item_b = order.items[1]

        assert order_service.get_order_item_by_id(db, item_b.id).product_id == b.id
        assert [it.id for it in order_service.get_order_items_by_product(db, b.id)] == [item_b.id]

        with pytest.raises(NotFoundError) as exc_info:
            order_service.get_order_item_by_id(db, 999)
        assert exc_info.value.message == "OrderItem with id 999 not found"

    def test_items_of_unknown_order(self, db):
        with pytest.raises(NotFoundError):
            order_service.get_order_items(db, 10)


class TestCompetingBuyers:
    """Two sessions on a file-backed database race for the same last units."""

    @pytest.fixture
    def session_factory(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'shop.db'}")
        Base.metadata.create_all(bind=engine)
        yield sessionmaker(bind=engine, autoflush=False)
        engine.dispose()

    def test_last_units_go_to_one_buyer(self, session_factory):
        seed = session_factory()
        alice = user_service.create(seed, "alice")
        bob = user_service.create(seed, "bob")
        product = Product(name="Last", price=Decimal("10.00"), stock=3)
        seed.add(product)
        seed.commit()
        alice_id, bob_id, product_id = alice.id, bob.id, product.id
        seed.close()

        first, second = session_factory(), session_factory()
        try:
            # Both buyers have seen 3 units before either orders
            assert first.get(Product, product_id).stock == 3
            assert second.get(Product, product_id).stock == 3

            order_service.create_order(first, alice_id, [(product_id, 3)])

            with pytest.raises(InsufficientStockError) as exc_info:
                order_service.create_order(second, bob_id, [(product_id, 2)])
            assert exc_info.value.available == 0
        finally:
            first.close()
            second.close()

        check = session_factory()
        try:
            assert check.get(Product, product_id).stock == 0
            assert [o.user_id for o in check.query(Order).all()] == [alice_id]
        finally:
            check.close()
