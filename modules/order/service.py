"""
Order Module - Service Layer
===============================
Order creation against finite stock, checkout from cart, limited edits, queries.

Every mutating method runs in one unit of work: stock decrements, order rows
and cart cleanup are committed together or not at all.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import desc

from config.database import unit_of_work
from common.exceptions import NotFoundError, InvalidStateError
from common.helpers import now_utc, require_positive_quantity
from modules.order.models import Order, OrderItem
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.catalog.models import Product
from modules.catalog.service import product_service
from modules.pricing.calculator import (
    line_total, order_total, order_total_discounted, to_fraction, to_money,
)
from modules.user.service import user_service

logger = logging.getLogger("ivay.order")

# (product_id, quantity) pairs, processed in the given order
OrderLineRequest = Tuple[int, int]


def build_order_item(product: Product, quantity: int) -> OrderItem:
    """Create an OrderItem with a price/discount snapshot of the product."""
    discount = to_fraction(product.discount)
    return OrderItem(
        product_id=product.id,
        quantity=quantity,
        price=to_money(product.price),
        discount=discount,
        total_price=line_total(product.price, quantity, discount),
    )


class OrderService:

    # ==========================================
    # Create
    # ==========================================

    def create_order(
        self,
        db: Session,
        user_id: int,
        items: Sequence[OrderLineRequest],
        payment_method: Optional[str] = None,
        global_discount=None,
    ) -> Order:
        """
        Create an order from (product_id, quantity) requests:
        1. Resolve user
        2. For each item in order: resolve product, take stock atomically,
           snapshot price and discount, compute line total
        3. Total, discounted total, tax placeholder
        4. Persist order + items together

        Any NotFoundError / InsufficientStockError rolls back every stock
        decrement made for earlier items and leaves no order behind.
        """
        logger.info(f"Attempting to create order for user #{user_id}")
        with unit_of_work(db):
            order = self._place_order(db, user_id, items, payment_method, global_discount)
        logger.info(f"Successfully created order #{order.id} ({len(order.items)} items)")
        return order

    def checkout_cart(
        self,
        db: Session,
        user_id: int,
        payment_method: Optional[str] = None,
        global_discount=None,
    ) -> Order:
        """
        Turn the user's cart into an order and clear the cart, in one transaction.
        Stock is re-validated here; a stale cart fails without touching anything.
        """
        logger.info(f"Checkout requested for user #{user_id}")
        with unit_of_work(db):
            user_service.get_by_id(db, user_id)
            cart_items = (
                db.query(CartItem)
                .filter(CartItem.user_id == user_id)
                .order_by(CartItem.id.asc())
                .with_for_update()
                .all()
            )
            if not cart_items:
                raise InvalidStateError(f"Cart of user with id {user_id} is empty")

            lines = [(it.product_id, it.quantity) for it in cart_items]
            order = self._place_order(db, user_id, lines, payment_method, global_discount)
            cart_service.delete_lines(db, user_id, [it.id for it in cart_items])

        logger.info(f"Checkout of user #{user_id} produced order #{order.id}")
        return order

    # ==========================================
    # Update / Delete
    # ==========================================

    def update_order(
        self,
        db: Session,
        order_id: int,
        payment_method: Optional[str] = None,
        global_discount=None,
    ) -> Order:
        """
        Apply payment method / global discount when they differ from the stored values.
        A discount change recomputes total_amount_discounted from total_amount.
        Items and stock are never touched.
        """
        logger.info(f"Attempting to update order #{order_id}")
        with unit_of_work(db):
            order = self._get_for_update(db, order_id)

            updated = False
            if payment_method is not None and payment_method != order.payment_method:
                logger.debug(f"Updating payment method for order #{order_id}")
                order.payment_method = payment_method
                updated = True

            if global_discount is not None:
                new_discount = to_fraction(global_discount)
                if new_discount != to_fraction(order.global_discount):
                    logger.info(f"Updating global discount for order #{order_id} to {new_discount}")
                    order.global_discount = new_discount
                    order.total_amount_discounted = order_total_discounted(order.total_amount, new_discount)
                    updated = True

            if updated:
                db.flush()

        if updated:
            logger.info(f"Successfully updated order #{order_id}")
        else:
            logger.info(f"No updatable fields changed for order #{order_id}")
        return order

    def delete_order(self, db: Session, order_id: int) -> None:
        """
        Permanently delete an order and its items.
        Stock taken by the order is NOT given back: deletion is an administrative
        correction of the record, not a cancellation.
        """
        logger.warning(f"Attempting to permanently delete order #{order_id}")
        with unit_of_work(db):
            order = self._get_for_update(db, order_id)
            db.delete(order)
        logger.warning(f"Permanently deleted order #{order_id}")

    # ==========================================
    # Query
    # ==========================================

    def get_all_orders(self, db: Session) -> List[Order]:
        return db.query(Order).order_by(desc(Order.id)).all()

    def get_user_orders(self, db: Session, user_id: int) -> List[Order]:
        user_service.get_by_id(db, user_id)
        return (
            db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(desc(Order.bill_date), desc(Order.id))
            .all()
        )

    def get_order_by_id(self, db: Session, order_id: int) -> Order:
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order", order_id)
        return order

    def get_order_items(self, db: Session, order_id: int) -> List[OrderItem]:
        return list(self.get_order_by_id(db, order_id).items)

    def get_order_item_by_id(self, db: Session, order_item_id: int) -> OrderItem:
        item = db.query(OrderItem).filter(OrderItem.id == order_item_id).first()
        if not item:
            raise NotFoundError("OrderItem", order_item_id)
        return item

    def get_order_items_by_product(self, db: Session, product_id: int) -> List[OrderItem]:
        product_service.get_by_id(db, product_id)
        return (
            db.query(OrderItem)
            .filter(OrderItem.product_id == product_id)
            .order_by(OrderItem.id.asc())
            .all()
        )

    # ==========================================
    # Private Helpers
    # ==========================================

    def _place_order(
        self,
        db: Session,
        user_id: int,
        items: Sequence[OrderLineRequest],
        payment_method: Optional[str],
        global_discount,
    ) -> Order:
        """Build and flush the order. Caller owns the transaction."""
        user_service.get_by_id(db, user_id)
        if not items:
            raise InvalidStateError("Order must contain at least one item")

        discount = to_fraction(global_discount)
        order = Order(
            user_id=user_id,
            bill_date=now_utc(),
            payment_method=payment_method,
            global_discount=discount,
        )

        line_totals: List[Decimal] = []
        for product_id, quantity in items:
            quantity = require_positive_quantity(quantity)
            product = product_service.get_by_id(db, product_id)
            product_service.decrement_stock_if_available(db, product, quantity)

            oi = build_order_item(product, quantity)
            order.items.append(oi)
            line_totals.append(oi.total_price)

        order.total_amount = order_total(line_totals)
        order.total_amount_discounted = order_total_discounted(order.total_amount, discount)
        # Tax is a placeholder
        order.tax = 0

        db.add(order)
        db.flush()
        return order

    def _get_for_update(self, db: Session, order_id: int) -> Order:
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order:
            raise NotFoundError("Order", order_id)
        return order


# Singleton
order_service = OrderService()
