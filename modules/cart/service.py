"""
Cart Module - Service Layer
==============================
Cart management: add/merge, set quantity, remove, clear, pricing preview.

Carts are advisory: quantities are checked against the product's current
stock figure, never reserved. Stock itself is only touched by order creation.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from config.database import unit_of_work
from common.exceptions import NotFoundError
from common.helpers import require_positive_quantity
from modules.cart.models import CartItem
from modules.catalog.service import product_service
from modules.pricing.calculator import line_total, order_total, to_fraction, to_money
from modules.user.service import user_service

logger = logging.getLogger("ivay.cart")


class CartService:

    # ==========================================
    # Reads
    # ==========================================

    def get_by_id(self, db: Session, cart_item_id: int) -> CartItem:
        item = db.query(CartItem).filter(CartItem.id == cart_item_id).first()
        if not item:
            raise NotFoundError("CartItem", cart_item_id)
        return item

    def list_for_user(self, db: Session, user_id: int) -> List[CartItem]:
        user_service.get_by_id(db, user_id)
        return (
            db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id.asc())
            .all()
        )

    def preview_for_user(self, db: Session, user_id: int) -> Tuple[List[dict], Decimal]:
        """
        Cart lines with informational pricing at current catalog prices.
        Returns: (items_data, subtotal). Not authoritative; checkout recomputes.
        """
        items = self.list_for_user(db, user_id)

        items_data = []
        for item in items:
            product = item.product
            discount = to_fraction(product.discount)
            total = line_total(product.price, item.quantity, discount)
            items_data.append({
                "cart_item_id": item.id,
                "product_id": product.id,
                "product_name": product.name,
                "quantity": item.quantity,
                "unit_price": to_money(product.price),
                "discount": discount,
                "line_total": total,
                "available_stock": product.available_stock,
                "in_stock": item.quantity <= product.available_stock,
            })

        return items_data, order_total(it["line_total"] for it in items_data)

    # ==========================================
    # Writes
    # ==========================================

    def add_or_update(self, db: Session, user_id: int, product_id: int, quantity: int) -> CartItem:
        """
        Add `quantity` units of a product to the user's cart, merging with an
        existing line. Fails with InsufficientStockError (cart untouched) if the
        merged quantity is above the product's current stock.
        """
        quantity = require_positive_quantity(quantity)
        logger.info(f"Add/update cart item: user #{user_id}, product #{product_id}, +{quantity}")

        with unit_of_work(db):
            user_service.get_by_id(db, user_id)
            product = product_service.get_for_update(db, product_id)

            item = (
                db.query(CartItem)
                .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
                .with_for_update()
                .first()
            )
            new_qty = (item.quantity if item else 0) + quantity
            product_service.ensure_available(product, new_qty)

            if item:
                item.quantity = new_qty
            else:
                item = CartItem(user_id=user_id, product_id=product_id, quantity=new_qty)
                db.add(item)
            db.flush()

        logger.info(f"Saved cart item #{item.id} (quantity {item.quantity})")
        return item

    def set_quantity(self, db: Session, cart_item_id: int, quantity: int) -> CartItem:
        """Overwrite a line's quantity; stored value is unchanged if stock is short."""
        quantity = require_positive_quantity(quantity)

        with unit_of_work(db):
            item = self.get_by_id(db, cart_item_id)
            product = product_service.get_for_update(db, item.product_id)
            product_service.ensure_available(product, quantity)
            item.quantity = quantity
            db.flush()

        logger.info(f"Updated quantity for cart item #{cart_item_id} to {quantity}")
        return item

    def remove(self, db: Session, cart_item_id: int) -> None:
        with unit_of_work(db):
            item = self.get_by_id(db, cart_item_id)
            db.delete(item)
        logger.info(f"Deleted cart item #{cart_item_id}")

    def clear_for_user(self, db: Session, user_id: int) -> int:
        """Remove all items from the user's cart. Returns number of lines removed."""
        with unit_of_work(db):
            user_service.get_by_id(db, user_id)
            removed = self.delete_lines(db, user_id)
        logger.info(f"Cleared cart for user #{user_id} ({removed} lines)")
        return removed

    def delete_lines(self, db: Session, user_id: int, cart_item_ids: Optional[List[int]] = None) -> int:
        """
        Bulk delete inside the caller's transaction.
        With `cart_item_ids` only those lines go (checkout removes exactly what it ordered).
        """
        db.flush()
        query = db.query(CartItem).filter(CartItem.user_id == user_id)
        if cart_item_ids is not None:
            query = query.filter(CartItem.id.in_(cart_item_ids))
        return query.delete(synchronize_session="fetch")


# Singleton
cart_service = CartService()
