"""
Catalog Module - Service Layer
================================
Product CRUD plus the stock primitive used by order creation.

Stock is only ever decreased through `decrement_stock_if_available`, a single
conditional UPDATE, so two concurrent checkouts can never both take the last units.
"""

import logging
import math
from typing import List

from sqlalchemy.orm import Session

from config.database import unit_of_work
from common.exceptions import NotFoundError, InsufficientStockError, InvalidStateError
from modules.catalog.models import Product
from modules.cart.models import CartItem
from modules.order.models import OrderItem

logger = logging.getLogger("ivay.catalog")

_EDITABLE_FIELDS = ("name", "description", "price", "stock", "discount", "image_url")


class ProductService:

    # ==========================================
    # Lookups
    # ==========================================

    def get_by_id(self, db: Session, product_id: int) -> Product:
        """Return the product or raise NotFoundError."""
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def get_for_update(self, db: Session, product_id: int) -> Product:
        """Same as get_by_id but locks the row until the current transaction ends."""
        product = (
            db.query(Product)
            .filter(Product.id == product_id)
            .with_for_update()
            .first()
        )
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def list_all(self, db: Session) -> List[Product]:
        return db.query(Product).order_by(Product.id.asc()).all()

    def search_by_name(self, db: Session, name: str) -> List[Product]:
        pattern = f"%{(name or '').strip()}%"
        return (
            db.query(Product)
            .filter(Product.name.ilike(pattern))
            .order_by(Product.id.asc())
            .all()
        )

    def list_paginated(self, db: Session, page: int, size: int) -> dict:
        """
        Page through products ordered by id (page is 0-based).
        Raises NotFoundError when page is past the last page.
        """
        total = db.query(Product).count()
        total_pages = math.ceil(total / size) if size else 0
        if page >= total_pages:
            raise NotFoundError(
                "Page", page, f"Page {page} out of range (total pages: {total_pages})",
            )

        content = (
            db.query(Product)
            .order_by(Product.id.asc())
            .offset(page * size)
            .limit(size)
            .all()
        )
        return {
            "content": content,
            "page": page,
            "size": size,
            "total_elements": total,
            "total_pages": total_pages,
            "has_next": page + 1 < total_pages,
        }

    def get_cart_items(self, db: Session, product_id: int) -> List[CartItem]:
        self.get_by_id(db, product_id)
        return (
            db.query(CartItem)
            .filter(CartItem.product_id == product_id)
            .order_by(CartItem.id.asc())
            .all()
        )

    # ==========================================
    # CRUD
    # ==========================================

    def create(self, db: Session, data: dict) -> Product:
        with unit_of_work(db):
            product = Product(**{k: data.get(k) for k in _EDITABLE_FIELDS if k in data})
            if product.stock is None:
                product.stock = 0
            db.add(product)
            db.flush()
        logger.info(f"Created product #{product.id} ({product.name})")
        return product

    def update(self, db: Session, product_id: int, data: dict) -> Product:
        with unit_of_work(db):
            product = self.get_for_update(db, product_id)
            for field in _EDITABLE_FIELDS:
                if field in data:
                    setattr(product, field, data[field])
            if product.stock is None:
                product.stock = 0
        logger.info(f"Updated product #{product_id}")
        return product

    def delete(self, db: Session, product_id: int) -> None:
        """Delete a product that no order item or cart item references."""
        with unit_of_work(db):
            product = self.get_by_id(db, product_id)
            in_orders = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
            in_carts = db.query(CartItem.id).filter(CartItem.product_id == product_id).first()
            if in_orders or in_carts:
                logger.warning(f"Deletion refused: product #{product_id} is referenced by orders or carts")
                raise InvalidStateError(
                    "Cannot delete product associated with existing orders or carts. "
                    "Please remove associations first."
                )
            db.delete(product)
        logger.info(f"Deleted product #{product_id}")

    # ==========================================
    # Stock
    # ==========================================

    def decrement_stock_if_available(self, db: Session, product: Product, amount: int) -> int:
        """
        Atomically take `amount` units: UPDATE ... SET stock = stock - n WHERE stock >= n.
        Must run inside the caller's transaction; nothing is committed here.
        Returns the remaining stock, raises InsufficientStockError if no row matched.
        """
        affected = (
            db.query(Product)
            .filter(Product.id == product.id, Product.stock >= amount)
            .update({Product.stock: Product.stock - amount}, synchronize_session=False)
        )
        db.refresh(product)
        if affected != 1:
            logger.warning(
                f"Insufficient stock for product #{product.id} ({product.name}). "
                f"Requested: {amount}, Available: {product.available_stock}"
            )
            raise InsufficientStockError(
                product.id, product.name, requested=amount, available=product.available_stock,
            )
        return product.stock

    def ensure_available(self, product: Product, quantity: int) -> None:
        """Raise InsufficientStockError if quantity is above the current stock figure."""
        if quantity > product.available_stock:
            logger.warning(
                f"Insufficient stock for product #{product.id} ({product.name}). "
                f"Requested: {quantity}, Available: {product.available_stock}"
            )
            raise InsufficientStockError(
                product.id, product.name, requested=quantity, available=product.available_stock,
            )


# Singleton
product_service = ProductService()
