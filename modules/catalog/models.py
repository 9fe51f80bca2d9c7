"""
Catalog Module - Models
========================
Product with price, per-product discount and stock counter.
"""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, DateTime,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from config.settings import PRODUCT_NAME_MAX_LENGTH


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(PRODUCT_NAME_MAX_LENGTH), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    discount = Column(Numeric(5, 4), nullable=True)            # fraction in [0, 1), NULL = 0
    image_url = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    cart_items = relationship("CartItem", back_populates="product")
    order_items = relationship("OrderItem", back_populates="product")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock"),
        CheckConstraint("price >= 0", name="ck_product_price"),
    )

    @property
    def available_stock(self) -> int:
        """Stock figure with an unset value read as 0."""
        return self.stock or 0

    def __repr__(self):
        return f"<Product {self.name} (stock {self.stock})>"
