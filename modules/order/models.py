"""
Order Module - Models
======================
Order with a price snapshot per item. Items are owned by their order
and die with it.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric,
    ForeignKey, DateTime, CheckConstraint,
)
from sqlalchemy.orm import relationship
from config.database import Base
from config.settings import PAYMENT_METHOD_MAX_LENGTH
from common.helpers import now_utc


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    bill_date = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    payment_method = Column(String(PAYMENT_METHOD_MAX_LENGTH), nullable=True)

    # Totals
    global_discount = Column(Numeric(5, 4), default=0, nullable=False)
    total_amount = Column(Numeric(10, 2), default=0, nullable=False)            # before global discount
    total_amount_discounted = Column(Numeric(10, 2), default=0, nullable=False)  # after global discount
    tax = Column(Integer, default=0, nullable=False)  # placeholder, always 0; whole currency units, not Numeric like the totals

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} user={self.user_id} total={self.total_amount_discounted}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    # Snapshot at time of purchase
    price = Column(Numeric(10, 2), nullable=False)          # unit price before discount
    discount = Column(Numeric(5, 4), default=0, nullable=False)

    # Calculated
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_qty"),
    )
