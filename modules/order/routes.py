"""
Order Routes
==============
JSON API for orders and order items: create, checkout from cart, update,
delete, list and detail.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import PAYMENT_METHOD_MAX_LENGTH
from common.responses import api_response, no_content
from modules.order.service import order_service

router = APIRouter(prefix="/api", tags=["orders"])


# ==========================================
# Schemas
# ==========================================

class CreateOrderItemRequest(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class CreateOrderRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    payment_method: Optional[str] = Field(None, max_length=PAYMENT_METHOD_MAX_LENGTH)
    global_discount: Optional[Decimal] = Field(None, ge=0, lt=1, decimal_places=4)
    items: List[CreateOrderItemRequest] = Field(..., min_length=1)


class CheckoutRequest(BaseModel):
    payment_method: Optional[str] = Field(None, max_length=PAYMENT_METHOD_MAX_LENGTH)
    global_discount: Optional[Decimal] = Field(None, ge=0, lt=1, decimal_places=4)


class UpdateOrderRequest(BaseModel):
    payment_method: Optional[str] = Field(None, max_length=PAYMENT_METHOD_MAX_LENGTH)
    global_discount: Optional[Decimal] = Field(None, ge=0, lt=1, decimal_places=4)


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    bill_date: datetime
    payment_method: Optional[str]
    global_discount: Decimal
    total_amount: Decimal
    total_amount_discounted: Decimal
    tax: int


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    product_id: int
    quantity: int
    discount: Decimal
    price: Decimal
    total_price: Decimal


# ==========================================
# 📋 Orders
# ==========================================

@router.get("/orders")
async def list_orders(db: Session = Depends(get_db)):
    orders = order_service.get_all_orders(db)
    return api_response("Orders fetched successfully", [OrderOut.model_validate(o) for o in orders])


@router.get("/users/{user_id}/orders")
async def list_user_orders(user_id: int, db: Session = Depends(get_db)):
    orders = order_service.get_user_orders(db, user_id)
    return api_response("User's orders fetched successfully", [OrderOut.model_validate(o) for o in orders])


@router.get("/orders/{order_id}")
async def get_order(order_id: int, db: Session = Depends(get_db)):
    order = order_service.get_order_by_id(db, order_id)
    return api_response("Order fetched successfully", OrderOut.model_validate(order))


@router.get("/orders/{order_id}/items")
async def get_order_items(order_id: int, db: Session = Depends(get_db)):
    items = order_service.get_order_items(db, order_id)
    return api_response("Order items fetched successfully", [OrderItemOut.model_validate(i) for i in items])


@router.post("/orders", status_code=status.HTTP_201_CREATED)
async def create_order(body: CreateOrderRequest, db: Session = Depends(get_db)):
    order = order_service.create_order(
        db,
        user_id=body.user_id,
        items=[(it.product_id, it.quantity) for it in body.items],
        payment_method=body.payment_method,
        global_discount=body.global_discount,
    )
    return api_response("Order created successfully", OrderOut.model_validate(order), code=status.HTTP_201_CREATED)


# ==========================================
# ✅ Checkout from cart
# ==========================================

@router.post("/users/{user_id}/checkout", status_code=status.HTTP_201_CREATED)
async def checkout_cart(user_id: int, body: CheckoutRequest, db: Session = Depends(get_db)):
    order = order_service.checkout_cart(
        db,
        user_id=user_id,
        payment_method=body.payment_method,
        global_discount=body.global_discount,
    )
    return api_response("Order created successfully", OrderOut.model_validate(order), code=status.HTTP_201_CREATED)


@router.put("/orders/{order_id}")
async def update_order(order_id: int, body: UpdateOrderRequest, db: Session = Depends(get_db)):
    order = order_service.update_order(
        db,
        order_id,
        payment_method=body.payment_method,
        global_discount=body.global_discount,
    )
    return api_response("Order updated successfully", OrderOut.model_validate(order))


@router.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: int, db: Session = Depends(get_db)):
    order_service.delete_order(db, order_id)
    return no_content()


# ==========================================
# 🧾 Order items
# ==========================================

@router.get("/order-items/{order_item_id}")
async def get_order_item(order_item_id: int, db: Session = Depends(get_db)):
    item = order_service.get_order_item_by_id(db, order_item_id)
    return api_response("Order item fetched successfully", OrderItemOut.model_validate(item))
