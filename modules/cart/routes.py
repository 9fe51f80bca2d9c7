"""
Cart Routes
=============
JSON API for cart items: view, add/merge, set quantity, remove, clear, preview.
"""

from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.responses import api_response, no_content
from modules.cart.service import cart_service

router = APIRouter(prefix="/api", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class CartItemRequest(BaseModel):
    user_id: int = Field(..., gt=0)
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class UpdateCartItemQuantity(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    product_id: int
    quantity: int


class CartLinePreview(BaseModel):
    cart_item_id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    discount: Decimal
    line_total: Decimal
    available_stock: int
    in_stock: bool


class CartPreview(BaseModel):
    items: List[CartLinePreview]
    subtotal: Decimal
    item_count: int


# ==========================================
# 🛒 Reads
# ==========================================

@router.get("/cart-items/{cart_item_id}")
async def get_cart_item(cart_item_id: int, db: Session = Depends(get_db)):
    item = cart_service.get_by_id(db, cart_item_id)
    return api_response("Cart item fetched successfully", CartItemOut.model_validate(item))


@router.get("/users/{user_id}/cart-items")
async def list_user_cart_items(user_id: int, db: Session = Depends(get_db)):
    items = cart_service.list_for_user(db, user_id)
    return api_response(
        "User's cart items fetched successfully",
        [CartItemOut.model_validate(it) for it in items],
    )


@router.get("/users/{user_id}/cart-items/preview")
async def preview_user_cart(user_id: int, db: Session = Depends(get_db)):
    """Informational pricing of the cart at current catalog prices."""
    items, subtotal = cart_service.preview_for_user(db, user_id)
    preview = CartPreview(
        items=[CartLinePreview(**it) for it in items],
        subtotal=subtotal,
        item_count=sum(it["quantity"] for it in items),
    )
    return api_response("Cart preview computed successfully", preview)


# ==========================================
# ➕➖ Writes
# ==========================================

@router.post("/cart-items")
async def add_or_update_cart_item(body: CartItemRequest, db: Session = Depends(get_db)):
    item = cart_service.add_or_update(db, body.user_id, body.product_id, body.quantity)
    return api_response("Cart item added/updated successfully", CartItemOut.model_validate(item))


@router.patch("/cart-items/{cart_item_id}/quantity")
async def update_cart_item_quantity(
    cart_item_id: int,
    body: UpdateCartItemQuantity,
    db: Session = Depends(get_db),
):
    item = cart_service.set_quantity(db, cart_item_id, body.quantity)
    return api_response("Cart item quantity updated successfully", CartItemOut.model_validate(item))


@router.delete("/cart-items/{cart_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cart_item(cart_item_id: int, db: Session = Depends(get_db)):
    cart_service.remove(db, cart_item_id)
    return no_content()


@router.delete("/users/{user_id}/cart-items", status_code=status.HTTP_204_NO_CONTENT)
async def clear_user_cart(user_id: int, db: Session = Depends(get_db)):
    cart_service.clear_for_user(db, user_id)
    return no_content()
