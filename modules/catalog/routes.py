"""
Catalog Routes
================
Product CRUD, search, pagination and the carts/orders referencing a product.
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PRODUCT_NAME_MAX_LENGTH
from common.responses import api_response, no_content
from modules.catalog.service import product_service
from modules.cart.routes import CartItemOut
from modules.order.routes import OrderItemOut
from modules.order.service import order_service

router = APIRouter(prefix="/api/products", tags=["products"])


# ==========================================
# Schemas
# ==========================================

class ProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=PRODUCT_NAME_MAX_LENGTH)
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(0, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0, lt=1, decimal_places=4)
    image_url: Optional[str] = Field(None, max_length=255)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    price: Decimal
    stock: int
    discount: Optional[Decimal]
    image_url: Optional[str]


class PaginatedProducts(BaseModel):
    content: List[ProductOut]
    page: int
    size: int
    total_elements: int
    total_pages: int
    has_next: bool


# ==========================================
# 📦 Reads
# ==========================================

@router.get("")
async def list_products(db: Session = Depends(get_db)):
    products = product_service.list_all(db)
    return api_response("Products fetched successfully", [ProductOut.model_validate(p) for p in products])


@router.get("/paginated")
async def list_products_paginated(
    page: int = Query(0, ge=0),
    size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    result = product_service.list_paginated(db, page, size)
    return api_response("Products page fetched successfully", PaginatedProducts.model_validate(
        {**result, "content": [ProductOut.model_validate(p) for p in result["content"]]}
    ))


@router.get("/filter")
async def filter_products(name: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    products = product_service.search_by_name(db, name)
    return api_response("Products filtered successfully", [ProductOut.model_validate(p) for p in products])


@router.get("/{product_id}")
async def get_product(product_id: int, db: Session = Depends(get_db)):
    product = product_service.get_by_id(db, product_id)
    return api_response("Product fetched successfully", ProductOut.model_validate(product))


@router.get("/{product_id}/order-items")
async def get_product_order_items(product_id: int, db: Session = Depends(get_db)):
    items = order_service.get_order_items_by_product(db, product_id)
    return api_response("Product order items fetched successfully", [OrderItemOut.model_validate(i) for i in items])


@router.get("/{product_id}/cart-items")
async def get_product_cart_items(product_id: int, db: Session = Depends(get_db)):
    items = product_service.get_cart_items(db, product_id)
    return api_response("Product cart items fetched successfully", [CartItemOut.model_validate(i) for i in items])


# ==========================================
# ✏️ Writes
# ==========================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(body: ProductRequest, db: Session = Depends(get_db)):
    product = product_service.create(db, body.model_dump())
    return api_response("Product created successfully", ProductOut.model_validate(product), code=status.HTTP_201_CREATED)


@router.put("/{product_id}")
async def update_product(product_id: int, body: ProductRequest, db: Session = Depends(get_db)):
    product = product_service.update(db, product_id, body.model_dump())
    return api_response("Product updated successfully", ProductOut.model_validate(product))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int, db: Session = Depends(get_db)):
    product_service.delete(db, product_id)
    return no_content()
