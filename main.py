"""
Ivay Shop - Application Entry Point
=====================================
FastAPI app initialization, logging, error handlers and router registration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from config import settings
from config.database import Base, engine
from common.exceptions import ShopError
from common.responses import api_error

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("ivay.http")

# ==========================================
# Import ALL models so Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401,E402
from modules.catalog.models import Product  # noqa: F401,E402
from modules.cart.models import CartItem  # noqa: F401,E402
from modules.order.models import Order, OrderItem  # noqa: F401,E402

# ==========================================
# Import routers
# ==========================================
from modules.catalog.routes import router as catalog_router  # noqa: E402
from modules.cart.routes import router as cart_router  # noqa: E402
from modules.order.routes import router as order_router  # noqa: E402


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")
    yield


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="Ivay Shop",
    description="Catalog, cart and order backend",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handler: business errors → JSON
# ==========================================
@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    """NotFound → 404, InsufficientStock / InvalidState → 409, InvalidInput → 400."""
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return api_error(exc.status_code, exc.message)


# ==========================================
# Register Routers
# ==========================================
app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(order_router)


# ==========================================
# Health check
# ==========================================
@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
