import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from shared.core.config import settings
from shared.core.database import marketplace_engine, Base
from shared.exception_handler import setup_exception_handlers

from .models import (
    delivery_addresses, order_items, orders, payments, products, reviews, vendor_locations, vendors
)
from .router import (
    delivery_address_router,
    inventory_router,
    order_router,
    product_router,
    review_router,
    vendor_router,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Marketplace Service API")

# Create all tables
Base.metadata.create_all(bind=marketplace_engine)

origins = [origin.strip()
           for origin in settings.CORS_ORIGINS.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Include routers
app.include_router(vendor_router.router)
app.include_router(product_router.router)
app.include_router(inventory_router.router)
app.include_router(order_router.router)
app.include_router(review_router.router)
app.include_router(delivery_address_router.router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "marketplace_service"}
