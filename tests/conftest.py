import os
import tempfile
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "marketplace.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CHANGE_NOTIFY_DEBOUNCE_SECONDS"] = "0"

import pytest
from fastapi.testclient import TestClient

from shared.core.auth import create_access_token
from shared.core.database import Base, MarketplaceSessionLocal, marketplace_engine
from shared.core.schemas import UserToken
from shared.helpers.change_notifier import change_notifier
from shared.utils.enums import UserRole
from marketplace_service.app.main import app
from marketplace_service.app.crud import vendor_locations_crud
from marketplace_service.app.models.products import Product
from marketplace_service.app.models.vendors import Vendor


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=marketplace_engine)
    Base.metadata.create_all(bind=marketplace_engine)
    change_notifier.clear()
    yield
    change_notifier.clear()


@pytest.fixture
def db():
    session = MarketplaceSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_vendor(db):
    def _make_vendor(user_id="vendor-1", business_name="Fresh Farm", contact="+234 800 000 0000",
                     lat=None, lng=None, is_active=True):
        vendor = Vendor(user_id=user_id, business_name=business_name, contact=contact)
        db.add(vendor)
        db.commit()
        db.refresh(vendor)
        if lat is not None and lng is not None:
            vendor_locations_crud.update_vendor_location(
                db, vendor, lat, lng, is_active=is_active)
        return vendor
    return _make_vendor


@pytest.fixture
def make_product(db):
    def _make_product(vendor, name="Tomatoes", price="2.50", inventory_count=10,
                      description=None, created_at=None):
        product = Product(
            vendor_id=vendor.id,
            name=name,
            description=description,
            price=Decimal(price),
            inventory_count=inventory_count,
        )
        if created_at is not None:
            product.created_at = created_at
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make_product


def user_token(user_id, role):
    return UserToken(user_id=user_id, role=role)


@pytest.fixture
def customer():
    return user_token("customer-1", UserRole.CUSTOMER)


@pytest.fixture
def vendor_user():
    return user_token("vendor-1", UserRole.VENDOR)


def auth_headers(user_id, role):
    token = create_access_token({"user_id": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers():
    return auth_headers("customer-1", UserRole.CUSTOMER)


@pytest.fixture
def vendor_headers():
    return auth_headers("vendor-1", UserRole.VENDOR)
