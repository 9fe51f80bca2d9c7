"""Pytest fixtures for the shop tests."""

import os

# Point the app at a private in-memory database before anything imports config
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import main  # noqa: E402  (registers every model on Base)
from config.database import Base, SessionLocal, engine  # noqa: E402
from modules.catalog.models import Product  # noqa: E402
from modules.user.service import user_service  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def make_user(db):
    """Factory: committed user."""
    counter = {"n": 0}

    def _make(name=None):
        counter["n"] += 1
        user = user_service.create(db, name or f"user{counter['n']}", f"user{counter['n']}@example.com")
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    """Factory: committed product."""

    def _make(name="Widget", price="10.00", stock=10, discount=None):
        product = Product(
            name=name,
            price=Decimal(price),
            stock=stock,
            discount=Decimal(discount) if discount is not None else None,
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def stock_of(db):
    """Read the committed stock figure of a product, bypassing the identity map."""

    def _read(product_id):
        db.expire_all()
        return db.query(Product.stock).filter(Product.id == product_id).scalar()

    return _read
