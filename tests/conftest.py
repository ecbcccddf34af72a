import os

# the engine is built at import time, so point it at sqlite before anything loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("NOTIFICATION_SERVICE_URL", None)

import datetime
import itertools

import pytest
from fastapi.testclient import TestClient

from franchise_service import models
from franchise_service.auth import token_for
from franchise_service.database import Base, SessionLocal, engine, get_db
from franchise_service.main import app

_seq = itertools.count(1)


def auth(user):
    return {"Authorization": f"Bearer {token_for(user)}"}


@pytest.fixture
def headers_for():
    return auth


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(role=models.Role.USER, name=None, email=None):
        n = next(_seq)
        user = models.User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            role=role,
            hashed_password="not-a-real-hash",
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def admin(make_user):
    return make_user(models.Role.ADMIN, name="Admin")


@pytest.fixture
def make_manager(make_user):
    def _make(name=None):
        return make_user(models.Role.ORDER_MANAGER, name=name)
    return _make


@pytest.fixture
def make_franchise(db):
    def _make(name=None, manager=None):
        n = next(_seq)
        franchise = models.Franchise(
            name=name or f"Franchise {n}",
            email=f"franchise{n}@example.com",
            contact_number="5550100",
            is_active=True,
        )
        db.add(franchise)
        db.commit()
        if manager is not None:
            franchise.order_manager = manager
            manager.franchise = franchise
            db.commit()
        return franchise
    return _make


@pytest.fixture
def category(db):
    category = models.Category(name="Beverages")
    db.add(category)
    db.commit()
    return category


@pytest.fixture
def product(db, category):
    product = models.Product(name="Cold Brew", category_id=category.id, price=10.0, image=[])
    db.add(product)
    db.commit()
    return product


@pytest.fixture
def make_order(db, make_user, product):
    customer = make_user(name="Alice Customer")

    def _make(franchise, status=models.DeliveryStatus.PENDING, amount=10.0, user=None, created_at=None):
        order = models.Order(
            user_id=(user or customer).id,
            product_id=product.id,
            franchise_id=franchise.id,
            delivery_status=status,
            total_amount=amount,
            created_at=created_at or datetime.datetime.utcnow(),
        )
        db.add(order)
        db.commit()
        return order
    return _make
