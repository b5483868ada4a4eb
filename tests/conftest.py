import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["PRODUCT_CATALOG"] = "db"

from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import select

from cartledger.data.database import get_db, init_db, make_engine, make_session_factory
from cartledger.data.models import CartLineModel, OrderLineModel, ProductModel
from cartledger.main import create_app
from cartledger.services.cart_aggregator import CartAggregator
from cartledger.services.cart_service import CartService
from cartledger.services.checkout_service import CheckoutService
from cartledger.services.product_catalog import DbProductCatalog

PRODUCT_A = 1
PRODUCT_B = 2
PRODUCT_C = 3

TEST_PRODUCTS = [
    {"id": PRODUCT_A, "name": "Product A", "price": Decimal("10.00")},
    {"id": PRODUCT_B, "name": "Product B", "price": Decimal("5.00")},
    {"id": PRODUCT_C, "name": "Product C", "price": Decimal("2.50"), "img_url": "/img/c.png"},
]


@pytest.fixture
def engine(tmp_path):
    # file database, so worker threads share it
    engine = make_engine(f"sqlite:///{tmp_path / 'cart.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    factory = make_session_factory(engine)
    with factory() as session:
        session.add_all(ProductModel(**p) for p in TEST_PRODUCTS)
        session.commit()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def cart_service(db):
    return CartService(db, DbProductCatalog(db))


@pytest.fixture
def aggregator(db):
    return CartAggregator(db, DbProductCatalog(db))


@pytest.fixture
def checkout_service(db):
    return CheckoutService(db, DbProductCatalog(db))


@pytest.fixture
def read_cart(session_factory):
    """{product_id: quantity} for an owner, read through a fresh session."""

    def _read(owner_key):
        with session_factory() as session:
            rows = session.execute(
                select(CartLineModel).where(CartLineModel.owner_key == owner_key)
            ).scalars().all()
            return {r.product_id: r.quantity for r in rows}

    return _read


@pytest.fixture
def read_orders(session_factory):
    """[(product_id, quantity, price, purchased_at, batch_id)] for an owner."""

    def _read(owner_key):
        with session_factory() as session:
            rows = session.execute(
                select(OrderLineModel)
                .where(OrderLineModel.owner_key == owner_key)
                .order_by(OrderLineModel.id)
            ).scalars().all()
            return [
                (r.product_id, r.quantity, r.price_at_purchase, r.purchased_at, r.batch_id)
                for r in rows
            ]

    return _read


@pytest.fixture
def client(session_factory):
    app = create_app(run_init_db=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c


class FakeResponse:
    """Stand-in for requests.Response returned by a patched requests.get."""

    def __init__(self, status_code, payload=None, body_error=None):
        self.status_code = status_code
        self._payload = payload
        self._body_error = body_error

    def json(self):
        if self._body_error:
            raise self._body_error
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")
