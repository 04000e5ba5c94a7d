import os

# baza w pamieci zamiast postgresa - musi byc ustawione przed importem checkout
os.environ["DATABASE_URL"] = "sqlite://"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import checkout.data.models  # noqa: F401
from checkout.api.deps import (
    get_bonus_config,
    get_lock_service,
    get_notification_service,
    get_product_client,
)
from checkout.data.database import Base, get_db
from checkout.data.models.user import UserModel
from checkout.domain.schemas import OrderCreate
from checkout.main import create_app
from checkout.services.cart_service import CartService
from checkout.services.order_service import OrderService
from checkout.services.promo_code_service import PromoCodeService
from checkout.services.wallet_service import WalletService
from checkout.utils.settings import BonusSettings


class FakeProductClient:
    """Katalog w pamieci, zwraca to samo co ProductClient.fetch_product."""

    def __init__(self):
        self.products = {}
        self.calls = 0

    def put(self, product_id, price, discounted_price=None, stock=100, is_active=True, name=None):
        self.products[product_id] = {
            "id": product_id,
            "name": name or f"Product {product_id}",
            "sku": f"SKU-{product_id}",
            "is_active": is_active,
            "stock_quantity": stock,
            "price": Decimal(price),
            "discounted_price": Decimal(discounted_price) if discounted_price is not None else None,
        }

    def remove(self, product_id):
        self.products.pop(product_id, None)

    def fetch_product(self, product_id):
        self.calls += 1
        product = self.products.get(product_id)
        return dict(product) if product else None


class FakeLockService:
    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, user_id, token, ttl):
        if user_id in self.locks:
            return False
        self.locks[user_id] = token
        return True

    def release_checkout_lock(self, user_id, token):
        if self.locks.get(user_id) == token:
            del self.locks[user_id]
            return True
        return False


class FakeNotificationService:
    def __init__(self):
        self.orders = []
        self.bonuses = []

    def send_order_notification(self, user_id, order_id, order_number):
        self.orders.append((user_id, order_id, order_number))

    def send_bonus_notification(self, user_id, order_number, amount):
        self.bonuses.append((user_id, order_number, amount))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_conn, _):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def users(db):
    db.add_all([UserModel(id=1, name="Alice"), UserModel(id=2, name="Bob")])
    db.commit()
    return [1, 2]


@pytest.fixture
def products():
    catalog = FakeProductClient()
    catalog.put(1, "10.00", stock=10)
    catalog.put(2, "5.00", stock=10)
    return catalog


@pytest.fixture
def locks():
    return FakeLockService()


@pytest.fixture
def notifier():
    return FakeNotificationService()


@pytest.fixture
def bonus_settings():
    return BonusSettings(percentage=Decimal("5.0"), minimum_order=Decimal("50.00"))


@pytest.fixture
def wallet_service(db):
    return WalletService(db)


@pytest.fixture
def promo_service(db):
    return PromoCodeService(db)


@pytest.fixture
def cart_service(db, products):
    return CartService(db, products)


@pytest.fixture
def order_service(db, products, locks, notifier, bonus_settings):
    return OrderService(
        db,
        product_client=products,
        lock_service=locks,
        notification_service=notifier,
        bonus_settings=bonus_settings,
    )


@pytest.fixture
def order_payload():
    def _make(use_wallet_amount=None, customer_name="Alice Smith"):
        return OrderCreate(
            customer_name=customer_name,
            customer_phone="+48 600 100 200",
            delivery_address="ul. Dluga 1, Warszawa",
            latitude=52.23,
            longitude=21.01,
            use_wallet_amount=use_wallet_amount,
        )

    return _make


@pytest.fixture
def client(session_factory, products, locks, notifier, bonus_settings):
    app = create_app(with_lifespan=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_product_client] = lambda: products
    app.dependency_overrides[get_lock_service] = lambda: locks
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_bonus_config] = lambda: bonus_settings

    with TestClient(app) as c:
        yield c
