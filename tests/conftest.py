import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENV"] = "test"
os.environ.pop("STRIPE_WEBHOOK_SECRET", None)
os.environ.pop("BREVO_API_KEY", None)
os.environ.pop("ADMIN_EMAIL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from storefront import models  # noqa: F401
from storefront.database import get_session
from storefront.main import app
from storefront.models.product import Product
from storefront.notifications.notifier import get_notifier
from storefront.services.payment_gateway import get_payment_gateway

from helpers import FakeGateway, RecordingNotifier, auth_headers, fill_cart, make_user


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(name="client")
def client_fixture(session, gateway, notifier):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def user(session):
    return make_user(session)


@pytest.fixture
def admin(session):
    return make_user(session, email="admin@example.com", role="admin", first_name="Ada")


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def product(session):
    product = Product(name="Linen Shirt", brand="Brava", sku="BRA-0001", unit_price=12.5)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def other_product(session):
    product = Product(name="Wool Scarf", brand="Norde", sku="NOR-0001", unit_price=8.0)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def cart(session, user, product, other_product):
    # 4 x 12.50 + 4 x 8.00 = 82.00
    return fill_cart(session, user, product, other_product)
