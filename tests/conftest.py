"""
Wspolne fixtures dla testow.

Zmienne srodowiskowe musza byc ustawione przed importem app.*, bo
app.utils.settings czyta je przy imporcie.
"""

import hashlib
import hmac
import os
import time
from decimal import Decimal
from typing import Generator
from unittest.mock import MagicMock

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["ADMIN_API_TOKEN"] = "admin-secret"
os.environ["SITE_ORIGIN"] = "http://shop.test"

import fakeredis
import pytest
import stripe
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.data.database import Base, get_db
from app.data import models  # noqa: F401
from app.domain.errors import NotFoundError
from app.services.catalog_signal import CatalogSignal
from app.services.notification_service import NotificationService
from app.services.proof_storage import ProofStorage

WEBHOOK_SECRET = "whsec_test_secret"

PRODUCTS = {
    "vase-01": {"id": 1, "slug": "vase-01", "title": "Ceramic Vase", "price": Decimal("49.99"), "currency": "USD"},
    "bowl-02": {"id": 2, "slug": "bowl-02", "title": "Carved Bowl", "price": Decimal("35.00"), "currency": "USD"},
    "lamp-05": {"id": 5, "slug": "lamp-05", "title": "Brass Lamp", "price": Decimal("20.00"), "currency": "USD"},
    "tray-06": {"id": 6, "slug": "tray-06", "title": "Teak Tray", "price": Decimal("50.00"), "currency": "USD"},
    "print-04": {"id": 4, "slug": "print-04", "title": "Linen Print", "price": Decimal("60.00"), "currency": "EUR"},
}


# marker unit/integration nadawany wg katalogu testu
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeProductClient:
    """Katalog w pamieci zamiast product-service."""

    def __init__(self, products=None):
        self.products = {slug: dict(p) for slug, p in (products or PRODUCTS).items()}
        self.calls = []

    def fetch_product(self, slug: str) -> dict:
        self.calls.append(slug)
        if slug not in self.products:
            raise NotFoundError("product not found", details={"slug": slug})
        return dict(self.products[slug])


class FakeStripeSessions:
    """Podmiana stripe.checkout.Session.create, zapamietuje wywolania."""

    def __init__(self):
        self.calls = []
        self.error = None

    def create(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.calls.append(kwargs)
        n = len(self.calls)
        return {"id": f"cs_test_{n}", "url": f"https://checkout.stripe.test/pay/cs_test_{n}"}


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Naglowek Stripe-Signature w formacie t=...,v1=..."""
    ts = timestamp if timestamp is not None else int(time.time())
    signature = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def product_client():
    return FakeProductClient()


@pytest.fixture()
def notifications():
    return MagicMock(spec=NotificationService)


@pytest.fixture()
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def catalog_signal(redis_client):
    return CatalogSignal(client=redis_client)


@pytest.fixture()
def proof_storage(tmp_path):
    return ProofStorage(tmp_path / "proofs")


@pytest.fixture()
def fake_stripe(monkeypatch):
    sessions = FakeStripeSessions()
    monkeypatch.setattr(stripe.checkout.Session, "create", sessions.create)
    return sessions


@pytest.fixture()
def identity_client():
    client = MagicMock()
    client.verify.return_value = {"ok": True}
    return client


@pytest.fixture()
def app(session_factory, product_client, notifications, catalog_signal, proof_storage, identity_client):
    from app.main import app as fastapi_app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = _get_db
    fastapi_app.dependency_overrides[deps.get_product_client] = lambda: product_client
    fastapi_app.dependency_overrides[deps.get_notification_service] = lambda: notifications
    fastapi_app.dependency_overrides[deps.get_catalog_signal] = lambda: catalog_signal
    fastapi_app.dependency_overrides[deps.get_proof_storage] = lambda: proof_storage
    fastapi_app.dependency_overrides[deps.get_identity_client] = lambda: identity_client
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def sign():
    return sign_payload
