# app/api/deps.py
import hmac

from fastapi import Cookie, Header, HTTPException

from app.services.catalog_signal import CatalogSignal
from app.services.identity_client import IdentityClient
from app.services.notification_service import NotificationService
from app.services.product_client import ProductClient
from app.services.proof_storage import ProofStorage
from app.utils import settings

# fabryki wspolpracownikow, w testach podmieniane przez dependency_overrides


def get_product_client() -> ProductClient:
    return ProductClient()


def get_identity_client() -> IdentityClient:
    return IdentityClient()


def get_catalog_signal() -> CatalogSignal:
    return CatalogSignal()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_proof_storage() -> ProofStorage:
    return ProofStorage()


def cart_token(cart_token: str | None = Cookie(None)) -> str | None:
    return cart_token


def current_customer_email(customer_email: str | None = Cookie(None)) -> str | None:
    #tozsamosc z cookie ustawianego po weryfikacji kodu
    if not customer_email or "@" not in customer_email:
        return None
    return customer_email.strip().lower()


def require_admin(x_admin_token: str | None = Header(None)) -> None:
    expected = settings.ADMIN_API_TOKEN
    if not expected or not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="forbidden")
