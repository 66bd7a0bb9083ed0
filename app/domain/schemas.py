# app/domain/schemas.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List, Dict, Any
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    model_config = ConfigDict(populate_by_name=True)

    product_slug: str = Field(..., alias="productSlug", min_length=1, max_length=160)
    quantity: int = Field(1, ge=1, le=999, description="Ilość produktu (musi być >= 1)")


class QuantityIn(BaseModel):
    """Ustawienie ilosci bezwzglednie, 0 lub mniej usuwa pozycje."""

    quantity: int = Field(..., le=999)


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    product_id: int
    slug: str
    title: str
    quantity: int
    unit_price: Decimal
    currency: str
    line_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    token: str | None = None
    status: str
    email: str | None = None
    items: List[CartItemOut]
    item_count: int
    totals: Dict[str, Decimal]
    total: Decimal | None = None
    currency: str | None = None


class VerifyIn(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=1, max_length=64)


class VerifyOut(BaseModel):
    email: str
    merged: bool


class CheckoutIn(BaseModel):
    email: EmailStr | None = None


class CheckoutOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(..., alias="orderId")
    order_ref: str = Field(..., alias="orderRef")
    checkout_url: str = Field(..., alias="checkoutUrl")


class PaymentSessionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: int = Field(..., alias="orderId")
    payment_id: int = Field(..., alias="paymentId")
    checkout_url: str = Field(..., alias="checkoutUrl")


class OrderItemOut(BaseModel):
    product_id: int
    title: str
    quantity: int
    unit_price: Decimal
    currency: str


class PaymentOut(BaseModel):
    id: int
    provider: str
    provider_session_id: str
    amount: Decimal
    currency: str
    status: str

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    reference: str
    email: str
    status: str
    total: Decimal
    currency: str
    cart_id: int | None = None
    items: List[OrderItemOut]
    payments: List[PaymentOut] = []
    created_at: datetime


class PendingCountOut(BaseModel):
    count: int


class PaymentMethod(str, Enum):
    bank_transfer = "bank_transfer"
    ecocash = "ecocash"
    innbucks = "innbucks"
    onemoney = "onemoney"


class ProofOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    proof_url: str = Field(..., alias="proofUrl")


class ProofListItem(BaseModel):
    id: int
    order_id: int
    url: str
    payment_method: str
    content_type: str
    size_bytes: int
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CatalogVersionOut(BaseModel):
    version: int


class WebhookAck(BaseModel):
    received: bool = True
    status: str


class ProductData(BaseModel):
    """Odpowiedz product-service, walidowana zanim trafi do koszyka."""

    id: int = Field(..., gt=0)
    slug: str
    title: str
    price: Decimal = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)


# zdarzenia dostawcy platnosci

class CheckoutSessionObject(BaseModel):
    """Fragment obiektu checkout.session, reszta pol jest ignorowana."""

    model_config = ConfigDict(extra="ignore")

    id: str
    payment_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    client_reference_id: str | None = None
    metadata: Dict[str, str] | None = None


class ProviderEventData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: Dict[str, Any]


class ProviderEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: ProviderEventData
