# app/services/payment_gateway.py
from decimal import Decimal
from typing import Dict, Any

import stripe
from sqlalchemy.orm import Session

from app.data.models.payment import PaymentModel
from app.domain.errors import ValidationError, NotFoundError, UpstreamError
from app.repos.order_repo import OrderRepo
from app.repos.payment_repo import PaymentRepo
from app.services.order_service import order_reference
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "stripe"


def require_stripe() -> None:
    """Konfiguracja SDK: klucz, twardy timeout, bez automatycznych ponowien."""
    if not settings.STRIPE_SECRET_KEY:
        logger.error("STRIPE_SECRET_KEY not configured")
        raise UpstreamError("payment could not be processed", retryable=False)

    stripe.api_key = settings.STRIPE_SECRET_KEY
    # timeout jest jedynym ograniczeniem, nic nie ponawiamy samodzielnie
    stripe.max_network_retries = 0
    stripe.default_http_client = stripe.RequestsClient(
        timeout=settings.PAYMENT_PROVIDER_TIMEOUT_SECONDS
    )


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


class PaymentGateway:
    """
    Otwiera hostowana sesje checkout u dostawcy i zapisuje proba platnosci.
    Kazda proba to nowa sesja i nowy wiersz Payment, nigdy nie uzywamy starej sesji.
    """

    def __init__(self, db: Session):
        self.orders = OrderRepo(db)
        self.payments = PaymentRepo(db)

    def create_checkout_session(self, order_id: int, cart_token: str | None = None) -> Dict[str, Any]:
        order = self.orders.get_order(order_id)
        if not order:
            raise NotFoundError("order not found", details={"order_id": order_id})
        if order.status != "pending":
            raise ValidationError("order is not awaiting payment", details={"status": order.status})

        items = self.orders.get_items(order.id)
        reference = order_reference(order)

        require_stripe()
        try:
            session = stripe.checkout.Session.create(
                mode="payment",
                customer_email=order.email,
                client_reference_id=reference,
                line_items=[
                    {
                        "quantity": i.quantity,
                        "price_data": {
                            "currency": i.currency.lower(),
                            "product_data": {"name": i.title or "Item"},
                            "unit_amount": to_minor_units(i.unit_price),
                        },
                    }
                    for i in items
                ],
                success_url=f"{settings.SITE_ORIGIN}/?payment=success&order={order.id}",
                cancel_url=f"{settings.SITE_ORIGIN}/cart?payment=cancelled",
                metadata={
                    "order_id": str(order.id),
                    "cart_token": cart_token or "",
                },
            )
        except stripe.APIConnectionError as e:
            #timeout albo brak polaczenia, zamowienie zostaje pending
            logger.error(f"Stripe unreachable for order {order.id}: {e}")
            raise UpstreamError("payment could not be processed", details={"order_id": order.id}) from e
        except stripe.StripeError as e:
            logger.error(f"Stripe rejected session for order {order.id}: {e}")
            raise UpstreamError("payment could not be processed", details={"order_id": order.id}) from e

        try:
            payment = self.payments.add(
                PaymentModel(
                    order_id=order.id,
                    provider=PROVIDER,
                    provider_session_id=session["id"],
                    amount=order.total,
                    currency=order.currency,
                    status="created",
                )
            )
            self.payments.commit()
        except Exception:
            self.payments.rollback()
            raise

        logger.info(f"Payment {payment.id} ({session['id']}) created for order {order.id}")
        return {"payment": payment, "checkout_url": session["url"]}
