# app/services/webhook_reconciler.py
from decimal import Decimal
from typing import Dict, Any, Tuple

import redis
import stripe
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.payment import PaymentModel
from app.domain.errors import SignatureError, ValidationError, ConflictError
from app.domain.schemas import ProviderEvent, CheckoutSessionObject
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.repos.payment_repo import PaymentRepo
from app.services.catalog_signal import CatalogSignal
from app.services.notification_service import NotificationService
from app.services.payment_gateway import PROVIDER, to_minor_units
from app.utils import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300

SUCCESS_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
FAILURE_EVENTS = ("checkout.session.expired", "checkout.session.async_payment_failed")
PAID_STATUSES = ("paid", "no_payment_required")


class WebhookReconciler:
    """
    Maszyna stanow sterowana zdarzeniami dostawcy, kluczem jest provider_session_id.

    Zdarzenia przychodza co najmniej raz i w dowolnej kolejnosci, wiec kazde
    przejscie jest idempotentne. Powiadomienia i sygnal katalogu wychodza tylko
    dla przejsc wykonanych w tym wywolaniu.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        catalog_signal: CatalogSignal | None = None,
    ):
        self.payments = PaymentRepo(db)
        self.orders = OrderRepo(db)
        self.carts = CartRepo(db)
        self.notification_service = notification_service or NotificationService()
        self.catalog_signal = catalog_signal

    def verify(self, payload: bytes, signature_header: str | None) -> None:
        secret = settings.STRIPE_WEBHOOK_SECRET
        if not secret:
            logger.error("STRIPE_WEBHOOK_SECRET not configured, refusing webhook")
            raise SignatureError("invalid signature")
        if not signature_header:
            raise SignatureError("invalid signature")

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature_header,
                secret,
                SIGNATURE_TOLERANCE_SECONDS,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook signature rejected: {e}")
            raise SignatureError("invalid signature") from e

    def handle(self, payload: bytes, signature_header: str | None) -> Dict[str, Any]:
        # podpis przed jakimkolwiek odczytem pol
        self.verify(payload, signature_header)

        try:
            event = ProviderEvent.model_validate_json(payload)
        except SchemaError as e:
            logger.warning(f"Malformed webhook body: {e}")
            raise ValidationError("malformed event") from e

        logger.info(f"Webhook {event.id} ({event.type})")

        if event.type not in SUCCESS_EVENTS + FAILURE_EVENTS:
            return {"status": "ignored"}

        try:
            obj = CheckoutSessionObject.model_validate(event.data.object)
        except SchemaError as e:
            logger.warning(f"Malformed checkout session in {event.id}: {e}")
            raise ValidationError("malformed event") from e

        if event.type in FAILURE_EVENTS:
            return self.apply_failure(obj)
        if obj.payment_status in PAID_STATUSES:
            return self.apply_success(obj)
        return self.apply_pending(obj)

    def _load(
        self, obj: CheckoutSessionObject, status: str
    ) -> Tuple[PaymentModel | None, OrderModel | None, bool]:
        payment = self.payments.get_by_session_id(obj.id, for_update=True)

        order_id = None
        raw = (obj.metadata or {}).get("order_id")
        if raw and raw.isdigit():
            order_id = int(raw)
        elif payment is not None:
            order_id = payment.order_id

        order = self.orders.get_order(order_id, for_update=True) if order_id else None
        if order is None:
            return payment, None, False

        if payment is None:
            # zdarzenie wyprzedzilo lokalny commit sesji
            amount = Decimal(obj.amount_total) / 100 if obj.amount_total is not None else order.total
            payment = self.payments.add(
                PaymentModel(
                    order_id=order.id,
                    provider=PROVIDER,
                    provider_session_id=obj.id,
                    amount=amount,
                    currency=(obj.currency or order.currency).upper(),
                    status=status,
                )
            )
            logger.warning(f"Payment for session {obj.id} not found, created from event")
            return payment, order, True
        return payment, order, False

    def apply_success(self, obj: CheckoutSessionObject) -> Dict[str, Any]:
        promoted = False
        order_paid = False
        duplicate = False
        cart_cleared = False

        try:
            payment, order, _ = self._load(obj, "created")
            if order is None:
                self.payments.rollback()
                logger.warning(f"No order for session {obj.id}, ignoring")
                return {"status": "ignored"}

            if payment.status != "succeeded":
                other = self.payments.find_succeeded(order.id, exclude_id=payment.id)
                if other is not None:
                    duplicate = True
                    logger.error(
                        f"Order {order.id} already paid by {other.provider_session_id}, "
                        f"session {obj.id} not applied"
                    )
                else:
                    payment.status = "succeeded"
                    promoted = True

            if not duplicate and order.status != "paid":
                if order.status == "cancelled":
                    logger.warning(f"Order {order.id} was cancelled but payment {obj.id} succeeded")
                self.orders.update_order_status(order, "paid")
                order_paid = True

            if obj.amount_total is not None and obj.amount_total != to_minor_units(order.total):
                logger.warning(
                    f"Amount mismatch for order {order.id}: order {order.total}, "
                    f"provider {obj.amount_total} minor units"
                )

            cart = None
            token = (obj.metadata or {}).get("cart_token")
            if token:
                cart = self.carts.get_by_token(token, for_update=True)
            elif order.cart_id:
                cart = self.carts.get_cart(order.cart_id)
            if cart is not None and cart.status != "converted":
                self.carts.clear_items(cart.id)
                self.carts.touch(cart, status="converted")
                cart_cleared = True

            self.payments.commit()
        except IntegrityError as e:
            # rownolegla dostawa tego samego zdarzenia, dostawca ponowi
            self.payments.rollback()
            logger.warning(f"Concurrent webhook for session {obj.id}: {e}")
            raise ConflictError("concurrent delivery", details={"session": obj.id}) from e
        except Exception as e:
            logger.error(f"Blad podczas rozliczania sesji {obj.id}: {e}")
            self.payments.rollback()
            raise

        logger.info(
            f"Session {obj.id}: payment_promoted={promoted} order_paid={order_paid} "
            f"cart_cleared={cart_cleared} duplicate={duplicate}"
        )

        if order_paid:
            self.notification_service.send_order_paid(order.id, order.email)
            self._bump_catalog()
        if duplicate:
            self.notification_service.send_duplicate_payment(order.id, obj.id)

        if duplicate:
            return {"status": "duplicate"}
        if promoted or order_paid or cart_cleared:
            return {"status": "applied"}
        return {"status": "noop"}

    def apply_pending(self, obj: CheckoutSessionObject) -> Dict[str, Any]:
        return self._set_status(obj, "pending", allowed_from=("created",))

    def apply_failure(self, obj: CheckoutSessionObject) -> Dict[str, Any]:
        #succeeded nigdy nie jest cofany
        return self._set_status(obj, "failed", allowed_from=("created", "pending"))

    def _set_status(self, obj: CheckoutSessionObject, status: str, allowed_from: tuple) -> Dict[str, Any]:
        changed = False
        try:
            payment, _, created = self._load(obj, status)
            if payment is None:
                self.payments.rollback()
                logger.warning(f"No payment or order for session {obj.id}, ignoring")
                return {"status": "ignored"}

            if created:
                changed = True
            elif payment.status in allowed_from:
                payment.status = status
                changed = True
            self.payments.commit()
        except IntegrityError as e:
            self.payments.rollback()
            raise ConflictError("concurrent delivery", details={"session": obj.id}) from e
        except Exception:
            self.payments.rollback()
            raise

        if changed:
            logger.info(f"Payment {payment.id} ({obj.id}) -> {status}")
        return {"status": "applied" if changed else "noop"}

    def _bump_catalog(self) -> None:
        # fire-and-forget, niedostepny redis nie cofa platnosci
        if self.catalog_signal is None:
            return
        try:
            self.catalog_signal.bump()
        except redis.RedisError as e:
            logger.warning(f"Catalog version not bumped: {e}")
