# app/services/order_service.py
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.domain.errors import ValidationError, NotFoundError, ConflictError
from app.repos.cart_repo import CartRepo
from app.repos.customer_repo import CustomerRepo
from app.repos.order_repo import OrderRepo
from app.repos.payment_repo import PaymentRepo
from app.services.cart_service import compute_total
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger

logger = get_logger(__name__)


def order_reference(order: OrderModel) -> str:
    #tylko do wyswietlenia, nie jest kluczem wyszukiwania
    return f"ORD-{order.created_at:%Y%m%d}-{order.id:05d}"


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Zamowienie to zamrozona kopia koszyka, pozniejsze zmiany koszyka go nie dotycza.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.customers = CustomerRepo(db)
        self.payments = PaymentRepo(db)
        self.notification_service = notification_service or NotificationService()

    def create_order_from_cart(self, token: str | None, email: str | None) -> Dict[str, Any]:
        """
        Use Case: Tworzenie zamówienia z koszyka.

        1. Waliduje email, koszyk i walute (przy bledzie nic nie jest zapisane)
        2. Zakłada klienta jeśli go nie ma
        3. Tworzy zamówienie i kopiuje pozycje w jednej transakcji
        4. Wysyła powiadomienie (async) po commicie
        """
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("email required")

        try:
            cart = self.carts.get_by_token(token, for_update=True) if token else None
            if cart is None:
                raise NotFoundError("cart not found")
            if cart.status == "converted":
                raise ValidationError("cart already checked out")

            items = self.carts.get_items(cart.id)
            if not items:
                raise ValidationError("cart is empty")

            total, currency = compute_total(items)

            customer = self.customers.get_or_create(email)
            order = OrderModel(
                customer_id=customer.id,
                cart_id=cart.id,
                email=email,
                status="pending",
                total=total,
                currency=currency,
            )
            created = self.repo.create_order(
                order,
                [
                    OrderItemModel(
                        product_id=i.product_id,
                        title=i.title,
                        quantity=i.quantity,
                        unit_price=i.unit_price,
                        currency=i.currency,
                    )
                    for i in items
                ],
            )

            if not cart.email:
                self.carts.touch(cart, email=email)

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        reference = order_reference(created)
        logger.info(f"Order {created.id} ({reference}) created from cart {cart.id}, {total} {currency}")

        # Wyślij powiadomienie asynchronicznie
        self.notification_service.send_order_created(created.id, email, reference)

        return {
            "order": created,
            "reference": reference,
            "cart_token": cart.token,
        }

    def _order_view(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "reference": order_reference(order),
            "email": order.email,
            "status": order.status,
            "total": order.total,
            "currency": order.currency,
            "cart_id": order.cart_id,
            "items": [
                {
                    "product_id": i.product_id,
                    "title": i.title,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "currency": i.currency,
                }
                for i in self.repo.get_items(order.id)
            ],
            "payments": self.payments.get_for_order(order.id),
            "created_at": order.created_at,
        }

    def get_order(self, order_id: int) -> Dict[str, Any]:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get_order(order_id)

        if not order:
            raise NotFoundError("order not found", details={"order_id": order_id})

        return self._order_view(order)

    def recent_orders(self, limit: int = 20) -> List[Dict[str, Any]]:
        #lista dla obslugi, z zamrozonymi pozycjami
        return [self._order_view(order) for order in self.repo.recent(limit)]

    def cancel_order(self, order_id: int) -> Dict[str, Any]:
        try:
            order = self.repo.get_order(order_id, for_update=True)
            if not order:
                raise NotFoundError("order not found", details={"order_id": order_id})
            if order.status == "paid":
                raise ConflictError("paid order cannot be cancelled", details={"order_id": order_id})
            if order.status != "cancelled":
                self.repo.update_order_status(order, "cancelled")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order_id} cancelled")
        return self._order_view(order)
