# app/services/notification_service.py
from kombu.exceptions import OperationalError

from app.celery_worker import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Serwis do wysyłania powiadomień.
    Używa Celery (broker redis) zamiast lokalnego rejestru zdarzeń,
    więc każda instancja serwisu publikuje do tej samej kolejki.
    Wysyłka jest fire-and-forget: awaria brokera nie cofa zapisanej transakcji.
    """

    @staticmethod
    def _dispatch(task, *args) -> bool:
        try:
            task.delay(*args)
            return True
        except OperationalError as e:
            logger.warning(f"Notification {task.name} not queued: {e}")
            return False

    def send_order_created(self, order_id: int, email: str, reference: str) -> bool:
        return self._dispatch(send_order_created_task, order_id, email, reference)

    def send_order_paid(self, order_id: int, email: str) -> bool:
        return self._dispatch(send_order_paid_task, order_id, email)

    def send_proof_uploaded(
        self,
        order_id: int,
        email: str,
        proof_url: str,
        payment_method: str,
        total: str,
        currency: str,
    ) -> bool:
        return self._dispatch(
            send_proof_uploaded_task, order_id, email, proof_url, payment_method, total, currency
        )

    def send_duplicate_payment(self, order_id: int, provider_session_id: str) -> bool:
        return self._dispatch(send_duplicate_payment_task, order_id, provider_session_id)


@celery_app.task(name="app.services.notification_service.send_order_created_task")
def send_order_created_task(order_id: int, email: str, reference: str):
    logger.info(f"[NOTIFICATION] {email}: order {reference} ({order_id}) created")
    return {"order_id": order_id, "event": "order.created", "status": "sent"}


@celery_app.task(name="app.services.notification_service.send_order_paid_task")
def send_order_paid_task(order_id: int, email: str):
    logger.info(f"[NOTIFICATION] {email}: order {order_id} paid")
    return {"order_id": order_id, "event": "order.paid", "status": "sent"}


@celery_app.task(name="app.services.notification_service.send_proof_uploaded_task")
def send_proof_uploaded_task(
    order_id: int,
    email: str,
    proof_url: str,
    payment_method: str,
    total: str,
    currency: str,
):
    #kanal ops: ktos z obslugi musi recznie sprawdzic wplate
    logger.info(
        f"[OPS] payment proof for order {order_id} ({email}, {total} {currency}, "
        f"{payment_method}): {proof_url}"
    )
    return {"order_id": order_id, "event": "payment.proof_uploaded", "status": "sent"}


@celery_app.task(name="app.services.notification_service.send_duplicate_payment_task")
def send_duplicate_payment_task(order_id: int, provider_session_id: str):
    logger.error(
        f"[OPS] second successful payment {provider_session_id} for order {order_id}, refund needed"
    )
    return {"order_id": order_id, "event": "payment.duplicate", "status": "sent"}
