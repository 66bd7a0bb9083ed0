from datetime import datetime, timezone, timedelta
from unittest.mock import patch

from kombu.exceptions import OperationalError
from sqlalchemy import update

from app.data.models.cart import CartModel
from app.services.catalog_signal import CatalogSignal
from app.services.cart_service import CartService
from app.services.notification_service import (
    NotificationService,
    send_order_paid_task,
)
from app.tasks.abandon import abandon_stale_carts_task


def test_catalog_version_shared_between_instances(redis_client):
    first = CatalogSignal(client=redis_client)
    second = CatalogSignal(client=redis_client)

    assert first.current() == 0
    assert first.bump() == 1
    assert second.bump() == 2
    assert first.current() == 2


def test_notifications_run_eagerly():
    result = send_order_paid_task.delay(7, "buyer@example.com")
    assert result.get() == {"order_id": 7, "event": "order.paid", "status": "sent"}


def test_notification_dispatch_returns_true():
    assert NotificationService().send_order_created(1, "buyer@example.com", "ORD-20260101-00001") is True


class UnreachableBrokerTask:
    name = "app.services.notification_service.send_order_created_task"

    def delay(self, *args):
        raise OperationalError("broker down")


def test_broker_outage_does_not_raise():
    assert NotificationService._dispatch(UnreachableBrokerTask(), 1, "buyer@example.com") is False


def test_abandon_task_uses_own_session(db, product_client, session_factory):
    carts = CartService(db, product_client=product_client)
    token = carts.add_item(None, "vase-01", 1)["token"]
    old = datetime.now(timezone.utc) - timedelta(days=30)
    db.execute(update(CartModel).where(CartModel.token == token).values(updated_at=old))
    db.commit()

    with patch("app.tasks.abandon.SessionLocal", session_factory):
        assert abandon_stale_carts_task.delay().get() == 1

    assert carts.get_cart(token)["status"] == "abandoned"
