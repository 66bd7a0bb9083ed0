# app/tasks/abandon.py
from app.celery_worker import celery_app
from app.data.database import SessionLocal
from app.services.cart_service import CartService
from app.utils.settings import CART_ABANDON_AFTER_SECONDS
from app.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="app.tasks.abandon.abandon_stale_carts_task")
def abandon_stale_carts_task(older_than_seconds: int | None = None):
    logger.info("Abandon stale carts task started")

    db = SessionLocal()
    try:
        count = CartService(db).abandon_stale_carts(older_than_seconds or CART_ABANDON_AFTER_SECONDS)
        logger.info(f"Abandoned {count} carts")
        return count
    finally:
        db.close()
