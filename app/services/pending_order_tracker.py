# app/services/pending_order_tracker.py
import mimetypes
import time
import uuid
from pathlib import Path
from typing import Dict, Any, List
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.data.models.payment_proof import PaymentProofModel
from app.domain.errors import ValidationError, NotFoundError, ConflictError
from app.repos.order_repo import OrderRepo
from app.repos.proof_repo import ProofRepo
from app.services.notification_service import NotificationService
from app.services.proof_storage import ProofStorage
from app.utils.settings import PROOF_MAX_BYTES
from app.utils.logging import get_logger

logger = get_logger(__name__)

PAYMENT_METHODS = ("bank_transfer", "ecocash", "innbucks", "onemoney")


class PendingOrderTracker:
    """
    Dowody wplat dla platnosci recznych (przelew, mobile money).

    Tracker nie weryfikuje tresci pliku. Oznaczenie zamowienia jako oplacone
    to osobna, uprzywilejowana akcja obslugi (mark_paid).
    """

    def __init__(
        self,
        db: Session,
        storage: ProofStorage | None = None,
        notification_service: NotificationService | None = None,
    ):
        self.orders = OrderRepo(db)
        self.proofs = ProofRepo(db)
        self.storage = storage or ProofStorage()
        self.notification_service = notification_service or NotificationService()

    def record_proof(
        self,
        order_id: int,
        data: bytes,
        filename: str | None,
        content_type: str | None,
        payment_method: str,
    ) -> Dict[str, Any]:
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError("unsupported payment method", details={"payment_method": payment_method})
        if not content_type or not content_type.startswith("image/"):
            raise ValidationError("proof must be an image")
        if not data:
            raise ValidationError("proof file is empty")
        if len(data) > PROOF_MAX_BYTES:
            raise ValidationError("proof file too large", details={"max_bytes": PROOF_MAX_BYTES})

        order = self.orders.get_order(order_id)
        if not order:
            raise NotFoundError("order not found", details={"order_id": order_id})

        ext = Path(filename or "").suffix.lower() or mimetypes.guess_extension(content_type) or ""
        #losowy sufiks, dwa uploady w tej samej milisekundzie nie moga dzielic pliku
        key = f"order-{order.id}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"
        url = f"/payment-proofs/{quote(key)}"

        self.storage.save(key, data)
        try:
            proof = self.proofs.add(
                PaymentProofModel(
                    order_id=order.id,
                    url=url,
                    storage_key=key,
                    payment_method=payment_method,
                    content_type=content_type,
                    size_bytes=len(data),
                )
            )
            self.proofs.commit()
        except Exception:
            # plik bez wiersza w bazie nikomu sie nie przyda
            self.proofs.rollback()
            self.storage.delete(key)
            raise

        logger.info(f"Proof {proof.id} ({payment_method}) recorded for order {order.id}")

        self.notification_service.send_proof_uploaded(
            order.id,
            order.email,
            url,
            payment_method,
            str(order.total),
            order.currency,
        )
        return {"proof_url": url, "proof": proof}

    def pending_count(self, email: str | None) -> int:
        email = (email or "").strip().lower()
        if not email:
            return 0
        return self.orders.count_pending_without_proof(email)

    def recent_proofs(self, limit: int = 20) -> List[PaymentProofModel]:
        return self.proofs.recent(limit)

    def open_proof(self, key: str) -> Dict[str, Any]:
        proof = self.proofs.get_by_key(key)
        if proof is None:
            raise NotFoundError("proof not found", details={"key": key})
        return {"path": self.storage.open(key), "content_type": proof.content_type}

    def mark_paid(self, order_id: int) -> bool:
        """Reczne potwierdzenie wplaty przez obsluge. Zwraca True gdy zmienil sie stan."""
        changed = False
        try:
            order = self.orders.get_order(order_id, for_update=True)
            if not order:
                raise NotFoundError("order not found", details={"order_id": order_id})
            if order.status == "cancelled":
                raise ConflictError("cancelled order cannot be marked paid", details={"order_id": order_id})
            if order.status != "paid":
                self.orders.update_order_status(order, "paid")
                changed = True
            self.orders.commit()
        except Exception:
            self.orders.rollback()
            raise

        if changed:
            logger.info(f"Order {order_id} marked paid manually")
            self.notification_service.send_order_paid(order.id, order.email)
        return changed
