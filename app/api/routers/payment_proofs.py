# app/api/routers/payment_proofs.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, Form, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.api.deps import get_notification_service, get_proof_storage, require_admin
from app.data.database import get_db
from app.domain.errors import ValidationError, NotFoundError, ConflictError
from app.domain.schemas import PaymentMethod, ProofOut, ProofListItem
from app.services.notification_service import NotificationService
from app.services.pending_order_tracker import PendingOrderTracker
from app.services.proof_storage import ProofStorage
from app.utils.settings import PROOF_MAX_BYTES

router = APIRouter(prefix="/payment-proofs", tags=["payment-proofs"])


def get_tracker(
    db: Session = Depends(get_db),
    storage: ProofStorage = Depends(get_proof_storage),
    notification_service: NotificationService = Depends(get_notification_service),
):
    return PendingOrderTracker(db, storage=storage, notification_service=notification_service)


@router.post("", response_model=ProofOut, status_code=201)
def upload_proof(
    file: UploadFile = File(...),
    order_id: int = Form(..., alias="orderId"),
    payment_method: PaymentMethod = Form(..., alias="paymentMethod"),
    tracker: PendingOrderTracker = Depends(get_tracker),
):
    """
    Dowod wplaty dla platnosci recznej (obraz, max 5 MB).
    Obsluga dostaje powiadomienie i potwierdza wplate recznie.
    """
    #czytamy najwyzej limit + 1 bajt, wiecej i tak zostanie odrzucone
    data = file.file.read(PROOF_MAX_BYTES + 1)
    try:
        result = tracker.record_proof(
            order_id=order_id,
            data=data,
            filename=file.filename,
            content_type=file.content_type,
            payment_method=payment_method.value,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"proofUrl": result["proof_url"]}


@router.get("/recent", response_model=List[ProofListItem], dependencies=[Depends(require_admin)])
def recent_proofs(
    limit: int = Query(20, ge=1, le=100),
    tracker: PendingOrderTracker = Depends(get_tracker),
):
    return tracker.recent_proofs(limit)


@router.get("/{key}", dependencies=[Depends(require_admin)])
def download_proof(key: str, tracker: PendingOrderTracker = Depends(get_tracker)):
    try:
        found = tracker.open_proof(key)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return FileResponse(found["path"], media_type=found["content_type"])
