# app/api/routers/webhooks.py
from fastapi import APIRouter, Depends, HTTPException, Header, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_catalog_signal, get_notification_service
from app.data.database import get_db
from app.domain.errors import SignatureError, ValidationError, ConflictError
from app.domain.schemas import WebhookAck
from app.services.catalog_signal import CatalogSignal
from app.services.notification_service import NotificationService
from app.services.webhook_reconciler import WebhookReconciler

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(None),
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
    catalog_signal: CatalogSignal = Depends(get_catalog_signal),
):
    """
    Zdarzenia Stripe. Podpis liczony jest z surowego body, wiec nie parsujemy go wczesniej.
    409 oznacza rownolegla dostawe, Stripe ponowi zdarzenie.
    """
    payload = await request.body()
    reconciler = WebhookReconciler(db, notification_service, catalog_signal)
    try:
        #sesja i SELECT FOR UPDATE sa synchroniczne, nie blokujemy petli zdarzen
        result = await run_in_threadpool(reconciler.handle, payload, stripe_signature)
    except SignatureError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"received": True, "status": result["status"]}
