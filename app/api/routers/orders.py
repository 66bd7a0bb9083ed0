# app/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import current_customer_email, get_notification_service, require_admin
from app.data.database import get_db
from app.domain.errors import ValidationError, NotFoundError, ConflictError, UpstreamError
from app.domain.schemas import OrderOut, PaymentSessionOut, PendingCountOut
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService
from app.services.payment_gateway import PaymentGateway
from app.services.pending_order_tracker import PendingOrderTracker

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
):
    return OrderService(db, notification_service)


# przed /{order_id}, inaczej "pending-count" i "recent" trafia w parametr
@router.get("/pending-count", response_model=PendingCountOut)
def pending_count(
    email: str | None = Depends(current_customer_email),
    db: Session = Depends(get_db),
):
    """
    Liczba zamowien klienta oczekujacych na platnosc bez dowodu wplaty.
    """
    return {"count": PendingOrderTracker(db).pending_count(email)}


@router.get("/recent", response_model=List[OrderOut], dependencies=[Depends(require_admin)])
def recent_orders(
    limit: int = Query(20, ge=1, le=100),
    svc: OrderService = Depends(get_service),
):
    return svc.recent_orders(limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, svc: OrderService = Depends(get_service)):
    """
    Pobiera szczegóły zamówienia.
    """
    try:
        return svc.get_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{order_id}/payments", response_model=PaymentSessionOut, status_code=201)
def retry_payment(order_id: int, db: Session = Depends(get_db)):
    """
    Nowa proba platnosci: zawsze nowa sesja u dostawcy i nowy wiersz Payment.
    """
    try:
        session = PaymentGateway(db).create_checkout_session(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "orderId": order_id,
        "paymentId": session["payment"].id,
        "checkoutUrl": session["checkout_url"],
    }


@router.post("/{order_id}/mark-paid", response_model=OrderOut, dependencies=[Depends(require_admin)])
def mark_paid(
    order_id: int,
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Reczne potwierdzenie wplaty po sprawdzeniu dowodu przez obsluge.
    """
    try:
        PendingOrderTracker(db, notification_service=notification_service).mark_paid(order_id)
        return OrderService(db, notification_service).get_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderOut, dependencies=[Depends(require_admin)])
def cancel_order(order_id: int, svc: OrderService = Depends(get_service)):
    try:
        return svc.cancel_order(order_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
