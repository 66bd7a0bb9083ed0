# app/api/routers/checkout.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.deps import cart_token, current_customer_email, get_notification_service
from app.data.database import get_db
from app.domain.errors import ValidationError, NotFoundError, UpstreamError
from app.domain.schemas import CheckoutIn, CheckoutOut
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService
from app.services.payment_gateway import PaymentGateway

router = APIRouter(tags=["checkout"])


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    token: str | None = Depends(cart_token),
    cookie_email: str | None = Depends(current_customer_email),
    notification_service: NotificationService = Depends(get_notification_service),
    db: Session = Depends(get_db),
):
    """
    Zamrozenie koszyka w zamowienie i otwarcie sesji platnosci.
    Email z body, a gdy go brak z cookie klienta.
    """
    email = str(payload.email) if payload.email else cookie_email

    try:
        created = OrderService(db, notification_service).create_order_from_cart(token, email)
    except NotFoundError:
        raise HTTPException(status_code=400, detail="cart is empty")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    order = created["order"]
    try:
        session = PaymentGateway(db).create_checkout_session(order.id, created["cart_token"])
    except UpstreamError:
        # zamowienie juz jest zapisane, klient ponawia przez /orders/{id}/payments
        return JSONResponse(
            status_code=502,
            content={"detail": "payment could not be processed", "orderId": order.id},
        )

    return {
        "orderId": order.id,
        "orderRef": created["reference"],
        "checkoutUrl": session["checkout_url"],
    }
