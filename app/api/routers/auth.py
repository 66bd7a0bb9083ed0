# app/api/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.api.cookies import set_cart_cookie, set_customer_cookie
from app.api.deps import cart_token, get_identity_client
from app.data.database import get_db
from app.domain.errors import ValidationError, UpstreamError
from app.domain.schemas import VerifyIn, VerifyOut
from app.services.cart_service import new_cart_token
from app.services.identity_client import IdentityClient
from app.services.session_binder import SessionBinder
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/verify", response_model=VerifyOut)
def verify(
    payload: VerifyIn,
    response: Response,
    token: str | None = Depends(cart_token),
    identity: IdentityClient = Depends(get_identity_client),
    db: Session = Depends(get_db),
):
    """
    Weryfikuje kod logowania, potem scala koszyk i rotuje token.
    Cookie z nowym tokenem wychodzi dopiero po commicie scalenia.
    """
    email = str(payload.email).lower()
    try:
        identity.verify(email, payload.code)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))

    try:
        result = SessionBinder(db).bind(token, email, new_cart_token())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    set_cart_cookie(response, result["token"])
    set_customer_cookie(response, email)
    logger.info(f"Customer {email} signed in, merged={result['merged']}")
    return {"email": email, "merged": result["merged"]}
