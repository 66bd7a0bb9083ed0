#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.api.cookies import set_cart_cookie
from app.api.deps import cart_token, get_product_client
from app.data.database import get_db
from app.domain.errors import ValidationError, NotFoundError, UpstreamError
from app.domain.schemas import ItemIn, QuantityIn, CartOut
from app.services.cart_service import CartService
from app.services.product_client import ProductClient

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
):
    return CartService(db=db, product_client=product_client)


@router.get("", response_model=CartOut)
def get_cart(
    token: str | None = Depends(cart_token),
    svc: CartService = Depends(get_service),
):
    return svc.get_cart(token)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    response: Response,
    token: str | None = Depends(cart_token),
    svc: CartService = Depends(get_service),
):
    try:
        view = svc.add_item(token, payload.product_slug, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except UpstreamError as e:
        raise HTTPException(status_code=502, detail=str(e))

    #koszyk tworzony leniwie, token moze byc nowy
    set_cart_cookie(response, view["token"])
    return view


@router.patch("/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: QuantityIn,
    token: str | None = Depends(cart_token),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.update_quantity(token, product_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    token: str | None = Depends(cart_token),
    svc: CartService = Depends(get_service),
):
    try:
        return svc.remove_item(token, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
