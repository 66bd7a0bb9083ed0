# app/api/cookies.py
from fastapi import Response

from app.utils import settings


def set_cart_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.CART_COOKIE_NAME,
        value=token,
        max_age=settings.CART_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )


def set_customer_cookie(response: Response, email: str) -> None:
    response.set_cookie(
        key=settings.CUSTOMER_COOKIE_NAME,
        value=email,
        max_age=settings.CART_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
    )
