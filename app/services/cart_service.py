# app/services/cart_service.py
import uuid
from collections import defaultdict
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Dict, Any, Iterable

from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.domain.errors import ValidationError, NotFoundError
from app.repos.cart_repo import CartRepo
from app.services.product_client import ProductClient
from app.utils.settings import DEFAULT_CURRENCY
from app.utils.logging import get_logger

logger = get_logger(__name__)

TWO_PLACES = Decimal("0.01")


def new_cart_token() -> str:
    return str(uuid.uuid4())


def group_totals(items: Iterable) -> Dict[str, Decimal]:
    """Suma unit_price * quantity per waluta."""
    totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for i in items:
        totals[i.currency] += Decimal(i.unit_price) * i.quantity
    return {cur: amount.quantize(TWO_PLACES) for cur, amount in sorted(totals.items())}


def compute_total(items: Iterable) -> tuple[Decimal, str]:
    """
    Czysta funkcja: total i waluta dla listy pozycji.
    Koszyk w wielu walutach jest odrzucany, nie sumujemy niezgodnych kwot.
    Wynik nie zalezy od kolejnosci pozycji.
    """
    totals = group_totals(items)
    if not totals:
        return Decimal("0.00"), DEFAULT_CURRENCY
    if len(totals) > 1:
        raise ValidationError(
            "cart contains items in more than one currency",
            details={"currencies": ",".join(totals)},
        )
    currency, total = next(iter(totals.items()))
    return total, currency


class CartService:
    """
    Koszyk po tokenie z cookie.
    commands (add, update, remove, clear) modyfikuja stan i zawsze
    czytaja aktualne wiersze przed zapisem, query (get) tylko odczyt
    """

    def __init__(self, db: Session, product_client: ProductClient | None = None):
        self.repo = CartRepo(db)
        self.product_client = product_client

    def _view(self, cart: CartModel | None) -> Dict[str, Any]:
        if cart is None:
            return {
                "token": None,
                "status": "open",
                "email": None,
                "items": [],
                "item_count": 0,
                "totals": {},
                "total": None,
                "currency": None,
            }

        items = self.repo.get_items(cart.id)
        totals = group_totals(items)
        single = len(totals) == 1

        #dict przyksztalcany w jsona
        return {
            "token": cart.token,
            "status": cart.status,
            "email": cart.email,
            "items": [
                {
                    "product_id": i.product_id,
                    "slug": i.slug,
                    "title": i.title,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "currency": i.currency,
                    "line_total": (Decimal(i.unit_price) * i.quantity).quantize(TWO_PLACES),
                }
                for i in items
            ],
            "item_count": sum(i.quantity for i in items),
            "totals": totals,
            "total": next(iter(totals.values())) if single else None,
            "currency": next(iter(totals)) if single else None,
        }

    def _mutable_cart(self, token: str | None) -> CartModel:
        #skonwertowany koszyk nigdy nie wraca, nowe zakupy ida do nowego tokenu
        cart = self.repo.get_by_token(token, for_update=True) if token else None
        if cart is None or cart.status == "converted":
            cart = self.repo.create_cart(new_cart_token())
            logger.info(f"Utworzono nowy koszyk {cart.id}")
        elif cart.status == "abandoned":
            logger.info(f"Koszyk {cart.id} wraca ze stanu abandoned")
            self.repo.touch(cart, status="open")
        return cart

    def _existing_cart(self, token: str | None) -> CartModel:
        cart = self.repo.get_by_token(token, for_update=True) if token else None
        if cart is None:
            raise NotFoundError("cart not found")
        if cart.status == "converted":
            raise ValidationError("cart already checked out")
        return cart

    #query - odczyt
    def get_cart(self, token: str | None) -> Dict[str, Any]:
        cart = self.repo.get_by_token(token) if token else None
        return self._view(cart)

    #commands
    def get_or_create(self, token: str | None, email: str | None = None) -> Dict[str, Any]:
        try:
            cart = self.repo.get_by_token(token) if token else None
            if cart is None:
                cart = self.repo.create_cart(token or new_cart_token(), email)
            elif email and not cart.email:
                self.repo.touch(cart, email=email)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return self._view(cart)

    def add_item(self, token: str | None, product_slug: str, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise ValidationError("quantity must be at least 1")

        logger.info(f"Pobieranie danych produktu {product_slug} z product-service")
        pdata = self.product_client.fetch_product(product_slug)

        try:
            cart = self._mutable_cart(token)
            # jedno zapytanie upsert, rownolegle dodania sie sumuja
            self.repo.upsert_item(
                cart_id=cart.id,
                product_id=pdata["id"],
                slug=pdata["slug"],
                title=pdata["title"],
                quantity=quantity,
                unit_price=pdata["price"],
                currency=pdata["currency"],
            )
            self.repo.touch(cart)
            self.repo.commit()
        except Exception as e:
            logger.error(f"Blad podczas dodawania produktu {product_slug}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Produkt {pdata['id']} x{quantity} dodany do koszyka {cart.id}")
        return self._view(cart)

    def update_quantity(self, token: str | None, product_id: int, quantity: int) -> Dict[str, Any]:
        try:
            cart = self._existing_cart(token)
            if quantity <= 0:
                self.repo.delete_item(cart.id, product_id)
                logger.info(f"Produkt {product_id} usuniety z koszyka {cart.id} (ilosc {quantity})")
            else:
                if self.repo.set_quantity(cart.id, product_id, quantity) == 0:
                    raise NotFoundError("product not in cart", details={"product_id": product_id})
            self.repo.touch(cart, status="open")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return self._view(cart)

    def remove_item(self, token: str | None, product_id: int) -> Dict[str, Any]:
        try:
            cart = self._existing_cart(token)
            removed = self.repo.delete_item(cart.id, product_id)
            self.repo.touch(cart, status="open")
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        if removed:
            logger.info(f"Produkt {product_id} usuniety z koszyka {cart.id}")
        return self._view(cart)

    def clear_cart(self, cart_id: int) -> int:
        try:
            removed = self.repo.clear_items(cart_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Koszyk {cart_id} wyczyszczony ({removed} pozycji)")
        return removed

    def abandon_stale_carts(self, older_than_seconds: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=older_than_seconds)
        try:
            count = self.repo.mark_abandoned(cutoff)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        logger.info(f"Oznaczono {count} koszykow jako abandoned")
        return count
