# app/repos/cart_repo.py
from datetime import datetime, timezone
from decimal import Decimal
from typing import List

from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from app.data.database import dialect_insert
from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel
from app.data.models.cart_merge import CartMergeModel


class CartRepo:
    """
    Dostep do koszykow i ich pozycji.
    Metody nie commituja, transakcja nalezy do serwisu.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_by_token(self, token: str, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.token == token)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def create_cart(self, token: str, email: str | None = None) -> CartModel:
        #dwa requesty z tym samym nowym tokenem: drugi insert nic nie robi, czytamy zwyciezce
        insert = dialect_insert(self.db)
        now = datetime.now(timezone.utc)
        stmt = insert(CartModel).values(
            token=token,
            email=email,
            status="open",
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=["token"])
        self.db.execute(stmt)
        return self.get_by_token(token)

    def get_items(self, cart_id: int) -> List[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.product_id == product_id,
        )
        return self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()

    def upsert_item(
        self,
        cart_id: int,
        product_id: int,
        slug: str,
        title: str,
        quantity: int,
        unit_price: Decimal,
        currency: str,
    ) -> None:
        # jedno zapytanie INSERT ... ON CONFLICT DO UPDATE quantity = quantity + excluded.quantity
        # baza serializuje rownolegle dodania tego samego produktu, nie ma read-modify-write
        # cena zostaje z pierwszego dodania
        insert = dialect_insert(self.db)
        table = CartItemModel.__table__
        stmt = insert(table).values(
            cart_id=cart_id,
            product_id=product_id,
            slug=slug,
            title=title,
            quantity=quantity,
            unit_price=unit_price,
            currency=currency,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": table.c.quantity + stmt.excluded.quantity},
        )
        self.db.execute(stmt)

    def set_quantity(self, cart_id: int, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_item(self, cart_id: int, product_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def clear_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def touch(self, cart: CartModel, **values) -> None:
        values.setdefault("updated_at", datetime.now(timezone.utc))
        for key, value in values.items():
            setattr(cart, key, value)
        self.db.flush()

    def mark_abandoned(self, older_than: datetime) -> int:
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.status == "open", CartModel.updated_at < older_than)
            .values(status="abandoned")
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # rejestr scalen
    def merge_recorded(self, source_token: str, target_token: str) -> bool:
        stmt = select(CartMergeModel.id).where(
            CartMergeModel.source_token == source_token,
            CartMergeModel.target_token == target_token,
        )
        return self.db.execute(stmt).first() is not None

    def record_merge(self, source_token: str, target_token: str, moved_items: int) -> None:
        self.db.add(
            CartMergeModel(
                source_token=source_token,
                target_token=target_token,
                moved_items=moved_items,
            )
        )
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
