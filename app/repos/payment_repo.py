# app/repos/payment_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.payment import PaymentModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, payment: PaymentModel) -> PaymentModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_by_session_id(self, provider_session_id: str, for_update: bool = False) -> PaymentModel | None:
        stmt = select(PaymentModel).where(PaymentModel.provider_session_id == provider_session_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()

    def get_for_order(self, order_id: int) -> List[PaymentModel]:
        stmt = select(PaymentModel).where(PaymentModel.order_id == order_id).order_by(PaymentModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def find_succeeded(self, order_id: int, exclude_id: int | None = None) -> PaymentModel | None:
        stmt = select(PaymentModel).where(
            PaymentModel.order_id == order_id,
            PaymentModel.status == "succeeded",
        )
        if exclude_id is not None:
            stmt = stmt.where(PaymentModel.id != exclude_id)
        return self.db.execute(stmt.limit(1)).scalar_one_or_none()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
