# app/repos/order_repo.py
from typing import List

from sqlalchemy import select, func, exists
from sqlalchemy.orm import Session

from app.data.models.customer import CustomerModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.payment_proof import PaymentProofModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel, items: List[OrderItemModel]) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        for item in items:
            item.order_id = order.id
            self.db.add(item)
        self.db.flush()
        return order

    def get_order(self, order_id: int, for_update: bool = False) -> OrderModel | None:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()

    def get_items(self, order_id: int) -> List[OrderItemModel]:
        stmt = select(OrderItemModel).where(OrderItemModel.order_id == order_id).order_by(OrderItemModel.id)
        return list(self.db.execute(stmt).scalars().all())

    def update_order_status(self, order: OrderModel, status: str) -> OrderModel:
        order.status = status
        self.db.flush()
        return order

    def recent(self, limit: int = 20) -> List[OrderModel]:
        stmt = select(OrderModel).order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def count_pending_without_proof(self, email: str) -> int:
        has_proof = exists().where(PaymentProofModel.order_id == OrderModel.id)
        stmt = (
            select(func.count(OrderModel.id))
            .join(CustomerModel, CustomerModel.id == OrderModel.customer_id)
            .where(
                CustomerModel.email == email,
                OrderModel.status == "pending",
                ~has_proof,
            )
        )
        return int(self.db.execute(stmt).scalar_one())

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
