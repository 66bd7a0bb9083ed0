from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from app.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=True)
    email = Column(String(160), nullable=False)

    status = Column(String(16), nullable=False, default="pending")  # pending, paid, cancelled
    total = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    items = relationship("OrderItemModel", back_populates="order", order_by="OrderItemModel.id")
    payments = relationship("PaymentModel", back_populates="order", order_by="PaymentModel.id")
    proofs = relationship("PaymentProofModel", back_populates="order", order_by="PaymentProofModel.id")
