from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from app.data.database import Base


class CartMergeModel(Base):
    """Rejestr wykonanych scalen koszykow (stary token -> nowy token)."""

    __tablename__ = "cart_merges"

    id = Column(Integer, primary_key=True)
    source_token = Column(String(255), nullable=False)
    target_token = Column(String(255), nullable=False)
    moved_items = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (UniqueConstraint("source_token", "target_token", name="u_merge_pair"),)
