from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.payment_proof import PaymentProofModel


class ProofRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, proof: PaymentProofModel) -> PaymentProofModel:
        self.db.add(proof)
        self.db.flush()
        return proof

    def get_by_key(self, storage_key: str) -> PaymentProofModel | None:
        stmt = select(PaymentProofModel).where(PaymentProofModel.storage_key == storage_key)
        return self.db.execute(stmt).scalar_one_or_none()

    def recent(self, limit: int = 20) -> List[PaymentProofModel]:
        stmt = (
            select(PaymentProofModel)
            .order_by(PaymentProofModel.uploaded_at.desc(), PaymentProofModel.id.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
