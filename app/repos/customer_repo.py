from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.database import dialect_insert
from app.data.models.customer import CustomerModel


class CustomerRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> CustomerModel | None:
        stmt = select(CustomerModel).where(CustomerModel.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_or_create(self, email: str, name: str | None = None) -> CustomerModel:
        existing = self.get_by_email(email)
        if existing:
            return existing

        insert = dialect_insert(self.db)
        self.db.execute(
            insert(CustomerModel)
            .values(email=email, name=name)
            .on_conflict_do_nothing(index_elements=["email"])
        )
        return self.get_by_email(email)
