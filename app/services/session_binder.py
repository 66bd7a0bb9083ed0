# app/services/session_binder.py
from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.errors import ValidationError
from app.repos.cart_repo import CartRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class SessionBinder:
    """
    Scalanie anonimowego koszyka z koszykiem klienta przy logowaniu.

    Wydanie nowego tokenu i przeniesienie pozycji to jedna transakcja:
    nowy koszyk (z emailem) i wszystkie przeniesione pozycje commituja sie
    razem albo wcale. Wpis w cart_merges dla pary (stary, nowy) robi z
    ponownego wywolania no-op.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)

    def bind(self, old_token: str | None, email: str, new_token: str) -> Dict[str, Any]:
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("email required")
        if not new_token or new_token == old_token:
            raise ValidationError("new cart token required")

        try:
            source = self.repo.get_by_token(old_token, for_update=True) if old_token else None

            if source is not None and self.repo.merge_recorded(source.token, new_token):
                self.repo.rollback()
                logger.info(f"Scalenie {source.token} -> {new_token} juz wykonane, pomijam")
                return {"token": new_token, "merged": False, "moved_items": 0}

            target = self.repo.create_cart(new_token, email)
            if not target.email:
                self.repo.touch(target, email=email)

            moved = 0
            merged = False
            if source is not None and source.id != target.id:
                owner = (source.email or "").lower()
                if owner and owner != email:
                    # nie ujawniamy koszyka innego klienta
                    logger.warning(f"Koszyk {source.id} nalezy do innego klienta, brak scalenia")
                else:
                    moved = self._move_items(source.id, target.id)
                    self.repo.touch(target)
                    self.repo.touch(source)
                    self.repo.record_merge(source.token, new_token, moved)
                    merged = True

            self.repo.commit()
        except IntegrityError:
            # rownolegly duplikat zdazyl zapisac wpis w rejestrze
            self.repo.rollback()
            logger.info(f"Rownolegle scalenie {old_token} -> {new_token}, traktuje jako no-op")
            return {"token": new_token, "merged": False, "moved_items": 0}
        except Exception as e:
            logger.error(f"Blad podczas scalania koszyka {old_token}: {e}")
            self.repo.rollback()
            raise

        if merged:
            logger.info(f"Scalono koszyk {source.id} do {target.id} ({moved} pozycji) dla {email}")
        return {"token": new_token, "merged": merged, "moved_items": moved}

    def _move_items(self, source_id: int, target_id: int) -> int:
        #ilosci sie sumuja, wiec wynik nigdy nie jest mniejszy niz ktorakolwiek strona
        items = self.repo.get_items(source_id)
        for i in items:
            self.repo.upsert_item(
                cart_id=target_id,
                product_id=i.product_id,
                slug=i.slug,
                title=i.title,
                quantity=i.quantity,
                unit_price=i.unit_price,
                currency=i.currency,
            )
        self.repo.clear_items(source_id)
        return len(items)
