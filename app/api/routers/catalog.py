# app/api/routers/catalog.py
import redis
from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_catalog_signal
from app.domain.schemas import CatalogVersionOut
from app.services.catalog_signal import CatalogSignal
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/version", response_model=CatalogVersionOut)
def catalog_version(signal: CatalogSignal = Depends(get_catalog_signal)):
    """Klienci odpytuja wersje i odswiezaja katalog gdy sie zmieni."""
    try:
        return {"version": signal.current()}
    except redis.RedisError as e:
        logger.error(f"Catalog version unavailable: {e}")
        raise HTTPException(status_code=503, detail="catalog version unavailable")
