# app/services/product_client.py
from decimal import Decimal
from urllib.parse import quote

import requests
from pydantic import ValidationError as SchemaError
from requests import RequestException

from app.domain.errors import NotFoundError, UpstreamError
from app.domain.schemas import ProductData
from app.utils.retry import http_retry
from app.utils.settings import PRODUCT_SERVICE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """Odczyt produktu po slugu z product-service (id, tytul, cena, waluta)."""

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        resp = requests.get(url, timeout=self.timeout)
        #5xx ponawiamy, 4xx obsluguje wywolujacy
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def fetch_product(self, slug: str) -> dict:
        url = f"{self.base_url}/products/{quote(slug, safe='')}"
        logger.info(f"ProductClient GET {url}")

        try:
            resp = self._get(url)
        except RequestException as e:
            logger.error(f"Product lookup failed for {slug}: {e}")
            raise UpstreamError("product lookup failed", details={"slug": slug}) from e

        if resp.status_code == 404:
            raise NotFoundError("product not found", details={"slug": slug})
        if resp.status_code >= 400:
            logger.error(f"Product service returned {resp.status_code} for {slug}")
            raise UpstreamError("product lookup failed", details={"slug": slug}, retryable=False)

        try:
            product = ProductData.model_validate(resp.json())
        except (ValueError, SchemaError) as e:
            logger.error(f"Malformed product payload for {slug}: {e}")
            raise UpstreamError("product lookup failed", details={"slug": slug}, retryable=False) from e

        return {
            "id": product.id,
            "slug": product.slug,
            "title": product.title,
            "price": Decimal(str(product.price)).quantize(Decimal("0.01")),
            "currency": product.currency.upper(),
        }
