# app/services/identity_client.py
import requests
from requests import RequestException

from app.domain.errors import ValidationError, UpstreamError
from app.utils.retry import http_retry
from app.utils.settings import IDENTITY_SERVICE_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


class IdentityClient:
    """
    Weryfikacja kodu logowania w serwisie tozsamosci.
    Sam mechanizm kodow i ciasteczek sesji jest poza tym serwisem.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 5):
        self.base_url = (base_url or IDENTITY_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _post(self, url: str, payload: dict) -> requests.Response:
        resp = requests.post(url, json=payload, timeout=self.timeout)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def verify(self, email: str, code: str) -> dict:
        url = f"{self.base_url}/api/public/verify"
        logger.info(f"IdentityClient POST {url} for {email}")

        try:
            resp = self._post(url, {"email": email, "code": code})
        except RequestException as e:
            logger.error(f"Identity upstream unavailable: {e}")
            raise UpstreamError("upstream unavailable") from e

        if resp.status_code in (400, 401, 403, 404, 422):
            raise ValidationError("invalid verification code", details={"email": email})
        if resp.status_code >= 400:
            logger.error(f"Identity upstream returned {resp.status_code}")
            raise UpstreamError("upstream unavailable", retryable=False)

        try:
            return resp.json()
        except ValueError:
            return {}
