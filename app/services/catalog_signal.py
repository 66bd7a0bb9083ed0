# app/services/catalog_signal.py
import redis

from app.utils.retry import redis_retry
from app.utils.settings import REDIS_URL
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogSignal:
    """
    Wspolny licznik wersji katalogu w redisie.
    Kazda instancja serwisu widzi ta sama wartosc, klienci odpytuja ja
    i odswiezaja katalog gdy sie zmieni.
    """

    KEY = "catalog:version"

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def bump(self) -> int:
        version = int(self.redis.incr(self.KEY))
        logger.info(f"Catalog version bumped to {version}")
        return version

    @redis_retry()
    def current(self) -> int:
        value = self.redis.get(self.KEY)
        return int(value) if value else 0
