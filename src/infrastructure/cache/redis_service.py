import redis
import json
import logging
from typing import List, Optional
import os

from src.core.entities.trade import TradeRecord

logger = logging.getLogger(__name__)


class TradeCache:
    """
    Read-through cache of stored trades per key.
    Every method degrades to a no-op when Redis is unset or unreachable.
    """

    def __init__(self, client: Optional[redis.Redis] = None, ttl_seconds: Optional[int] = None):
        self.ttl_seconds = ttl_seconds or int(os.getenv("TRADE_CACHE_TTL_SECONDS", "60"))
        self.client = client
        if self.client is not None:
            return

        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            try:
                self.client = redis.from_url(redis_url, decode_responses=True)
                # Test connection
                self.client.ping()
                logger.info("Connected to Redis for trade caching.")
            except redis.RedisError as e:
                logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
                self.client = None
        else:
            logger.info("REDIS_URL not set. Caching disabled.")

    @staticmethod
    def _cache_key(key: str) -> str:
        return f"trades:{key}"

    def get_trades(self, key: str) -> Optional[List[TradeRecord]]:
        if not self.client:
            return None
        try:
            data = self.client.get(self._cache_key(key))
            if data:
                return [TradeRecord.model_validate(row) for row in json.loads(data)]
            return None
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis get error: {e}")
            return None

    def set_trades(self, key: str, trades: List[TradeRecord]):
        if not self.client:
            return
        try:
            serialized = json.dumps([t.model_dump() for t in trades])
            self.client.setex(self._cache_key(key), self.ttl_seconds, serialized)
        except redis.RedisError as e:
            logger.warning(f"Redis set error: {e}")

    def invalidate(self, key: str):
        if not self.client:
            return
        try:
            self.client.delete(self._cache_key(key))
        except redis.RedisError as e:
            logger.warning(f"Redis delete error: {e}")
