import redis
from typing import Optional

from app.core.config import settings


class RedisClient:
    """Thin wrapper around the Redis instance backing the Socket.IO backplane."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.client = redis.Redis.from_url(self.url, decode_responses=True) if self.url else None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def health_check(self) -> bool:
        """Check Redis connectivity"""
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


redis_client = RedisClient()
