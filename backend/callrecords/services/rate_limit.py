import redis
from redis.exceptions import ConnectionError

from callrecords.core.config import settings


class RateLimiter:
    """Fixed-window counter in Redis. Fails open when Redis is unreachable."""

    def __init__(self, prefix: str, limit: int, window_seconds: int):
        self.prefix = prefix
        self.limit = limit
        self.window_seconds = window_seconds
        self.client = redis.Redis.from_url(settings.redis_url, decode_responses=True)

    def hit(self, key: str) -> bool:
        redis_key = f"{self.prefix}:{key}"
        try:
            count = self.client.incr(redis_key)
            if count == 1:
                self.client.expire(redis_key, self.window_seconds)
            return count <= self.limit
        except ConnectionError:
            return True


csv_upload_limiter = RateLimiter(
    prefix="csv_upload",
    limit=settings.csv_upload_rate_limit,
    window_seconds=settings.csv_upload_rate_window_seconds,
)
