import redis
from functools import lru_cache
from typing import Optional
from ..core.config import get_settings


class RedisService:

    def __init__(self, client: Optional[redis.Redis] = None):
        if client is None:
            settings = get_settings()
            client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                db=0,
                socket_timeout=settings.REDIS_TIMEOUT_SECONDS,
                socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
            )
        self.redis = client

    def add_to_blacklist(self, token: str, expires_in: int):
        self.redis.setex(f"blacklist:{token}", expires_in, "1")

    def is_blacklisted(self, token: str) -> bool:
        return bool(self.redis.get(f'blacklist:{token}'))


@lru_cache
def get_redis_service() -> RedisService:
    return RedisService()
