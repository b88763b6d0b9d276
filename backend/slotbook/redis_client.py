from functools import lru_cache

from redis import Redis

from .config import Settings


@lru_cache
def _client_for(url: str) -> Redis:
    return Redis.from_url(url, socket_timeout=2.0)


def get_redis_client(settings: Settings) -> Redis | None:
    """Shared Redis client, or None when REDIS_URL is not configured."""
    if not settings.redis_url:
        return None
    return _client_for(settings.redis_url)
