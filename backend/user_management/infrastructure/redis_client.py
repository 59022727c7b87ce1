from __future__ import annotations

from functools import lru_cache

import redis

from ..settings import settings


@lru_cache(maxsize=1)
def redis_client() -> redis.Redis:
    return redis.from_url(settings.redis_url, socket_connect_timeout=2, socket_timeout=5)


def ping() -> bool:
    try:
        return bool(redis_client().ping())
    except redis.RedisError:
        return False
