from __future__ import annotations

import os

import redis

DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", DEFAULT_REDIS_URL)


def create_redis(url: str | None = None) -> redis.Redis:
    # Snapshots and feed entries are JSON/text, so decode to str on the way out.
    return redis.Redis.from_url(url or get_redis_url(), decode_responses=True)
