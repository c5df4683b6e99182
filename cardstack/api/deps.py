from __future__ import annotations

from collections.abc import Generator

import redis
from fastapi import Depends

from cardstack.engine import Engine
from cardstack.infra.redis_client import create_redis
from cardstack.singleton import init_engine


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_engine(r: redis.Redis = Depends(get_redis)) -> Engine:
    # First request restores the saved snapshot; later ones reuse the same engine.
    return init_engine(store=r)
