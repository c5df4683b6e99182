from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager

import redis

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TTL_MS = 5_000


def get_lock_ttl_ms() -> int:
    raw = os.environ.get("CARDSTACK_LOCK_TTL_MS")
    if raw is None:
        return DEFAULT_LOCK_TTL_MS
    try:
        ttl = int(raw)
    except ValueError:
        ttl = 0
    if ttl <= 0:
        logger.warning("bad CARDSTACK_LOCK_TTL_MS=%r; using %s", raw, DEFAULT_LOCK_TTL_MS)
        return DEFAULT_LOCK_TTL_MS
    return ttl


@contextmanager
def stack_lock(*, r: redis.Redis, stack_name: str, ttl_ms: int | None = None):
    """Best-effort lock serializing message-box commands against one stack.

    The engine itself has no lock; this is the single boundary the HTTP layer puts
    around `execute()`. If Redis is unreachable the body runs unlocked: a missing store
    never blocks a command.
    """

    key = f"lock:stack:{stack_name}"
    held = True
    try:
        acquired = r.set(key, "1", nx=True, px=ttl_ms if ttl_ms is not None else get_lock_ttl_ms())
    except redis.RedisError:
        logger.warning("lock store unavailable for stack %r; running unlocked", stack_name, exc_info=True)
        acquired, held = True, False

    if not acquired:
        logger.info("stack %r is busy", stack_name)
        raise ValueError("Stack is busy")
    try:
        yield
    finally:
        if held:
            try:
                r.delete(key)
            except redis.RedisError:
                # The TTL frees it.
                logger.warning("could not release lock for stack %r", stack_name, exc_info=True)
        time.sleep(0)
