from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, cast

import redis

from cardstack.session import MessageEvent


@dataclass(frozen=True, slots=True)
class EventFeed:
    stack_name: str

    @property
    def key(self) -> str:
        return f"events:{self.stack_name}"


def publish_events(*, r: redis.Redis, feed: EventFeed, events: Sequence[MessageEvent]) -> list[str]:
    """Append message-log events to the stack's Redis Stream for out-of-process watchers."""

    ids: list[str] = []
    for ev in events:
        stream_id = r.xadd(feed.key, {"name": ev.name, "detail": ev.detail, "ts": ev.ts.isoformat()})
        ids.append(cast(str, stream_id))
    return ids


def read_events(*, r: redis.Redis, feed: EventFeed, count: int) -> list[dict[str, object]]:
    """Newest `count` feed entries, oldest first."""

    entries = r.xrevrange(feed.key, count=count)
    return [{"id": mid, "fields": fields} for mid, fields in reversed(entries)]
