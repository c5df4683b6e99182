from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from fastapi import WebSocket

from cardstack.engine import Engine
from cardstack.session import MessageEvent

logger = logging.getLogger(__name__)


def update_payload(*, engine: Engine, events: Sequence[MessageEvent]) -> dict[str, object]:
    """The `stack_updated` message: enough for a client to redraw the card strip and watcher
    without a round trip; full state stays behind `GET /stack`."""

    view = engine.view()
    return {
        "type": "stack_updated",
        "stack": view.stack_name,
        "card_index": view.current_card_index,
        "card_id": view.current_card.id,
        "card_name": view.current_card.name,
        "variables": view.variables.model_dump(),
        "events": [e.as_entry().model_dump() for e in events],
    }


class StackWebSocketHub:
    """Websocket clients watching a stack, keyed by stack name.

    Commands are run-to-completion on one event loop, so the subscriber sets need no lock.
    """

    def __init__(self) -> None:
        self._watchers: dict[str, set[WebSocket]] = defaultdict(set)

    async def connect(self, stack_name: str, websocket: WebSocket) -> None:
        await websocket.accept()
        self._watchers[stack_name].add(websocket)

    def disconnect(self, stack_name: str, websocket: WebSocket) -> None:
        watchers = self._watchers.get(stack_name)
        if watchers is None:
            return
        watchers.discard(websocket)
        if not watchers:
            del self._watchers[stack_name]

    def watching(self, stack_name: str) -> int:
        return len(self._watchers.get(stack_name, ()))

    async def broadcast_update(self, *, engine: Engine, events: Sequence[MessageEvent]) -> int:
        """Push a `stack_updated` message to every watcher; returns how many got it."""

        name = engine.stack.name
        watchers = list(self._watchers.get(name, ()))
        if not watchers:
            return 0

        payload = update_payload(engine=engine, events=events)
        delivered = 0
        for ws in watchers:
            try:
                await ws.send_json(payload)
            except Exception:
                logger.debug("dropping dead websocket for stack %r", name)
                self.disconnect(name, ws)
            else:
                delivered += 1
        return delivered


hub = StackWebSocketHub()
