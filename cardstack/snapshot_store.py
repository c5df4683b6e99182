"""Best-effort snapshot persistence behind a key-value port.

Any object with `get(key)` / `set(key, value)` works as the store; `redis.Redis` is the
production one and `fakeredis.FakeRedis` the test one. Nothing here raises: a store that is
down, or a snapshot that doesn't parse, is logged and treated as "no saved state".
"""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

from cardstack.api.models import CardSnapshot, FieldSnapshot, Snapshot, Stack
from cardstack.session import SessionState
from cardstack.stack_model import (
    MAX_USER_LEVEL,
    MIN_USER_LEVEL,
    find_card,
    find_field,
)

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: str) -> Any: ...


def get_snapshot_key_prefix() -> str:
    return os.environ.get("CARDSTACK_SNAPSHOT_KEY_PREFIX", "cardstack:snapshot:")


def snapshot_key(stack_name: str) -> str:
    return f"{get_snapshot_key_prefix()}{stack_name}"


def build_snapshot(*, stack: Stack, session: SessionState) -> Snapshot:
    return Snapshot(
        user_level=stack.user_level,
        script_text_font=stack.script_text_font,
        script_text_size=stack.script_text_size,
        current_card_index=session.current_card_index,
        current_field_name=session.current_field_name,
        cards=[
            CardSnapshot(
                id=c.id,
                name=c.name,
                fields=[FieldSnapshot(id=f.id, text=f.text) for f in c.fields],
            )
            for c in stack.cards
        ],
    )


def merge_snapshot(*, stack: Stack, session: SessionState, snapshot: Snapshot) -> None:
    """Apply a snapshot onto the default stack by id. Unknown ids and bad values are skipped."""

    if MIN_USER_LEVEL <= snapshot.user_level <= MAX_USER_LEVEL:
        stack.user_level = snapshot.user_level
    if snapshot.script_text_font.strip():
        stack.script_text_font = snapshot.script_text_font
    if snapshot.script_text_size > 0:
        stack.script_text_size = snapshot.script_text_size

    for saved in snapshot.cards:
        card = find_card(stack=stack, card_id=saved.id)
        if card is None:
            continue
        card.name = saved.name
        by_id = {f.id: f for f in card.fields}
        for saved_field in saved.fields:
            f = by_id.get(saved_field.id)
            if f is not None:
                f.text = saved_field.text

    if 0 <= snapshot.current_card_index < len(stack.cards):
        session.current_card_index = snapshot.current_card_index

    card = stack.cards[session.current_card_index]
    restored = find_field(card=card, name=snapshot.current_field_name) if snapshot.current_field_name else None
    if restored is not None:
        session.current_field_name = restored.name
    else:
        session.current_field_name = card.fields[0].name if card.fields else None


def load_snapshot(*, store: KeyValueStore, stack_name: str) -> Snapshot | None:
    try:
        raw = store.get(snapshot_key(stack_name))
        if not raw:
            return None
        return Snapshot.model_validate_json(raw)
    except Exception:
        logger.warning("could not load snapshot for stack %r; using defaults", stack_name, exc_info=True)
        return None


def save_snapshot(*, store: KeyValueStore, stack_name: str, snapshot: Snapshot) -> bool:
    try:
        store.set(snapshot_key(stack_name), snapshot.model_dump_json())
    except Exception:
        logger.warning("could not save snapshot for stack %r", stack_name, exc_info=True)
        return False
    return True
