from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from cardstack.api.models import Stack
from cardstack.session import SessionState
from cardstack.stack_model import card_index, find_card_by_name

logger = logging.getLogger(__name__)


class Direction(StrEnum):
    next = "next"
    previous = "previous"
    first = "first"
    last = "last"
    recent = "recent"


@dataclass(frozen=True, slots=True)
class ByNumber:
    number: int


@dataclass(frozen=True, slots=True)
class ByName:
    name: str


NavRequest = ByNumber | ByName | Direction


def resolve_target(*, request: NavRequest, stack: Stack, session: SessionState) -> int | None:
    """Map a navigation request to a card index, or None when it can't be satisfied.

    `Direction.recent` consumes the head of the recents list even when the id is stale.
    """

    count = len(stack.cards)
    if count == 0:
        return None
    current = session.current_card_index

    if isinstance(request, ByNumber):
        if 1 <= request.number <= count:
            return request.number - 1
        return None

    if isinstance(request, ByName):
        return find_card_by_name(stack=stack, name=request.name)

    if request == Direction.next:
        return (current + 1) % count
    if request == Direction.previous:
        return (current - 1) % count
    if request == Direction.first:
        return 0
    if request == Direction.last:
        return count - 1
    if request == Direction.recent:
        card_id = session.pop_recent()
        if card_id is None:
            return None
        return card_index(stack=stack, card_id=card_id)

    raise ValueError(f"Unknown navigation request: {request!r}")


def apply_navigation(*, target: int, stack: Stack, session: SessionState) -> bool:
    """Move the current card pointer. Returns False when already on `target`."""

    if not 0 <= target < len(stack.cards):
        raise ValueError(f"Card index out of range: {target}")

    if target == session.current_card_index:
        return False

    old = stack.cards[session.current_card_index]
    new = stack.cards[target]

    if session.editing_field_id is not None:
        session.log("closeField", session.current_field_name or "")
        session.editing_field_id = None

    session.push_recent(old.id)
    session.log("closeCard", old.name)
    session.current_card_index = target
    session.log("openCard", new.name)
    session.current_field_name = new.fields[0].name if new.fields else None
    session.clear_variables()

    logger.debug("navigated card %s -> %s", old.id, new.id)
    return True
