from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from cardstack.api.models import MessageEntry, Tool, Variables

MESSAGE_LOG_LIMIT = 40
RECENT_CARDS_LIMIT = 20

EventName = Literal[
    "openCard",
    "closeCard",
    "setField",
    "openField",
    "closeField",
    "find",
    "scriptEdited",
    "userLevelChanged",
    "setProperty",
    "command",
]


@dataclass(frozen=True, slots=True)
class MessageEvent:
    name: EventName
    detail: str
    ts: datetime

    @staticmethod
    def now(*, name: EventName, detail: str = "") -> "MessageEvent":
        return MessageEvent(name=name, detail=detail, ts=datetime.now(timezone.utc))

    def as_entry(self) -> MessageEntry:
        return MessageEntry(name=self.name, detail=self.detail)


@dataclass(slots=True)
class SessionState:
    current_card_index: int = 0
    current_field_name: str | None = None
    recent_cards: list[int] = field(default_factory=list)
    message_log: deque[MessageEvent] = field(default_factory=lambda: deque(maxlen=MESSAGE_LOG_LIMIT))
    command_history: list[str] = field(default_factory=list)
    history_index: int | None = None
    variables: Variables = field(default_factory=Variables)
    selected_tool: Tool = Tool.browse

    # Field open for direct editing by the presentation layer, if any.
    editing_field_id: int | None = None

    # Monotonic count of everything ever logged; lets callers find entries added since a mark
    # even after the ring has evicted older ones.
    events_logged: int = 0

    def log(self, name: EventName, detail: str = "") -> MessageEvent:
        ev = MessageEvent.now(name=name, detail=detail)
        self.message_log.append(ev)
        self.events_logged += 1
        return ev

    def recent_messages(self, count: int) -> list[MessageEvent]:
        if count <= 0:
            return []
        return list(self.message_log)[-count:]

    def events_since(self, mark: int) -> list[MessageEvent]:
        added = self.events_logged - mark
        if added <= 0:
            return []
        return self.recent_messages(min(added, len(self.message_log)))

    def push_recent(self, card_id: int) -> None:
        self.recent_cards.insert(0, card_id)
        del self.recent_cards[RECENT_CARDS_LIMIT:]

    def pop_recent(self) -> int | None:
        if not self.recent_cards:
            return None
        return self.recent_cards.pop(0)

    def clear_variables(self) -> None:
        self.variables.it = ""
        self.variables.result = ""

    def set_variables(self, *, it: str | None = None, result: str | None = None) -> None:
        if it is not None:
            self.variables.it = it
        if result is not None:
            self.variables.result = result

    # ---- command history recall (presentation-only cursor) ----

    def remember_command(self, line: str) -> None:
        self.command_history.append(line)
        self.history_index = None

    def history_previous(self) -> str | None:
        if not self.command_history:
            return None
        if self.history_index is None:
            self.history_index = len(self.command_history) - 1
        elif self.history_index > 0:
            self.history_index -= 1
        return self.command_history[self.history_index]

    def history_next(self) -> str | None:
        if self.history_index is None:
            return None
        if self.history_index >= len(self.command_history) - 1:
            # Past the newest entry: back to an empty input line.
            self.history_index = None
            return ""
        self.history_index += 1
        return self.command_history[self.history_index]
