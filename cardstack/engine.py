from __future__ import annotations

import logging

from cardstack.api.models import Card, CardField, CardSummary, Stack, StackView, Tool
from cardstack.fsm import FieldEditFSM
from cardstack.interpreter import execute_line
from cardstack.session import MessageEvent, SessionState
from cardstack.snapshot_store import KeyValueStore, build_snapshot, load_snapshot, merge_snapshot, save_snapshot
from cardstack.stack_model import (
    MAX_USER_LEVEL,
    MIN_USER_LEVEL,
    default_stack,
    find_button,
    find_field,
    set_card_name,
    set_stack_property,
)

logger = logging.getLogger(__name__)

EVENT_STRIP_SIZE = 6
WATCHER_SIZE = 12


class Engine:
    """One stack plus the session state of the person browsing it.

    Every mutation goes through `execute()` or one of the direct-edit methods below;
    callers re-read `view()` afterwards to render.
    """

    def __init__(self, stack: Stack | None = None) -> None:
        self.stack = stack if stack is not None else default_stack()
        if not self.stack.cards:
            raise ValueError("A stack needs at least one card")
        self.session = SessionState()
        first = self.current_card
        self.session.current_field_name = first.fields[0].name if first.fields else None

    # ---- observable state ----

    @property
    def current_card(self) -> Card:
        return self.stack.cards[self.session.current_card_index]

    @property
    def current_field(self) -> CardField | None:
        card = self.current_card
        if self.session.current_field_name:
            f = find_field(card=card, name=self.session.current_field_name)
            if f is not None:
                return f
        return card.fields[0] if card.fields else None

    def recent_messages(self, count: int) -> list[MessageEvent]:
        return self.session.recent_messages(count)

    def card_summaries(self) -> list[CardSummary]:
        return [CardSummary(id=c.id, name=c.name, number=i + 1) for i, c in enumerate(self.stack.cards)]

    def view(self) -> StackView:
        field = self.current_field
        return StackView(
            stack_name=self.stack.name,
            user_level=self.stack.user_level,
            cant_modify=self.stack.cant_modify,
            card_count=len(self.stack.cards),
            current_card_index=self.session.current_card_index,
            current_card=self.current_card.model_copy(deep=True),
            current_field_name=field.name if field is not None else None,
            variables=self.session.variables.model_copy(),
            recent_cards=list(self.session.recent_cards),
            selected_tool=self.session.selected_tool,
            events=[e.as_entry() for e in self.recent_messages(EVENT_STRIP_SIZE)],
            watcher=[e.as_entry() for e in self.recent_messages(WATCHER_SIZE)],
        )

    # ---- message box ----

    def execute(self, line: str) -> str:
        return execute_line(line, stack=self.stack, session=self.session)

    def history_previous(self) -> str | None:
        return self.session.history_previous()

    def history_next(self) -> str | None:
        return self.session.history_next()

    # ---- direct edits ----

    def open_field(self, name: str) -> CardField:
        f = find_field(card=self.current_card, name=name)
        if f is None:
            raise ValueError(f'Can\'t find field "{name}"')
        if f.lock_text:
            raise ValueError(f'Field "{f.name}" is locked')
        if self.stack.cant_modify:
            raise ValueError("Can't modify this stack")

        fsm = FieldEditFSM(self.session)
        if fsm.is_editing:
            self.close_field()
            fsm = FieldEditFSM(self.session)

        fsm.open_field()
        self.session.editing_field_id = f.id
        self.session.current_field_name = f.name
        self.session.log("openField", f.name)
        return f

    def edit_field_text(self, text: str) -> None:
        fsm = FieldEditFSM(self.session)
        if not fsm.is_editing:
            raise ValueError("No field is open for editing")
        f = next((f for f in self.current_card.fields if f.id == self.session.editing_field_id), None)
        if f is None:
            raise ValueError("Open field no longer exists")
        f.text = text
        self.session.log("setField", f.name)

    def close_field(self) -> None:
        fsm = FieldEditFSM(self.session)
        if not fsm.is_editing:
            raise ValueError("No field is open for editing")
        fsm.close_field()
        self.session.editing_field_id = None
        self.session.log("closeField", self.session.current_field_name or "")

    def edit_script(self, button_id: int, script: str) -> None:
        button = find_button(stack=self.stack, button_id=button_id)
        if button is None:
            raise ValueError("Button not found")
        button.script = script
        self.session.log("scriptEdited", button.name)

    def set_card_name(self, name: str) -> None:
        set_card_name(card=self.current_card, name=name)
        self.session.log("setProperty", f"name of card {self.current_card.id}")

    def set_user_level(self, level: int) -> bool:
        if not MIN_USER_LEVEL <= level <= MAX_USER_LEVEL:
            logger.debug("ignoring user level %s", level)
            return False
        set_stack_property(stack=self.stack, name="userLevel", value=level)
        self.session.log("userLevelChanged", str(level))
        return True

    def set_stack_property(self, name: str, value: str | int) -> bool:
        if name.strip().casefold() in {"userlevel", "user_level"}:
            try:
                return self.set_user_level(int(value))
            except ValueError:
                return False
        if not set_stack_property(stack=self.stack, name=name, value=value):
            logger.debug("ignoring stack property %s=%r", name, value)
            return False
        self.session.log("setProperty", name)
        return True

    def select_tool(self, tool: str) -> bool:
        try:
            self.session.selected_tool = Tool(tool.strip().casefold())
        except ValueError:
            return False
        return True

    # ---- persistence ----

    def restore(self, store: KeyValueStore) -> bool:
        snapshot = load_snapshot(store=store, stack_name=self.stack.name)
        if snapshot is None:
            return False
        merge_snapshot(stack=self.stack, session=self.session, snapshot=snapshot)
        return True

    def save(self, store: KeyValueStore) -> bool:
        return save_snapshot(store=store, stack_name=self.stack.name, snapshot=build_snapshot(stack=self.stack, session=self.session))
