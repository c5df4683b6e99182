from __future__ import annotations

from statemachine import State, StateMachine

from cardstack.session import SessionState


class FieldEditFSM(StateMachine):
    """Guards the direct-edit lifecycle of a field: idle -> editing -> idle.

    The session keeps the authoritative `editing_field_id`; the machine is rebuilt from it
    per operation and only decides which transitions are legal.
    """

    idle = State("idle", value="idle", initial=True)
    editing = State("editing", value="editing")

    open_field = idle.to(editing)
    close_field = editing.to(idle)

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value="editing" if session.editing_field_id is not None else "idle")

    @property
    def is_editing(self) -> bool:
        return self.current_state == self.editing
