from __future__ import annotations

from cardstack.api.models import Background, Button, Card, CardField, Stack


MIN_USER_LEVEL = 1
MAX_USER_LEVEL = 5


def _norm(name: str) -> str:
    return name.strip().casefold()


def _same_name(a: str, b: str) -> bool:
    # Exact match apart from case; surrounding spaces are significant.
    return a.casefold() == b.casefold()


def default_stack() -> Stack:
    """Build the stack the app starts from before any snapshot is merged in."""

    return Stack(
        name="Home",
        user_level=5,
        report_templates=["Card Names", "Field Listing"],
        backgrounds=[Background(id=1, name="Main Background")],
        cards=[
            Card(
                id=101,
                name="Welcome",
                background_id=1,
                fields=[
                    CardField(id=1001, name="Title", text="Welcome to your stack"),
                    CardField(id=1002, name="Body", text="Type commands into the message box, e.g. go next"),
                ],
                buttons=[
                    Button(id=2001, name="Next", script="on mouseUp\n  go next card\nend mouseUp"),
                ],
            ),
            Card(
                id=102,
                name="Notes",
                background_id=1,
                fields=[
                    CardField(id=1003, name="Title", text="Notes"),
                    CardField(id=1004, name="Body", text="Fields hold plain text."),
                ],
                buttons=[
                    Button(id=2002, name="Prev", script="on mouseUp\n  go prev card\nend mouseUp"),
                    Button(id=2003, name="Next", script="on mouseUp\n  go next card\nend mouseUp"),
                ],
            ),
            Card(
                id=103,
                name="Index",
                background_id=1,
                fields=[
                    CardField(id=1005, name="Title", text="Index"),
                    CardField(id=1006, name="Body", text=""),
                    CardField(id=1007, name="Footer", text="Last card", lock_text=True),
                ],
                buttons=[
                    Button(id=2004, name="Home", script="on mouseUp\n  go first card\nend mouseUp"),
                ],
            ),
        ],
    )


def find_card(*, stack: Stack, card_id: int) -> Card | None:
    return next((c for c in stack.cards if c.id == card_id), None)


def card_index(*, stack: Stack, card_id: int) -> int | None:
    for idx, c in enumerate(stack.cards):
        if c.id == card_id:
            return idx
    return None


def find_card_by_name(*, stack: Stack, name: str) -> int | None:
    """Index of the first card whose name matches case-insensitively."""

    for idx, c in enumerate(stack.cards):
        if _same_name(c.name, name):
            return idx
    return None


def find_field(*, card: Card, name: str) -> CardField | None:
    # Duplicate names resolve to the first match in card order.
    return next((f for f in card.fields if _same_name(f.name, name)), None)


def find_field_by_id(*, stack: Stack, field_id: int) -> CardField | None:
    for c in stack.cards:
        for f in c.fields:
            if f.id == field_id:
                return f
    return None


def find_button(*, stack: Stack, button_id: int) -> Button | None:
    for c in stack.cards:
        for b in c.buttons:
            if b.id == button_id:
                return b
    return None


def field_text(*, card: Card, name: str) -> str:
    f = find_field(card=card, name=name)
    return f.text if f is not None else ""


def set_field_text(*, card: Card, field_name: str, text: str) -> bool:
    f = find_field(card=card, name=field_name)
    if f is None:
        return False
    f.text = text
    return True


def set_card_name(*, card: Card, name: str) -> None:
    card.name = name


def set_stack_property(*, stack: Stack, name: str, value: str | int) -> bool:
    """Write one stack property. Returns False for unknown names or out-of-range values."""

    key = _norm(name)
    if key in {"userlevel", "user_level"}:
        try:
            level = int(value)
        except (TypeError, ValueError):
            return False
        if not MIN_USER_LEVEL <= level <= MAX_USER_LEVEL:
            return False
        stack.user_level = level
        return True

    if key in {"scripttextsize", "script_text_size"}:
        try:
            size = int(value)
        except (TypeError, ValueError):
            return False
        if size <= 0:
            return False
        stack.script_text_size = size
        return True

    if key in {"scripttextfont", "script_text_font"}:
        font = str(value).strip()
        if not font:
            return False
        stack.script_text_font = font
        return True

    if key in {"cantmodify", "cant_modify"}:
        if isinstance(value, str):
            stack.cant_modify = value.strip().casefold() in {"true", "1", "yes"}
        else:
            stack.cant_modify = bool(value)
        return True

    return False


def search_fields(*, stack: Stack, query: str) -> int | None:
    """Index of the first card (stack order) with a field containing `query`, case-insensitively."""

    needle = query.casefold()
    for idx, c in enumerate(stack.cards):
        if any(needle in f.text.casefold() for f in c.fields):
            return idx
    return None
