from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Rect(BaseModel):
    x: int = 0
    y: int = 0
    w: int = 512
    h: int = 342


class Background(BaseModel):
    id: int
    name: str = ""
    rect: Rect = Field(default_factory=Rect)


class CardField(BaseModel):
    id: int
    name: str
    text: str = ""
    text_font: str = "Geneva"
    text_size: int = 12

    # Locked fields refuse direct edits from the presentation layer; put-commands still write them.
    lock_text: bool = False


class Button(BaseModel):
    id: int
    name: str

    # Opaque to the interpreter; only the script editor reads or writes it.
    script: str = ""


class Card(BaseModel):
    id: int
    name: str = ""
    background_id: int
    rect: Rect = Field(default_factory=Rect)
    fields: list[CardField] = Field(default_factory=list)
    buttons: list[Button] = Field(default_factory=list)


class Stack(BaseModel):
    name: str
    cant_modify: bool = False
    user_level: int = Field(5, ge=1, le=5)
    script_text_font: str = "Monaco"
    script_text_size: int = Field(9, gt=0)
    report_templates: list[str] = Field(default_factory=list)
    backgrounds: list[Background] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=list)


class Tool(StrEnum):
    browse = "browse"
    button = "button"
    field = "field"


class Variables(BaseModel):
    it: str = ""
    result: str = ""


class MessageEntry(BaseModel):
    name: str
    detail: str = ""


class FieldSnapshot(BaseModel):
    id: int
    text: str = ""


class CardSnapshot(BaseModel):
    id: int
    name: str = ""
    fields: list[FieldSnapshot] = Field(default_factory=list)


class Snapshot(BaseModel):
    """Persisted subset of stack + session state.

    Restoring merges by id into the default stack, so only mutable attributes are kept.
    """

    user_level: int = 5
    script_text_font: str = "Monaco"
    script_text_size: int = 9
    current_card_index: int = 0
    current_field_name: str | None = None
    cards: list[CardSnapshot] = Field(default_factory=list)


class StackView(BaseModel):
    """Read-only render model handed to the presentation layer after each call."""

    stack_name: str
    user_level: int
    cant_modify: bool
    card_count: int
    current_card_index: int
    current_card: Card
    current_field_name: str | None = None
    variables: Variables
    recent_cards: list[int] = Field(default_factory=list)
    selected_tool: Tool = Tool.browse

    # Last 6 entries feed the event strip, last 12 the message watcher.
    events: list[MessageEntry] = Field(default_factory=list)
    watcher: list[MessageEntry] = Field(default_factory=list)


class CommandRequest(BaseModel):
    line: str = Field(..., max_length=4000)


class CommandResponse(BaseModel):
    response: str
    view: StackView


class UserLevelRequest(BaseModel):
    level: int


class StackPropertyRequest(BaseModel):
    name: str
    value: str | int


class ScriptEditRequest(BaseModel):
    script: str = Field(..., max_length=30000)


class ToolRequest(BaseModel):
    tool: str


class HistoryResponse(BaseModel):
    line: str | None = None
    history_index: int | None = None


class CardSummary(BaseModel):
    id: int
    name: str
    number: int


class CardListResponse(BaseModel):
    cards: list[CardSummary]


class CardNameRequest(BaseModel):
    name: str = Field(..., max_length=255)


class FieldOpenRequest(BaseModel):
    name: str


class FieldTextRequest(BaseModel):
    text: str = Field(..., max_length=30000)
