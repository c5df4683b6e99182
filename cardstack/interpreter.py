"""Message-box line interpreter.

A line is classified by the first matching rule in `COMMAND_RULES`; anything that matches
nothing is "sent" as a message. Every failure is reported through the `result` variable and
the returned text, never by raising.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from cardstack.api.models import Stack
from cardstack.evaluator import evaluate
from cardstack.navigation import ByName, ByNumber, Direction, NavRequest, apply_navigation, resolve_target
from cardstack.session import SessionState
from cardstack.stack_model import find_field, search_fields, set_field_text

logger = logging.getLogger(__name__)

BEEP_RESPONSE = "🔔 (beep)"
CANT_MODIFY = "Can't modify this stack"


@dataclass(frozen=True, slots=True)
class CommandContext:
    line: str
    stack: Stack
    session: SessionState

    @property
    def current_card(self):
        return self.stack.cards[self.session.current_card_index]

    def eval(self, expr: str) -> str:
        return evaluate(expr, stack=self.stack, session=self.session)


Handler = Callable[[re.Match[str], CommandContext], str]


@dataclass(frozen=True, slots=True)
class CommandRule:
    name: str
    pattern: re.Pattern[str]
    handler: Handler


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


# ---- navigation sub-parser ----


@dataclass(frozen=True, slots=True)
class _GoForm:
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], NavRequest]


_CARD_SUFFIX = r"(?:\s+card)?"

_GO_FORMS: tuple[_GoForm, ...] = (
    _GoForm(_rx(r"^go\s+(?:to\s+)?card\s+(-?\d+)$"), lambda m: ByNumber(int(m.group(1)))),
    _GoForm(_rx(r'^go\s+(?:to\s+)?card\s+"([^"]*)"$'), lambda m: ByName(m.group(1))),
    _GoForm(_rx(rf"^go\s+(?:to\s+)?next{_CARD_SUFFIX}$"), lambda m: Direction.next),
    _GoForm(_rx(rf"^go\s+(?:to\s+)?(?:previous|prev){_CARD_SUFFIX}$"), lambda m: Direction.previous),
    _GoForm(_rx(rf"^go\s+(?:to\s+)?first{_CARD_SUFFIX}$"), lambda m: Direction.first),
    _GoForm(_rx(rf"^go\s+(?:to\s+)?last{_CARD_SUFFIX}$"), lambda m: Direction.last),
    _GoForm(_rx(rf"^go\s+(?:to\s+)?recent{_CARD_SUFFIX}$"), lambda m: Direction.recent),
)


def parse_go(line: str) -> NavRequest | None:
    for form in _GO_FORMS:
        m = form.pattern.match(line)
        if m:
            return form.build(m)
    return None


def _went_to(request: NavRequest) -> str:
    if isinstance(request, ByNumber):
        return f"→ went to card {request.number}"
    if isinstance(request, ByName):
        return f'→ went to card "{request.name}"'
    return f"→ went to {request.value} card"


def _failed_go(request: NavRequest) -> str:
    if isinstance(request, ByNumber):
        return f"Can't go to card {request.number}"
    if isinstance(request, ByName):
        return f'Can\'t find card "{request.name}"'
    if request == Direction.recent:
        return "No recent card"
    return f"Can't go to {request.value} card"


def _handle_go(m: re.Match[str], ctx: CommandContext) -> str:
    request = parse_go(ctx.line)
    if request is None:
        return f"Unknown navigation: {ctx.line}"

    target = resolve_target(request=request, stack=ctx.stack, session=ctx.session)
    if target is None:
        msg = _failed_go(request)
        ctx.session.set_variables(result=msg)
        return msg

    apply_navigation(target=target, stack=ctx.stack, session=ctx.session)
    return _went_to(request)


# ---- field commands ----


def _handle_put(m: re.Match[str], ctx: CommandContext) -> str:
    expr, field_name = m.group(1), m.group(2)
    if ctx.stack.cant_modify:
        ctx.session.set_variables(result=CANT_MODIFY)
        return CANT_MODIFY

    value = ctx.eval(expr)
    card = ctx.current_card
    if not set_field_text(card=card, field_name=field_name, text=value):
        msg = f'Can\'t find field "{field_name}"'
        ctx.session.set_variables(result=msg)
        return msg

    written = find_field(card=card, name=field_name)
    ctx.session.current_field_name = written.name if written is not None else field_name
    ctx.session.log("setField", ctx.session.current_field_name)
    ctx.session.set_variables(it=value, result="")
    return value


def _handle_get(m: re.Match[str], ctx: CommandContext) -> str:
    f = find_field(card=ctx.current_card, name=m.group(1))
    text = f.text if f is not None else ""
    if f is not None:
        ctx.session.current_field_name = f.name
    ctx.session.set_variables(it=text, result="")
    return text


# ---- dialogs and search ----


def _handle_beep(m: re.Match[str], ctx: CommandContext) -> str:
    ctx.session.clear_variables()
    return BEEP_RESPONSE


def _handle_answer(m: re.Match[str], ctx: CommandContext) -> str:
    value = ctx.eval(m.group(1))
    ctx.session.set_variables(it="OK", result="")
    return f'answer "{value}" (simulated)'


def _handle_find(m: re.Match[str], ctx: CommandContext) -> str:
    query = ctx.eval(m.group(1))
    ctx.session.log("find", query)

    target = search_fields(stack=ctx.stack, query=query)
    if target is None:
        ctx.session.set_variables(result="not found")
        return f'Couldn\'t find "{query}"'

    apply_navigation(target=target, stack=ctx.stack, session=ctx.session)
    ctx.session.set_variables(it=query, result="")
    return f'found "{query}"'


def _handle_empty(m: re.Match[str], ctx: CommandContext) -> str:
    return ""


COMMAND_RULES: tuple[CommandRule, ...] = (
    CommandRule("empty", _rx(r"^$"), _handle_empty),
    CommandRule("beep", _rx(r"^beep$"), _handle_beep),
    CommandRule("go", _rx(r"^go\s"), _handle_go),
    CommandRule("put", _rx(r'^put\s+(.+?)\s+into\s+(?:card\s+)?field\s+"([^"]*)"$'), _handle_put),
    CommandRule("get", _rx(r'^get\s+(?:card\s+)?field\s+"([^"]*)"$'), _handle_get),
    CommandRule("answer", _rx(r"^answer\s+(.+)$"), _handle_answer),
    CommandRule("find", _rx(r"^find\s+(.+)$"), _handle_find),
)


def _send(ctx: CommandContext) -> str:
    ctx.session.set_variables(it="", result=ctx.line)
    return f"sent line: {ctx.line}"


def execute_line(raw: str, *, stack: Stack, session: SessionState) -> str:
    session.log("command", raw)
    line = raw.strip()
    if line:
        session.remember_command(raw)

    ctx = CommandContext(line=line, stack=stack, session=session)
    for rule in COMMAND_RULES:
        m = rule.pattern.match(line)
        if m:
            logger.debug("command %r matched %s", line, rule.name)
            return rule.handler(m, ctx)

    logger.debug("command %r unmatched; sending", line)
    return _send(ctx)
