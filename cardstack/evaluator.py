from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from cardstack.api.models import Stack
from cardstack.session import SessionState
from cardstack.stack_model import field_text

_QUOTED = re.compile(r'^"(.*)"$', re.DOTALL)
_FIELD_REF = re.compile(r'^(?:card\s+)?field\s+"([^"]*)"$', re.IGNORECASE)
_CARD_NAME = re.compile(r"^the\s+name\s+of\s+this\s+card$", re.IGNORECASE)
_CARD_COUNT = re.compile(r"^the\s+number\s+of\s+cards$", re.IGNORECASE)
_THE_RESULT = re.compile(r"^the\s+result$", re.IGNORECASE)
_IT = re.compile(r"^it$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class EvalContext:
    stack: Stack
    session: SessionState

    @property
    def current_card(self):
        return self.stack.cards[self.session.current_card_index]


_Resolver = Callable[[re.Match[str], EvalContext], str]

# Order matters: a quoted literal wins over everything, and unmatched text is returned as-is.
_RESOLVERS: tuple[tuple[re.Pattern[str], _Resolver], ...] = (
    (_QUOTED, lambda m, ctx: m.group(1)),
    (_FIELD_REF, lambda m, ctx: field_text(card=ctx.current_card, name=m.group(1))),
    (_CARD_NAME, lambda m, ctx: ctx.current_card.name),
    (_CARD_COUNT, lambda m, ctx: str(len(ctx.stack.cards))),
    (_THE_RESULT, lambda m, ctx: ctx.session.variables.result),
    (_IT, lambda m, ctx: ctx.session.variables.it),
)


def evaluate(expr: str, *, stack: Stack, session: SessionState) -> str:
    text = expr.strip()
    ctx = EvalContext(stack=stack, session=session)
    for pattern, resolve in _RESOLVERS:
        m = pattern.match(text)
        if m:
            return resolve(m, ctx)
    return text
