from __future__ import annotations

import pandas as pd

from cardstack.api.models import Stack


def _card_names(stack: Stack) -> pd.DataFrame:
    rows = [{"number": i + 1, "id": c.id, "name": c.name} for i, c in enumerate(stack.cards)]
    return pd.DataFrame(rows, columns=["number", "id", "name"])


def _field_listing(stack: Stack) -> pd.DataFrame:
    rows = [
        {"card": c.name, "card_id": c.id, "field": f.name, "field_id": f.id, "text": f.text}
        for c in stack.cards
        for f in c.fields
    ]
    return pd.DataFrame(rows, columns=["card", "card_id", "field", "field_id", "text"])


_BUILDERS = {
    "card names": _card_names,
    "field listing": _field_listing,
}


def build_report(*, stack: Stack, template: str) -> pd.DataFrame:
    """Render one of the stack's report templates as a table.

    Only templates listed in `stack.report_templates` can be printed.
    """

    key = template.strip().casefold()
    if key not in {t.strip().casefold() for t in stack.report_templates}:
        raise ValueError(f"Unknown report template: {template}")
    builder = _BUILDERS.get(key)
    if builder is None:
        raise ValueError(f"Report template has no layout: {template}")
    return builder(stack)
