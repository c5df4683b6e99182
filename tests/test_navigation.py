from __future__ import annotations

import pytest

from cardstack.engine import Engine
from cardstack.navigation import ByName, ByNumber, Direction, apply_navigation, resolve_target
from cardstack.session import RECENT_CARDS_LIMIT


@pytest.mark.parametrize(("start", "n"), [(0, 2), (0, 3), (2, 1), (1, 3)])
def test_go_card_n_sets_index_and_pushes_prior_card(engine: Engine, start: int, n: int) -> None:
    engine.session.current_card_index = start
    prior_id = engine.current_card.id

    engine.execute(f"go card {n}")

    assert engine.session.current_card_index == n - 1
    assert engine.session.recent_cards[0] == prior_id


@pytest.mark.parametrize("start", [0, 1, 2])
def test_next_then_previous_is_circular(engine: Engine, start: int) -> None:
    engine.session.current_card_index = start

    engine.execute("go next")
    engine.execute("go previous")

    assert engine.session.current_card_index == start
    assert len(engine.session.recent_cards) == 2


def test_next_wraps_past_last_card(engine: Engine) -> None:
    engine.execute("go last")
    engine.execute("go next")
    assert engine.session.current_card_index == 0

    engine.execute("go prev")
    assert engine.session.current_card_index == 2


def test_recent_cards_are_capped(engine: Engine) -> None:
    for _ in range(RECENT_CARDS_LIMIT + 5):
        engine.execute("go next")

    assert len(engine.session.recent_cards) == RECENT_CARDS_LIMIT
    # Most recent first: we just left the card before the current one.
    assert engine.session.recent_cards[0] == engine.stack.cards[(engine.session.current_card_index - 1) % 3].id


def test_recents_are_not_deduplicated(engine: Engine) -> None:
    engine.execute("go card 2")
    engine.execute("go card 1")
    engine.execute("go card 2")
    assert engine.session.recent_cards == [101, 102, 101]


def test_going_to_current_card_is_a_no_op(engine: Engine) -> None:
    engine.execute("go card 2")
    engine.execute('put "keep" into field "Title"')
    recents = list(engine.session.recent_cards)
    log_size = len(engine.session.message_log)

    engine.execute("go card 2")
    engine.execute("go card 2")

    assert engine.session.recent_cards == recents
    assert engine.session.variables.it == "keep"
    # Only the two command entries were added.
    assert len(engine.session.message_log) == log_size + 2


def test_go_recent_returns_to_previous_card(engine: Engine) -> None:
    engine.execute("go card 3")

    assert engine.execute("go recent") == "→ went to recent card"
    assert engine.session.current_card_index == 0
    assert engine.session.recent_cards == [103]


def test_go_recent_consumes_stale_entry(engine: Engine) -> None:
    engine.session.recent_cards[:] = [999, 102]

    assert engine.execute("go recent") == "No recent card"
    assert engine.session.recent_cards == [102]
    assert engine.session.current_card_index == 0


def test_move_emits_close_and_open_events(engine: Engine) -> None:
    moved = apply_navigation(target=2, stack=engine.stack, session=engine.session)

    assert moved is True
    events = [(e.name, e.detail) for e in engine.session.message_log]
    assert events == [("closeCard", "Welcome"), ("openCard", "Index")]
    assert engine.session.current_field_name == "Title"


def test_resolve_target_requests(engine: Engine) -> None:
    s, sess = engine.stack, engine.session

    assert resolve_target(request=ByNumber(0), stack=s, session=sess) is None
    assert resolve_target(request=ByNumber(3), stack=s, session=sess) == 2
    assert resolve_target(request=ByName("INDEX"), stack=s, session=sess) == 2
    assert resolve_target(request=ByName("Missing"), stack=s, session=sess) is None
    assert resolve_target(request=Direction.previous, stack=s, session=sess) == 2
    assert resolve_target(request=Direction.last, stack=s, session=sess) == 2
    assert resolve_target(request=Direction.recent, stack=s, session=sess) is None


def test_by_name_picks_first_duplicate(engine: Engine) -> None:
    engine.stack.cards[2].name = "Notes"
    assert resolve_target(request=ByName("notes"), stack=engine.stack, session=engine.session) == 1


def test_navigating_to_card_without_fields_clears_field_pointer(engine: Engine) -> None:
    engine.stack.cards[1].fields.clear()
    engine.execute("go next")
    assert engine.session.current_field_name is None
    assert engine.current_field is None
