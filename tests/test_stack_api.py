from __future__ import annotations

import fakeredis
from fastapi.testclient import TestClient

from cardstack.singleton import reset_engine_for_tests
from cardstack.snapshot_store import snapshot_key


def test_healthcheck_and_info(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json()["name"] == "cardstack"


def test_get_stack_view(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    resp = client.get("/stack")
    assert resp.status_code == 200
    data = resp.json()
    assert data["stack_name"] == "Home"
    assert data["card_count"] == 3
    assert data["current_card"]["name"] == "Welcome"
    assert data["current_field_name"] == "Title"
    assert data["variables"] == {"it": "", "result": ""}
    assert data["selected_tool"] == "browse"

    cards = client.get("/stack/cards").json()["cards"]
    assert [c["number"] for c in cards] == [1, 2, 3]
    assert cards[1]["name"] == "Notes"


def test_command_executes_persists_and_publishes(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis

    resp = client.post("/stack/command", json={"line": "go next"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["response"] == "→ went to next card"
    assert data["view"]["current_card_index"] == 1
    assert data["view"]["recent_cards"] == [101]
    assert [e["name"] for e in data["view"]["events"]] == ["command", "closeCard", "openCard"]

    # Snapshot written.
    assert r.get(snapshot_key("Home")) is not None

    # Feed got exactly the new log entries.
    entries = r.xrange("events:Home")
    assert [f["name"] for _, f in entries] == ["command", "closeCard", "openCard"]

    feed = client.get("/stack/events", params={"count": 2}).json()
    assert feed["stream"] == "events:Home"
    assert [m["fields"]["name"] for m in feed["messages"]] == ["closeCard", "openCard"]


def test_command_failures_come_back_as_text(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    data = client.post("/stack/command", json={"line": "go card 99"}).json()
    assert data["response"] == "Can't go to card 99"
    assert data["view"]["variables"]["result"] == "Can't go to card 99"
    assert data["view"]["current_card_index"] == 0


def test_state_survives_engine_restart(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    client.post("/stack/command", json={"line": "go last"})
    client.post("/stack/command", json={"line": 'put "saved" into field "Body"'})

    reset_engine_for_tests()

    data = client.get("/stack").json()
    assert data["current_card_index"] == 2
    assert data["current_card"]["fields"][1]["text"] == "saved"


def test_busy_stack_is_rejected(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, r = client_and_redis
    r.set("lock:stack:Home", "1")

    resp = client.post("/stack/command", json={"line": "go next"})
    assert resp.status_code == 422
    assert resp.json()["detail"] == "Stack is busy"

    r.delete("lock:stack:Home")
    assert client.get("/stack").json()["current_card_index"] == 0


def test_user_level_and_properties(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.post("/stack/user_level", json={"level": 7}).status_code == 422
    resp = client.post("/stack/user_level", json={"level": 3})
    assert resp.status_code == 200
    assert resp.json()["user_level"] == 3

    assert client.post("/stack/property", json={"name": "scriptTextSize", "value": 0}).status_code == 422
    assert client.post("/stack/property", json={"name": "scriptTextSize", "value": 14}).status_code == 200
    assert client.post("/stack/property", json={"name": "cantModify", "value": "true"}).json()["cant_modify"] is True

    data = client.post("/stack/command", json={"line": 'put "x" into field "Title"'}).json()
    assert data["response"] == "Can't modify this stack"


def test_rename_card(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    resp = client.put("/stack/card/name", json={"name": "Front"})
    assert resp.status_code == 200
    assert resp.json()["current_card"]["name"] == "Front"


def test_direct_field_edit_flow(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.post("/stack/field/text", json={"text": "x"}).status_code == 422
    assert client.post("/stack/field/open", json={"name": "Body"}).status_code == 200
    data = client.post("/stack/field/text", json={"text": "by hand"}).json()
    assert data["current_card"]["fields"][1]["text"] == "by hand"
    data = client.post("/stack/field/close").json()
    assert [e["name"] for e in data["events"]][-3:] == ["openField", "setField", "closeField"]

    client.post("/stack/command", json={"line": "go last"})
    resp = client.post("/stack/field/open", json={"name": "Footer"})
    assert resp.status_code == 422
    assert "locked" in resp.json()["detail"]


def test_edit_button_script(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    resp = client.put("/stack/buttons/2001/script", json={"script": "on mouseUp\n  beep\nend mouseUp"})
    assert resp.status_code == 200
    assert resp.json() == {"id": 2001, "name": "Next", "script": "on mouseUp\n  beep\nend mouseUp"}

    assert client.put("/stack/buttons/9999/script", json={"script": "x"}).status_code == 404


def test_select_tool(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.post("/stack/tool", json={"tool": "field"}).json()["selected_tool"] == "field"
    assert client.post("/stack/tool", json={"tool": "lasso"}).status_code == 422


def test_history_recall(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis

    assert client.get("/stack/history/previous").json() == {"line": None, "history_index": None}

    client.post("/stack/command", json={"line": "go next"})
    client.post("/stack/command", json={"line": "beep"})

    assert client.get("/stack/history/previous").json() == {"line": "beep", "history_index": 1}
    assert client.get("/stack/history/previous").json() == {"line": "go next", "history_index": 0}
    assert client.get("/stack/history/next").json() == {"line": "beep", "history_index": 1}


def test_events_count_validation(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    assert client.get("/stack/events", params={"count": 0}).status_code == 422


def test_command_succeeds_when_redis_is_down() -> None:
    import fakeredis

    from cardstack.api.deps import get_redis
    from cardstack.main import app

    server = fakeredis.FakeServer()
    server.connected = False
    dead = fakeredis.FakeRedis(server=server, decode_responses=True)

    def _override():
        yield dead

    app.dependency_overrides[get_redis] = _override
    try:
        with TestClient(app) as client:
            resp = client.post("/stack/command", json={"line": "go next"})
            assert resp.status_code == 200
            data = resp.json()
            assert data["response"] == "→ went to next card"
            assert data["view"]["current_card"]["name"] == "Notes"

            resp = client.post("/stack/command", json={"line": 'put "offline" into field "Body"'})
            assert resp.status_code == 200
            assert resp.json()["view"]["variables"]["it"] == "offline"
    finally:
        app.dependency_overrides.clear()
