from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
import redis

from cardstack.api.deps import get_engine, get_redis
from cardstack.api.models import (
    Button,
    CardListResponse,
    CardNameRequest,
    CommandRequest,
    CommandResponse,
    FieldOpenRequest,
    FieldTextRequest,
    HistoryResponse,
    ScriptEditRequest,
    StackPropertyRequest,
    StackView,
    ToolRequest,
    UserLevelRequest,
)
from cardstack.engine import Engine
from cardstack.lock import stack_lock
from cardstack.stack_model import find_button
from cardstack.streams import EventFeed, publish_events, read_events
from cardstack.websocket_hub import hub

logger = logging.getLogger(__name__)

router = APIRouter()


async def _after_mutation(*, r: redis.Redis, engine: Engine, mark: int) -> None:
    """Persist, fan the new log entries out to the feed, and nudge websocket clients.

    Redis is optional here: a failed save or publish is logged and the request still succeeds.
    """

    name = engine.stack.name
    events = engine.session.events_since(mark)
    engine.save(r)
    try:
        publish_events(r=r, feed=EventFeed(stack_name=name), events=events)
    except redis.RedisError:
        logger.warning("could not publish %d events for stack %r", len(events), name, exc_info=True)
    await hub.broadcast_update(engine=engine, events=events)


@router.websocket("/ws/stack")
async def stack_updates_ws(websocket: WebSocket, engine: Engine = Depends(get_engine)) -> None:
    name = engine.stack.name
    await hub.connect(name, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(name, websocket)
    except Exception:
        hub.disconnect(name, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/stack", response_model=StackView)
async def get_stack_route(engine: Engine = Depends(get_engine)) -> StackView:
    return engine.view()


@router.get("/stack/cards", response_model=CardListResponse)
async def list_cards_route(engine: Engine = Depends(get_engine)) -> CardListResponse:
    return CardListResponse(cards=engine.card_summaries())


@router.post("/stack/command", response_model=CommandResponse)
async def command_route(
    payload: CommandRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> CommandResponse:
    mark = engine.session.events_logged
    try:
        with stack_lock(r=r, stack_name=engine.stack.name):
            response = engine.execute(payload.line)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _after_mutation(r=r, engine=engine, mark=mark)
    return CommandResponse(response=response, view=engine.view())


@router.post("/stack/user_level", response_model=StackView)
async def user_level_route(
    payload: UserLevelRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> StackView:
    mark = engine.session.events_logged
    if not engine.set_user_level(payload.level):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="user level must be 1..5")

    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.post("/stack/property", response_model=StackView)
async def stack_property_route(
    payload: StackPropertyRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> StackView:
    mark = engine.session.events_logged
    if not engine.set_stack_property(payload.name, payload.value):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Can't set {payload.name} to {payload.value!r}",
        )

    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.put("/stack/card/name", response_model=StackView)
async def card_name_route(
    payload: CardNameRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> StackView:
    mark = engine.session.events_logged
    engine.set_card_name(payload.name)
    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.post("/stack/field/open", response_model=StackView)
async def open_field_route(
    payload: FieldOpenRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> StackView:
    mark = engine.session.events_logged
    try:
        engine.open_field(payload.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.post("/stack/field/text", response_model=StackView)
async def edit_field_route(
    payload: FieldTextRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> StackView:
    mark = engine.session.events_logged
    try:
        engine.edit_field_text(payload.text)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.post("/stack/field/close", response_model=StackView)
async def close_field_route(r: redis.Redis = Depends(get_redis), engine: Engine = Depends(get_engine)) -> StackView:
    mark = engine.session.events_logged
    try:
        engine.close_field()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    await _after_mutation(r=r, engine=engine, mark=mark)
    return engine.view()


@router.put("/stack/buttons/{button_id}/script", response_model=Button)
async def edit_script_route(
    button_id: int,
    payload: ScriptEditRequest,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> Button:
    if find_button(stack=engine.stack, button_id=button_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Button not found")

    mark = engine.session.events_logged
    engine.edit_script(button_id, payload.script)
    await _after_mutation(r=r, engine=engine, mark=mark)
    return find_button(stack=engine.stack, button_id=button_id)  # type: ignore[return-value]


@router.post("/stack/tool", response_model=StackView)
async def select_tool_route(payload: ToolRequest, engine: Engine = Depends(get_engine)) -> StackView:
    if not engine.select_tool(payload.tool):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Unknown tool: {payload.tool}")
    return engine.view()


@router.get("/stack/history/previous", response_model=HistoryResponse)
async def history_previous_route(engine: Engine = Depends(get_engine)) -> HistoryResponse:
    line = engine.history_previous()
    return HistoryResponse(line=line, history_index=engine.session.history_index)


@router.get("/stack/history/next", response_model=HistoryResponse)
async def history_next_route(engine: Engine = Depends(get_engine)) -> HistoryResponse:
    line = engine.history_next()
    return HistoryResponse(line=line, history_index=engine.session.history_index)


@router.get("/stack/events")
async def stack_events_route(
    count: int = 20,
    r: redis.Redis = Depends(get_redis),
    engine: Engine = Depends(get_engine),
) -> dict[str, object]:
    """Debug endpoint: read the stack's event feed Redis Stream.

    Intended for local/dev testing when redis-cli isn't available.
    """

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    feed = EventFeed(stack_name=engine.stack.name)
    return {"stack": engine.stack.name, "stream": feed.key, "messages": read_events(r=r, feed=feed, count=count)}
