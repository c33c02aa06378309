from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from starlette.concurrency import run_in_threadpool

from fanline.core.context import websocket_profile
from fanline.core.errors import NotFoundError, PermissionDeniedError
from fanline.core.ids import is_uuid, require_uuid
from fanline.realtime.events import LIVE_STREAMS_TOPIC, chat_session_topic, inbox_topic
from fanline.realtime.meter import ElapsedMeter
from fanline.services import chat_sessions_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/ws", tags=["realtime"])


async def _pump(websocket: WebSocket, sub) -> None:
    async for event in sub:
        await websocket.send_json(event.to_dict())


async def _forward_until_disconnect(websocket: WebSocket, sub) -> None:
    """
    Send every event on sub until the client goes away.
    The subscription is closed on the way out; in-flight requests are left alone.
    """
    pump = asyncio.create_task(_pump(websocket, sub))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        sub.close()
        pump.cancel()
        try:
            await pump
        except (asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            pass


@router.websocket("/messages")
async def messages_ws(websocket: WebSocket) -> None:
    profile = await run_in_threadpool(websocket_profile, websocket)
    if profile is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    bus = websocket.app.state.ctx.bus
    sub = bus.subscribe(inbox_topic(profile["id"]))
    await websocket.accept()
    await _forward_until_disconnect(websocket, sub)


@router.websocket("/live-streams")
async def live_streams_ws(websocket: WebSocket) -> None:
    bus = websocket.app.state.ctx.bus
    sub = bus.subscribe(LIVE_STREAMS_TOPIC)
    await websocket.accept()
    await _forward_until_disconnect(websocket, sub)


@router.websocket("/chat-sessions/{session_id}")
async def chat_session_ws(websocket: WebSocket, session_id: str) -> None:
    """
    Live meter for one chat session.

    Sends a `tick` frame every interval while the session is open and a final
    `session_closed` frame when it is settled, then closes the socket.
    """
    profile = await run_in_threadpool(websocket_profile, websocket)
    if profile is None or not is_uuid(session_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    session_id = require_uuid(session_id, "session_id")
    ctx = websocket.app.state.ctx

    # subscribe before reading state so a close in between is not missed
    sub = ctx.bus.subscribe(chat_session_topic(session_id))
    try:
        session = await run_in_threadpool(chat_sessions_service.get_session_for, ctx.engine, session_id, profile["id"])
    except (NotFoundError, PermissionDeniedError):
        sub.close()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    snapshot = chat_sessions_service.meter_snapshot(session)

    if not snapshot["is_open"]:
        sub.close()
        await websocket.send_json({"type": "session_closed", **snapshot})
        await websocket.close()
        return

    async def on_tick(elapsed_sec: int, elapsed: str, cost: Decimal) -> None:
        await websocket.send_json(
            {"type": "tick", "session_id": session_id, "elapsed_sec": elapsed_sec, "elapsed": elapsed, "cost": f"{cost:.2f}"}
        )

    meter = ElapsedMeter(
        session["hourly_rate"],
        on_tick,
        initial_elapsed=snapshot["elapsed_sec"],
        interval=ctx.settings.meter_interval_sec,
    )

    await websocket.send_json({"type": "meter_started", **snapshot})
    meter.start()

    async def wait_closed() -> None:
        event = await sub.get()
        await meter.wait_stopped()
        if event is not None:
            await websocket.send_json(event.to_dict())
        await websocket.close()

    closer = asyncio.create_task(wait_closed())
    try:
        while not closer.done():
            receive = asyncio.create_task(websocket.receive_text())
            done, _ = await asyncio.wait({receive, closer}, return_when=asyncio.FIRST_COMPLETED)
            if receive in done:
                receive.result()
            else:
                receive.cancel()
    except WebSocketDisconnect:
        pass
    finally:
        sub.close()
        await meter.wait_stopped()
        if not closer.done():
            closer.cancel()
        try:
            await closer
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning("chat session socket %s closed with %s: %s", session_id, type(e).__name__, e)
