from __future__ import annotations

import asyncio
import logging
import threading

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import auth
from fanline.realtime.bus import EventBus
from fanline.realtime.events import SessionClosed, ViewerCountChanged


def _count(stream_id="s1", n=1):
    return ViewerCountChanged(stream_id=stream_id, viewer_count=n)


# -- EventBus ---------------------------------------------------------------


def test_events_arrive_in_publish_order():
    async def scenario():
        bus = EventBus()
        with bus.subscribe("t") as sub:
            for n in range(3):
                bus.publish("t", _count(n=n))
            return [(await sub.get(timeout=1)).viewer_count for _ in range(3)]

    assert asyncio.run(scenario()) == [0, 1, 2]


def test_topics_are_isolated():
    async def scenario():
        bus = EventBus()
        a = bus.subscribe("a")
        b = bus.subscribe("b")
        reached = bus.publish("a", _count())
        got_b = await b.get(timeout=0.05)
        got_a = await a.get(timeout=1)
        return reached, got_a, got_b

    reached, got_a, got_b = asyncio.run(scenario())
    assert reached == 1
    assert got_a == _count()
    assert got_b is None


def test_publish_from_worker_thread():
    async def scenario():
        bus = EventBus()
        async with bus.subscribe("t") as sub:
            worker = threading.Thread(target=bus.publish, args=("t", _count(n=7)))
            worker.start()
            event = await sub.get(timeout=1)
            worker.join()
            return event

    assert asyncio.run(scenario()).viewer_count == 7


def test_closed_subscription_is_removed_and_ends_iteration():
    async def scenario():
        bus = EventBus()
        sub = bus.subscribe("t")
        bus.publish("t", _count(n=1))
        before = bus.subscriber_count("t")
        seen = []

        async def consume():
            async for event in sub:
                seen.append(event.viewer_count)

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        sub.close()
        await asyncio.wait_for(consumer, 1)
        return before, bus.subscriber_count("t"), seen, bus.publish("t", _count())

    before, after, seen, reached = asyncio.run(scenario())
    assert before == 1
    assert after == 0
    assert seen == [1]
    assert reached == 0


def test_bus_close_wakes_waiters():
    async def scenario():
        bus = EventBus()
        sub = bus.subscribe("t")
        waiter = asyncio.create_task(sub.get())
        await asyncio.sleep(0)
        bus.close()
        return await asyncio.wait_for(waiter, 1)

    assert asyncio.run(scenario()) is None


def test_full_queue_drops_with_warning(caplog):
    async def scenario():
        bus = EventBus(maxsize=2)
        sub = bus.subscribe("t")
        for n in range(4):
            bus.publish("t", _count(n=n))
        await asyncio.sleep(0.01)
        return [(await sub.get(timeout=0.05)) for _ in range(3)]

    with caplog.at_level(logging.WARNING, logger="fanline.realtime.bus"):
        got = asyncio.run(scenario())

    assert [e.viewer_count for e in got[:2]] == [0, 1]
    assert got[2] is None
    assert "dropping event" in caplog.text


def test_event_payload_shape():
    event = SessionClosed(session_id="s", session_end="2026-03-01T12:01:30+00:00", elapsed_sec=90, total_amount="0.63")
    assert event.to_dict() == {
        "type": "session_closed",
        "session_id": "s",
        "session_end": "2026-03-01T12:01:30+00:00",
        "elapsed_sec": 90,
        "total_amount": "0.63",
    }


# -- websockets -------------------------------------------------------------


@pytest.fixture
def open_session(store, clock):
    subscriber = store.add_profile(role="subscriber")
    creator = store.add_profile(role="creator", chat_rate="25.00")
    session = store.add_session(subscriber["id"], creator["id"], "25.00", clock.now)
    return subscriber, creator, session


def test_socket_without_profile_is_refused(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/v1/ws/messages") as ws:
            ws.receive_json()


def test_outsider_cannot_watch_session_meter(client, store, open_session):
    _, _, session = open_session
    outsider = store.add_profile()

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/v1/ws/chat-sessions/{session['id']}?profile_id={outsider['id']}") as ws:
            ws.receive_json()


def test_meter_socket_with_malformed_session_id_is_refused(client, open_session):
    subscriber, _, _ = open_session

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/v1/ws/chat-sessions/nope?profile_id={subscriber['id']}") as ws:
            ws.receive_json()


def test_meter_socket_ticks_then_reports_close(client, clock, open_session):
    subscriber, creator, session = open_session
    clock.advance(88)

    with client.websocket_connect(f"/v1/ws/chat-sessions/{session['id']}?profile_id={subscriber['id']}") as ws:
        started = ws.receive_json()
        first_tick = ws.receive_json()

        clock.advance(2)
        r = client.post(f"/v1/chat-sessions/{session['id']}/close", headers=auth(creator))
        assert r.status_code == 200

        frames = []
        while True:
            frame = ws.receive_json()
            frames.append(frame)
            if frame["type"] == "session_closed":
                break

    assert started["type"] == "meter_started"
    assert started["elapsed_sec"] == 88
    assert started["elapsed"] == "00:01:28"
    assert first_tick == {
        "type": "tick",
        "session_id": session["id"],
        "elapsed_sec": 89,
        "elapsed": "00:01:29",
        "cost": "0.62",
    }
    assert all(f["type"] == "tick" for f in frames[:-1])
    closed = frames[-1]
    assert closed["session_id"] == session["id"]
    assert closed["elapsed_sec"] == 90
    assert closed["total_amount"] == "0.63"


def test_meter_socket_for_closed_session_sends_final_state(client, store, clock, open_session):
    subscriber, creator, session = open_session
    clock.advance(90)
    client.post(f"/v1/chat-sessions/{session['id']}/close", headers=auth(subscriber))
    clock.advance(600)

    with client.websocket_connect(f"/v1/ws/chat-sessions/{session['id']}?profile_id={creator['id']}") as ws:
        frame = ws.receive_json()
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()

    assert frame["type"] == "session_closed"
    assert frame["is_open"] is False
    assert frame["elapsed_sec"] == 90
    assert frame["cost"] == "0.63"


def test_live_streams_socket_sees_viewer_counts(client, store):
    creator = store.add_profile(role="creator")
    viewer = store.add_profile()
    stream = store.add_stream(creator["id"], status="live")

    with client.websocket_connect("/v1/ws/live-streams") as ws:
        client.post(f"/v1/live-streams/{stream['id']}/join", headers=auth(viewer))
        joined = ws.receive_json()
        client.post(f"/v1/live-streams/{stream['id']}/leave", headers=auth(viewer))
        left = ws.receive_json()

    assert joined == {"type": "viewer_count_changed", "stream_id": stream["id"], "viewer_count": 1}
    assert left["viewer_count"] == 0
