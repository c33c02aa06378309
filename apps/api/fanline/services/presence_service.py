import logging
from datetime import datetime, timezone

from fanline.core.errors import IllegalStateError, NotFoundError, remote_operation
from fanline.core.ids import require_uuid
from fanline.realtime.events import LIVE_STREAMS_TOPIC, ViewerCountChanged
from fanline.repos import live_streams_repo, stream_viewers_repo
from fanline.services.notices import notice

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def join(engine, bus, stream_id: str, viewer_id: str):
    """
    Open a viewer row and bump viewer_count by one.
    A viewer who already has an open row is a no-op; the count comes back
    from the stored viewer_count either way.
    """
    stream_id = require_uuid(stream_id, "stream_id")
    now = _now()
    with remote_operation("join stream"), engine.begin() as conn:
        stream = live_streams_repo.get_stream(conn, stream_id)
        if not stream:
            raise NotFoundError("stream not found")
        if stream["status"] != "live":
            raise IllegalStateError(f"stream is {stream['status']}, not live")

        joined = False
        viewer_count = int(stream["viewer_count"] or 0)

        if not stream_viewers_repo.find_open_viewer(conn, stream_id, viewer_id):
            row_id = stream_viewers_repo.insert_open_viewer(conn, stream_id, viewer_id, joined_at=now)
            if row_id is not None:
                joined = True
                viewer_count = int(live_streams_repo.increment_viewer_count(conn, stream_id))

    if joined:
        bus.publish(LIVE_STREAMS_TOPIC, ViewerCountChanged(stream_id=stream_id, viewer_count=viewer_count))

    return {
        "stream_id": stream_id,
        "joined": joined,
        "viewer_count": viewer_count,
        "notice": notice("Joined stream", "You're now watching the live stream!"),
    }


def leave(engine, bus, stream_id: str, viewer_id: str):
    """
    Close the viewer's open row and decrement viewer_count (never below zero).
    Leaving without an open row only logs a warning.
    """
    stream_id = require_uuid(stream_id, "stream_id")
    now = _now()
    with remote_operation("leave stream"), engine.begin() as conn:
        stream = live_streams_repo.get_stream(conn, stream_id)
        if not stream:
            raise NotFoundError("stream not found")

        left = False
        viewer_count = int(stream["viewer_count"] or 0)

        closed_id = stream_viewers_repo.close_open_viewer(conn, stream_id, viewer_id, left_at=now)
        if closed_id is None:
            logger.warning("leave without open viewer row: stream=%s viewer=%s", stream_id, viewer_id)
        else:
            left = True
            viewer_count = int(live_streams_repo.decrement_viewer_count(conn, stream_id))

    if left:
        bus.publish(LIVE_STREAMS_TOPIC, ViewerCountChanged(stream_id=stream_id, viewer_count=viewer_count))

    return {
        "stream_id": stream_id,
        "left": left,
        "viewer_count": viewer_count,
        "notice": notice("Left stream", "You've left the live stream."),
    }
