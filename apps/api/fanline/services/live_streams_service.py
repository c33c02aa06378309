import secrets
from datetime import datetime, timezone

from fanline.core.errors import (
    IllegalStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    remote_operation,
)
from fanline.core.ids import require_uuid
from fanline.realtime.events import LIVE_STREAMS_TOPIC, StreamStatusChanged
from fanline.repos import live_streams_repo, stream_viewers_repo
from fanline.schemas.enums import StreamStatus, UserRole
from fanline.services.notices import iso, notice
from fanline.services.profiles_service import ensure_role

STREAM_KEY_BYTES = 24


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_stream_key() -> str:
    return secrets.token_urlsafe(STREAM_KEY_BYTES)


def create_stream(engine, creator: dict, title: str, description: str | None = None):
    ensure_role(creator, UserRole.CREATOR)
    title = (title or "").strip()
    if not title:
        raise ValidationError("Please enter a title for your stream.")
    description = (description or "").strip() or None

    with remote_operation("create stream"), engine.begin() as conn:
        stream = live_streams_repo.insert_stream(
            conn,
            creator_id=creator["id"],
            title=title,
            description=description,
            stream_key=new_stream_key(),
        )

    return stream, notice("Stream created", "Your stream has been created successfully.")


def _transition(engine, bus, creator: dict, stream_id: str, target: StreamStatus):
    ensure_role(creator, UserRole.CREATOR)
    stream_id = require_uuid(stream_id, "stream_id")
    now = _now()

    with remote_operation("update stream"), engine.begin() as conn:
        stream = live_streams_repo.get_stream(conn, stream_id)
        if not stream:
            raise NotFoundError("stream not found")
        if stream["creator_id"] != creator["id"]:
            raise PermissionDeniedError("only the stream owner can change its status")

        if target is StreamStatus.LIVE:
            updated = live_streams_repo.mark_live(conn, stream_id, started_at=now)
        elif target is StreamStatus.ENDED:
            updated = live_streams_repo.mark_ended(conn, stream_id, ended_at=now)
        else:
            raise ValidationError(f"cannot move a stream to {target.value}")

        if updated is None:
            raise IllegalStateError(f"cannot move a {stream['status']} stream to {target.value}")

    bus.publish(
        LIVE_STREAMS_TOPIC,
        StreamStatusChanged(
            stream_id=updated["id"],
            creator_id=updated["creator_id"],
            status=updated["status"],
            started_at=iso(updated["started_at"]),
            ended_at=iso(updated["ended_at"]),
        ),
    )

    title = "Stream started" if target is StreamStatus.LIVE else "Stream ended"
    return updated, notice(title, f"Your stream is now {target.value}.")


def go_live(engine, bus, creator: dict, stream_id: str):
    return _transition(engine, bus, creator, stream_id, StreamStatus.LIVE)


def end_stream(engine, bus, creator: dict, stream_id: str):
    return _transition(engine, bus, creator, stream_id, StreamStatus.ENDED)


def list_live_streams(engine):
    with remote_operation("list live streams"), engine.begin() as conn:
        streams = live_streams_repo.list_live_streams(conn)
    for s in streams:
        s.pop("stream_key", None)
    return streams


def list_creator_streams(engine, creator: dict):
    ensure_role(creator, UserRole.CREATOR)
    with remote_operation("list streams"), engine.begin() as conn:
        streams = live_streams_repo.list_creator_streams(conn, creator["id"])
        open_counts = stream_viewers_repo.count_open_viewers_by_stream(conn, [s["id"] for s in streams])
    for s in streams:
        s["open_viewers"] = open_counts.get(s["id"], 0)
    return streams
