from sqlalchemy import text

_STREAM_COLUMNS = """
    id::text as id, creator_id::text as creator_id, title, description, status,
    stream_key, started_at, ended_at, coalesce(viewer_count, 0) as viewer_count, created_at
"""


def insert_stream(conn, creator_id: str, title: str, description: str | None, stream_key: str):
    row = conn.execute(
        text(f"""
            insert into live_streams (creator_id, title, description, stream_key, status, viewer_count)
            values (cast(:creator_id as uuid), :title, :description, :stream_key, 'offline', 0)
            returning {_STREAM_COLUMNS}
        """),
        {
            "creator_id": creator_id,
            "title": title,
            "description": description,
            "stream_key": stream_key,
        },
    ).mappings().first()
    return dict(row)


def get_stream(conn, stream_id: str):
    row = conn.execute(
        text(f"""
            select {_STREAM_COLUMNS}
            from live_streams
            where id = cast(:stream_id as uuid)
        """),
        {"stream_id": stream_id},
    ).mappings().first()
    return dict(row) if row else None


def mark_live(conn, stream_id: str, started_at):
    """offline -> live. Returns the updated row, or None if the stream was not offline."""
    row = conn.execute(
        text(f"""
            update live_streams
            set status = 'live', started_at = :started_at, updated_at = now()
            where id = cast(:stream_id as uuid) and status = 'offline'
            returning {_STREAM_COLUMNS}
        """),
        {"stream_id": stream_id, "started_at": started_at},
    ).mappings().first()
    return dict(row) if row else None


def mark_ended(conn, stream_id: str, ended_at):
    """live -> ended. Returns the updated row, or None if the stream was not live."""
    row = conn.execute(
        text(f"""
            update live_streams
            set status = 'ended', ended_at = :ended_at, updated_at = now()
            where id = cast(:stream_id as uuid) and status = 'live'
            returning {_STREAM_COLUMNS}
        """),
        {"stream_id": stream_id, "ended_at": ended_at},
    ).mappings().first()
    return dict(row) if row else None


def increment_viewer_count(conn, stream_id: str) -> int | None:
    # single statement: the row lock makes concurrent joins serialize
    return conn.execute(
        text("""
            update live_streams
            set viewer_count = coalesce(viewer_count, 0) + 1
            where id = cast(:stream_id as uuid)
            returning viewer_count
        """),
        {"stream_id": stream_id},
    ).scalar_one_or_none()


def decrement_viewer_count(conn, stream_id: str) -> int | None:
    """Clamped at zero."""
    return conn.execute(
        text("""
            update live_streams
            set viewer_count = greatest(coalesce(viewer_count, 0) - 1, 0)
            where id = cast(:stream_id as uuid)
            returning viewer_count
        """),
        {"stream_id": stream_id},
    ).scalar_one_or_none()


def list_live_streams(conn):
    rows = conn.execute(
        text("""
            select
              s.id::text as id, s.creator_id::text as creator_id, s.title, s.description, s.status,
              s.stream_key, s.started_at, s.ended_at, coalesce(s.viewer_count, 0) as viewer_count,
              s.created_at, p.username as creator_username, p.display_name as creator_display_name
            from live_streams s
            left join profiles p on p.id = s.creator_id
            where s.status = 'live'
            order by s.started_at desc
        """),
    ).mappings().all()
    return [dict(r) for r in rows]


def list_creator_streams(conn, creator_id: str):
    rows = conn.execute(
        text(f"""
            select {_STREAM_COLUMNS}
            from live_streams
            where creator_id = cast(:creator_id as uuid)
            order by created_at desc
        """),
        {"creator_id": creator_id},
    ).mappings().all()
    return [dict(r) for r in rows]
