from sqlalchemy import text


def find_open_viewer(conn, stream_id: str, viewer_id: str):
    row = conn.execute(
        text("""
            select id::text as id, stream_id::text as stream_id, viewer_id::text as viewer_id,
                   joined_at, left_at
            from stream_viewers
            where stream_id = cast(:stream_id as uuid)
              and viewer_id = cast(:viewer_id as uuid)
              and left_at is null
            limit 1
        """),
        {"stream_id": stream_id, "viewer_id": viewer_id},
    ).mappings().first()
    return dict(row) if row else None


def insert_open_viewer(conn, stream_id: str, viewer_id: str, joined_at) -> str | None:
    """
    Returns the new row id, or None when an open row already exists.
    Relies on the partial unique index stream_viewers_one_open_per_viewer.
    """
    return conn.execute(
        text("""
            insert into stream_viewers (stream_id, viewer_id, joined_at)
            values (cast(:stream_id as uuid), cast(:viewer_id as uuid), :joined_at)
            on conflict (stream_id, viewer_id) where left_at is null do nothing
            returning id::text
        """),
        {"stream_id": stream_id, "viewer_id": viewer_id, "joined_at": joined_at},
    ).scalar_one_or_none()


def close_open_viewer(conn, stream_id: str, viewer_id: str, left_at) -> str | None:
    """Returns the closed row id, or None when there was no open row."""
    return conn.execute(
        text("""
            update stream_viewers
            set left_at = :left_at
            where stream_id = cast(:stream_id as uuid)
              and viewer_id = cast(:viewer_id as uuid)
              and left_at is null
            returning id::text
        """),
        {"stream_id": stream_id, "viewer_id": viewer_id, "left_at": left_at},
    ).scalar_one_or_none()


def count_open_viewers_by_stream(conn, stream_ids: list[str]) -> dict[str, int]:
    if not stream_ids:
        return {}
    rows = conn.execute(
        text("""
            select stream_id::text as stream_id, count(*) as n
            from stream_viewers
            where stream_id = any(cast(:stream_ids as uuid[]))
              and left_at is null
            group by stream_id
        """),
        {"stream_ids": list(stream_ids)},
    ).mappings().all()
    return {r["stream_id"]: int(r["n"]) for r in rows}
