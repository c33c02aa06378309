from sqlalchemy import text

_SESSION_COLUMNS = """
    id::text as id, subscriber_id::text as subscriber_id, creator_id::text as creator_id,
    hourly_rate, session_start, session_end, payment_status, total_amount
"""


def find_open_paid_session(conn, subscriber_id: str, creator_id: str):
    row = conn.execute(
        text(f"""
            select {_SESSION_COLUMNS}
            from chat_sessions
            where subscriber_id = cast(:subscriber_id as uuid)
              and creator_id = cast(:creator_id as uuid)
              and session_end is null
              and payment_status = 'paid'
            order by session_start desc
            limit 1
        """),
        {"subscriber_id": subscriber_id, "creator_id": creator_id},
    ).mappings().first()
    return dict(row) if row else None


def find_open_session_between(conn, profile_a: str, profile_b: str):
    """Open paid session where the two profiles are subscriber/creator in either order."""
    row = conn.execute(
        text(f"""
            select {_SESSION_COLUMNS}
            from chat_sessions
            where session_end is null
              and payment_status = 'paid'
              and (
                (subscriber_id = cast(:a as uuid) and creator_id = cast(:b as uuid))
                or (subscriber_id = cast(:b as uuid) and creator_id = cast(:a as uuid))
              )
            limit 1
        """),
        {"a": profile_a, "b": profile_b},
    ).mappings().first()
    return dict(row) if row else None


def insert_session(
    conn,
    session_id: str,
    subscriber_id: str,
    creator_id: str,
    hourly_rate,
    session_start,
    payment_status: str = "paid",
):
    row = conn.execute(
        text(f"""
            insert into chat_sessions (id, subscriber_id, creator_id, hourly_rate, session_start, payment_status)
            values (
              cast(:id as uuid), cast(:subscriber_id as uuid), cast(:creator_id as uuid),
              :hourly_rate, :session_start, :payment_status
            )
            returning {_SESSION_COLUMNS}
        """),
        {
            "id": session_id,
            "subscriber_id": subscriber_id,
            "creator_id": creator_id,
            "hourly_rate": hourly_rate,
            "session_start": session_start,
            "payment_status": payment_status,
        },
    ).mappings().first()
    return dict(row)


def get_session(conn, session_id: str):
    row = conn.execute(
        text(f"""
            select {_SESSION_COLUMNS}
            from chat_sessions
            where id = cast(:session_id as uuid)
        """),
        {"session_id": session_id},
    ).mappings().first()
    return dict(row) if row else None


def close_session(conn, session_id: str, session_end, total_amount):
    """
    Settles an open session. Returns the closed row, or None when the
    session was already closed (or does not exist).
    """
    row = conn.execute(
        text(f"""
            update chat_sessions
            set session_end = :session_end,
                total_amount = :total_amount,
                updated_at = now()
            where id = cast(:session_id as uuid)
              and session_end is null
            returning {_SESSION_COLUMNS}
        """),
        {"session_id": session_id, "session_end": session_end, "total_amount": total_amount},
    ).mappings().first()
    return dict(row) if row else None


def list_open_sessions_for_subscriber(conn, subscriber_id: str):
    rows = conn.execute(
        text("""
            select
              s.id::text as id, s.subscriber_id::text as subscriber_id, s.creator_id::text as creator_id,
              s.hourly_rate, s.session_start, s.session_end, s.payment_status, s.total_amount,
              coalesce(p.display_name, p.username) as creator_name
            from chat_sessions s
            join profiles p on p.id = s.creator_id
            where s.subscriber_id = cast(:subscriber_id as uuid)
              and s.session_end is null
              and s.payment_status = 'paid'
            order by s.session_start desc
        """),
        {"subscriber_id": subscriber_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def sum_closed_totals_for_creator(conn, creator_id: str):
    return conn.execute(
        text("""
            select coalesce(sum(total_amount), 0)
            from chat_sessions
            where creator_id = cast(:creator_id as uuid)
              and session_end is not null
        """),
        {"creator_id": creator_id},
    ).scalar_one()
