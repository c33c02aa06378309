from sqlalchemy import text

_SUBSCRIPTION_COLUMNS = """
    id::text as id, subscriber_id::text as subscriber_id, creator_id::text as creator_id,
    status, current_period_start, current_period_end, created_at
"""


def find_active(conn, subscriber_id: str, creator_id: str):
    row = conn.execute(
        text(f"""
            select {_SUBSCRIPTION_COLUMNS}
            from subscriptions
            where subscriber_id = cast(:subscriber_id as uuid)
              and creator_id = cast(:creator_id as uuid)
              and status = 'active'
            limit 1
        """),
        {"subscriber_id": subscriber_id, "creator_id": creator_id},
    ).mappings().first()
    return dict(row) if row else None


def insert_subscription(conn, subscriber_id: str, creator_id: str, period_start, period_end):
    row = conn.execute(
        text(f"""
            insert into subscriptions (subscriber_id, creator_id, status, current_period_start, current_period_end)
            values (cast(:subscriber_id as uuid), cast(:creator_id as uuid), 'active', :period_start, :period_end)
            returning {_SUBSCRIPTION_COLUMNS}
        """),
        {
            "subscriber_id": subscriber_id,
            "creator_id": creator_id,
            "period_start": period_start,
            "period_end": period_end,
        },
    ).mappings().first()
    return dict(row)


def get_subscription(conn, subscription_id: str):
    row = conn.execute(
        text(f"""
            select {_SUBSCRIPTION_COLUMNS}
            from subscriptions
            where id = cast(:subscription_id as uuid)
        """),
        {"subscription_id": subscription_id},
    ).mappings().first()
    return dict(row) if row else None


def cancel_subscription(conn, subscription_id: str):
    """active -> cancelled. None when it was not active."""
    row = conn.execute(
        text(f"""
            update subscriptions
            set status = 'cancelled', updated_at = now()
            where id = cast(:subscription_id as uuid) and status = 'active'
            returning {_SUBSCRIPTION_COLUMNS}
        """),
        {"subscription_id": subscription_id},
    ).mappings().first()
    return dict(row) if row else None


def list_active_for_subscriber(conn, subscriber_id: str):
    rows = conn.execute(
        text("""
            select
              s.id::text as id, s.subscriber_id::text as subscriber_id, s.creator_id::text as creator_id,
              s.status, s.current_period_start, s.current_period_end, s.created_at,
              coalesce(p.display_name, p.username) as creator_name, p.subscription_price
            from subscriptions s
            join profiles p on p.id = s.creator_id
            where s.subscriber_id = cast(:subscriber_id as uuid)
              and s.status = 'active'
            order by s.created_at desc
        """),
        {"subscriber_id": subscriber_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def count_active_for_creator(conn, creator_id: str) -> int:
    return int(
        conn.execute(
            text("""
                select count(*)
                from subscriptions
                where creator_id = cast(:creator_id as uuid) and status = 'active'
            """),
            {"creator_id": creator_id},
        ).scalar_one()
    )
