from sqlalchemy import text

_PROFILE_COLUMNS = """
    id::text as id, username, display_name, email, role::text as role, bio, avatar_url,
    subscription_price, chat_rate, is_verified, created_at
"""


def get_profile(conn, profile_id: str):
    row = conn.execute(
        text(f"""
            select {_PROFILE_COLUMNS}
            from profiles
            where id = cast(:profile_id as uuid)
        """),
        {"profile_id": profile_id},
    ).mappings().first()
    return dict(row) if row else None


def list_chat_creators(conn, search: str | None = None):
    """
    Creators with a chat rate, newest first.
    search matches username or display_name, case-insensitive.
    """
    pattern = f"%{search.strip()}%" if search and search.strip() else None
    rows = conn.execute(
        text(f"""
            select {_PROFILE_COLUMNS}
            from profiles
            where role = 'creator'
              and chat_rate is not null
              and (
                cast(:pattern as text) is null
                or username ilike :pattern
                or display_name ilike :pattern
              )
            order by created_at desc
        """),
        {"pattern": pattern},
    ).mappings().all()
    return [dict(r) for r in rows]


def list_subscribable_creators(conn, limit: int = 10):
    rows = conn.execute(
        text(f"""
            select {_PROFILE_COLUMNS}
            from profiles
            where role = 'creator'
              and subscription_price is not null
            order by created_at desc
            limit :limit
        """),
        {"limit": limit},
    ).mappings().all()
    return [dict(r) for r in rows]


def update_creator_fields(conn, profile_id: str, fields: dict):
    """
    Updates only the keys present in fields (bio, subscription_price, chat_rate).
    Returns the updated profile.
    """
    allowed = [k for k in ("bio", "subscription_price", "chat_rate") if k in fields]
    if not allowed:
        return get_profile(conn, profile_id)

    assignments = ", ".join(f"{k} = :{k}" for k in allowed)
    params = {k: fields[k] for k in allowed}
    params["profile_id"] = profile_id

    row = conn.execute(
        text(f"""
            update profiles
            set {assignments}, updated_at = now()
            where id = cast(:profile_id as uuid)
            returning {_PROFILE_COLUMNS}
        """),
        params,
    ).mappings().first()
    return dict(row) if row else None
