from sqlalchemy import text

_CONTENT_COLUMNS = """
    c.id::text as id, c.creator_id::text as creator_id, c.title, c.description, c.content_type,
    c.media_url, coalesce(c.is_premium, false) as is_premium, c.price, c.created_at
"""


def insert_content(
    conn,
    creator_id: str,
    title: str,
    description: str | None,
    content_type: str,
    media_url: str | None,
    is_premium: bool,
    price,
):
    row = conn.execute(
        text(f"""
            insert into content as c (creator_id, title, description, content_type, media_url, is_premium, price)
            values (cast(:creator_id as uuid), :title, :description, :content_type, :media_url, :is_premium, :price)
            returning {_CONTENT_COLUMNS}
        """),
        {
            "creator_id": creator_id,
            "title": title,
            "description": description,
            "content_type": content_type,
            "media_url": media_url,
            "is_premium": is_premium,
            "price": price,
        },
    ).mappings().first()
    return dict(row)


def get_content(conn, content_id: str):
    row = conn.execute(
        text(f"""
            select {_CONTENT_COLUMNS}
            from content c
            where c.id = cast(:content_id as uuid)
        """),
        {"content_id": content_id},
    ).mappings().first()
    return dict(row) if row else None


def list_feed(conn, limit: int = 20):
    rows = conn.execute(
        text(f"""
            select {_CONTENT_COLUMNS},
                   p.username as creator_username, p.display_name as creator_display_name
            from content c
            join profiles p on p.id = c.creator_id
            order by c.created_at desc
            limit :limit
        """),
        {"limit": limit},
    ).mappings().all()
    return [dict(r) for r in rows]


def list_creator_content(conn, creator_id: str):
    rows = conn.execute(
        text(f"""
            select {_CONTENT_COLUMNS}
            from content c
            where c.creator_id = cast(:creator_id as uuid)
            order by c.created_at desc
        """),
        {"creator_id": creator_id},
    ).mappings().all()
    return [dict(r) for r in rows]
