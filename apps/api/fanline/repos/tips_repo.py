from sqlalchemy import text


def insert_tip(conn, tipper_id: str, creator_id: str, amount, content_id: str | None, message: str | None):
    row = conn.execute(
        text("""
            insert into tips (tipper_id, creator_id, amount, content_id, message)
            values (cast(:tipper_id as uuid), cast(:creator_id as uuid), :amount,
                    cast(:content_id as uuid), :message)
            returning id::text as id, tipper_id::text as tipper_id, creator_id::text as creator_id,
                      amount, content_id::text as content_id, message, created_at
        """),
        {
            "tipper_id": tipper_id,
            "creator_id": creator_id,
            "amount": amount,
            "content_id": content_id,
            "message": message,
        },
    ).mappings().first()
    return dict(row)


def sum_tips_for_creator(conn, creator_id: str):
    return conn.execute(
        text("""
            select coalesce(sum(amount), 0)
            from tips
            where creator_id = cast(:creator_id as uuid)
        """),
        {"creator_id": creator_id},
    ).scalar_one()
