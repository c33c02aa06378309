from sqlalchemy import text


def insert_message(conn, sender_id: str, recipient_id: str, content: str):
    """Server assigns id and created_at."""
    row = conn.execute(
        text("""
            insert into messages (sender_id, recipient_id, content)
            values (cast(:sender_id as uuid), cast(:recipient_id as uuid), :content)
            returning id::text as id, sender_id::text as sender_id, recipient_id::text as recipient_id,
                      content, created_at
        """),
        {"sender_id": sender_id, "recipient_id": recipient_id, "content": content},
    ).mappings().first()
    return dict(row)


def list_conversation(conn, profile_a: str, profile_b: str):
    rows = conn.execute(
        text("""
            select id::text as id, sender_id::text as sender_id, recipient_id::text as recipient_id,
                   content, created_at
            from messages
            where (sender_id = cast(:a as uuid) and recipient_id = cast(:b as uuid))
               or (sender_id = cast(:b as uuid) and recipient_id = cast(:a as uuid))
            order by created_at asc
        """),
        {"a": profile_a, "b": profile_b},
    ).mappings().all()
    return [dict(r) for r in rows]
