from fanline.core.errors import IllegalStateError, ValidationError, remote_operation
from fanline.core.ids import require_uuid
from fanline.realtime.events import MessageCreated, inbox_topic
from fanline.repos import chat_sessions_repo, messages_repo
from fanline.services.notices import iso

MAX_MESSAGE_LENGTH = 4000


def send_message(engine, bus, sender_id: str, recipient_id: str, content: str):
    """
    Append a message to the pair's conversation.
    Needs an open paid chat session between the two profiles (either role).
    """
    content = (content or "").strip()
    if not content:
        raise ValidationError("content cannot be empty")
    if len(content) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"content longer than {MAX_MESSAGE_LENGTH} characters")
    recipient_id = require_uuid(recipient_id, "recipient_id")
    if sender_id == recipient_id:
        raise ValidationError("cannot message yourself")

    with remote_operation("send message"), engine.begin() as conn:
        session = chat_sessions_repo.find_open_session_between(conn, sender_id, recipient_id)
        if not session:
            raise IllegalStateError("no open chat session with this profile")

        message = messages_repo.insert_message(
            conn,
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
        )

    bus.publish(
        inbox_topic(recipient_id),
        MessageCreated(
            id=message["id"],
            sender_id=message["sender_id"],
            recipient_id=message["recipient_id"],
            content=message["content"],
            created_at=iso(message["created_at"]),
        ),
    )
    return message


def list_conversation(engine, profile_id: str, other_id: str):
    other_id = require_uuid(other_id, "other_id")
    with remote_operation("list messages"), engine.begin() as conn:
        return messages_repo.list_conversation(conn, profile_id, other_id)
