import logging
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from fanline.core.errors import (
    IllegalStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    remote_operation,
)
from fanline.core.ids import require_uuid
from fanline.realtime.events import SessionClosed, chat_session_topic
from fanline.realtime.meter import elapsed_between, elapsed_exact, format_time, running_cost
from fanline.repos import chat_sessions_repo
from fanline.schemas.enums import UserRole
from fanline.services.money import format_amount, require_positive, session_charge
from fanline.services.notices import iso, notice
from fanline.services.profiles_service import ensure_role, load_creator

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _is_participant(session: dict, profile_id: str) -> bool:
    return profile_id in (session["subscriber_id"], session["creator_id"])


def start_or_resume(engine, subscriber_id: str, creator_id: str, hourly_rate, creator_name: str | None = None):
    """
    Resume the open paid session for (subscriber, creator) or start a new one.

    Elapsed time of a resumed session is derived from session_start, and the
    session keeps the rate it was opened with.
    Returns {session, elapsed_sec, resumed, notice}.
    """
    subscriber_id = require_uuid(subscriber_id, "subscriber_id")
    creator_id = require_uuid(creator_id, "creator_id")
    rate = require_positive(hourly_rate, "hourly_rate")
    if subscriber_id == creator_id:
        raise ValidationError("cannot open a chat session with yourself")

    now = _now()
    with remote_operation("start chat session"), engine.begin() as conn:
        session = chat_sessions_repo.find_open_paid_session(conn, subscriber_id, creator_id)
        resumed = session is not None

        if not resumed:
            try:
                # payment capture is stubbed: sessions open as paid
                with conn.begin_nested():
                    session = chat_sessions_repo.insert_session(
                        conn,
                        session_id=str(uuid4()),
                        subscriber_id=subscriber_id,
                        creator_id=creator_id,
                        hourly_rate=rate,
                        session_start=now,
                        payment_status="paid",
                    )
            except IntegrityError:
                # lost the race against a concurrent start for the same pair
                session = chat_sessions_repo.find_open_paid_session(conn, subscriber_id, creator_id)
                if session is None:
                    raise
                resumed = True

    elapsed = elapsed_between(session["session_start"], now)
    session_rate = format_amount(session["hourly_rate"])

    if resumed:
        logger.info("resumed chat session %s (elapsed %ss)", session["id"], elapsed)
        msg = notice("Chat session resumed", f"Elapsed {format_time(elapsed)} at ${session_rate}/hour")
    else:
        logger.info("started chat session %s", session["id"])
        msg = notice(
            "Chat session started!",
            f"You are now chatting with {creator_name or 'the creator'} at ${session_rate}/hour",
        )

    return {"session": session, "elapsed_sec": elapsed, "resumed": resumed, "notice": msg}


def start_chat(engine, subscriber: dict, creator_id: str):
    """Subscriber-facing entry point: the rate comes from the creator's chat_rate."""
    ensure_role(subscriber, UserRole.SUBSCRIBER)
    creator_id = require_uuid(creator_id, "creator_id")

    with remote_operation("load creator"), engine.begin() as conn:
        creator = load_creator(conn, creator_id)

    if creator.get("chat_rate") is None:
        raise ValidationError("creator is not available for paid chat")

    return start_or_resume(
        engine,
        subscriber_id=subscriber["id"],
        creator_id=creator["id"],
        hourly_rate=creator["chat_rate"],
        creator_name=creator.get("display_name") or creator.get("username"),
    )


def close(engine, bus, session_id: str, actor_id: str | None = None):
    """
    Settle an open session: session_end = now, total_amount = charge(elapsed).
    The total is fixed here and never recomputed. Closing twice raises
    IllegalStateError and changes nothing.
    """
    session_id = require_uuid(session_id, "session_id")
    now = _now()
    with remote_operation("close chat session"), engine.begin() as conn:
        session = chat_sessions_repo.get_session(conn, session_id)
        if not session:
            raise NotFoundError("chat session not found")
        if actor_id is not None and not _is_participant(session, actor_id):
            raise PermissionDeniedError("not a participant of this chat session")
        if session["session_end"] is not None:
            raise IllegalStateError("chat session already closed")

        exact = elapsed_exact(session["session_start"], now)
        elapsed = int(exact)
        total = session_charge(exact, session["hourly_rate"])

        closed = chat_sessions_repo.close_session(conn, session_id, session_end=now, total_amount=total)
        if closed is None:
            raise IllegalStateError("chat session already closed")

    bus.publish(
        chat_session_topic(session_id),
        SessionClosed(
            session_id=session_id,
            session_end=iso(closed["session_end"]),
            elapsed_sec=elapsed,
            total_amount=format_amount(total),
        ),
    )

    msg = notice(
        "Chat session ended",
        f"Total time: {elapsed // 60} minutes. Cost: ${format_amount(total)}",
    )
    return {"session": closed, "elapsed_sec": elapsed, "notice": msg}


def get_session_for(engine, session_id: str, actor_id: str) -> dict:
    session_id = require_uuid(session_id, "session_id")
    with remote_operation("load chat session"), engine.begin() as conn:
        session = chat_sessions_repo.get_session(conn, session_id)
    if not session:
        raise NotFoundError("chat session not found")
    if not _is_participant(session, actor_id):
        raise PermissionDeniedError("not a participant of this chat session")
    return session


def meter_snapshot(session: dict, now: datetime | None = None) -> dict:
    """Elapsed time and cost derived from the server clock."""
    now = now or _now()
    is_open = session["session_end"] is None
    end = now if is_open else session["session_end"]
    exact = elapsed_exact(session["session_start"], end)
    elapsed = int(exact)
    cost = running_cost(exact, session["hourly_rate"]) if is_open else session["total_amount"]
    return {
        "session_id": session["id"],
        "is_open": is_open,
        "elapsed_sec": elapsed,
        "elapsed": format_time(elapsed),
        "hourly_rate": format_amount(session["hourly_rate"]),
        "cost": format_amount(cost),
    }


def get_meter(engine, session_id: str, actor_id: str) -> dict:
    return meter_snapshot(get_session_for(engine, session_id, actor_id))


def list_active_sessions(engine, subscriber: dict):
    ensure_role(subscriber, UserRole.SUBSCRIBER)
    with remote_operation("list chat sessions"), engine.begin() as conn:
        return chat_sessions_repo.list_open_sessions_for_subscriber(conn, subscriber["id"])
