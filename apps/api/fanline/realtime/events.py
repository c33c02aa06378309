from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Optional


def inbox_topic(profile_id: str) -> str:
    return f"inbox:{profile_id}"


def chat_session_topic(session_id: str) -> str:
    return f"chat_session:{session_id}"


LIVE_STREAMS_TOPIC = "live_streams"


@dataclass(frozen=True)
class Event:
    type: ClassVar[str] = "event"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **asdict(self)}


@dataclass(frozen=True)
class MessageCreated(Event):
    type: ClassVar[str] = "message_created"

    id: str
    sender_id: str
    recipient_id: str
    content: str
    created_at: str


@dataclass(frozen=True)
class SessionClosed(Event):
    type: ClassVar[str] = "session_closed"

    session_id: str
    session_end: str
    elapsed_sec: int
    total_amount: str


@dataclass(frozen=True)
class StreamStatusChanged(Event):
    type: ClassVar[str] = "stream_status_changed"

    stream_id: str
    creator_id: str
    status: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None


@dataclass(frozen=True)
class ViewerCountChanged(Event):
    type: ClassVar[str] = "viewer_count_changed"

    stream_id: str
    viewer_count: int
