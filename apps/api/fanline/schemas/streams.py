from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from fanline.schemas.common import Notice
from fanline.schemas.enums import StreamStatus


class CreateStreamRequest(BaseModel):
    title: str
    description: Optional[str] = None


class LiveStream(BaseModel):
    id: str
    creator_id: str
    title: str
    description: Optional[str] = None
    status: StreamStatus
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    viewer_count: int = Field(0, ge=0)
    created_at: Optional[datetime] = None


class OwnedLiveStream(LiveStream):
    # only ever returned to the stream's creator
    stream_key: str
    open_viewers: Optional[int] = None


class PublicLiveStream(LiveStream):
    creator_username: Optional[str] = None
    creator_display_name: Optional[str] = None


class StreamResponse(BaseModel):
    stream: OwnedLiveStream
    notice: Notice


class LiveStreamsResponse(BaseModel):
    streams: List[PublicLiveStream]


class CreatorStreamsResponse(BaseModel):
    streams: List[OwnedLiveStream]


class PresenceResponse(BaseModel):
    stream_id: str
    viewer_count: int = Field(..., ge=0)
    changed: bool
    notice: Notice
