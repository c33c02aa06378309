from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from fanline.schemas.common import Notice
from fanline.schemas.enums import PaymentStatus


class ChatSession(BaseModel):
    id: str
    subscriber_id: str
    creator_id: str
    hourly_rate: Decimal
    session_start: datetime
    session_end: Optional[datetime] = None
    payment_status: PaymentStatus
    total_amount: Optional[Decimal] = None


class StartChatRequest(BaseModel):
    creator_id: str


class StartChatResponse(BaseModel):
    session: ChatSession
    elapsed_sec: int
    resumed: bool
    notice: Notice


class CloseChatResponse(BaseModel):
    session: ChatSession
    elapsed_sec: int
    notice: Notice


class ActiveSession(ChatSession):
    creator_name: Optional[str] = None


class ActiveSessionsResponse(BaseModel):
    sessions: List[ActiveSession]


class MeterResponse(BaseModel):
    session_id: str
    is_open: bool
    elapsed_sec: int
    elapsed: str  # HH:MM:SS
    hourly_rate: str
    cost: str


class SendMessageRequest(BaseModel):
    recipient_id: str
    content: str


class Message(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    created_at: datetime


class ConversationResponse(BaseModel):
    messages: List[Message]
