from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from fanline.schemas.common import Notice


class SendTipRequest(BaseModel):
    creator_id: str
    amount: Decimal
    content_id: Optional[str] = None
    message: Optional[str] = None


class Tip(BaseModel):
    id: str
    tipper_id: str
    creator_id: str
    amount: Decimal
    content_id: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None


class SendTipResponse(BaseModel):
    tip: Tip
    notice: Notice


class EarningsResponse(BaseModel):
    creator_id: str
    tips_total: str
    chat_total: str
    total: str
    active_subscribers: int
