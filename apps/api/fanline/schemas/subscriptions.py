from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from fanline.schemas.common import Notice
from fanline.schemas.enums import SubscriptionStatus


class SubscribeRequest(BaseModel):
    creator_id: str


class Subscription(BaseModel):
    id: str
    subscriber_id: str
    creator_id: str
    status: SubscriptionStatus
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    creator_name: Optional[str] = None
    subscription_price: Optional[Decimal] = None


class SubscriptionResponse(BaseModel):
    subscription: Subscription
    notice: Notice


class SubscriptionsResponse(BaseModel):
    subscriptions: List[Subscription]
