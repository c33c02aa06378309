from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from fanline.schemas.common import Notice
from fanline.schemas.enums import UserRole


class Profile(BaseModel):
    id: str
    username: str
    display_name: Optional[str] = None
    role: UserRole
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    subscription_price: Optional[Decimal] = None
    chat_rate: Optional[Decimal] = None
    is_verified: Optional[bool] = None
    created_at: Optional[datetime] = None


class UpdateProfileRequest(BaseModel):
    bio: Optional[str] = Field(default=None, max_length=2000)
    subscription_price: Optional[Decimal] = None
    chat_rate: Optional[Decimal] = None


class UpdateProfileResponse(BaseModel):
    profile: Profile
    notice: Notice


class CreatorsResponse(BaseModel):
    creators: List[Profile]
