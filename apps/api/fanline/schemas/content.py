from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from fanline.schemas.common import Notice
from fanline.schemas.enums import ContentType


class PublishContentRequest(BaseModel):
    title: str
    description: Optional[str] = None
    content_type: ContentType = ContentType.TEXT
    media_url: Optional[str] = None
    is_premium: bool = True
    price: Optional[Decimal] = None


class ContentItem(BaseModel):
    id: str
    creator_id: str
    title: str
    description: Optional[str] = None
    content_type: ContentType
    media_url: Optional[str] = None
    is_premium: bool
    price: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    locked: bool = False
    creator_username: Optional[str] = None
    creator_display_name: Optional[str] = None


class PublishContentResponse(BaseModel):
    content: ContentItem
    notice: Notice


class ContentListResponse(BaseModel):
    items: List[ContentItem]


class MediaUploadResponse(BaseModel):
    media_url: str
    content_type: ContentType
    path: str = Field(..., min_length=1)
