from __future__ import annotations

import os
import time
from typing import Optional

from fanline.core.errors import ValidationError, remote_operation
from fanline.repos import content_repo, subscriptions_repo
from fanline.schemas.enums import ContentType, UserRole
from fanline.services.money import require_non_negative, to_cents
from fanline.services.notices import notice
from fanline.services.profiles_service import ensure_role

FEED_LIMIT = 20
MAX_MEDIA_BYTES = 50 * 1024 * 1024


def content_type_for_mime(mime: str | None) -> Optional[ContentType]:
    mime = (mime or "").lower()
    if mime.startswith("image/"):
        return ContentType.IMAGE
    if mime.startswith("video/"):
        return ContentType.VIDEO
    return None


def media_object_path(creator_id: str, filename: str, now_ms: int | None = None) -> str:
    """{creator_id}/{epoch_ms}.{ext}"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    return f"{creator_id}/{now_ms}.{ext}" if ext else f"{creator_id}/{now_ms}"


def upload_media(uploader, creator: dict, filename: str, blob: bytes, mime: str | None):
    ensure_role(creator, UserRole.CREATOR)
    if uploader is None:
        raise ValidationError("media storage is not configured")
    if not blob:
        raise ValidationError("file is empty")
    if len(blob) > MAX_MEDIA_BYTES:
        raise ValidationError("file too large")

    content_type = content_type_for_mime(mime)
    if content_type is None:
        raise ValidationError("only image/* and video/* uploads are accepted")

    path = media_object_path(creator["id"], filename)
    with remote_operation("upload media"):
        url = uploader(path, blob, mime)

    return {"media_url": url, "content_type": content_type.value, "path": path}


def publish_content(
    engine,
    creator: dict,
    title: str,
    content_type: ContentType | str,
    description: str | None = None,
    media_url: str | None = None,
    is_premium: bool = True,
    price=None,
):
    ensure_role(creator, UserRole.CREATOR)

    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")

    try:
        content_type = ContentType(content_type)
    except ValueError:
        raise ValidationError("content_type must be text, image or video")

    media_url = (media_url or "").strip() or None
    if content_type in (ContentType.IMAGE, ContentType.VIDEO) and not media_url:
        raise ValidationError(f"{content_type.value} content needs a media_url")

    if price is not None:
        price = to_cents(require_non_negative(price, "price"))

    with remote_operation("publish content"), engine.begin() as conn:
        item = content_repo.insert_content(
            conn,
            creator_id=creator["id"],
            title=title,
            description=(description or "").strip() or None,
            content_type=content_type.value,
            media_url=media_url,
            is_premium=bool(is_premium),
            price=price,
        )

    return item, notice("Success", "Content uploaded successfully!")


def _lock(item: dict) -> dict:
    locked = dict(item)
    locked["media_url"] = None
    locked["description"] = None
    locked["locked"] = True
    return locked


def list_feed(engine, viewer: dict):
    """
    Latest items across creators. Premium items stay locked unless the
    viewer is the creator or has an active subscription to them.
    """
    with remote_operation("load feed"), engine.begin() as conn:
        items = content_repo.list_feed(conn, limit=FEED_LIMIT)

        unlocked_creators = {viewer["id"]}
        premium_creators = {i["creator_id"] for i in items if i["is_premium"]} - unlocked_creators
        for creator_id in premium_creators:
            if subscriptions_repo.find_active(conn, viewer["id"], creator_id):
                unlocked_creators.add(creator_id)

    out = []
    for item in items:
        if item["is_premium"] and item["creator_id"] not in unlocked_creators:
            out.append(_lock(item))
        else:
            out.append({**item, "locked": False})
    return out


def list_creator_content(engine, creator: dict):
    ensure_role(creator, UserRole.CREATOR)
    with remote_operation("list content"), engine.begin() as conn:
        items = content_repo.list_creator_content(conn, creator["id"])
    return [{**i, "locked": False} for i in items]
