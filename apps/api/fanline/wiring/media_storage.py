# fanline/wiring/media_storage.py

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple
from urllib.parse import quote

import requests

from fanline.core.config import Settings

logger = logging.getLogger(__name__)

MediaUploader = Callable[[str, bytes, str], str]


def _parse_timeout(timeout_s: float) -> Tuple[float, float]:
    """
    requests timeout as (connect, read):
      connect: 10% of total, between 1s and 5s
      read: remainder
    """
    total = max(1.0, float(timeout_s))
    connect = min(5.0, max(1.0, total * 0.1))
    read = max(1.0, total - connect)
    return connect, read


def public_url(base_url: str, bucket: str, object_path: str) -> str:
    return f"{base_url}/storage/v1/object/public/{bucket}/{quote(object_path)}"


def build_media_uploader(settings: Settings) -> Optional[MediaUploader]:
    """
    Returns a function(object_path, blob, content_type) -> public URL that
    writes into the Supabase Storage bucket, or None when storage is not
    configured.

    Upload failures raise requests.HTTPError; nothing is retried.
    """
    if not settings.media_storage_enabled:
        return None

    base_url = settings.supabase_url
    bucket = settings.media_bucket
    timeout = _parse_timeout(settings.media_upload_timeout_s)
    headers = {
        "Authorization": f"Bearer {settings.supabase_service_key}",
        "apikey": settings.supabase_service_key,
    }

    def _upload(object_path: str, blob: bytes, content_type: str = "application/octet-stream") -> str:
        url = f"{base_url}/storage/v1/object/{bucket}/{quote(object_path)}"
        r = requests.post(
            url,
            data=blob,
            headers={**headers, "Content-Type": content_type, "x-upsert": "false"},
            timeout=timeout,
        )
        r.raise_for_status()
        logger.info("uploaded media object %s (%d bytes)", object_path, len(blob))
        return public_url(base_url, bucket, object_path)

    return _upload
