import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, Request, WebSocket

from fanline.core.config import Settings
from fanline.core.db import make_engine
from fanline.core.errors import NotFoundError, RemoteOperationError
from fanline.core.ids import is_uuid
from fanline.realtime.bus import EventBus
from fanline.services import profiles_service
from fanline.wiring.media_storage import MediaUploader, build_media_uploader

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything request handlers share, created at startup and closed at shutdown."""

    settings: Settings
    engine: object
    bus: EventBus
    media_uploader: Optional[MediaUploader] = None


def open_context(settings: Settings, engine=None) -> AppContext:
    if engine is None:
        engine = make_engine(settings.database_url)
    return AppContext(
        settings=settings,
        engine=engine,
        bus=EventBus(),
        media_uploader=build_media_uploader(settings),
    )


def close_context(ctx: AppContext) -> None:
    ctx.bus.close()
    dispose = getattr(ctx.engine, "dispose", None)
    if callable(dispose):
        dispose()


def get_ctx(request: Request) -> AppContext:
    return request.app.state.ctx


def _resolve_profile(ctx: AppContext, profile_id: Optional[str]) -> dict:
    profile_id = (profile_id or "").strip()
    if not profile_id:
        raise HTTPException(status_code=401, detail="missing X-Profile-Id")
    if not is_uuid(profile_id):
        raise HTTPException(status_code=401, detail="malformed profile id")
    try:
        return profiles_service.get_profile(ctx.engine, profile_id)
    except NotFoundError:
        raise HTTPException(status_code=401, detail="unknown profile")
    except RemoteOperationError as e:
        raise HTTPException(status_code=502, detail=str(e))


def current_profile(request: Request, x_profile_id: Optional[str] = Header(default=None)) -> dict:
    """The signed-in profile. Identity is asserted upstream (Supabase auth)."""
    return _resolve_profile(get_ctx(request), x_profile_id)


def websocket_profile(websocket: WebSocket) -> Optional[dict]:
    """Profile for a websocket from ?profile_id=, or None when it cannot be resolved."""
    ctx: AppContext = websocket.app.state.ctx
    try:
        return _resolve_profile(ctx, websocket.query_params.get("profile_id"))
    except HTTPException:
        return None
