from fastapi import APIRouter, Depends, File, Request, UploadFile

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.content import (
    ContentListResponse,
    MediaUploadResponse,
    PublishContentRequest,
    PublishContentResponse,
)
from fanline.services import content_service

router = APIRouter(prefix="/v1", tags=["content"])


@router.post("/content", response_model=PublishContentResponse)
def publish_content_route(body: PublishContentRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        item, notice = content_service.publish_content(
            request.app.state.ctx.engine,
            profile,
            title=body.title,
            content_type=body.content_type,
            description=body.description,
            media_url=body.media_url,
            is_premium=body.is_premium,
            price=body.price,
        )
        return PublishContentResponse(content=item, notice=notice)
    except Exception as e:
        raise_http(e)


@router.post("/content/media", response_model=MediaUploadResponse)
async def upload_media_route(
    request: Request,
    file: UploadFile = File(...),
    profile: dict = Depends(current_profile),
):
    """
    Stores the file in the media bucket and returns its public URL.
    The content row is created separately with POST /v1/content.
    """
    try:
        blob = await file.read()
        return content_service.upload_media(
            request.app.state.ctx.media_uploader,
            profile,
            filename=file.filename or "",
            blob=blob,
            mime=file.content_type,
        )
    except Exception as e:
        raise_http(e)


@router.get("/content/feed", response_model=ContentListResponse)
def feed_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        return ContentListResponse(items=content_service.list_feed(request.app.state.ctx.engine, profile))
    except Exception as e:
        raise_http(e)


@router.get("/content/mine", response_model=ContentListResponse)
def my_content_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        return ContentListResponse(items=content_service.list_creator_content(request.app.state.ctx.engine, profile))
    except Exception as e:
        raise_http(e)
