from typing import Optional

from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.profiles import (
    CreatorsResponse,
    Profile,
    UpdateProfileRequest,
    UpdateProfileResponse,
)
from fanline.services import profiles_service

router = APIRouter(prefix="/v1", tags=["profiles"])


@router.get("/profiles/me", response_model=Profile)
def me_route(profile: dict = Depends(current_profile)):
    return profile


@router.patch("/profiles/me", response_model=UpdateProfileResponse)
def update_me_route(body: UpdateProfileRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        engine = request.app.state.ctx.engine
        changes = body.model_dump(exclude_unset=True)
        updated, notice = profiles_service.update_creator_profile(engine, profile, changes)
        return UpdateProfileResponse(profile=updated, notice=notice)
    except Exception as e:
        raise_http(e)


@router.get("/creators/chat", response_model=CreatorsResponse)
def chat_creators_route(request: Request, search: Optional[str] = None, _profile: dict = Depends(current_profile)):
    try:
        creators = profiles_service.list_chat_creators(request.app.state.ctx.engine, search=search)
        return CreatorsResponse(creators=creators)
    except Exception as e:
        raise_http(e)


@router.get("/creators/subscribable", response_model=CreatorsResponse)
def subscribable_creators_route(request: Request, limit: int = 10, _profile: dict = Depends(current_profile)):
    try:
        creators = profiles_service.list_subscribable_creators(request.app.state.ctx.engine, limit=limit)
        return CreatorsResponse(creators=creators)
    except Exception as e:
        raise_http(e)
