from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.chat import (
    ActiveSessionsResponse,
    CloseChatResponse,
    MeterResponse,
    StartChatRequest,
    StartChatResponse,
)
from fanline.services import chat_sessions_service

router = APIRouter(prefix="/v1", tags=["chat-sessions"])


@router.post("/chat-sessions", response_model=StartChatResponse)
def start_chat_route(body: StartChatRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        engine = request.app.state.ctx.engine
        return chat_sessions_service.start_chat(engine, profile, body.creator_id)
    except Exception as e:
        raise_http(e)


@router.get("/chat-sessions/active", response_model=ActiveSessionsResponse)
def active_sessions_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        sessions = chat_sessions_service.list_active_sessions(request.app.state.ctx.engine, profile)
        return ActiveSessionsResponse(sessions=sessions)
    except Exception as e:
        raise_http(e)


@router.get("/chat-sessions/{session_id}/meter", response_model=MeterResponse)
def meter_route(session_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        return chat_sessions_service.get_meter(request.app.state.ctx.engine, session_id, profile["id"])
    except Exception as e:
        raise_http(e)


@router.post("/chat-sessions/{session_id}/close", response_model=CloseChatResponse)
def close_session_route(session_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        return chat_sessions_service.close(ctx.engine, ctx.bus, session_id, actor_id=profile["id"])
    except Exception as e:
        raise_http(e)
