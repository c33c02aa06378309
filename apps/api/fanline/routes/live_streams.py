from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.streams import (
    CreateStreamRequest,
    CreatorStreamsResponse,
    LiveStreamsResponse,
    PresenceResponse,
    StreamResponse,
)
from fanline.services import live_streams_service, presence_service

router = APIRouter(prefix="/v1", tags=["live-streams"])


@router.post("/live-streams", response_model=StreamResponse)
def create_stream_route(body: CreateStreamRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        engine = request.app.state.ctx.engine
        stream, notice = live_streams_service.create_stream(engine, profile, body.title, body.description)
        return StreamResponse(stream=stream, notice=notice)
    except Exception as e:
        raise_http(e)


@router.get("/live-streams", response_model=LiveStreamsResponse)
def live_streams_route(request: Request, _profile: dict = Depends(current_profile)):
    try:
        streams = live_streams_service.list_live_streams(request.app.state.ctx.engine)
        return LiveStreamsResponse(streams=streams)
    except Exception as e:
        raise_http(e)


@router.get("/live-streams/mine", response_model=CreatorStreamsResponse)
def my_streams_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        streams = live_streams_service.list_creator_streams(request.app.state.ctx.engine, profile)
        return CreatorStreamsResponse(streams=streams)
    except Exception as e:
        raise_http(e)


@router.post("/live-streams/{stream_id}/start", response_model=StreamResponse)
def start_stream_route(stream_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        stream, notice = live_streams_service.go_live(ctx.engine, ctx.bus, profile, stream_id)
        return StreamResponse(stream=stream, notice=notice)
    except Exception as e:
        raise_http(e)


@router.post("/live-streams/{stream_id}/end", response_model=StreamResponse)
def end_stream_route(stream_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        stream, notice = live_streams_service.end_stream(ctx.engine, ctx.bus, profile, stream_id)
        return StreamResponse(stream=stream, notice=notice)
    except Exception as e:
        raise_http(e)


@router.post("/live-streams/{stream_id}/join", response_model=PresenceResponse)
def join_stream_route(stream_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        out = presence_service.join(ctx.engine, ctx.bus, stream_id, profile["id"])
        return PresenceResponse(
            stream_id=out["stream_id"],
            viewer_count=out["viewer_count"],
            changed=out["joined"],
            notice=out["notice"],
        )
    except Exception as e:
        raise_http(e)


@router.post("/live-streams/{stream_id}/leave", response_model=PresenceResponse)
def leave_stream_route(stream_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        out = presence_service.leave(ctx.engine, ctx.bus, stream_id, profile["id"])
        return PresenceResponse(
            stream_id=out["stream_id"],
            viewer_count=out["viewer_count"],
            changed=out["left"],
            notice=out["notice"],
        )
    except Exception as e:
        raise_http(e)
