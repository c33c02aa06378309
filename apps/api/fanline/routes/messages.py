from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.chat import ConversationResponse, Message, SendMessageRequest
from fanline.services import messages_service

router = APIRouter(prefix="/v1", tags=["messages"])


@router.post("/messages", response_model=Message)
def send_message_route(body: SendMessageRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        return messages_service.send_message(
            ctx.engine,
            ctx.bus,
            sender_id=profile["id"],
            recipient_id=body.recipient_id,
            content=body.content,
        )
    except Exception as e:
        raise_http(e)


@router.get("/messages/{other_id}", response_model=ConversationResponse)
def conversation_route(other_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        messages = messages_service.list_conversation(request.app.state.ctx.engine, profile["id"], other_id)
        return ConversationResponse(messages=messages)
    except Exception as e:
        raise_http(e)
