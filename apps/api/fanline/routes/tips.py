from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.tips import EarningsResponse, SendTipRequest, SendTipResponse
from fanline.services import tips_service

router = APIRouter(prefix="/v1", tags=["tips"])


@router.post("/tips", response_model=SendTipResponse)
def send_tip_route(body: SendTipRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        tip, notice = tips_service.send_tip(
            request.app.state.ctx.engine,
            profile,
            creator_id=body.creator_id,
            amount=body.amount,
            content_id=body.content_id,
            message=body.message,
        )
        return SendTipResponse(tip=tip, notice=notice)
    except Exception as e:
        raise_http(e)


@router.get("/earnings", response_model=EarningsResponse)
def earnings_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        return tips_service.creator_earnings(request.app.state.ctx.engine, profile)
    except Exception as e:
        raise_http(e)
