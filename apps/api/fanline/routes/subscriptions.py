from fastapi import APIRouter, Depends, Request

from fanline.core.context import current_profile
from fanline.core.errors import raise_http
from fanline.schemas.subscriptions import SubscribeRequest, SubscriptionResponse, SubscriptionsResponse
from fanline.services import subscriptions_service

router = APIRouter(prefix="/v1", tags=["subscriptions"])


@router.post("/subscriptions", response_model=SubscriptionResponse)
def subscribe_route(body: SubscribeRequest, request: Request, profile: dict = Depends(current_profile)):
    try:
        ctx = request.app.state.ctx
        subscription, notice = subscriptions_service.subscribe(
            ctx.engine,
            profile,
            body.creator_id,
            period_days=ctx.settings.subscription_period_days,
        )
        return SubscriptionResponse(subscription=subscription, notice=notice)
    except Exception as e:
        raise_http(e)


@router.post("/subscriptions/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_route(subscription_id: str, request: Request, profile: dict = Depends(current_profile)):
    try:
        subscription, notice = subscriptions_service.cancel(request.app.state.ctx.engine, profile, subscription_id)
        return SubscriptionResponse(subscription=subscription, notice=notice)
    except Exception as e:
        raise_http(e)


@router.get("/subscriptions", response_model=SubscriptionsResponse)
def list_route(request: Request, profile: dict = Depends(current_profile)):
    try:
        subscriptions = subscriptions_service.list_active(request.app.state.ctx.engine, profile)
        return SubscriptionsResponse(subscriptions=subscriptions)
    except Exception as e:
        raise_http(e)
