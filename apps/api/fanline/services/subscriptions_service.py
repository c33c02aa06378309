from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError

from fanline.core.errors import (
    IllegalStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    remote_operation,
)
from fanline.core.ids import require_uuid
from fanline.repos import subscriptions_repo
from fanline.schemas.enums import UserRole
from fanline.services.money import format_amount
from fanline.services.notices import notice
from fanline.services.profiles_service import ensure_role, load_creator


def _now() -> datetime:
    return datetime.now(timezone.utc)


def subscribe(engine, subscriber: dict, creator_id: str, period_days: int = 30):
    ensure_role(subscriber, UserRole.SUBSCRIBER)
    creator_id = require_uuid(creator_id, "creator_id")
    now = _now()

    with remote_operation("subscribe"), engine.begin() as conn:
        creator = load_creator(conn, creator_id)
        if creator.get("subscription_price") is None:
            raise ValidationError("creator does not offer subscriptions")

        if subscriptions_repo.find_active(conn, subscriber["id"], creator_id):
            raise IllegalStateError("already subscribed to this creator")

        try:
            with conn.begin_nested():
                subscription = subscriptions_repo.insert_subscription(
                    conn,
                    subscriber_id=subscriber["id"],
                    creator_id=creator_id,
                    period_start=now,
                    period_end=now + timedelta(days=period_days),
                )
        except IntegrityError:
            raise IllegalStateError("already subscribed to this creator")

    price = format_amount(creator["subscription_price"])
    return subscription, notice("Success!", f"Successfully subscribed to creator for ${price}/month")


def cancel(engine, subscriber: dict, subscription_id: str):
    subscription_id = require_uuid(subscription_id, "subscription_id")
    with remote_operation("cancel subscription"), engine.begin() as conn:
        subscription = subscriptions_repo.get_subscription(conn, subscription_id)
        if not subscription:
            raise NotFoundError("subscription not found")
        if subscription["subscriber_id"] != subscriber["id"]:
            raise PermissionDeniedError("not your subscription")

        cancelled = subscriptions_repo.cancel_subscription(conn, subscription_id)
        if cancelled is None:
            raise IllegalStateError(f"subscription is already {subscription['status']}")

    return cancelled, notice("Unsubscribed", "You have successfully unsubscribed")


def list_active(engine, subscriber: dict):
    ensure_role(subscriber, UserRole.SUBSCRIBER)
    with remote_operation("list subscriptions"), engine.begin() as conn:
        return subscriptions_repo.list_active_for_subscriber(conn, subscriber["id"])
