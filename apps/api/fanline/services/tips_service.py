from fanline.core.errors import ValidationError, remote_operation
from fanline.core.ids import require_uuid
from fanline.repos import chat_sessions_repo, content_repo, subscriptions_repo, tips_repo
from fanline.schemas.enums import UserRole
from fanline.services.money import format_amount, require_positive, to_cents
from fanline.services.notices import notice
from fanline.services.profiles_service import ensure_role, load_creator

MAX_TIP_MESSAGE_LENGTH = 500


def send_tip(engine, tipper: dict, creator_id: str, amount, content_id: str | None = None, message: str | None = None):
    creator_id = require_uuid(creator_id, "creator_id")
    if content_id is not None:
        content_id = require_uuid(content_id, "content_id")
    amount = to_cents(require_positive(amount, "amount"))
    if amount <= 0:
        raise ValidationError("amount must be at least 0.01")
    if tipper["id"] == creator_id:
        raise ValidationError("cannot tip yourself")

    message = (message or "").strip() or None
    if message and len(message) > MAX_TIP_MESSAGE_LENGTH:
        raise ValidationError(f"message longer than {MAX_TIP_MESSAGE_LENGTH} characters")

    with remote_operation("send tip"), engine.begin() as conn:
        creator = load_creator(conn, creator_id)

        if content_id is not None:
            item = content_repo.get_content(conn, content_id)
            if not item or item["creator_id"] != creator_id:
                raise ValidationError("content does not belong to this creator")

        tip = tips_repo.insert_tip(
            conn,
            tipper_id=tipper["id"],
            creator_id=creator_id,
            amount=amount,
            content_id=content_id,
            message=message,
        )

    name = creator.get("display_name") or creator.get("username")
    return tip, notice("Tip sent", f"You tipped {name} ${format_amount(amount)}")


def creator_earnings(engine, creator: dict) -> dict:
    ensure_role(creator, UserRole.CREATOR)
    with remote_operation("load earnings"), engine.begin() as conn:
        tips_total = tips_repo.sum_tips_for_creator(conn, creator["id"])
        chat_total = chat_sessions_repo.sum_closed_totals_for_creator(conn, creator["id"])
        subscribers = subscriptions_repo.count_active_for_creator(conn, creator["id"])

    return {
        "creator_id": creator["id"],
        "tips_total": format_amount(tips_total),
        "chat_total": format_amount(chat_total),
        "total": format_amount(to_cents(tips_total) + to_cents(chat_total)),
        "active_subscribers": subscribers,
    }
