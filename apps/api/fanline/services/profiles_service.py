from fanline.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    remote_operation,
)
from fanline.core.ids import require_uuid
from fanline.repos import profiles_repo
from fanline.schemas.enums import UserRole
from fanline.services.money import require_non_negative, require_positive, to_cents
from fanline.services.notices import notice


def role_of(profile: dict):
    try:
        return UserRole(profile.get("role"))
    except ValueError:
        return None


def ensure_role(profile: dict, *roles: UserRole) -> None:
    if role_of(profile) not in roles:
        raise PermissionDeniedError(f"only {' or '.join(r.value for r in roles)} profiles can do this")


def get_profile(engine, profile_id: str) -> dict:
    profile_id = require_uuid(profile_id, "profile_id")
    with remote_operation("load profile"), engine.begin() as conn:
        profile = profiles_repo.get_profile(conn, profile_id)
    if not profile:
        raise NotFoundError("profile not found")
    return profile


def load_creator(conn, creator_id: str) -> dict:
    creator = profiles_repo.get_profile(conn, creator_id)
    if not creator or role_of(creator) is not UserRole.CREATOR:
        raise NotFoundError("creator not found")
    return creator


def list_chat_creators(engine, search: str | None = None):
    with remote_operation("list chat creators"), engine.begin() as conn:
        return profiles_repo.list_chat_creators(conn, search=search)


def list_subscribable_creators(engine, limit: int = 10):
    limit = max(1, min(int(limit), 50))
    with remote_operation("list creators"), engine.begin() as conn:
        return profiles_repo.list_subscribable_creators(conn, limit=limit)


def update_creator_profile(engine, creator: dict, changes: dict):
    """
    changes may hold bio, subscription_price, chat_rate.
    Explicit None clears a price; absent keys are left alone.
    """
    ensure_role(creator, UserRole.CREATOR)

    fields = {}
    if "bio" in changes:
        bio = (changes["bio"] or "").strip()
        fields["bio"] = bio or None
    if "subscription_price" in changes:
        price = changes["subscription_price"]
        fields["subscription_price"] = (
            to_cents(require_non_negative(price, "subscription_price")) if price is not None else None
        )
    if "chat_rate" in changes:
        rate = changes["chat_rate"]
        fields["chat_rate"] = to_cents(require_positive(rate, "chat_rate")) if rate is not None else None

    if not fields:
        raise ValidationError("nothing to update")

    with remote_operation("update profile"), engine.begin() as conn:
        profile = profiles_repo.update_creator_fields(conn, creator["id"], fields)
    if not profile:
        raise NotFoundError("profile not found")

    return profile, notice("Profile updated", "Your creator profile has been updated successfully.")
