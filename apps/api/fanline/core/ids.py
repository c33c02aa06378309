from uuid import UUID

from fanline.core.errors import ValidationError


def is_uuid(value) -> bool:
    try:
        UUID(str(value))
    except (TypeError, ValueError):
        return False
    return True


def require_uuid(value, field: str = "id") -> str:
    """Canonical string form of a uuid id; anything else is rejected before it reaches SQL."""
    if value is None or not is_uuid(value):
        raise ValidationError(f"{field} must be a uuid")
    return str(UUID(str(value)))
