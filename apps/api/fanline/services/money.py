from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from fanline.core.errors import ValidationError

CENTS = Decimal("0.01")
SECONDS_PER_HOUR = Decimal(3600)


def to_decimal(value, field: str = "amount") -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} is required")
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not d.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return d


def to_cents(value) -> Decimal:
    """Round half up to cents. Used for both display and stored totals."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def require_positive(value, field: str) -> Decimal:
    d = to_decimal(value, field)
    if d <= 0:
        raise ValidationError(f"{field} must be > 0")
    return d


def require_non_negative(value, field: str) -> Decimal:
    d = to_decimal(value, field)
    if d < 0:
        raise ValidationError(f"{field} must be >= 0")
    return d


def session_charge(elapsed_seconds, hourly_rate) -> Decimal:
    """
    (elapsed_seconds / 3600) * hourly_rate, rounded to cents once at the end.
    elapsed_seconds may be fractional; it is not truncated before pricing.
    """
    seconds = to_decimal(elapsed_seconds, "elapsed_seconds")
    rate = to_decimal(hourly_rate, "hourly_rate")
    return to_cents(seconds / SECONDS_PER_HOUR * rate)


def format_amount(value) -> str:
    return f"{to_cents(value):.2f}"
