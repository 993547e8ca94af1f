import re
from datetime import datetime, timezone
from numbers import Real

from .entities import Role
from .errors import ValidationError

ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def validate_id(value, field: str = "id") -> str:
    if not isinstance(value, str) or not ID_PATTERN.match(value):
        raise ValidationError(f"{field} should be a valid id")
    return value.lower()


def normalize_email(value) -> str:
    if not isinstance(value, str) or "@" not in value.strip():
        raise ValidationError("email should be a valid email address")
    return value.strip().lower()


def validate_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} should be a non-empty string")
    return value.strip()


def validate_role(value) -> Role:
    try:
        return Role(value.upper() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationError(f"role should be one of {', '.join(r.value for r in Role)}")


def validate_number(value, field: str, minimum: float = 0, exclusive: bool = False) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{field} should be a number")
    if value < minimum or (exclusive and value == minimum):
        op = ">" if exclusive else ">="
        raise ValidationError(f"{field} should be {op} {minimum}")
    return value


def validate_deadline(value) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError("deadline should be an ISO 8601 timestamp")
    if not isinstance(value, datetime):
        raise ValidationError("deadline should be an ISO 8601 timestamp")
    if value.tzinfo is None:
        # naive timestamps are UTC
        value = value.replace(tzinfo=timezone.utc)
    return value
