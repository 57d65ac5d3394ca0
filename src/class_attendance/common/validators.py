from __future__ import annotations

from typing import Any, Optional

from ..core.constants import MAX_ID
from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def parse_id(value: Any) -> int | None:
    """Return a positive integer id that fits the INT columns, or None."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdecimal():
        try:
            parsed = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return parsed if 0 < parsed <= MAX_ID else None


def require_id(value: Any, field_name: str) -> int:
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    parsed = parse_id(value)
    if parsed is None:
        raise ValidationError(f"Invalid {field_name} format")
    return parsed
