from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} must not be empty")
    return str(value).strip()


def optional_text(value) -> Optional[str]:
    """Blank strings are stored as NULL."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
