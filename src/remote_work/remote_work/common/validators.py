from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: str, field_name: str = "Email") -> str:
    v = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(v):
        raise ValidationError(f"{field_name} is not a valid email address")
    return v


def optional_text(value: Optional[str]) -> Optional[str]:
    """Trim; empty becomes None."""
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def require_password_pair(password: str, confirmation: Optional[str], *, min_len: int) -> str:
    require_min_length(password or "", "Password", min_len)
    if confirmation is not None and password != confirmation:
        raise ValidationError("Passwords do not match")
    return password


def parse_int(value, field_name: str, *, minimum: Optional[int] = None, allow_none: bool = False) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if allow_none:
            return None
        raise ValidationError(f"{field_name} is required")
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if minimum is not None and n < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}")
    return n


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "on"}
