from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_enum(enum_cls: type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field_name}: {value!r} (allowed: {allowed})") from None


def require_non_negative(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def require_month(month: Any, year: Any) -> tuple[int, int]:
    try:
        month, year = int(month), int(year)
    except (TypeError, ValueError):
        raise ValidationError("Month and year are required") from None
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if year < 1900:
        raise ValidationError("Invalid year")
    return month, year
