from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Login account. Every account belongs to one employee record."""

    user_id: int
    email: str
    password_hash: str
    role: Role
    employee_id: Optional[int]
    is_active: bool = True
    last_login: Optional[datetime] = None
    reset_token_hash: Optional[str] = None
    reset_token_expires: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionUser:
    """Identity attached to an authenticated request."""

    user_id: int
    email: str
    role: Role
    employee_id: Optional[int]
