from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.constants import DEFAULT_CLOSING_TIME, DEFAULT_OPENING_TIME, DEFAULT_WORKING_DAYS


@dataclass(frozen=True)
class Branch:
    """A shop/office. Opening and closing time drive lateness and early-leave checks."""

    branch_id: int
    name: str
    code: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    manager_id: Optional[int] = None
    departments: tuple[str, ...] = ()
    is_active: bool = True
    opening_time: time = DEFAULT_OPENING_TIME
    closing_time: time = DEFAULT_CLOSING_TIME
    working_days: tuple[str, ...] = DEFAULT_WORKING_DAYS
