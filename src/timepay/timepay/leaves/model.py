from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EmploymentType, HalfDayPeriod, LeavePriority, LeaveStatus, LeaveType, Position

APPLIES_TO_ALL = "all"


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    number_of_days: float
    reason: str
    status: LeaveStatus = LeaveStatus.PENDING
    is_half_day: bool = False
    half_day_period: Optional[HalfDayPeriod] = None
    priority: LeavePriority = LeavePriority.MEDIUM
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    approval_comments: Optional[str] = None
    rejected_by: Optional[int] = None
    rejection_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class LeaveConfiguration:
    """Policy for one leave type; read-only input to leave validation."""

    config_id: int
    name: str
    leave_type: LeaveType
    max_days_per_year: float
    max_consecutive_days: Optional[float] = None
    carry_forward_allowed: bool = False
    max_carry_forward_days: float = 0
    requires_approval: bool = True
    minimum_notice_days: int = 1
    document_required: bool = False
    allow_half_day: bool = True
    allow_backdating: bool = False
    max_backdating_days: int = 0
    is_paid: bool = True
    applicable_positions: tuple[str, ...] = (APPLIES_TO_ALL,)
    applicable_employment_types: tuple[str, ...] = (APPLIES_TO_ALL,)
    is_active: bool = True

    def applies_to(self, position: Position, employment_type: EmploymentType) -> bool:
        position_ok = APPLIES_TO_ALL in self.applicable_positions or position.value in self.applicable_positions
        type_ok = (
            APPLIES_TO_ALL in self.applicable_employment_types
            or employment_type.value in self.applicable_employment_types
        )
        return position_ok and type_ok


@dataclass(frozen=True)
class LeaveBalance:
    total: float
    taken: float
    balance: float
