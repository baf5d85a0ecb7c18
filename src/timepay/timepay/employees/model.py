from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_LEAVE_BALANCE,
    DEFAULT_OVERTIME_RATE,
    DEFAULT_STANDARD_WORK_HOURS,
    EPF_EMPLOYEE_PERCENTAGE,
    EPF_EMPLOYER_PERCENTAGE,
    ETF_PERCENTAGE,
)
from ..core.enums import AmountType, EmployeeStatus, EmploymentType, LeaveStatus, LeaveType, Position


@dataclass(frozen=True)
class PayComponent:
    """A standing allowance or deduction on the compensation plan."""

    name: str
    type: AmountType
    amount: float
    description: Optional[str] = None


@dataclass(frozen=True)
class PersonalInfo:
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    national_id: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class EmploymentInfo:
    position: Position
    department: str
    joining_date: date
    branch_id: Optional[int] = None
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    working_hours_per_day: float = DEFAULT_STANDARD_WORK_HOURS
    overtime_rate: float = DEFAULT_OVERTIME_RATE


@dataclass(frozen=True)
class Compensation:
    base_salary: float
    currency: str = DEFAULT_CURRENCY
    allowances: tuple[PayComponent, ...] = ()
    deductions: tuple[PayComponent, ...] = ()
    epf_employee_percentage: float = EPF_EMPLOYEE_PERCENTAGE
    epf_employer_percentage: float = EPF_EMPLOYER_PERCENTAGE
    etf_percentage: float = ETF_PERCENTAGE


@dataclass(frozen=True)
class Employee:
    """Employee master record. ``employee_code`` is the human facing id (EMP00001)."""

    employee_id: int
    employee_code: str
    personal: PersonalInfo
    employment: EmploymentInfo
    compensation: Compensation
    leave_balance: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_LEAVE_BALANCE))
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.personal.first_name} {self.personal.last_name}".strip()

    @property
    def is_active(self) -> bool:
        return self.employment.status == EmployeeStatus.ACTIVE

    def entitlement(self, leave_type: LeaveType) -> float:
        return float(self.leave_balance.get(leave_type.value, 0.0))


@dataclass(frozen=True)
class LeaveHistoryEntry:
    """Audit row appended when a leave request is decided."""

    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: float
    status: LeaveStatus
    actor_user_id: Optional[int]
    reason: Optional[str]
    recorded_at: datetime
    leave_id: Optional[int] = None
