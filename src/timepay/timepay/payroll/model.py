from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_OVERTIME_RATE,
    EPF_EMPLOYEE_PERCENTAGE,
    EPF_EMPLOYER_PERCENTAGE,
    ETF_PERCENTAGE,
)
from ..core.enums import AmountType, PaymentMethod, PayrollStatus


@dataclass(frozen=True)
class PayrollLine:
    """Allowance or deduction captured on a payroll; ``calculated_amount`` is derived."""

    name: str
    type: AmountType
    amount: float
    calculated_amount: float = 0.0
    description: Optional[str] = None


@dataclass(frozen=True)
class Overtime:
    hours: float = 0.0
    rate: float = DEFAULT_OVERTIME_RATE
    amount: float = 0.0


@dataclass(frozen=True)
class Epf:
    employee_percentage: float = EPF_EMPLOYEE_PERCENTAGE
    employer_percentage: float = EPF_EMPLOYER_PERCENTAGE
    employee_contribution: float = 0.0
    employer_contribution: float = 0.0
    total_contribution: float = 0.0


@dataclass(frozen=True)
class Etf:
    percentage: float = ETF_PERCENTAGE
    employer_contribution: float = 0.0


@dataclass(frozen=True)
class MinutesDeduction:
    minutes: int = 0
    amount: float = 0.0


@dataclass(frozen=True)
class LeaveDeduction:
    unpaid_days: float = 0.0
    amount: float = 0.0


@dataclass(frozen=True)
class AttendanceSnapshot:
    """Attendance aggregates for the pay period, frozen at generation time."""

    working_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    leave_days: int = 0
    holidays: int = 0
    weekends: int = 0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0


@dataclass(frozen=True)
class Payroll:
    payroll_id: int
    employee_id: int
    month: int
    year: int
    base_salary: float
    currency: str = DEFAULT_CURRENCY
    allowances: tuple[PayrollLine, ...] = ()
    deductions: tuple[PayrollLine, ...] = ()
    bonus: float = 0.0
    overtime: Overtime = field(default_factory=Overtime)
    epf: Epf = field(default_factory=Epf)
    etf: Etf = field(default_factory=Etf)
    tax: float = 0.0
    late_deductions: MinutesDeduction = field(default_factory=MinutesDeduction)
    early_leave_deductions: MinutesDeduction = field(default_factory=MinutesDeduction)
    leave_deductions: LeaveDeduction = field(default_factory=LeaveDeduction)
    attendance: AttendanceSnapshot = field(default_factory=AttendanceSnapshot)
    # derived by payroll.derivation.derive
    total_allowances: float = 0.0
    gross_salary: float = 0.0
    total_deductions: float = 0.0
    net_salary: float = 0.0
    # workflow
    status: PayrollStatus = PayrollStatus.DRAFT
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    payment_date: Optional[datetime] = None
    payment_reference: Optional[str] = None
    approved_by: Optional[int] = None
    generated_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PayrollPatch:
    """Fields that may be edited on a draft or pending payroll. ``None`` keeps the stored value."""

    bonus: Optional[float] = None
    tax: Optional[float] = None
    allowances: Optional[tuple[PayrollLine, ...]] = None
    deductions: Optional[tuple[PayrollLine, ...]] = None
    leave_deductions: Optional[LeaveDeduction] = None
    notes: Optional[str] = None

    def changes(self) -> dict:
        return {f: getattr(self, f) for f in self.__dataclass_fields__ if getattr(self, f) is not None}


@dataclass(frozen=True)
class BulkResult:
    employee_id: int
    employee_code: str
    status: str
    payroll_id: Optional[int] = None
    error: Optional[str] = None
