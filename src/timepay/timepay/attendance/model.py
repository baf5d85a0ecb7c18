from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, WorkType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee, one calendar day. Hour/minute fields are derived, never patched."""

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    branch_id: Optional[int] = None
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_minutes: int = 0
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    late_minutes: int = 0
    early_leave_minutes: int = 0
    work_type: WorkType = WorkType.OFFICE
    notes: Optional[str] = None
    approved_by: Optional[int] = None


@dataclass(frozen=True)
class AttendancePatch:
    """Fields an administrator may change on an existing record.

    ``None`` means "leave as is". Derived fields are deliberately absent.
    """

    status: Optional[AttendanceStatus] = None
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    break_minutes: Optional[int] = None
    work_type: Optional[WorkType] = None
    notes: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f) is None for f in self.__dataclass_fields__)

    def touches_times(self) -> bool:
        return self.clock_in is not None or self.clock_out is not None or self.break_minutes is not None

    def apply(self, record: AttendanceRecord) -> AttendanceRecord:
        changes = {f: getattr(self, f) for f in self.__dataclass_fields__ if getattr(self, f) is not None}
        if "break_minutes" in changes and int(changes["break_minutes"]) < 0:
            raise ValidationError("Break time cannot be negative")
        return replace(record, **changes)


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    leave_days: int = 0
    holidays: int = 0
    weekends: int = 0
    total_hours: float = 0.0
    regular_hours: float = 0.0
    overtime_hours: float = 0.0
    late_minutes: int = 0
    early_leave_minutes: int = 0
