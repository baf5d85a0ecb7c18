from __future__ import annotations

from typing import Iterable

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceSummary


def summarize(records: Iterable[AttendanceRecord]) -> AttendanceSummary:
    """Status counts and hour/minute totals over a set of records."""

    records = list(records)

    def count(status: AttendanceStatus) -> int:
        return sum(1 for r in records if r.status == status)

    return AttendanceSummary(
        total_days=len(records),
        present_days=count(AttendanceStatus.PRESENT),
        absent_days=count(AttendanceStatus.ABSENT),
        half_days=count(AttendanceStatus.HALF_DAY),
        leave_days=count(AttendanceStatus.ON_LEAVE),
        holidays=count(AttendanceStatus.HOLIDAY),
        weekends=count(AttendanceStatus.WEEKEND),
        total_hours=round(sum(r.total_hours for r in records), 2),
        regular_hours=round(sum(r.regular_hours for r in records), 2),
        overtime_hours=round(sum(r.overtime_hours for r in records), 2),
        late_minutes=sum(r.late_minutes for r in records),
        early_leave_minutes=sum(r.early_leave_minutes for r in records),
    )
