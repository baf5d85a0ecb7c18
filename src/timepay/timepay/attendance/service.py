from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..branches.repository import BranchRepository
from ..common.datetime_utils import month_bounds
from ..core.constants import DEFAULT_BREAK_MINUTES, DEFAULT_STANDARD_WORK_HOURS
from ..core.enums import AttendanceStatus, WorkType
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .calculator.base import WorkHoursCalculator
from .calculator.standard_calculator import StandardWorkHoursCalculator
from .model import AttendancePatch, AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository
from .schedule import WorkSchedule
from .summary import summarize

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        branches: BranchRepository | None = None,
        *,
        calculator: WorkHoursCalculator | None = None,
        default_schedule: WorkSchedule | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._branches = branches
        self._calculator = calculator or StandardWorkHoursCalculator()
        self._default_schedule = default_schedule or WorkSchedule()

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def schedule_for(self, employee: Employee) -> WorkSchedule:
        branch = None
        if self._branches is not None and employee.employment.branch_id is not None:
            branch = self._branches.get_by_id(employee.employment.branch_id)
        return WorkSchedule.for_branch(branch, self._default_schedule)

    def _derive(self, record: AttendanceRecord, employee: Employee) -> AttendanceRecord:
        """Recompute hours and lateness from the clock times on ``record``."""

        schedule = self.schedule_for(employee)
        late = schedule.late_minutes(record.clock_in) if record.clock_in else 0
        early = schedule.early_leave_minutes(record.clock_out) if record.clock_out else 0

        if record.clock_in and record.clock_out:
            if record.clock_out < record.clock_in:
                raise ValidationError("Clock out time cannot be before clock in time")
            hours = self._calculator.derive(
                clock_in=record.clock_in,
                clock_out=record.clock_out,
                break_minutes=record.break_minutes,
                standard_hours=employee.employment.working_hours_per_day or DEFAULT_STANDARD_WORK_HOURS,
            )
            return replace(
                record,
                total_hours=hours.total,
                regular_hours=hours.regular,
                overtime_hours=hours.overtime,
                late_minutes=late,
                early_leave_minutes=early,
            )

        return replace(
            record,
            total_hours=0.0,
            regular_hours=0.0,
            overtime_hours=0.0,
            late_minutes=late,
            early_leave_minutes=early,
        )

    def clock_in(
        self,
        employee_id: int,
        *,
        work_type: WorkType = WorkType.OFFICE,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or datetime.now()
        today = now.date()
        employee = self._employee(employee_id)

        existing = self._attendance.get_for_employee_and_date(employee_id, today)
        if existing and existing.clock_in is not None:
            raise ValidationError("Already clocked in today")

        base = existing or AttendanceRecord(
            attendance_id=0,
            employee_id=employee_id,
            work_date=today,
            status=AttendanceStatus.PRESENT,
        )
        record = self._derive(
            replace(
                base,
                branch_id=employee.employment.branch_id,
                clock_in=now,
                status=AttendanceStatus.PRESENT,
                work_type=work_type,
            ),
            employee,
        )

        if existing:
            self._attendance.update(record)
        else:
            record = replace(record, attendance_id=self._attendance.create(record))
        if record.late_minutes:
            logger.info("employee %s clocked in %d minutes late", employee.employee_code, record.late_minutes)
        return record

    def clock_out(
        self,
        employee_id: int,
        *,
        break_minutes: Optional[int] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or datetime.now()
        employee = self._employee(employee_id)

        record = self._attendance.get_for_employee_and_date(employee_id, now.date())
        if not record or record.clock_in is None:
            raise ValidationError("No clock in found for today")
        if record.clock_out is not None:
            raise ValidationError("Already clocked out today")

        break_minutes = DEFAULT_BREAK_MINUTES if break_minutes is None else int(break_minutes)
        if break_minutes < 0:
            raise ValidationError("Break time cannot be negative")

        record = self._derive(replace(record, clock_out=now, break_minutes=break_minutes), employee)
        self._attendance.update(record)
        return record

    def mark_attendance(
        self,
        *,
        employee_id: int,
        work_date: date,
        status: AttendanceStatus,
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
        break_minutes: Optional[int] = None,
        work_type: WorkType = WorkType.OFFICE,
        notes: Optional[str] = None,
        actor_user_id: Optional[int] = None,
    ) -> AttendanceRecord:
        """Administrative entry for any employee/date; skips the same-day clock rules."""

        employee = self._employee(employee_id)
        if self._attendance.get_for_employee_and_date(employee_id, work_date):
            raise ValidationError("Attendance already marked for this date")

        break_minutes = DEFAULT_BREAK_MINUTES if break_minutes is None else int(break_minutes)
        if break_minutes < 0:
            raise ValidationError("Break time cannot be negative")

        record = self._derive(
            AttendanceRecord(
                attendance_id=0,
                employee_id=employee_id,
                branch_id=employee.employment.branch_id,
                work_date=work_date,
                status=status,
                clock_in=clock_in,
                clock_out=clock_out,
                break_minutes=break_minutes,
                work_type=work_type,
                notes=notes,
                approved_by=actor_user_id,
            ),
            employee,
        )
        record = replace(record, attendance_id=self._attendance.create(record))
        logger.info("attendance for %s on %s marked %s", employee.employee_code, work_date, status.value)
        return record

    def update_attendance(
        self,
        attendance_id: int,
        patch: AttendancePatch,
        *,
        actor_user_id: Optional[int] = None,
    ) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        if patch.is_empty():
            raise ValidationError("Nothing to update")

        updated = replace(patch.apply(record), approved_by=actor_user_id or record.approved_by)
        if patch.touches_times():
            updated = self._derive(updated, self._employee(record.employee_id))

        self._attendance.update(updated)
        return updated

    def get_record(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(attendance_id)
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def today(self, employee_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        now = now or datetime.now()
        return self._attendance.get_for_employee_and_date(employee_id, now.date())

    def history(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> tuple[list[AttendanceRecord], AttendanceSummary]:
        self._employee(employee_id)
        records = list(self._attendance.list_records(start_date=start, end_date=end, employee_ids=[employee_id]))
        return records, summarize(records)

    def list_attendance(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        department: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> list[AttendanceRecord]:
        employee_ids: Optional[set[int]] = None
        if department:
            employee_ids = {e.employee_id for e in self._employees.list(department=department)}
        if employee_id is not None:
            employee_ids = {employee_id} if employee_ids is None else employee_ids & {employee_id}

        return list(
            self._attendance.list_records(
                start_date=start,
                end_date=end,
                employee_ids=employee_ids,
                branch_id=branch_id,
                status=status,
            )
        )

    def monthly_report(
        self,
        *,
        month: int,
        year: int,
        branch_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> list[dict]:
        """Per employee status counts and totals for one calendar month."""

        start, end = month_bounds(year, month)
        records = self.list_attendance(start=start, end=end, branch_id=branch_id, department=department)

        by_employee: dict[int, list[AttendanceRecord]] = {}
        for r in records:
            by_employee.setdefault(r.employee_id, []).append(r)

        rows = []
        for employee_id, items in by_employee.items():
            employee = self._employees.get_by_id(employee_id)
            s = summarize(items)
            rows.append(
                {
                    "employee_id": employee_id,
                    "employee_code": employee.employee_code if employee else None,
                    "name": employee.full_name if employee else None,
                    "department": employee.employment.department if employee else None,
                    "branch_id": items[0].branch_id,
                    "present": s.present_days,
                    "absent": s.absent_days,
                    "half_day": s.half_days,
                    "on_leave": s.leave_days,
                    "holiday": s.holidays,
                    "weekend": s.weekends,
                    "working_days": s.present_days,
                    "total_regular_hours": s.regular_hours,
                    "total_overtime_hours": s.overtime_hours,
                    "total_late_minutes": s.late_minutes,
                    "total_early_leave_minutes": s.early_leave_minutes,
                }
            )
        rows.sort(key=lambda row: row["employee_code"] or "")
        return rows

    def stats(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> dict:
        start = end = None
        if month and year:
            start, end = month_bounds(year, month)
        records = self.list_attendance(start=start, end=end, branch_id=branch_id)
        s = summarize(records)
        n = len(records)
        return {
            "total_records": n,
            "present_count": s.present_days,
            "absent_count": s.absent_days,
            "leave_count": s.leave_days,
            "total_regular_hours": s.regular_hours,
            "total_overtime_hours": s.overtime_hours,
            "total_late_minutes": s.late_minutes,
            "avg_regular_hours": round(s.regular_hours / n, 2) if n else 0,
            "avg_overtime_hours": round(s.overtime_hours / n, 2) if n else 0,
        }

    def branch_day_stats(self, branch_id: int, *, day: date) -> dict:
        records = self.list_attendance(start=day, end=day, branch_id=branch_id)
        n = len(records)
        regular = sum(r.regular_hours for r in records)
        return {
            "date": day.isoformat(),
            "total_employees": n,
            "present": sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            "absent": sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
            "on_leave": sum(1 for r in records if r.status == AttendanceStatus.ON_LEAVE),
            "late": sum(1 for r in records if r.late_minutes > 0),
            "overtime": sum(1 for r in records if r.overtime_hours > 0),
            "avg_regular_hours": round(regular / n, 2) if n else 0,
            "total_overtime_hours": round(sum(r.overtime_hours for r in records), 2),
        }
