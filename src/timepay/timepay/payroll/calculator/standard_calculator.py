from __future__ import annotations

from ...attendance.model import AttendanceSummary
from ...core.constants import DEFAULT_OVERTIME_RATE, DEFAULT_STANDARD_WORK_HOURS
from ...employees.model import Employee
from ..derivation import round_money
from ..model import AttendanceSnapshot, MinutesDeduction, Overtime
from .base import PayrollCalculator


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: every calendar day is a working day; overtime and lost minutes at the hourly rate."""

    def hourly_rate(self, employee: Employee, *, working_days: int) -> float:
        hours_per_day = employee.employment.working_hours_per_day or DEFAULT_STANDARD_WORK_HOURS
        if working_days <= 0:
            return 0.0
        return employee.compensation.base_salary / (working_days * hours_per_day)

    def snapshot(self, summary: AttendanceSummary, *, working_days: int) -> AttendanceSnapshot:
        return AttendanceSnapshot(
            working_days=working_days,
            present_days=summary.present_days,
            absent_days=summary.absent_days,
            leave_days=summary.leave_days,
            holidays=summary.holidays,
            weekends=summary.weekends,
            regular_hours=summary.regular_hours,
            overtime_hours=summary.overtime_hours,
        )

    def overtime(self, employee: Employee, summary: AttendanceSummary, *, hourly_rate: float) -> Overtime:
        rate = employee.employment.overtime_rate or DEFAULT_OVERTIME_RATE
        hours = summary.overtime_hours
        return Overtime(hours=hours, rate=rate, amount=round_money(hours * hourly_rate * rate))

    def minutes_deduction(self, minutes: int, *, hourly_rate: float) -> MinutesDeduction:
        return MinutesDeduction(minutes=minutes, amount=round_money((minutes / 60) * hourly_rate))
