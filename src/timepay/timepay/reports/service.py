from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date, datetime
from typing import Optional

from ..attendance.service import AttendanceService
from ..attendance.summary import summarize
from ..common.datetime_utils import days_in_month, month_bounds, year_bounds
from ..core.enums import EmployeeStatus, LeaveStatus, PayrollStatus
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..leaves.service import LeaveService
from ..payroll.service import PayrollService

logger = logging.getLogger(__name__)


def _avg(total: float, n: int) -> float:
    return round(total / n, 2) if n else 0.0


class ReportService:
    """Read-only aggregates across the directory, attendance, leave and payroll data."""

    def __init__(
        self,
        employees: EmployeeRepository,
        attendance: AttendanceService,
        leaves: LeaveService,
        payroll: PayrollService,
    ):
        self._employees = employees
        self._attendance = attendance
        self._leaves = leaves
        self._payroll = payroll

    def _employee_index(self, *, department: Optional[str] = None, branch_id: Optional[int] = None) -> dict[int, Employee]:
        return {e.employee_id: e for e in self._employees.list(department=department, branch_id=branch_id)}

    def employee_report(self, *, department: Optional[str] = None, branch_id: Optional[int] = None) -> dict:
        employees = list(self._employee_index(department=department, branch_id=branch_id).values())
        active = [e for e in employees if e.is_active]
        return {
            "total_employees": len(employees),
            "active_employees": len(active),
            "by_status": dict(Counter(e.employment.status.value for e in employees)),
            "by_department": dict(Counter(e.employment.department for e in employees)),
            "by_position": dict(Counter(e.employment.position.value for e in employees)),
            "by_employment_type": dict(Counter(e.employment.employment_type.value for e in employees)),
            "total_base_salary": round(sum(e.compensation.base_salary for e in active), 2),
            "average_base_salary": _avg(sum(e.compensation.base_salary for e in active), len(active)),
        }

    def attendance_report(
        self,
        *,
        start: date,
        end: date,
        department: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> dict:
        records = self._attendance.list_attendance(start=start, end=end, department=department, branch_id=branch_id)
        index = self._employee_index(department=department, branch_id=branch_id)

        by_employee = defaultdict(list)
        for r in records:
            by_employee[r.employee_id].append(r)

        rows = []
        for employee_id, items in by_employee.items():
            s = summarize(items)
            employee = index.get(employee_id)
            rows.append(
                {
                    "employee_id": employee_id,
                    "employee_code": employee.employee_code if employee else None,
                    "name": employee.full_name if employee else None,
                    "department": employee.employment.department if employee else None,
                    "present": s.present_days,
                    "absent": s.absent_days,
                    "half_day": s.half_days,
                    "on_leave": s.leave_days,
                    "regular_hours": s.regular_hours,
                    "overtime_hours": s.overtime_hours,
                    "late_minutes": s.late_minutes,
                    "early_leave_minutes": s.early_leave_minutes,
                }
            )
        rows.sort(key=lambda row: row["employee_code"] or "")

        total = summarize(records)
        return {
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "summary": {
                "total_records": total.total_days,
                "present": total.present_days,
                "absent": total.absent_days,
                "half_day": total.half_days,
                "on_leave": total.leave_days,
                "total_regular_hours": total.regular_hours,
                "total_overtime_hours": total.overtime_hours,
                "total_late_minutes": total.late_minutes,
            },
            "employees": rows,
        }

    def leave_report(self, *, year: int, department: Optional[str] = None, branch_id: Optional[int] = None) -> dict:
        start, end = year_bounds(year)
        leaves = [
            l
            for l in self._leaves.list_leaves(department=department, branch_id=branch_id)
            if start <= l.start_date <= end
        ]
        by_type: dict[str, dict] = defaultdict(lambda: {"count": 0, "approved_days": 0.0})
        for leave in leaves:
            entry = by_type[leave.leave_type.value]
            entry["count"] += 1
            if leave.status == LeaveStatus.APPROVED:
                entry["approved_days"] += leave.number_of_days
        return {
            "year": year,
            "total_requests": len(leaves),
            "by_status": {s.value: sum(1 for l in leaves if l.status == s) for s in LeaveStatus},
            "by_type": dict(sorted(by_type.items())),
            "total_approved_days": sum(l.number_of_days for l in leaves if l.status == LeaveStatus.APPROVED),
        }

    def payroll_report(self, *, month: int, year: int, department: Optional[str] = None) -> dict:
        payrolls = self._payroll.list_payrolls(month=month, year=year, department=department)
        index = self._employee_index(department=department)
        live = [p for p in payrolls if p.status != PayrollStatus.CANCELLED]

        departments: dict[str, list] = defaultdict(list)
        for p in live:
            employee = index.get(p.employee_id)
            departments[employee.employment.department if employee else "Unknown"].append(p)

        return {
            "month": month,
            "year": year,
            "totals": {
                "count": len(live),
                "gross_salary": round(sum(p.gross_salary for p in live), 2),
                "total_deductions": round(sum(p.total_deductions for p in live), 2),
                "net_salary": round(sum(p.net_salary for p in live), 2),
                "epf_employee": round(sum(p.epf.employee_contribution for p in live), 2),
                "epf_employer": round(sum(p.epf.employer_contribution for p in live), 2),
                "etf": round(sum(p.etf.employer_contribution for p in live), 2),
                "overtime": round(sum(p.overtime.amount for p in live), 2),
            },
            "by_status": {s.value: sum(1 for p in payrolls if p.status == s) for s in PayrollStatus},
            "by_department": [
                {
                    "department": name,
                    "count": len(items),
                    "total_net_salary": round(sum(p.net_salary for p in items), 2),
                    "average_net_salary": _avg(sum(p.net_salary for p in items), len(items)),
                }
                for name, items in sorted(departments.items())
            ],
        }

    def department_report(self, *, month: int, year: int) -> list[dict]:
        start, end = month_bounds(year, month)
        employees = self._employees.list()
        records = self._attendance.list_attendance(start=start, end=end)
        payrolls = [
            p for p in self._payroll.list_payrolls(month=month, year=year) if p.status != PayrollStatus.CANCELLED
        ]

        dept_of = {e.employee_id: e.employment.department for e in employees}
        rows = []
        for name in sorted({e.employment.department for e in employees}):
            members = [e for e in employees if e.employment.department == name]
            active = [e for e in members if e.is_active]
            s = summarize(r for r in records if dept_of.get(r.employee_id) == name)
            dept_payrolls = [p for p in payrolls if dept_of.get(p.employee_id) == name]
            rows.append(
                {
                    "department": name,
                    "total_employees": len(members),
                    "active_employees": len(active),
                    "average_base_salary": _avg(sum(e.compensation.base_salary for e in active), len(active)),
                    "present_days": s.present_days,
                    "absent_days": s.absent_days,
                    "overtime_hours": s.overtime_hours,
                    "payroll_count": len(dept_payrolls),
                    "total_net_salary": round(sum(p.net_salary for p in dept_payrolls), 2),
                }
            )
        return rows

    def performance_report(
        self,
        *,
        month: int,
        year: int,
        department: Optional[str] = None,
        now: datetime | None = None,
    ) -> list[dict]:
        """Attendance based ranking: attendance rate, punctuality and overtime per active employee."""

        start, end = month_bounds(year, month)
        today = (now or datetime.now()).date()
        # a running month is measured up to today
        elapsed = min(end, today).day if start <= today else days_in_month(year, month)

        rows = []
        for employee in self._employees.list(status=EmployeeStatus.ACTIVE, department=department):
            records, s = self._attendance.history(employee.employee_id, start=start, end=end)
            attended = s.present_days + 0.5 * s.half_days
            late_days = sum(1 for r in records if r.late_minutes > 0)
            rows.append(
                {
                    "employee_id": employee.employee_id,
                    "employee_code": employee.employee_code,
                    "name": employee.full_name,
                    "department": employee.employment.department,
                    "attendance_rate": round(attended / elapsed * 100, 2) if elapsed else 0.0,
                    "present_days": s.present_days,
                    "late_days": late_days,
                    "punctuality_rate": round((1 - late_days / len(records)) * 100, 2) if records else 0.0,
                    "overtime_hours": s.overtime_hours,
                    "late_minutes": s.late_minutes,
                }
            )
        rows.sort(key=lambda row: (-row["attendance_rate"], row["employee_code"]))
        logger.debug("performance report %s/%s: %s employees", month, year, len(rows))
        return rows
