from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from flask import Flask, request

from ..api.http import arg_date, arg_enum, arg_int, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.datetime_utils import month_bounds, parse_hhmm, parse_iso_datetime
from ..common.validators import require_enum, require_month
from ..container import Container
from ..core.enums import AttendanceStatus, WorkType
from ..core.exceptions import ValidationError
from .model import AttendancePatch


def _clock(value: Any, work_date: Optional[date], field_name: str) -> Optional[datetime]:
    """Accept a full ISO timestamp, or ``HH:MM`` on the record's date."""

    if value in (None, ""):
        return None
    text = str(value)
    try:
        if "T" in text or " " in text.strip():
            return parse_iso_datetime(text)
        if work_date is None:
            raise ValidationError(f"{field_name} needs a full timestamp")
        return datetime.combine(work_date, parse_hhmm(text))
    except ValueError:
        raise ValidationError(f"Invalid {field_name}") from None


def _break(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("break_minutes must be an integer") from None


def _period() -> tuple[Optional[date], Optional[date]]:
    """Date range from ``start_date``/``end_date`` or ``month``/``year`` query arguments."""

    start, end = arg_date("start_date"), arg_date("end_date")
    month, year = arg_int("month"), arg_int("year")
    if start is None and end is None and month and year:
        month, year = require_month(month, year)
        return month_bounds(year, month)
    return start, end


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    attendance = container.attendance_service

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="attendance_clock_in")
    @guard("self.attendance")
    def clock_in():
        data = body()
        work_type = require_enum(WorkType, data.get("work_type", WorkType.OFFICE.value), "work type")
        record = attendance.clock_in(current_employee_id(), work_type=work_type)
        return ok(record, message="Clocked in successfully", status=201)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="attendance_clock_out")
    @guard("self.attendance")
    def clock_out():
        record = attendance.clock_out(current_employee_id(), break_minutes=_break(body().get("break_minutes")))
        return ok(record, message="Clocked out successfully")

    @app.route("/api/attendance/my-attendance", methods=["GET"], endpoint="attendance_mine")
    @guard("self.attendance")
    def my_attendance():
        start, end = _period()
        records, summary = attendance.history(current_employee_id(), start=start, end=end)
        return ok(records, summary=summary, count=len(records))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @guard("self.attendance")
    def today():
        return ok(attendance.today(current_employee_id()))

    @app.route("/api/attendance/all", methods=["GET"], endpoint="attendance_all")
    @guard("attendance.view")
    def all_attendance():
        start, end = _period()
        records = attendance.list_attendance(
            start=start,
            end=end,
            employee_id=arg_int("employee_id"),
            branch_id=arg_int("branch_id"),
            department=request.args.get("department") or None,
            status=arg_enum(AttendanceStatus, "status"),
        )
        return ok(records, count=len(records))

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="attendance_employee")
    @guard("attendance.view")
    def employee_attendance(employee_id: int):
        start, end = _period()
        records, summary = attendance.history(employee_id, start=start, end=end)
        return ok(records, summary=summary, count=len(records))

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @guard("attendance.manage")
    def mark():
        data = body()
        if not data.get("employee_id") or not data.get("date"):
            raise ValidationError("employee_id and date are required")
        work_date = arg_date("date", source=data)
        record = attendance.mark_attendance(
            employee_id=int(data["employee_id"]),
            work_date=work_date,
            status=require_enum(AttendanceStatus, data.get("status", AttendanceStatus.PRESENT.value), "status"),
            clock_in=_clock(data.get("clock_in"), work_date, "clock_in"),
            clock_out=_clock(data.get("clock_out"), work_date, "clock_out"),
            break_minutes=_break(data.get("break_minutes")),
            work_type=require_enum(WorkType, data.get("work_type", WorkType.OFFICE.value), "work type"),
            notes=data.get("notes"),
            actor_user_id=current_user().user_id,
        )
        return ok(record, message="Attendance marked successfully", status=201)

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @guard("attendance.manage")
    def update(attendance_id: int):
        data = body()
        record = attendance.get_record(attendance_id)
        patch = AttendancePatch(
            status=require_enum(AttendanceStatus, data["status"], "status") if "status" in data else None,
            clock_in=_clock(data.get("clock_in"), record.work_date, "clock_in"),
            clock_out=_clock(data.get("clock_out"), record.work_date, "clock_out"),
            break_minutes=_break(data.get("break_minutes")),
            work_type=require_enum(WorkType, data["work_type"], "work type") if "work_type" in data else None,
            notes=data.get("notes"),
        )
        updated = attendance.update_attendance(attendance_id, patch, actor_user_id=current_user().user_id)
        return ok(updated, message="Attendance updated successfully")

    @app.route("/api/attendance/report", methods=["GET"], endpoint="attendance_report")
    @guard("attendance.view")
    def report():
        month, year = require_month(arg_int("month"), arg_int("year"))
        rows = attendance.monthly_report(month=month, year=year, branch_id=arg_int("branch_id"))
        return ok(rows, count=len(rows))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @guard("attendance.view")
    def stats():
        return ok(attendance.stats(month=arg_int("month"), year=arg_int("year"), branch_id=arg_int("branch_id")))

    @app.route("/api/attendance/branch/<int:branch_id>/stats", methods=["GET"], endpoint="attendance_branch_stats")
    @guard("attendance.view")
    def branch_stats(branch_id: int):
        day = arg_date("date") or datetime.now().date()
        return ok(attendance.branch_day_stats(branch_id, day=day))
