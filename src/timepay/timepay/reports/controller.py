from __future__ import annotations

from datetime import datetime

from flask import Flask, request

from ..api.http import arg_date, arg_int, attachment, ok
from ..api.security import build_guard
from ..common.datetime_utils import month_bounds
from ..common.validators import require_month
from ..container import Container
from .export import XLSX_MIMETYPE, export_attendance, export_employees, export_payroll


def _month_year() -> tuple[int, int]:
    now = datetime.now()
    return require_month(arg_int("month") or now.month, arg_int("year") or now.year)


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    reports = container.report_service

    def _range():
        start, end = arg_date("start_date"), arg_date("end_date")
        if start is None or end is None:
            month, year = _month_year()
            start, end = month_bounds(year, month)
        return start, end

    @app.route("/api/reports/employee-summary", methods=["GET"], endpoint="reports_employee_summary")
    @guard("reports.view")
    def employee_summary():
        return ok(
            reports.employee_report(
                department=request.args.get("department") or None,
                branch_id=arg_int("branch_id"),
            )
        )

    @app.route("/api/reports/attendance-summary", methods=["GET"], endpoint="reports_attendance_summary")
    @guard("reports.view")
    def attendance_summary():
        start, end = _range()
        return ok(
            reports.attendance_report(
                start=start,
                end=end,
                department=request.args.get("department") or None,
                branch_id=arg_int("branch_id"),
            )
        )

    @app.route("/api/reports/leave-summary", methods=["GET"], endpoint="reports_leave_summary")
    @guard("reports.view")
    def leave_summary():
        return ok(
            reports.leave_report(
                year=arg_int("year") or datetime.now().year,
                department=request.args.get("department") or None,
                branch_id=arg_int("branch_id"),
            )
        )

    @app.route("/api/reports/payroll-summary", methods=["GET"], endpoint="reports_payroll_summary")
    @guard("reports.view")
    def payroll_summary():
        month, year = _month_year()
        return ok(reports.payroll_report(month=month, year=year, department=request.args.get("department") or None))

    @app.route("/api/reports/department-wise", methods=["GET"], endpoint="reports_department_wise")
    @guard("reports.view")
    def department_wise():
        month, year = _month_year()
        return ok(reports.department_report(month=month, year=year))

    @app.route("/api/reports/performance", methods=["GET"], endpoint="reports_performance")
    @guard("reports.view")
    def performance():
        month, year = _month_year()
        return ok(
            reports.performance_report(month=month, year=year, department=request.args.get("department") or None)
        )

    @app.route("/api/reports/export/employees", methods=["GET"], endpoint="reports_export_employees")
    @guard("reports.view")
    def export_employee_report():
        employees = container.employee_service.list_employees(department=request.args.get("department") or None)
        content = export_employees(employees)
        return attachment(content, filename="employees.xlsx", mimetype=XLSX_MIMETYPE)

    @app.route("/api/reports/export/attendance", methods=["GET"], endpoint="reports_export_attendance")
    @guard("reports.view")
    def export_attendance_report():
        start, end = _range()
        records = container.attendance_service.list_attendance(
            start=start,
            end=end,
            department=request.args.get("department") or None,
            branch_id=arg_int("branch_id"),
        )
        index = {e.employee_id: e for e in container.employee_service.list_employees()}
        content = export_attendance(records, index)
        filename = f"attendance_{start.isoformat()}_{end.isoformat()}.xlsx"
        return attachment(content, filename=filename, mimetype=XLSX_MIMETYPE)

    @app.route("/api/reports/export/payroll", methods=["GET"], endpoint="reports_export_payroll")
    @guard("reports.view")
    def export_payroll_report():
        month, year = _month_year()
        payrolls = container.payroll_service.list_payrolls(
            month=month,
            year=year,
            department=request.args.get("department") or None,
        )
        index = {e.employee_id: e for e in container.employee_service.list_employees()}
        content = export_payroll(payrolls, index)
        return attachment(content, filename=f"payroll_{year}_{month:02d}.xlsx", mimetype=XLSX_MIMETYPE)
