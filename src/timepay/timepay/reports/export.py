from __future__ import annotations

import io
from typing import Iterable, Mapping, Optional, Sequence

import xlsxwriter

from ..attendance.model import AttendanceRecord
from ..employees.model import Employee
from ..payroll.model import Payroll

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _workbook(sheet_name: str, headers: Sequence[str]):
    output = io.BytesIO()
    workbook = xlsxwriter.Workbook(output, {"in_memory": True})
    worksheet = workbook.add_worksheet(sheet_name)

    header_format = workbook.add_format({"bold": True, "bg_color": "#F0F0F0", "border": 1})
    for col, header in enumerate(headers):
        worksheet.write(0, col, header, header_format)
    return output, workbook, worksheet


def _finish(output: io.BytesIO, workbook) -> bytes:
    workbook.close()
    output.seek(0)
    return output.getvalue()


def export_employees(employees: Iterable[Employee]) -> bytes:
    headers = [
        "Employee Code", "Name", "Email", "Phone", "Position", "Department",
        "Branch", "Employment Type", "Status", "Joining Date", "Base Salary",
    ]
    output, workbook, worksheet = _workbook("Employees", headers)
    money_format = workbook.add_format({"num_format": "#,##0.00"})

    row = 1
    for e in employees:
        worksheet.write(row, 0, e.employee_code)
        worksheet.write(row, 1, e.full_name)
        worksheet.write(row, 2, e.personal.email or "")
        worksheet.write(row, 3, e.personal.phone or "")
        worksheet.write(row, 4, e.employment.position.value)
        worksheet.write(row, 5, e.employment.department)
        worksheet.write(row, 6, e.employment.branch_id if e.employment.branch_id is not None else "")
        worksheet.write(row, 7, e.employment.employment_type.value)
        worksheet.write(row, 8, e.employment.status.value)
        worksheet.write(row, 9, e.employment.joining_date.isoformat())
        worksheet.write(row, 10, float(e.compensation.base_salary), money_format)
        row += 1

    worksheet.set_column(0, 0, 15)
    worksheet.set_column(1, 2, 30)
    worksheet.set_column(3, 10, 15)
    return _finish(output, workbook)


def export_attendance(records: Iterable[AttendanceRecord], employees: Mapping[int, Employee]) -> bytes:
    headers = [
        "Date", "Employee Code", "Name", "Status", "Clock In", "Clock Out", "Break (min)",
        "Total Hours", "Regular Hours", "Overtime Hours", "Late (min)", "Early Leave (min)", "Work Type",
    ]
    output, workbook, worksheet = _workbook("Attendance", headers)
    hours_format = workbook.add_format({"num_format": "0.00"})

    row = 1
    for r in records:
        employee: Optional[Employee] = employees.get(r.employee_id)
        worksheet.write(row, 0, r.work_date.isoformat())
        worksheet.write(row, 1, employee.employee_code if employee else r.employee_id)
        worksheet.write(row, 2, employee.full_name if employee else "")
        worksheet.write(row, 3, r.status.value)
        worksheet.write(row, 4, r.clock_in.strftime("%H:%M") if r.clock_in else "")
        worksheet.write(row, 5, r.clock_out.strftime("%H:%M") if r.clock_out else "")
        worksheet.write(row, 6, r.break_minutes)
        worksheet.write(row, 7, r.total_hours, hours_format)
        worksheet.write(row, 8, r.regular_hours, hours_format)
        worksheet.write(row, 9, r.overtime_hours, hours_format)
        worksheet.write(row, 10, r.late_minutes)
        worksheet.write(row, 11, r.early_leave_minutes)
        worksheet.write(row, 12, r.work_type.value)
        row += 1

    worksheet.set_column(0, 1, 15)
    worksheet.set_column(2, 2, 30)
    worksheet.set_column(3, 12, 14)
    return _finish(output, workbook)


def export_payroll(payrolls: Iterable[Payroll], employees: Mapping[int, Employee]) -> bytes:
    headers = [
        "Employee Code", "Name", "Period", "Base Salary", "Total Allowances", "Bonus", "Overtime",
        "Gross Salary", "EPF Employee", "EPF Employer", "ETF", "Total Deductions", "Net Salary", "Status",
    ]
    output, workbook, worksheet = _workbook("Payroll", headers)
    money_format = workbook.add_format({"num_format": "#,##0.00"})

    row = 1
    for p in payrolls:
        employee = employees.get(p.employee_id)
        worksheet.write(row, 0, employee.employee_code if employee else p.employee_id)
        worksheet.write(row, 1, employee.full_name if employee else "")
        worksheet.write(row, 2, f"{p.year}-{p.month:02d}")
        for col, value in enumerate(
            (
                p.base_salary,
                p.total_allowances,
                p.bonus,
                p.overtime.amount,
                p.gross_salary,
                p.epf.employee_contribution,
                p.epf.employer_contribution,
                p.etf.employer_contribution,
                p.total_deductions,
                p.net_salary,
            ),
            start=3,
        ):
            worksheet.write(row, col, float(value), money_format)
        worksheet.write(row, 13, p.status.value)
        row += 1

    worksheet.set_column(0, 0, 15)
    worksheet.set_column(1, 1, 30)
    worksheet.set_column(2, 13, 15)
    return _finish(output, workbook)
