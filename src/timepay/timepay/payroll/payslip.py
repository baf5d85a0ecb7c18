from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, Optional

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..core.enums import AmountType
from ..employees.model import Employee
from .model import Payroll
from .service import period_label


def money(value: float) -> str:
    return f"Rs. {value:,.2f}"


def _line_label(name: str, type: AmountType, amount: float) -> str:
    if type == AmountType.PERCENTAGE:
        return f"{name} ({amount:g}%)"
    return name


def build_payslip_model(payroll: Payroll, employee: Optional[Employee], *, company_name: str = "TimePay") -> Dict[str, Any]:
    """Flatten a derived payroll into the rows printed on the payslip. No arithmetic happens here."""

    earnings = [("Basic Salary", payroll.base_salary)]
    earnings += [(_line_label(a.name, a.type, a.amount), a.calculated_amount) for a in payroll.allowances]
    if payroll.bonus:
        earnings.append(("Bonus", payroll.bonus))
    if payroll.overtime.amount:
        earnings.append(
            (f"Overtime ({payroll.overtime.hours:g} hrs @ {payroll.overtime.rate:g}x)", payroll.overtime.amount)
        )

    deductions = [(f"EPF Employee ({payroll.epf.employee_percentage:g}%)", payroll.epf.employee_contribution)]
    deductions += [(_line_label(d.name, d.type, d.amount), d.calculated_amount) for d in payroll.deductions]
    if payroll.late_deductions.amount:
        deductions.append((f"Late Arrival ({payroll.late_deductions.minutes} mins)", payroll.late_deductions.amount))
    if payroll.early_leave_deductions.amount:
        deductions.append(
            (f"Early Leave ({payroll.early_leave_deductions.minutes} mins)", payroll.early_leave_deductions.amount)
        )
    if payroll.leave_deductions.amount:
        deductions.append(
            (f"Unpaid Leave ({payroll.leave_deductions.unpaid_days:g} days)", payroll.leave_deductions.amount)
        )
    if payroll.tax:
        deductions.append(("Tax", payroll.tax))

    return {
        "company_name": company_name,
        "period": period_label(payroll.month, payroll.year),
        "employee_name": employee.full_name if employee else "-",
        "employee_code": employee.employee_code if employee else "-",
        "position": employee.employment.position.value if employee else "-",
        "department": employee.employment.department if employee else "-",
        "status": payroll.status.value,
        "earnings": earnings,
        "gross_salary": payroll.gross_salary,
        "deductions": deductions,
        "total_deductions": payroll.total_deductions,
        "net_salary": payroll.net_salary,
        "employer": [
            (f"EPF Employer ({payroll.epf.employer_percentage:g}%)", payroll.epf.employer_contribution),
            (f"ETF ({payroll.etf.percentage:g}%)", payroll.etf.employer_contribution),
        ],
        "attendance": payroll.attendance,
    }


def render_payslip_pdf(model: Dict[str, Any]) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4

    x = 40
    right = width - 40
    y = height - 50
    line_h = 16

    def row(label: str, value: float, *, bold: bool = False) -> None:
        nonlocal y
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        c.drawString(x + 10, y, label)
        c.drawRightString(right, y, money(value))
        y -= line_h

    def heading(text: str) -> None:
        nonlocal y
        c.setFont("Helvetica-Bold", 11)
        c.drawString(x, y, text)
        y -= 4
        c.line(x, y, right, y)
        y -= line_h

    # Header
    c.setFont("Helvetica-Bold", 18)
    c.drawString(x, y, model["company_name"])
    c.setFont("Helvetica", 11)
    c.drawRightString(right, y, f"Payslip - {model['period']}")
    y -= 2 * line_h

    # Employee block
    c.setFont("Helvetica", 10)
    c.drawString(x, y, f"Employee: {model['employee_name']} ({model['employee_code']})")
    y -= line_h
    c.drawString(x, y, f"Position: {model['position']}    Department: {model['department']}")
    y -= line_h
    snapshot = model["attendance"]
    c.drawString(
        x,
        y,
        f"Working days: {snapshot.working_days}    Present: {snapshot.present_days}    "
        f"Absent: {snapshot.absent_days}    Leave: {snapshot.leave_days}",
    )
    y -= 2 * line_h

    heading("Earnings")
    for label, amount in model["earnings"]:
        row(label, amount)
    row("Gross Salary", model["gross_salary"], bold=True)
    y -= line_h

    heading("Deductions")
    for label, amount in model["deductions"]:
        row(label, amount)
    row("Total Deductions", model["total_deductions"], bold=True)
    y -= line_h

    c.line(x, y + line_h - 4, right, y + line_h - 4)
    c.setFont("Helvetica-Bold", 13)
    c.drawString(x, y, "Net Salary")
    c.drawRightString(right, y, money(model["net_salary"]))
    y -= 2 * line_h

    heading("Employer Contributions")
    for label, amount in model["employer"]:
        row(label, amount)

    # Footer
    c.setFont("Helvetica-Oblique", 9)
    c.drawString(x, 40, "This is a computer generated payslip and does not require a signature.")
    c.showPage()
    c.save()

    return buf.getvalue()


def payslip_filename(payroll: Payroll, employee: Optional[Employee]) -> str:
    code = employee.employee_code if employee else str(payroll.employee_id)
    return f"payslip-{code}-{payroll.year}-{payroll.month:02d}.pdf"
