from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import AmountType, PaymentMethod, PayrollStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json, to_float
from .model import (
    AttendanceSnapshot,
    Epf,
    Etf,
    LeaveDeduction,
    MinutesDeduction,
    Overtime,
    Payroll,
    PayrollLine,
)
from .repository import PayrollRepository

_COLUMNS = """
    payroll_id, employee_id, month, year, base_salary, currency, allowances, deductions, bonus,
    overtime_hours, overtime_rate, overtime_amount, epf_employee_percentage,
    epf_employer_percentage, epf_employee_contribution, epf_employer_contribution,
    epf_total_contribution, etf_percentage, etf_employer_contribution, tax, late_minutes,
    late_deduction, early_leave_minutes, early_leave_deduction, unpaid_leave_days,
    leave_deduction, working_days, present_days, absent_days, leave_days, holidays, weekends,
    regular_hours, total_overtime_hours, total_allowances, gross_salary, total_deductions,
    net_salary, payment_status, payment_method, payment_date, payment_reference, approved_by,
    generated_by, notes, created_at
"""

_PLACEHOLDERS = ",".join(["%s"] * 45)


def _lines_to_json(lines) -> str:
    return dump_json(
        [
            {
                "name": l.name,
                "type": l.type.value,
                "amount": l.amount,
                "calculated_amount": l.calculated_amount,
                "description": l.description,
            }
            for l in lines
        ]
    )


def _lines_from_json(raw) -> tuple[PayrollLine, ...]:
    return tuple(
        PayrollLine(
            name=item["name"],
            type=AmountType(item.get("type", AmountType.FIXED.value)),
            amount=float(item.get("amount", 0)),
            calculated_amount=float(item.get("calculated_amount", 0)),
            description=item.get("description"),
        )
        for item in load_json(raw, default=[])
    )


def _to_payroll(r: dict) -> Payroll:
    return Payroll(
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        base_salary=to_float(r["base_salary"]),
        currency=r.get("currency") or "LKR",
        allowances=_lines_from_json(r.get("allowances")),
        deductions=_lines_from_json(r.get("deductions")),
        bonus=to_float(r.get("bonus")),
        overtime=Overtime(
            hours=to_float(r.get("overtime_hours")),
            rate=to_float(r.get("overtime_rate"), 1.5),
            amount=to_float(r.get("overtime_amount")),
        ),
        epf=Epf(
            employee_percentage=to_float(r.get("epf_employee_percentage"), 8.0),
            employer_percentage=to_float(r.get("epf_employer_percentage"), 12.0),
            employee_contribution=to_float(r.get("epf_employee_contribution")),
            employer_contribution=to_float(r.get("epf_employer_contribution")),
            total_contribution=to_float(r.get("epf_total_contribution")),
        ),
        etf=Etf(
            percentage=to_float(r.get("etf_percentage"), 3.0),
            employer_contribution=to_float(r.get("etf_employer_contribution")),
        ),
        tax=to_float(r.get("tax")),
        late_deductions=MinutesDeduction(
            minutes=int(r.get("late_minutes") or 0), amount=to_float(r.get("late_deduction"))
        ),
        early_leave_deductions=MinutesDeduction(
            minutes=int(r.get("early_leave_minutes") or 0), amount=to_float(r.get("early_leave_deduction"))
        ),
        leave_deductions=LeaveDeduction(
            unpaid_days=to_float(r.get("unpaid_leave_days")), amount=to_float(r.get("leave_deduction"))
        ),
        attendance=AttendanceSnapshot(
            working_days=int(r.get("working_days") or 0),
            present_days=int(r.get("present_days") or 0),
            absent_days=int(r.get("absent_days") or 0),
            leave_days=int(r.get("leave_days") or 0),
            holidays=int(r.get("holidays") or 0),
            weekends=int(r.get("weekends") or 0),
            regular_hours=to_float(r.get("regular_hours")),
            overtime_hours=to_float(r.get("total_overtime_hours")),
        ),
        total_allowances=to_float(r.get("total_allowances")),
        gross_salary=to_float(r.get("gross_salary")),
        total_deductions=to_float(r.get("total_deductions")),
        net_salary=to_float(r.get("net_salary")),
        status=PayrollStatus(r["payment_status"]),
        payment_method=PaymentMethod(r.get("payment_method") or PaymentMethod.BANK_TRANSFER.value),
        payment_date=r.get("payment_date"),
        payment_reference=r.get("payment_reference"),
        approved_by=r.get("approved_by"),
        generated_by=r.get("generated_by"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


def _values(p: Payroll) -> tuple:
    return (
        p.employee_id,
        p.month,
        p.year,
        p.base_salary,
        p.currency,
        _lines_to_json(p.allowances),
        _lines_to_json(p.deductions),
        p.bonus,
        p.overtime.hours,
        p.overtime.rate,
        p.overtime.amount,
        p.epf.employee_percentage,
        p.epf.employer_percentage,
        p.epf.employee_contribution,
        p.epf.employer_contribution,
        p.epf.total_contribution,
        p.etf.percentage,
        p.etf.employer_contribution,
        p.tax,
        p.late_deductions.minutes,
        p.late_deductions.amount,
        p.early_leave_deductions.minutes,
        p.early_leave_deductions.amount,
        p.leave_deductions.unpaid_days,
        p.leave_deductions.amount,
        p.attendance.working_days,
        p.attendance.present_days,
        p.attendance.absent_days,
        p.attendance.leave_days,
        p.attendance.holidays,
        p.attendance.weekends,
        p.attendance.regular_hours,
        p.attendance.overtime_hours,
        p.total_allowances,
        p.gross_salary,
        p.total_deductions,
        p.net_salary,
        p.status.value,
        p.payment_method.value,
        p.payment_date,
        p.payment_reference,
        p.approved_by,
        p.generated_by,
        p.notes,
        p.created_at,
    )


_INSERT_COLUMNS = _COLUMNS.replace("payroll_id, ", "", 1)
_UPDATE_SET = ", ".join(f"{c.strip()}=%s" for c in _INSERT_COLUMNS.split(","))


class MySQLPayrollRepository(PayrollRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payrolls WHERE payroll_id=%s", (payroll_id,))
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payroll]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE employee_id=%s AND month=%s AND year=%s",
                (employee_id, month, year),
            )
            r = fetchone(cur)
            return _to_payroll(r) if r else None

    def create(self, payroll: Payroll) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Payroll already exists for this period") as (_, cur):
            cur.execute(
                f"INSERT INTO payrolls({_INSERT_COLUMNS}) VALUES({_PLACEHOLDERS})",
                _values(payroll),
            )
            return int(cur.lastrowid)

    def update(self, payroll: Payroll) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payrolls SET {_UPDATE_SET} WHERE payroll_id=%s",
                _values(payroll) + (payroll.payroll_id,),
            )
            return cur.rowcount > 0

    def list_payrolls(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Payroll]:
        where = ["1=1"]
        params: list = []
        if month is not None:
            where.append("month=%s")
            params.append(int(month))
        if year is not None:
            where.append("year=%s")
            params.append(int(year))
        if status is not None:
            where.append("payment_status=%s")
            params.append(status.value)
        if employee_ids is not None:
            ids = [int(i) for i in employee_ids]
            if not ids:
                return []
            where.append(f"employee_id IN ({in_clause(ids)})")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payrolls WHERE {' AND '.join(where)} ORDER BY year DESC, month DESC, payroll_id DESC",
                tuple(params),
            )
            return [_to_payroll(r) for r in fetchall(cur)]
