from __future__ import annotations

import calendar
import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.summary import summarize
from ..common.datetime_utils import days_in_month, month_bounds
from ..common.validators import require_month, require_non_negative
from ..core.enums import EmployeeStatus, NotificationPriority, NotificationType, PaymentMethod, PayrollStatus
from ..core.exceptions import AuthorizationError, DuplicateError, NotFoundError, ValidationError
from ..core.policy import is_allowed
from ..employees.model import Employee, PayComponent
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..users.model import SessionUser
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .derivation import derive
from .model import BulkResult, Epf, Etf, Payroll, PayrollLine, PayrollPatch
from .repository import PayrollRepository

logger = logging.getLogger(__name__)

EDITABLE_STATUSES = frozenset({PayrollStatus.DRAFT, PayrollStatus.PENDING})
APPROVABLE_STATUSES = EDITABLE_STATUSES
CANCELLABLE_STATUSES = frozenset({PayrollStatus.DRAFT, PayrollStatus.PENDING, PayrollStatus.APPROVED})


def as_line(component: PayComponent) -> PayrollLine:
    return PayrollLine(
        name=component.name,
        type=component.type,
        amount=component.amount,
        description=component.description,
    )


def period_label(month: int, year: int) -> str:
    return f"{calendar.month_name[month]} {year}"


class PayrollService:
    """Period close: snapshot attendance and compensation into a payroll, then walk it
    through draft -> pending -> approved -> paid.

    Every write goes through ``derive`` so stored totals always match stored inputs.
    """

    def __init__(
        self,
        payrolls: PayrollRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        notifications: Optional[NotificationService] = None,
        *,
        calculator: PayrollCalculator | None = None,
    ):
        self._payrolls = payrolls
        self._employees = employees
        self._attendance = attendance
        self._notifications = notifications
        self._calculator = calculator or StandardPayrollCalculator()

    def build_draft(
        self,
        employee: Employee,
        *,
        month: int,
        year: int,
        bonus: float = 0.0,
        extra_allowances: Iterable[PayrollLine] = (),
        extra_deductions: Iterable[PayrollLine] = (),
        generated_by: Optional[int] = None,
        now: datetime | None = None,
    ) -> Payroll:
        """Assemble the derived, unsaved payroll for one employee and month."""

        working_days = days_in_month(year, month)
        start, end = month_bounds(year, month)
        summary = summarize(
            self._attendance.list_records(start_date=start, end_date=end, employee_ids=[employee.employee_id])
        )

        calc = self._calculator
        hourly_rate = calc.hourly_rate(employee, working_days=working_days)
        comp = employee.compensation

        draft = Payroll(
            payroll_id=0,
            employee_id=employee.employee_id,
            month=month,
            year=year,
            base_salary=comp.base_salary,
            currency=comp.currency,
            allowances=tuple(as_line(a) for a in comp.allowances) + tuple(extra_allowances),
            deductions=tuple(as_line(d) for d in comp.deductions) + tuple(extra_deductions),
            bonus=require_non_negative(bonus, "Bonus"),
            overtime=calc.overtime(employee, summary, hourly_rate=hourly_rate),
            epf=Epf(
                employee_percentage=comp.epf_employee_percentage,
                employer_percentage=comp.epf_employer_percentage,
            ),
            etf=Etf(percentage=comp.etf_percentage),
            late_deductions=calc.minutes_deduction(summary.late_minutes, hourly_rate=hourly_rate),
            early_leave_deductions=calc.minutes_deduction(summary.early_leave_minutes, hourly_rate=hourly_rate),
            attendance=calc.snapshot(summary, working_days=working_days),
            generated_by=generated_by,
            created_at=now or datetime.now(),
        )
        return derive(draft)

    def generate(
        self,
        employee_id: int,
        *,
        month: int,
        year: int,
        bonus: float = 0.0,
        extra_allowances: Iterable[PayrollLine] = (),
        extra_deductions: Iterable[PayrollLine] = (),
        generated_by: Optional[int] = None,
        now: datetime | None = None,
    ) -> Payroll:
        now = now or datetime.now()
        month, year = require_month(month, year)
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if self._payrolls.get_for_period(employee_id=employee_id, month=month, year=year):
            raise DuplicateError("Payroll already exists for this period")

        draft = self.build_draft(
            employee,
            month=month,
            year=year,
            bonus=bonus,
            extra_allowances=extra_allowances,
            extra_deductions=extra_deductions,
            generated_by=generated_by,
            now=now,
        )
        payroll = replace(draft, payroll_id=self._payrolls.create(draft))
        logger.info(
            "payroll %s generated for employee %s (%s/%s) net=%.2f",
            payroll.payroll_id,
            employee_id,
            month,
            year,
            payroll.net_salary,
        )

        if self._notifications is not None:
            self._notifications.notify(
                recipient_id=employee_id,
                type=NotificationType.PAYSLIP,
                title="Payslip Generated",
                message=f"Your payslip for {period_label(month, year)} has been generated",
                priority=NotificationPriority.MEDIUM,
                related=("payroll", payroll.payroll_id),
                now=now,
            )
        return payroll

    def bulk_generate(
        self,
        *,
        month: int,
        year: int,
        branch_id: Optional[int] = None,
        generated_by: Optional[int] = None,
        now: datetime | None = None,
    ) -> list[BulkResult]:
        month, year = require_month(month, year)
        results: list[BulkResult] = []
        for employee in self._employees.list(status=EmployeeStatus.ACTIVE, branch_id=branch_id):
            try:
                payroll = self.generate(
                    employee.employee_id,
                    month=month,
                    year=year,
                    generated_by=generated_by,
                    now=now,
                )
            except DuplicateError:
                results.append(BulkResult(employee.employee_id, employee.employee_code, "already_exists"))
            except Exception as exc:
                logger.exception("bulk payroll failed for employee %s", employee.employee_id)
                results.append(BulkResult(employee.employee_id, employee.employee_code, "error", error=str(exc)))
            else:
                results.append(
                    BulkResult(employee.employee_id, employee.employee_code, "success", payroll_id=payroll.payroll_id)
                )

        logger.info(
            "bulk payroll %s/%s: %s employees, %s generated",
            month,
            year,
            len(results),
            sum(1 for r in results if r.status == "success"),
        )
        return results

    def get_payroll(self, payroll_id: int) -> Payroll:
        payroll = self._payrolls.get_by_id(payroll_id)
        if not payroll:
            raise NotFoundError("Payroll not found")
        return payroll

    def get_payslip(self, payroll_id: int, *, viewer: SessionUser) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if viewer.employee_id != payroll.employee_id and not is_allowed(viewer.role, "payroll.view"):
            raise AuthorizationError("Not authorized to access this payslip")
        return payroll

    def list_payrolls(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        branch_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> list[Payroll]:
        employee_ids = None
        if branch_id is not None or department:
            employee_ids = [e.employee_id for e in self._employees.list(branch_id=branch_id, department=department)]
        return list(self._payrolls.list_payrolls(month=month, year=year, status=status, employee_ids=employee_ids))

    def my_payslips(self, employee_id: int, *, year: Optional[int] = None) -> list[Payroll]:
        return list(self._payrolls.list_payrolls(year=year, employee_ids=[employee_id]))

    def employee_payrolls(self, employee_id: int) -> list[Payroll]:
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        return list(self._payrolls.list_payrolls(employee_ids=[employee_id]))

    def update(self, payroll_id: int, patch: PayrollPatch) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if payroll.status not in EDITABLE_STATUSES:
            raise ValidationError("Only draft or pending payrolls can be updated")
        changes = patch.changes()
        if not changes:
            raise ValidationError("Nothing to update")
        for key in ("bonus", "tax"):
            if key in changes:
                require_non_negative(changes[key], key.capitalize())

        updated = derive(replace(payroll, **changes))
        self._payrolls.update(updated)
        logger.info("payroll %s updated: %s", payroll_id, ", ".join(sorted(changes)))
        return updated

    def _transition(self, payroll: Payroll, **changes) -> Payroll:
        updated = derive(replace(payroll, **changes))
        self._payrolls.update(updated)
        logger.info("payroll %s -> %s", payroll.payroll_id, updated.status.value)
        return updated

    def submit(self, payroll_id: int) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if payroll.status != PayrollStatus.DRAFT:
            raise ValidationError("Only draft payrolls can be submitted")
        return self._transition(payroll, status=PayrollStatus.PENDING)

    def approve(
        self,
        payroll_id: int,
        *,
        actor_user_id: int,
        payment_method: Optional[PaymentMethod] = None,
    ) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if payroll.status not in APPROVABLE_STATUSES:
            raise ValidationError("Only draft or pending payrolls can be approved")
        return self._transition(
            payroll,
            status=PayrollStatus.APPROVED,
            approved_by=actor_user_id,
            payment_method=payment_method or payroll.payment_method or PaymentMethod.BANK_TRANSFER,
        )

    def pay(
        self,
        payroll_id: int,
        *,
        payment_reference: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
        now: datetime | None = None,
    ) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if payroll.status != PayrollStatus.APPROVED:
            raise ValidationError("Payroll must be approved before payment")
        return self._transition(
            payroll,
            status=PayrollStatus.PAID,
            payment_date=now or datetime.now(),
            payment_reference=payment_reference or payroll.payment_reference,
            payment_method=payment_method or payroll.payment_method,
        )

    def cancel(self, payroll_id: int, *, notes: Optional[str] = None) -> Payroll:
        payroll = self.get_payroll(payroll_id)
        if payroll.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Only unpaid payrolls can be cancelled")
        return self._transition(payroll, status=PayrollStatus.CANCELLED, notes=notes or payroll.notes)

    def stats(self, *, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        payrolls = self.list_payrolls(month=month, year=year)
        active = [p for p in payrolls if p.status != PayrollStatus.CANCELLED]
        return {
            "total_payrolls": len(payrolls),
            "total_gross_salary": round(sum(p.gross_salary for p in active), 2),
            "total_net_salary": round(sum(p.net_salary for p in active), 2),
            "total_deductions": round(sum(p.total_deductions for p in active), 2),
            "total_epf_employee": round(sum(p.epf.employee_contribution for p in active), 2),
            "total_epf_employer": round(sum(p.epf.employer_contribution for p in active), 2),
            "total_etf": round(sum(p.etf.employer_contribution for p in active), 2),
            "total_overtime": round(sum(p.overtime.amount for p in active), 2),
            "paid_count": sum(1 for p in payrolls if p.status == PayrollStatus.PAID),
            "pending_count": sum(1 for p in payrolls if p.status in EDITABLE_STATUSES),
            "approved_count": sum(1 for p in payrolls if p.status == PayrollStatus.APPROVED),
        }
