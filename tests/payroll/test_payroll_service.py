from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from builders import add_employee, allowance
from timepay.attendance.model import AttendanceRecord
from timepay.core.enums import (
    AmountType,
    AttendanceStatus,
    EmployeeStatus,
    NotificationType,
    PaymentMethod,
    PayrollStatus,
    Role,
)
from timepay.core.exceptions import AuthorizationError, DuplicateError, NotFoundError, ValidationError
from timepay.payroll.derivation import derive
from timepay.payroll.model import LeaveDeduction, Payroll, PayrollLine, PayrollPatch
from timepay.payroll.payslip import build_payslip_model, money, payslip_filename, render_payslip_pdf
from timepay.users.model import SessionUser

NOW = datetime(2025, 4, 2, 10, 0)


def test_derive_basic_salary_only():
    payroll = derive(Payroll(payroll_id=0, employee_id=1, month=3, year=2025, base_salary=100000))

    assert payroll.gross_salary == 100000
    assert payroll.epf.employee_contribution == 8000
    assert payroll.epf.employer_contribution == 12000
    assert payroll.epf.total_contribution == 20000
    assert payroll.etf.employer_contribution == 3000
    assert payroll.total_deductions == 8000
    assert payroll.net_salary == 92000


def test_derive_percentage_allowance_feeds_epf_base():
    payroll = derive(
        Payroll(
            payroll_id=0,
            employee_id=1,
            month=3,
            year=2025,
            base_salary=100000,
            allowances=(PayrollLine(name="Transport", type=AmountType.PERCENTAGE, amount=10),),
            deductions=(PayrollLine(name="Loan", type=AmountType.FIXED, amount=5000),),
            bonus=2500,
            tax=1000,
        )
    )

    assert payroll.allowances[0].calculated_amount == 10000
    assert payroll.total_allowances == 10000
    assert payroll.gross_salary == 112500
    assert payroll.epf.employee_contribution == pytest.approx(8800)
    assert payroll.etf.employer_contribution == pytest.approx(3300)
    # EPF employee + loan + tax
    assert payroll.total_deductions == pytest.approx(14800)
    assert payroll.net_salary == pytest.approx(97700)


def test_derive_is_idempotent():
    payroll = Payroll(
        payroll_id=0,
        employee_id=1,
        month=3,
        year=2025,
        base_salary=75000,
        allowances=(PayrollLine(name="Meal", type=AmountType.FIXED, amount=3000),),
        leave_deductions=LeaveDeduction(unpaid_days=1, amount=2500),
    )

    once = derive(payroll)
    assert derive(once) == once


def test_generate_snapshots_and_notifies(container, repos):
    emp = add_employee(repos, base_salary=100000)

    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, generated_by=1, now=NOW)

    assert payroll.payroll_id > 0
    assert payroll.status == PayrollStatus.DRAFT
    assert payroll.attendance.working_days == 31
    assert payroll.net_salary == 92000
    inbox = repos.notifications.list_for_recipient(emp.employee_id, limit=10)
    assert inbox[0].type == NotificationType.PAYSLIP
    assert inbox[0].message == "Your payslip for March 2025 has been generated"


def test_generate_uses_attendance_for_overtime_and_lateness(container, repos):
    emp = add_employee(repos, base_salary=100000)
    repos.attendance.create(
        AttendanceRecord(
            attendance_id=0,
            employee_id=emp.employee_id,
            work_date=date(2025, 3, 3),
            status=AttendanceStatus.PRESENT,
            total_hours=10,
            regular_hours=8,
            overtime_hours=2,
            late_minutes=15,
        )
    )
    hourly = 100000 / (31 * 8)

    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, now=NOW)

    assert payroll.overtime.hours == 2
    assert payroll.overtime.amount == round(2 * hourly * 1.5, 2) == 1209.68
    assert payroll.late_deductions.minutes == 15
    assert payroll.late_deductions.amount == round(0.25 * hourly, 2) == 100.81
    assert payroll.attendance.present_days == 1
    assert payroll.net_salary == pytest.approx(100000 + 1209.68 - 8000 - 100.81)


@pytest.mark.parametrize(
    "base_salary, overtime_hours, late_minutes, early_leave_minutes",
    [
        (73333.33, 0.12, 7, 0),
        (55555.55, 1.37, 23, 11),
        (100001, 0.05, 1, 59),
        (48750.5, 3.33, 0, 17),
    ],
)
def test_stored_amounts_are_cents_and_net_matches(
    container, repos, base_salary, overtime_hours, late_minutes, early_leave_minutes
):
    emp = add_employee(repos, base_salary=base_salary, allowances=(allowance("Meal", 7.5, percentage=True),))
    repos.attendance.create(
        AttendanceRecord(
            attendance_id=0,
            employee_id=emp.employee_id,
            work_date=date(2025, 3, 3),
            status=AttendanceStatus.PRESENT,
            overtime_hours=overtime_hours,
            late_minutes=late_minutes,
            early_leave_minutes=early_leave_minutes,
        )
    )

    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, now=NOW)

    amounts = [
        payroll.allowances[0].calculated_amount,
        payroll.total_allowances,
        payroll.overtime.amount,
        payroll.late_deductions.amount,
        payroll.early_leave_deductions.amount,
        payroll.epf.employee_contribution,
        payroll.epf.employer_contribution,
        payroll.etf.employer_contribution,
        payroll.gross_salary,
        payroll.total_deductions,
        payroll.net_salary,
    ]
    assert all(round(amount, 2) == amount for amount in amounts)
    assert payroll.net_salary == round(payroll.gross_salary - payroll.total_deductions, 2)
    # a reloaded row derives to the same totals
    assert derive(repos.payrolls.get_by_id(payroll.payroll_id)) == payroll


def test_generate_includes_standing_and_extra_components(container, repos):
    emp = add_employee(repos, base_salary=50000, allowances=(allowance("Fuel", 5000),))

    payroll = container.payroll_service.generate(
        emp.employee_id,
        month=3,
        year=2025,
        bonus=1000,
        extra_deductions=(PayrollLine(name="Advance", type=AmountType.FIXED, amount=2000),),
        now=NOW,
    )

    assert [a.name for a in payroll.allowances] == ["Fuel"]
    assert [d.name for d in payroll.deductions] == ["Advance"]
    assert payroll.gross_salary == 56000
    assert payroll.total_deductions == pytest.approx(55000 * 0.08 + 2000)


def test_generate_twice_for_same_period_is_rejected(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service
    svc.generate(emp.employee_id, month=3, year=2025, now=NOW)

    with pytest.raises(DuplicateError, match="Payroll already exists for this period"):
        svc.generate(emp.employee_id, month=3, year=2025, now=NOW)


def test_generate_validates_inputs(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service

    with pytest.raises(NotFoundError, match="Employee not found"):
        svc.generate(404, month=3, year=2025)
    with pytest.raises(ValidationError, match="Month must be between 1 and 12"):
        svc.generate(emp.employee_id, month=13, year=2025)
    with pytest.raises(ValidationError, match="Bonus cannot be negative"):
        svc.generate(emp.employee_id, month=3, year=2025, bonus=-1)


def test_bulk_generate_collects_per_employee_results(container, repos):
    a = add_employee(repos, first_name="Amal")
    b = add_employee(repos, first_name="Bimal")
    add_employee(repos, first_name="Chamal", status=EmployeeStatus.INACTIVE)
    svc = container.payroll_service
    svc.generate(a.employee_id, month=3, year=2025, now=NOW)

    results = svc.bulk_generate(month=3, year=2025, now=NOW)

    by_employee = {r.employee_id: r for r in results}
    assert set(by_employee) == {a.employee_id, b.employee_id}
    assert by_employee[a.employee_id].status == "already_exists"
    assert by_employee[b.employee_id].status == "success"
    assert by_employee[b.employee_id].payroll_id is not None


def test_update_rederives_totals(container, repos):
    emp = add_employee(repos, base_salary=100000)
    svc = container.payroll_service
    payroll = svc.generate(emp.employee_id, month=3, year=2025, now=NOW)

    updated = svc.update(payroll.payroll_id, PayrollPatch(bonus=5000, tax=2000))

    assert updated.gross_salary == 105000
    assert updated.total_deductions == 10000
    assert updated.net_salary == 95000
    assert repos.payrolls.get_by_id(payroll.payroll_id) == updated


def test_update_requires_changes(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service
    payroll = svc.generate(emp.employee_id, month=3, year=2025, now=NOW)

    with pytest.raises(ValidationError, match="Nothing to update"):
        svc.update(payroll.payroll_id, PayrollPatch())


def test_workflow_draft_to_paid(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service
    payroll = svc.generate(emp.employee_id, month=3, year=2025, now=NOW)

    with pytest.raises(ValidationError, match="must be approved before payment"):
        svc.pay(payroll.payroll_id)

    pending = svc.submit(payroll.payroll_id)
    assert pending.status == PayrollStatus.PENDING

    approved = svc.approve(payroll.payroll_id, actor_user_id=3, payment_method=PaymentMethod.CASH)
    assert approved.status == PayrollStatus.APPROVED
    assert approved.approved_by == 3
    assert approved.payment_method == PaymentMethod.CASH

    with pytest.raises(ValidationError, match="Only draft or pending payrolls can be updated"):
        svc.update(payroll.payroll_id, PayrollPatch(bonus=1))

    paid = svc.pay(payroll.payroll_id, payment_reference="TX-1", now=NOW)
    assert paid.status == PayrollStatus.PAID
    assert paid.payment_date == NOW
    assert paid.payment_reference == "TX-1"
    assert paid.net_salary == payroll.net_salary

    with pytest.raises(ValidationError, match="Only unpaid payrolls can be cancelled"):
        svc.cancel(payroll.payroll_id)


def test_submit_only_from_draft(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service
    payroll = svc.generate(emp.employee_id, month=3, year=2025, now=NOW)
    svc.approve(payroll.payroll_id, actor_user_id=3)

    with pytest.raises(ValidationError, match="Only draft payrolls can be submitted"):
        svc.submit(payroll.payroll_id)
    with pytest.raises(ValidationError, match="Only draft or pending payrolls can be approved"):
        svc.approve(payroll.payroll_id, actor_user_id=3)


def test_cancel_approved_payroll(container, repos):
    emp = add_employee(repos)
    svc = container.payroll_service
    payroll = svc.generate(emp.employee_id, month=3, year=2025, now=NOW)
    svc.approve(payroll.payroll_id, actor_user_id=3)

    cancelled = svc.cancel(payroll.payroll_id, notes="Wrong period")

    assert cancelled.status == PayrollStatus.CANCELLED
    assert cancelled.notes == "Wrong period"


def test_payslip_access(container, repos):
    emp = add_employee(repos, first_name="Owner")
    other = add_employee(repos, first_name="Other")
    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, now=NOW)
    svc = container.payroll_service

    mine = SessionUser(user_id=1, email="o@example.com", role=Role.EMPLOYEE, employee_id=emp.employee_id)
    theirs = SessionUser(user_id=2, email="x@example.com", role=Role.EMPLOYEE, employee_id=other.employee_id)
    accountant = SessionUser(user_id=3, email="a@example.com", role=Role.ACCOUNTANT, employee_id=None)

    assert svc.get_payslip(payroll.payroll_id, viewer=mine).payroll_id == payroll.payroll_id
    assert svc.get_payslip(payroll.payroll_id, viewer=accountant).payroll_id == payroll.payroll_id
    with pytest.raises(AuthorizationError, match="Not authorized to access this payslip"):
        svc.get_payslip(payroll.payroll_id, viewer=theirs)


def test_list_and_stats(container, repos):
    a = add_employee(repos, first_name="Amal", department="Sales")
    b = add_employee(repos, first_name="Bimal", department="Finance")
    svc = container.payroll_service
    pa = svc.generate(a.employee_id, month=3, year=2025, now=NOW)
    svc.generate(b.employee_id, month=3, year=2025, now=NOW)
    svc.generate(a.employee_id, month=2, year=2025, now=NOW)
    svc.approve(pa.payroll_id, actor_user_id=1)

    assert len(svc.list_payrolls(month=3, year=2025)) == 2
    assert [p.employee_id for p in svc.list_payrolls(department="Finance")] == [b.employee_id]
    assert [(p.month, p.year) for p in svc.my_payslips(a.employee_id)] == [(3, 2025), (2, 2025)]

    stats = svc.stats(month=3, year=2025)
    assert stats["total_payrolls"] == 2
    assert stats["total_net_salary"] == 184000
    assert stats["approved_count"] == 1
    assert stats["pending_count"] == 1


def test_payslip_model_and_pdf(container, repos):
    emp = add_employee(repos, base_salary=100000, allowances=(allowance("Housing", 5, percentage=True),))
    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, bonus=1500, now=NOW)

    model = build_payslip_model(payroll, emp, company_name="Acme Stores")

    assert model["period"] == "March 2025"
    assert ("Housing (5%)", 5000) in model["earnings"]
    assert ("Bonus", 1500) in model["earnings"]
    assert model["deductions"][0] == ("EPF Employee (8%)", 8400)
    assert model["net_salary"] == payroll.net_salary
    assert money(1234567.891) == "Rs. 1,234,567.89"

    pdf = render_payslip_pdf(model)
    assert pdf.startswith(b"%PDF")
    assert payslip_filename(payroll, emp) == f"payslip-{emp.employee_code}-2025-03.pdf"


def test_payslip_model_without_employee():
    payroll = derive(Payroll(payroll_id=1, employee_id=9, month=12, year=2024, base_salary=1000))
    model = build_payslip_model(replace(payroll), None)

    assert model["employee_name"] == "-"
    assert model["company_name"] == "TimePay"
