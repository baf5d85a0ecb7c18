from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..api.http import arg_enum, arg_int, attachment, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.validators import require_enum, require_month, require_non_negative
from ..container import Container
from ..core.enums import PaymentMethod, PayrollStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.payloads import components_from_payload
from .model import LeaveDeduction, PayrollLine, PayrollPatch
from .payslip import build_payslip_model, payslip_filename, render_payslip_pdf
from .service import as_line


def _lines(data: dict, key: str) -> Optional[tuple[PayrollLine, ...]]:
    if key not in data:
        return None
    return tuple(as_line(c) for c in components_from_payload(data[key], key))


def _patch(data: dict) -> PayrollPatch:
    leave = data.get("leave_deductions")
    if leave is not None and not isinstance(leave, dict):
        raise ValidationError("leave_deductions must be an object")
    return PayrollPatch(
        bonus=require_non_negative(data["bonus"], "Bonus") if "bonus" in data else None,
        tax=require_non_negative(data["tax"], "Tax") if "tax" in data else None,
        allowances=_lines(data, "allowances"),
        deductions=_lines(data, "deductions"),
        leave_deductions=(
            LeaveDeduction(
                unpaid_days=require_non_negative(leave.get("unpaid_days", 0), "Unpaid days"),
                amount=require_non_negative(leave.get("amount", 0), "Leave deduction"),
            )
            if leave is not None
            else None
        ),
        notes=data.get("notes"),
    )


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    payroll = container.payroll_service

    @app.route("/api/payroll/my-payslips", methods=["GET"], endpoint="payroll_my_payslips")
    @guard("self.payslips")
    def my_payslips():
        items = payroll.my_payslips(current_employee_id(), year=arg_int("year"))
        return ok(items, count=len(items))

    @app.route("/api/payroll/payslip/<int:payroll_id>", methods=["GET"], endpoint="payroll_payslip")
    @guard("self.payslips")
    def payslip(payroll_id: int):
        return ok(payroll.get_payslip(payroll_id, viewer=current_user()))

    @app.route("/api/payroll/download/<int:payroll_id>", methods=["GET"], endpoint="payroll_download")
    @guard("self.payslips")
    def download(payroll_id: int):
        item = payroll.get_payslip(payroll_id, viewer=current_user())
        try:
            employee = container.employee_service.get_employee(item.employee_id)
        except NotFoundError:
            employee = None
        pdf = render_payslip_pdf(build_payslip_model(item, employee, company_name=container.company_name))
        return attachment(pdf, filename=payslip_filename(item, employee), mimetype="application/pdf")

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    @guard("payroll.manage")
    def generate():
        data = body()
        if not data.get("employee_id"):
            raise ValidationError("employee_id is required")
        month, year = require_month(data.get("month"), data.get("year"))
        item = payroll.generate(
            int(data["employee_id"]),
            month=month,
            year=year,
            bonus=data.get("bonus", 0),
            extra_allowances=_lines(data, "allowances") or (),
            extra_deductions=_lines(data, "deductions") or (),
            generated_by=current_user().user_id,
        )
        return ok(item, message="Payroll generated successfully", status=201)

    @app.route("/api/payroll/bulk-generate", methods=["POST"], endpoint="payroll_bulk_generate")
    @guard("payroll.manage")
    def bulk_generate():
        data = body()
        month, year = require_month(data.get("month"), data.get("year"))
        results = payroll.bulk_generate(
            month=month,
            year=year,
            branch_id=arg_int("branch_id", source=data),
            generated_by=current_user().user_id,
        )
        generated = sum(1 for r in results if r.status == "success")
        return ok(results, message=f"Generated {generated} of {len(results)} payrolls")

    @app.route("/api/payroll/all", methods=["GET"], endpoint="payroll_all")
    @guard("payroll.view")
    def all_payrolls():
        items = payroll.list_payrolls(
            month=arg_int("month"),
            year=arg_int("year"),
            status=arg_enum(PayrollStatus, "status"),
            branch_id=arg_int("branch_id"),
            department=request.args.get("department") or None,
        )
        return ok(items, count=len(items))

    @app.route("/api/payroll/stats", methods=["GET"], endpoint="payroll_stats")
    @guard("payroll.view")
    def stats():
        return ok(payroll.stats(month=arg_int("month"), year=arg_int("year")))

    @app.route("/api/payroll/employee/<int:employee_id>", methods=["GET"], endpoint="payroll_employee")
    @guard("payroll.view")
    def employee_payrolls(employee_id: int):
        items = payroll.employee_payrolls(employee_id)
        return ok(items, count=len(items))

    @app.route("/api/payroll/<int:payroll_id>", methods=["PUT"], endpoint="payroll_update")
    @guard("payroll.manage")
    def update(payroll_id: int):
        return ok(payroll.update(payroll_id, _patch(body())), message="Payroll updated successfully")

    @app.route("/api/payroll/<int:payroll_id>/submit", methods=["PUT"], endpoint="payroll_submit")
    @guard("payroll.manage")
    def submit(payroll_id: int):
        return ok(payroll.submit(payroll_id), message="Payroll submitted for approval")

    @app.route("/api/payroll/<int:payroll_id>/approve", methods=["PUT"], endpoint="payroll_approve")
    @guard("payroll.approve")
    def approve(payroll_id: int):
        method = arg_enum(PaymentMethod, "payment_method", source=body())
        item = payroll.approve(payroll_id, actor_user_id=current_user().user_id, payment_method=method)
        return ok(item, message="Payroll approved successfully")

    @app.route("/api/payroll/<int:payroll_id>/pay", methods=["PUT"], endpoint="payroll_pay")
    @guard("payroll.pay")
    def pay(payroll_id: int):
        data = body()
        item = payroll.pay(
            payroll_id,
            payment_reference=data.get("payment_reference"),
            payment_method=(
                require_enum(PaymentMethod, data["payment_method"], "payment method")
                if data.get("payment_method")
                else None
            ),
        )
        return ok(item, message="Payroll marked as paid")

    @app.route("/api/payroll/<int:payroll_id>/cancel", methods=["PUT"], endpoint="payroll_cancel")
    @guard("payroll.approve")
    def cancel(payroll_id: int):
        return ok(payroll.cancel(payroll_id, notes=body().get("notes")), message="Payroll cancelled")
