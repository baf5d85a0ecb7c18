from __future__ import annotations

from flask import Flask

from ..api.http import arg_enum, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.validators import require_enum
from ..container import Container
from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    payments = container.payment_service

    @app.route("/api/payments/my-payments", methods=["GET"], endpoint="payments_mine")
    @guard("self.payments")
    def my_payments():
        items = payments.my_payments(current_employee_id())
        return ok(items, count=len(items))

    @app.route("/api/payments/initiate", methods=["POST"], endpoint="payments_initiate")
    @guard("payments.manage")
    def initiate():
        data = body()
        if not data.get("payroll_id"):
            raise ValidationError("payroll_id is required")
        bank_details = data.get("bank_details") or {}
        if not isinstance(bank_details, dict):
            raise ValidationError("bank_details must be an object")
        payment = payments.initiate(
            int(data["payroll_id"]),
            method=require_enum(PaymentMethod, data.get("method", PaymentMethod.BANK_TRANSFER.value), "payment method"),
            bank_details=bank_details,
            notes=data.get("notes"),
            actor_user_id=current_user().user_id,
        )
        return ok(payment, message="Payment initiated successfully", status=201)

    @app.route("/api/payments/<int:payment_id>/process", methods=["PUT"], endpoint="payments_process")
    @guard("payments.manage")
    def process(payment_id: int):
        data = body()
        payment = payments.process(
            payment_id,
            actor_user_id=current_user().user_id,
            transaction_id=data.get("transaction_id"),
        )
        return ok(payment, message="Payment is being processed")

    @app.route("/api/payments/<int:payment_id>/complete", methods=["PUT"], endpoint="payments_complete")
    @guard("payments.manage")
    def complete(payment_id: int):
        data = body()
        response = data.get("gateway_response")
        if response is not None and not isinstance(response, dict):
            raise ValidationError("gateway_response must be an object")
        payment = payments.complete(payment_id, reference=data.get("reference"), gateway_response=response)
        return ok(payment, message="Payment completed successfully")

    @app.route("/api/payments/<int:payment_id>/fail", methods=["PUT"], endpoint="payments_fail")
    @guard("payments.manage")
    def fail(payment_id: int):
        payment = payments.fail(
            payment_id,
            reason=body().get("reason", ""),
            operator_employee_id=current_user().employee_id,
        )
        return ok(payment, message="Payment marked as failed")

    @app.route("/api/payments/<int:payment_id>/retry", methods=["PUT"], endpoint="payments_retry")
    @guard("payments.manage")
    def retry(payment_id: int):
        return ok(payments.retry(payment_id), message="Payment queued for retry")

    @app.route("/api/payments/<int:payment_id>/cancel", methods=["PUT"], endpoint="payments_cancel")
    @guard("payments.manage")
    def cancel(payment_id: int):
        return ok(payments.cancel(payment_id, notes=body().get("notes")), message="Payment cancelled")

    @app.route("/api/payments/<int:payment_id>/refund", methods=["PUT"], endpoint="payments_refund")
    @guard("payments.manage")
    def refund(payment_id: int):
        return ok(payments.refund(payment_id, notes=body().get("notes")), message="Payment refunded")

    @app.route("/api/payments/all", methods=["GET"], endpoint="payments_all")
    @guard("payments.view")
    def all_payments():
        items = payments.list_payments(
            status=arg_enum(PaymentStatus, "status"),
            method=arg_enum(PaymentMethod, "method"),
        )
        return ok(items, count=len(items))

    @app.route("/api/payments/stats", methods=["GET"], endpoint="payments_stats")
    @guard("payments.view")
    def stats():
        return ok(payments.stats())

    @app.route("/api/payments/<int:payment_id>", methods=["GET"], endpoint="payments_get")
    @guard("payments.view")
    def get_payment(payment_id: int):
        return ok(payments.get_payment(payment_id))
