from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional

from ..common.validators import require_non_empty
from ..core.enums import (
    NotificationPriority,
    NotificationType,
    PaymentGateway,
    PaymentMethod,
    PaymentStatus,
    PayrollStatus,
)
from ..core.exceptions import DuplicateError, NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..payroll.service import PayrollService
from .model import Payment
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

OPEN_STATUSES = frozenset({PaymentStatus.PENDING, PaymentStatus.PROCESSING})

GATEWAY_FOR_METHOD = {
    PaymentMethod.ONLINE: PaymentGateway.PAYHERE,
    PaymentMethod.BANK_TRANSFER: PaymentGateway.BANK_API,
}


def gateway_for(method: PaymentMethod) -> PaymentGateway:
    return GATEWAY_FOR_METHOD.get(method, PaymentGateway.MANUAL)


def new_transaction_id(now: datetime) -> str:
    return f"TXN{now:%Y%m%d%H%M%S}{uuid.uuid4().hex[:6].upper()}"


class PaymentService:
    """Disbursement lifecycle of approved payrolls.

    pending -> processing -> completed (-> refunded); pending|processing -> failed -> pending
    (retry); pending|processing -> cancelled. Gateways are recorded, never called.
    """

    def __init__(
        self,
        payments: PaymentRepository,
        payrolls: PayrollService,
        notifications: Optional[NotificationService] = None,
    ):
        self._payments = payments
        self._payrolls = payrolls
        self._notifications = notifications

    def get_payment(self, payment_id: int) -> Payment:
        payment = self._payments.get_by_id(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def initiate(
        self,
        payroll_id: int,
        *,
        method: PaymentMethod,
        bank_details: Optional[dict[str, Any]] = None,
        notes: Optional[str] = None,
        actor_user_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> Payment:
        payroll = self._payrolls.get_payroll(payroll_id)
        if payroll.status != PayrollStatus.APPROVED:
            raise ValidationError("Payroll must be approved before payment can be initiated")
        if self._payments.get_by_payroll(payroll_id):
            raise DuplicateError("Payment already initiated for this payroll")

        payment = Payment(
            payment_id=0,
            payroll_id=payroll_id,
            employee_id=payroll.employee_id,
            amount=payroll.net_salary,
            currency=payroll.currency,
            method=method,
            gateway=gateway_for(method),
            bank_details=dict(bank_details or {}),
            approved_by=payroll.approved_by,
            processed_by=actor_user_id,
            notes=notes,
            created_at=now or datetime.now(),
        )
        payment = replace(payment, payment_id=self._payments.create(payment))
        logger.info(
            "payment %s initiated for payroll %s: %.2f via %s",
            payment.payment_id,
            payroll_id,
            payment.amount,
            payment.gateway.value,
        )
        return payment

    def _save(self, payment: Payment) -> Payment:
        self._payments.update(payment)
        logger.info("payment %s -> %s", payment.payment_id, payment.status.value)
        return payment

    def process(
        self,
        payment_id: int,
        *,
        actor_user_id: Optional[int] = None,
        transaction_id: Optional[str] = None,
        now: datetime | None = None,
    ) -> Payment:
        now = now or datetime.now()
        payment = self.get_payment(payment_id)
        if payment.status not in OPEN_STATUSES:
            raise ValidationError(f"Cannot process a {payment.status.value} payment")
        return self._save(
            replace(
                payment,
                status=PaymentStatus.PROCESSING,
                processed_at=now,
                processed_by=actor_user_id or payment.processed_by,
                transaction_id=transaction_id or payment.transaction_id or new_transaction_id(now),
            )
        )

    def complete(
        self,
        payment_id: int,
        *,
        reference: Optional[str] = None,
        gateway_response: Optional[dict[str, Any]] = None,
        now: datetime | None = None,
    ) -> Payment:
        now = now or datetime.now()
        payment = self.get_payment(payment_id)
        if payment.status not in OPEN_STATUSES:
            raise ValidationError(f"Cannot complete a {payment.status.value} payment")

        transaction_id = payment.transaction_id or new_transaction_id(now)
        reference = reference or payment.reference or transaction_id

        # payroll first: it may have been cancelled after the payment was initiated
        payroll = self._payrolls.get_payroll(payment.payroll_id)
        if payroll.status != PayrollStatus.PAID:
            self._payrolls.pay(payroll.payroll_id, payment_reference=reference, payment_method=payment.method, now=now)
        completed = self._save(
            replace(
                payment,
                status=PaymentStatus.COMPLETED,
                completed_at=now,
                processed_at=payment.processed_at or now,
                transaction_id=transaction_id,
                reference=reference,
                gateway_response=dict(gateway_response or payment.gateway_response),
            )
        )

        if self._notifications is not None:
            self._notifications.notify(
                recipient_id=payment.employee_id,
                type=NotificationType.PAYMENT,
                title="Salary Payment Completed",
                message=f"Your salary payment of Rs. {payment.amount:,.2f} has been completed successfully",
                priority=NotificationPriority.HIGH,
                related=("payment", payment.payment_id),
                now=now,
            )
        return completed

    def fail(
        self,
        payment_id: int,
        *,
        reason: str,
        operator_employee_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> Payment:
        now = now or datetime.now()
        reason = require_non_empty(reason, "Failure reason")
        payment = self.get_payment(payment_id)
        if payment.status not in OPEN_STATUSES:
            raise ValidationError(f"Cannot fail a {payment.status.value} payment")

        failed = self._save(replace(payment, status=PaymentStatus.FAILED, failed_at=now, failure_reason=reason))
        logger.warning("payment %s failed: %s", payment_id, reason)

        # the operator hears about the failure, the employee does not
        if self._notifications is not None and operator_employee_id is not None:
            self._notifications.notify(
                recipient_id=operator_employee_id,
                type=NotificationType.PAYMENT_FAILED,
                title="Payment Failed",
                message=f"Payment {payment_id} of Rs. {payment.amount:,.2f} failed. Reason: {reason}",
                priority=NotificationPriority.HIGH,
                related=("payment", payment.payment_id),
                now=now,
            )
        return failed

    def retry(self, payment_id: int) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.status != PaymentStatus.FAILED:
            raise ValidationError("Only failed payments can be retried")
        return self._save(replace(payment, status=PaymentStatus.PENDING, failed_at=None, failure_reason=None))

    def cancel(self, payment_id: int, *, notes: Optional[str] = None) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.status not in OPEN_STATUSES:
            raise ValidationError(f"Cannot cancel a {payment.status.value} payment")
        return self._save(replace(payment, status=PaymentStatus.CANCELLED, notes=notes or payment.notes))

    def refund(self, payment_id: int, *, notes: Optional[str] = None) -> Payment:
        payment = self.get_payment(payment_id)
        if payment.status != PaymentStatus.COMPLETED:
            raise ValidationError("Only completed payments can be refunded")
        return self._save(replace(payment, status=PaymentStatus.REFUNDED, notes=notes or payment.notes))

    def list_payments(
        self,
        *,
        status: Optional[PaymentStatus] = None,
        method: Optional[PaymentMethod] = None,
    ) -> list[Payment]:
        return list(self._payments.list_payments(status=status, method=method))

    def my_payments(self, employee_id: int) -> list[Payment]:
        return list(self._payments.list_payments(employee_ids=[employee_id]))

    def stats(self) -> dict:
        payments = self.list_payments()

        def bucket(status: PaymentStatus) -> dict:
            items = [p for p in payments if p.status == status]
            return {"count": len(items), "amount": round(sum(p.amount for p in items), 2)}

        by_method: dict[str, dict] = {}
        for p in payments:
            entry = by_method.setdefault(p.method.value, {"count": 0, "amount": 0.0})
            entry["count"] += 1
            entry["amount"] = round(entry["amount"] + p.amount, 2)

        return {
            "total": {"count": len(payments), "amount": round(sum(p.amount for p in payments), 2)},
            "completed": bucket(PaymentStatus.COMPLETED),
            "pending": bucket(PaymentStatus.PENDING),
            "processing": bucket(PaymentStatus.PROCESSING),
            "failed": bucket(PaymentStatus.FAILED),
            "by_method": by_method,
        }
