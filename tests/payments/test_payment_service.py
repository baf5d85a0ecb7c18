from __future__ import annotations

from datetime import datetime

import pytest

from builders import add_employee
from timepay.core.enums import NotificationType, PaymentGateway, PaymentMethod, PaymentStatus, PayrollStatus
from timepay.core.exceptions import DuplicateError, NotFoundError, ValidationError

NOW = datetime(2025, 4, 5, 11, 30)


@pytest.fixture
def approved(container, repos):
    emp = add_employee(repos, base_salary=100000)
    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, now=NOW)
    return container.payroll_service.approve(payroll.payroll_id, actor_user_id=2)


def test_initiate_requires_approved_payroll(container, repos):
    emp = add_employee(repos)
    payroll = container.payroll_service.generate(emp.employee_id, month=3, year=2025, now=NOW)

    with pytest.raises(ValidationError, match="must be approved"):
        container.payment_service.initiate(payroll.payroll_id, method=PaymentMethod.CASH)


def test_initiate_freezes_amount_and_picks_gateway(container, approved):
    payment = container.payment_service.initiate(
        approved.payroll_id,
        method=PaymentMethod.BANK_TRANSFER,
        bank_details={"account_number": "0012345"},
        actor_user_id=5,
        now=NOW,
    )

    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == approved.net_salary == 92000
    assert payment.gateway == PaymentGateway.BANK_API
    assert payment.approved_by == 2
    assert payment.processed_by == 5
    assert payment.bank_details == {"account_number": "0012345"}


def test_cash_payments_are_manual(container, approved):
    payment = container.payment_service.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)

    assert payment.gateway == PaymentGateway.MANUAL


def test_one_payment_per_payroll(container, approved):
    svc = container.payment_service
    svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)

    with pytest.raises(DuplicateError, match="Payment already initiated for this payroll"):
        svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)


def test_unknown_payment(container):
    with pytest.raises(NotFoundError, match="Payment not found"):
        container.payment_service.process(404)


def test_process_assigns_transaction_id(container, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.ONLINE, now=NOW)

    processing = svc.process(payment.payment_id, actor_user_id=9, now=NOW)

    assert processing.status == PaymentStatus.PROCESSING
    assert processing.processed_at == NOW
    assert processing.processed_by == 9
    assert processing.transaction_id.startswith("TXN20250405113000")


def test_complete_marks_payroll_paid_and_notifies(container, repos, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.BANK_TRANSFER, now=NOW)
    svc.process(payment.payment_id, transaction_id="BANK-778", now=NOW)

    completed = svc.complete(payment.payment_id, gateway_response={"code": "00"}, now=NOW)

    assert completed.status == PaymentStatus.COMPLETED
    assert completed.completed_at == NOW
    assert completed.reference == "BANK-778"
    assert completed.gateway_response == {"code": "00"}

    payroll = repos.payrolls.get_by_id(approved.payroll_id)
    assert payroll.status == PayrollStatus.PAID
    assert payroll.payment_reference == "BANK-778"
    assert payroll.payment_date == NOW

    latest = repos.notifications.list_for_recipient(approved.employee_id, limit=1)[0]
    assert latest.type == NotificationType.PAYMENT
    assert latest.message == "Your salary payment of Rs. 92,000.00 has been completed successfully"


def test_payment_cannot_complete_after_payroll_is_cancelled(container, repos, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)
    container.payroll_service.cancel(approved.payroll_id, notes="Wrong period")

    with pytest.raises(ValidationError, match="Payroll must be approved before payment"):
        svc.complete(payment.payment_id, now=NOW)

    assert repos.payrolls.get_by_id(approved.payroll_id).status == PayrollStatus.CANCELLED
    assert repos.payments.get_by_id(payment.payment_id).status == PaymentStatus.PENDING
    # the open payment can still be withdrawn
    assert svc.cancel(payment.payment_id).status == PaymentStatus.CANCELLED


def test_complete_resumes_when_payroll_was_already_paid(container, repos, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)
    container.payroll_service.pay(approved.payroll_id, payment_reference="CASH-1", now=NOW)

    completed = svc.complete(payment.payment_id, reference="CASH-1", now=NOW)

    assert completed.status == PaymentStatus.COMPLETED
    assert repos.payrolls.get_by_id(approved.payroll_id).payment_reference == "CASH-1"


def test_completed_payment_cannot_be_completed_again(container, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)
    svc.complete(payment.payment_id, now=NOW)

    with pytest.raises(ValidationError, match="Cannot complete a completed payment"):
        svc.complete(payment.payment_id, now=NOW)
    with pytest.raises(ValidationError, match="Cannot cancel a completed payment"):
        svc.cancel(payment.payment_id)


def test_failure_notifies_operator_only(container, repos, approved):
    operator = add_employee(repos, first_name="Ops", department="Finance")
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.BANK_TRANSFER, now=NOW)
    before = repos.notifications.count_for_recipient(approved.employee_id)

    failed = svc.fail(
        payment.payment_id, reason="Account closed", operator_employee_id=operator.employee_id, now=NOW
    )

    assert failed.status == PaymentStatus.FAILED
    assert failed.failure_reason == "Account closed"
    assert repos.notifications.count_for_recipient(approved.employee_id) == before
    inbox = repos.notifications.list_for_recipient(operator.employee_id, limit=5)
    assert [n.type for n in inbox] == [NotificationType.PAYMENT_FAILED]
    assert "Account closed" in inbox[0].message
    assert repos.payrolls.get_by_id(approved.payroll_id).status == PayrollStatus.APPROVED


def test_failure_requires_reason(container, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)

    with pytest.raises(ValidationError, match="Failure reason is required"):
        svc.fail(payment.payment_id, reason="  ")


def test_retry_returns_failed_payment_to_pending(container, approved):
    svc = container.payment_service
    payment = svc.initiate(approved.payroll_id, method=PaymentMethod.CASH, now=NOW)

    with pytest.raises(ValidationError, match="Only failed payments can be retried"):
        svc.retry(payment.payment_id)

    svc.fail(payment.payment_id, reason="Timeout", now=NOW)
    retried = svc.retry(payment.payment_id)

    assert retried.status == PaymentStatus.PENDING
    assert retried.failure_reason is None
    assert retried.failed_at is None


def test_cancel_and_refund(container, repos):
    svc = container.payment_service
    payrolls = container.payroll_service
    a = add_employee(repos, first_name="Amal")
    b = add_employee(repos, first_name="Bimal")
    pa = payrolls.approve(payrolls.generate(a.employee_id, month=3, year=2025, now=NOW).payroll_id, actor_user_id=1)
    pb = payrolls.approve(payrolls.generate(b.employee_id, month=3, year=2025, now=NOW).payroll_id, actor_user_id=1)

    first = svc.initiate(pa.payroll_id, method=PaymentMethod.CASH, now=NOW)
    cancelled = svc.cancel(first.payment_id, notes="Paid by cheque instead")
    assert cancelled.status == PaymentStatus.CANCELLED
    assert cancelled.notes == "Paid by cheque instead"

    second = svc.initiate(pb.payroll_id, method=PaymentMethod.CASH, now=NOW)
    with pytest.raises(ValidationError, match="Only completed payments can be refunded"):
        svc.refund(second.payment_id)
    svc.complete(second.payment_id, now=NOW)
    assert svc.refund(second.payment_id).status == PaymentStatus.REFUNDED


def test_listing_and_stats(container, repos):
    svc = container.payment_service
    payrolls = container.payroll_service
    a = add_employee(repos, first_name="Amal", base_salary=50000)
    b = add_employee(repos, first_name="Bimal", base_salary=100000)
    pa = payrolls.approve(payrolls.generate(a.employee_id, month=3, year=2025, now=NOW).payroll_id, actor_user_id=1)
    pb = payrolls.approve(payrolls.generate(b.employee_id, month=3, year=2025, now=NOW).payroll_id, actor_user_id=1)
    cash = svc.initiate(pa.payroll_id, method=PaymentMethod.CASH, now=NOW)
    svc.initiate(pb.payroll_id, method=PaymentMethod.BANK_TRANSFER, now=NOW)
    svc.complete(cash.payment_id, now=NOW)

    assert [p.employee_id for p in svc.my_payments(a.employee_id)] == [a.employee_id]
    assert len(svc.list_payments(status=PaymentStatus.PENDING)) == 1

    stats = svc.stats()
    assert stats["total"] == {"count": 2, "amount": 138000}
    assert stats["completed"] == {"count": 1, "amount": 46000}
    assert stats["pending"]["count"] == 1
    assert stats["by_method"]["bank_transfer"] == {"count": 1, "amount": 92000}
