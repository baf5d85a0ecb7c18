from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import PaymentGateway, PaymentMethod, PaymentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json, to_float
from .model import Payment
from .repository import PaymentRepository

_COLUMNS = """
    payment_id, payroll_id, employee_id, amount, currency, method, gateway, status,
    transaction_id, reference, bank_details, gateway_response, processed_at, completed_at,
    failed_at, failure_reason, processed_by, approved_by, notes, created_at
"""


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        payroll_id=int(r["payroll_id"]),
        employee_id=int(r["employee_id"]),
        amount=to_float(r["amount"]),
        currency=r.get("currency") or "LKR",
        method=PaymentMethod(r["method"]),
        gateway=PaymentGateway(r.get("gateway") or PaymentGateway.MANUAL.value),
        status=PaymentStatus(r["status"]),
        transaction_id=r.get("transaction_id"),
        reference=r.get("reference"),
        bank_details=load_json(r.get("bank_details"), default={}),
        gateway_response=load_json(r.get("gateway_response"), default={}),
        processed_at=r.get("processed_at"),
        completed_at=r.get("completed_at"),
        failed_at=r.get("failed_at"),
        failure_reason=r.get("failure_reason"),
        processed_by=r.get("processed_by"),
        approved_by=r.get("approved_by"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


def _values(p: Payment) -> tuple:
    return (
        p.payroll_id,
        p.employee_id,
        p.amount,
        p.currency,
        p.method.value,
        p.gateway.value,
        p.status.value,
        p.transaction_id,
        p.reference,
        dump_json(p.bank_details or {}),
        dump_json(p.gateway_response or {}),
        p.processed_at,
        p.completed_at,
        p.failed_at,
        p.failure_reason,
        p.processed_by,
        p.approved_by,
        p.notes,
        p.created_at,
    )


_INSERT_COLUMNS = _COLUMNS.replace("payment_id, ", "", 1)
_UPDATE_SET = ", ".join(f"{c.strip()}=%s" for c in _INSERT_COLUMNS.split(","))


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payments WHERE payment_id=%s", (payment_id,))
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def get_by_payroll(self, payroll_id: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payments WHERE payroll_id=%s", (payroll_id,))
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def create(self, payment: Payment) -> int:
        with db_cursor(self._conn_factory, duplicate_message="Payment already initiated for this payroll") as (_, cur):
            cur.execute(
                f"INSERT INTO payments({_INSERT_COLUMNS}) VALUES({','.join(['%s'] * 19)})",
                _values(payment),
            )
            return int(cur.lastrowid)

    def update(self, payment: Payment) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE payments SET {_UPDATE_SET} WHERE payment_id=%s",
                _values(payment) + (payment.payment_id,),
            )
            return cur.rowcount > 0

    def list_payments(
        self,
        *,
        status: Optional[PaymentStatus] = None,
        method: Optional[PaymentMethod] = None,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Payment]:
        where = ["1=1"]
        params: list = []
        if status is not None:
            where.append("status=%s")
            params.append(status.value)
        if method is not None:
            where.append("method=%s")
            params.append(method.value)
        if employee_ids is not None:
            ids = [int(i) for i in employee_ids]
            if not ids:
                return []
            where.append(f"employee_id IN ({in_clause(ids)})")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payments WHERE {' AND '.join(where)} ORDER BY created_at DESC, payment_id DESC",
                tuple(params),
            )
            return [_to_payment(r) for r in fetchall(cur)]
