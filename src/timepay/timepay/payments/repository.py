from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import PaymentMethod, PaymentStatus
from .model import Payment


class PaymentRepository(Protocol):
    def get_by_id(self, payment_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def get_by_payroll(self, payroll_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def create(self, payment: Payment) -> int:
        """Insert; a second payment for the same payroll raises DuplicateError."""

        raise NotImplementedError

    def update(self, payment: Payment) -> bool:
        raise NotImplementedError

    def list_payments(
        self,
        *,
        status: Optional[PaymentStatus] = None,
        method: Optional[PaymentMethod] = None,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Payment]:
        """Newest first."""

        raise NotImplementedError
