from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import Payroll


class PayrollRepository(Protocol):
    def get_by_id(self, payroll_id: int) -> Optional[Payroll]:
        raise NotImplementedError

    def get_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[Payroll]:
        raise NotImplementedError

    def create(self, payroll: Payroll) -> int:
        """Insert; a second payroll for the same (employee, month, year) raises DuplicateError."""

        raise NotImplementedError

    def update(self, payroll: Payroll) -> bool:
        raise NotImplementedError

    def list_payrolls(
        self,
        *,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        employee_ids: Optional[Iterable[int]] = None,
    ) -> Sequence[Payroll]:
        """Newest period first."""

        raise NotImplementedError
