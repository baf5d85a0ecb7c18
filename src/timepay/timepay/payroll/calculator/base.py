from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceSummary
from ...employees.model import Employee
from ..model import AttendanceSnapshot, MinutesDeduction, Overtime


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll inputs)."""

    @abstractmethod
    def hourly_rate(self, employee: Employee, *, working_days: int) -> float:
        raise NotImplementedError

    @abstractmethod
    def snapshot(self, summary: AttendanceSummary, *, working_days: int) -> AttendanceSnapshot:
        raise NotImplementedError

    @abstractmethod
    def overtime(self, employee: Employee, summary: AttendanceSummary, *, hourly_rate: float) -> Overtime:
        raise NotImplementedError

    @abstractmethod
    def minutes_deduction(self, minutes: int, *, hourly_rate: float) -> MinutesDeduction:
        raise NotImplementedError
