from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus, Position
from .model import Employee, LeaveHistoryEntry


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_code(self, employee_code: str) -> Optional[Employee]:
        raise NotImplementedError

    def list(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        branch_id: Optional[int] = None,
        position: Optional[Position] = None,
        search: Optional[str] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError

    def last_code_sequence(self) -> int:
        """Highest numeric suffix among existing employee codes (0 when none)."""

        raise NotImplementedError

    def create(self, employee: Employee) -> int:
        raise NotImplementedError

    def update(self, employee: Employee) -> bool:
        raise NotImplementedError

    def link_user(self, *, employee_id: int, user_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete(self, employee_id: int) -> bool:
        raise NotImplementedError

    def append_leave_history(self, entry: LeaveHistoryEntry) -> int:
        raise NotImplementedError

    def list_leave_history(self, employee_id: int) -> Sequence[LeaveHistoryEntry]:
        raise NotImplementedError
