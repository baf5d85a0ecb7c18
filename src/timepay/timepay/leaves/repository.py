from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveConfiguration, LeaveRequest


class LeaveRepository(Protocol):
    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def create(self, leave: LeaveRequest) -> int:
        raise NotImplementedError

    def update(self, leave: LeaveRequest) -> bool:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        employee_ids: Optional[Iterable[int]] = None,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        start_from: Optional[date] = None,
        start_to: Optional[date] = None,
    ) -> Sequence[LeaveRequest]:
        """Filter on start date range; newest request first."""

        raise NotImplementedError


class LeaveConfigurationRepository(Protocol):
    def get_by_id(self, config_id: int) -> Optional[LeaveConfiguration]:
        raise NotImplementedError

    def list(self, *, active_only: bool = False, leave_type: Optional[LeaveType] = None) -> Sequence[LeaveConfiguration]:
        raise NotImplementedError

    def create(self, config: LeaveConfiguration) -> int:
        raise NotImplementedError

    def update(self, config: LeaveConfiguration) -> bool:
        raise NotImplementedError
