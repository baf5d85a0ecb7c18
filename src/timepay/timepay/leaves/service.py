from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import year_bounds
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import LEAVE_APPROVER_ROLES
from ..core.enums import (
    HalfDayPeriod,
    LeavePriority,
    LeaveStatus,
    LeaveType,
    NotificationPriority,
    NotificationType,
)
from ..core.exceptions import (
    BackdatingNotAllowed,
    ConfigurationNotApplicable,
    InsufficientBalance,
    InsufficientNotice,
    MaxConsecutiveDaysExceeded,
    NotFoundError,
    ValidationError,
)
from ..employees.model import Employee, LeaveHistoryEntry
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from .days import leave_days
from .model import LeaveBalance, LeaveConfiguration, LeaveRequest
from .repository import LeaveConfigurationRepository, LeaveRepository

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {
    LeavePriority.URGENT: 0,
    LeavePriority.HIGH: 1,
    LeavePriority.MEDIUM: 2,
    LeavePriority.LOW: 3,
}

_NOTIFICATION_PRIORITY = {
    LeavePriority.URGENT: NotificationPriority.HIGH,
    LeavePriority.HIGH: NotificationPriority.HIGH,
    LeavePriority.MEDIUM: NotificationPriority.MEDIUM,
    LeavePriority.LOW: NotificationPriority.LOW,
}


class LeaveService:
    """Use case: apply for leave, decide it, and report balances.

    Balances are never stored as running totals: ``taken`` is recomputed from the approved
    requests of the year on every read.
    """

    def __init__(
        self,
        leaves: LeaveRepository,
        configurations: LeaveConfigurationRepository,
        employees: EmployeeRepository,
        notifications: Optional[NotificationService] = None,
    ):
        self._leaves = leaves
        self._configurations = configurations
        self._employees = employees
        self._notifications = notifications

    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def get_leave(self, leave_id: int) -> LeaveRequest:
        leave = self._leaves.get_by_id(leave_id)
        if not leave:
            raise NotFoundError("Leave request not found")
        return leave

    def configuration_for(self, employee: Employee, leave_type: LeaveType) -> LeaveConfiguration:
        for config in self._configurations.list(active_only=True, leave_type=leave_type):
            if config.applies_to(employee.employment.position, employee.employment.employment_type):
                return config
        raise ConfigurationNotApplicable(
            f"Leave type {leave_type.value} is not applicable for your position/employment type"
        )

    def taken_days(self, employee_id: int, leave_type: LeaveType, year: int) -> float:
        start, end = year_bounds(year)
        approved = self._leaves.list_leaves(
            employee_ids=[employee_id],
            status=LeaveStatus.APPROVED,
            leave_type=leave_type,
            start_from=start,
            start_to=end,
        )
        return sum(leave.number_of_days for leave in approved)

    def apply_leave(
        self,
        employee_id: int,
        *,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: str,
        is_half_day: bool = False,
        half_day_period: Optional[HalfDayPeriod] = None,
        priority: LeavePriority = LeavePriority.MEDIUM,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or datetime.now()
        today = now.date()
        employee = self._employee(employee_id)
        reason = require_non_empty(reason, "Reason")

        config = self.configuration_for(employee, leave_type)

        if start_date > end_date:
            raise ValidationError("Start date cannot be after end date")
        if is_half_day:
            if start_date != end_date:
                raise ValidationError("A half-day leave must start and end on the same day")
            if not config.allow_half_day:
                raise ValidationError(f"Half-day leave is not allowed for {leave_type.value} leave")

        requested = leave_days(start_date, end_date, is_half_day=is_half_day)
        if requested <= 0:
            raise ValidationError(
                f"Leave period {start_date.isoformat()} to {end_date.isoformat()} contains no working days"
            )

        if start_date >= today:
            if (start_date - today).days < config.minimum_notice_days:
                raise InsufficientNotice(
                    f"Minimum {config.minimum_notice_days} days notice required for {leave_type.value} leave"
                )
        else:
            if not config.allow_backdating:
                raise BackdatingNotAllowed("Backdating not allowed for this leave type")
            if (today - start_date).days > config.max_backdating_days:
                raise BackdatingNotAllowed(f"Cannot backdate more than {config.max_backdating_days} days")

        available = employee.entitlement(leave_type) - self.taken_days(employee_id, leave_type, today.year)
        if requested > available:
            raise InsufficientBalance(available=available, requested=requested)

        if config.max_consecutive_days is not None and requested > config.max_consecutive_days:
            raise MaxConsecutiveDaysExceeded(
                f"Maximum {config.max_consecutive_days:g} consecutive days allowed for {leave_type.value} leave"
            )

        leave = LeaveRequest(
            leave_id=0,
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            number_of_days=requested,
            reason=reason,
            is_half_day=is_half_day,
            half_day_period=half_day_period if is_half_day else None,
            priority=priority,
            created_at=now,
        )
        leave = replace(leave, leave_id=self._leaves.create(leave))
        logger.info(
            "leave %s applied by %s: %s %s..%s (%g days)",
            leave.leave_id,
            employee.employee_code,
            leave_type.value,
            start_date,
            end_date,
            requested,
        )

        if self._notifications is not None:
            self._notifications.notify_roles(
                LEAVE_APPROVER_ROLES,
                type=NotificationType.LEAVE_REQUEST,
                title="New Leave Request",
                message=(
                    f"{employee.full_name} has applied for {leave_type.value} leave "
                    f"from {start_date.isoformat()} to {end_date.isoformat()}"
                ),
                priority=_NOTIFICATION_PRIORITY[priority],
                sender_id=employee_id,
                related=("leave", leave.leave_id),
                now=now,
            )
        return leave

    def _decide(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        actor_user_id: int,
        note: Optional[str],
        now: datetime,
    ) -> LeaveRequest:
        leave = self.get_leave(leave_id)
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError("Leave request already processed")

        if status == LeaveStatus.APPROVED:
            decided = replace(
                leave,
                status=status,
                approved_by=actor_user_id,
                approval_date=now,
                approval_comments=note,
            )
        else:
            decided = replace(
                leave,
                status=status,
                rejected_by=actor_user_id,
                rejection_date=now,
                rejection_reason=note,
            )
        self._leaves.update(decided)

        self._employees.append_leave_history(
            LeaveHistoryEntry(
                employee_id=leave.employee_id,
                leave_id=leave.leave_id,
                leave_type=leave.leave_type,
                start_date=leave.start_date,
                end_date=leave.end_date,
                days=leave.number_of_days,
                status=status,
                actor_user_id=actor_user_id,
                reason=leave.reason if status == LeaveStatus.APPROVED else note,
                recorded_at=now,
            )
        )
        logger.info("leave %s %s by user %s", leave_id, status.value, actor_user_id)

        if self._notifications is not None:
            period = f"from {leave.start_date.isoformat()} to {leave.end_date.isoformat()}"
            if status == LeaveStatus.APPROVED:
                title = "Leave Request Approved"
                message = f"Your {leave.leave_type.value} leave request {period} has been approved"
                kind = NotificationType.LEAVE_APPROVED
            else:
                title = "Leave Request Rejected"
                message = f"Your {leave.leave_type.value} leave request {period} has been rejected"
                if note:
                    message += f". Reason: {note}"
                kind = NotificationType.LEAVE_REJECTED
            self._notifications.notify(
                recipient_id=leave.employee_id,
                type=kind,
                title=title,
                message=message,
                related=("leave", leave.leave_id),
                now=now,
            )
        return decided

    def approve_leave(
        self,
        leave_id: int,
        *,
        actor_user_id: int,
        comments: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        return self._decide(
            leave_id,
            status=LeaveStatus.APPROVED,
            actor_user_id=actor_user_id,
            note=comments,
            now=now or datetime.now(),
        )

    def reject_leave(
        self,
        leave_id: int,
        *,
        actor_user_id: int,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        return self._decide(
            leave_id,
            status=LeaveStatus.REJECTED,
            actor_user_id=actor_user_id,
            note=reason,
            now=now or datetime.now(),
        )

    def cancel_leave(self, leave_id: int, *, employee_id: int, now: datetime | None = None) -> LeaveRequest:
        now = now or datetime.now()
        leave = self._leaves.get_by_id(leave_id)
        if not leave or leave.employee_id != employee_id:
            raise NotFoundError("Leave request not found")
        if leave.status == LeaveStatus.CANCELLED:
            raise ValidationError("Leave request already cancelled")
        if leave.status == LeaveStatus.APPROVED and leave.start_date <= now.date():
            raise ValidationError("Cannot cancel leave that has already started")

        # TODO: annotate the approval entry in leave history once HR decides how a cancelled
        # approval should be recorded; the live balance already excludes cancelled leaves.
        cancelled = replace(leave, status=LeaveStatus.CANCELLED, cancelled_at=now)
        self._leaves.update(cancelled)
        logger.info("leave %s cancelled by employee %s", leave_id, employee_id)
        return cancelled

    def leave_balance(
        self,
        employee_id: int,
        *,
        year: Optional[int] = None,
        now: datetime | None = None,
    ) -> dict[str, LeaveBalance]:
        employee = self._employee(employee_id)
        year = year or (now or datetime.now()).year

        result: dict[str, LeaveBalance] = {}
        for leave_type in LeaveType:
            if leave_type.value not in employee.leave_balance:
                continue
            total = employee.entitlement(leave_type)
            taken = self.taken_days(employee_id, leave_type, year)
            result[leave_type.value] = LeaveBalance(total=total, taken=taken, balance=max(0.0, total - taken))
        return result

    def my_leaves(
        self,
        employee_id: int,
        *,
        status: Optional[LeaveStatus] = None,
        year: Optional[int] = None,
    ) -> list[LeaveRequest]:
        start = end = None
        if year:
            start, end = year_bounds(year)
        return list(
            self._leaves.list_leaves(employee_ids=[employee_id], status=status, start_from=start, start_to=end)
        )

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        employee_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> list[LeaveRequest]:
        employee_ids: Optional[set[int]] = None
        if branch_id is not None or department:
            employee_ids = {
                e.employee_id for e in self._employees.list(branch_id=branch_id, department=department or None)
            }
        if employee_id is not None:
            employee_ids = {employee_id} if employee_ids is None else employee_ids & {employee_id}
        return list(self._leaves.list_leaves(employee_ids=employee_ids, status=status, leave_type=leave_type))

    def pending_leaves(self, *, branch_id: Optional[int] = None) -> list[LeaveRequest]:
        """Pending requests, most urgent first, then oldest first."""

        pending = self.list_leaves(status=LeaveStatus.PENDING, branch_id=branch_id)
        return sorted(pending, key=lambda l: (PRIORITY_ORDER[l.priority], l.created_at or datetime.min))

    def employee_leaves(self, employee_id: int) -> list[LeaveRequest]:
        self._employee(employee_id)
        return self.my_leaves(employee_id)

    def leave_stats(self, *, year: Optional[int] = None, now: datetime | None = None) -> dict:
        year = year or (now or datetime.now()).year
        start, end = year_bounds(year)
        leaves = self._leaves.list_leaves(start_from=start, start_to=end)

        by_status = {s.value: 0 for s in LeaveStatus}
        by_type: dict[str, dict[str, float]] = defaultdict(lambda: {"count": 0, "total_days": 0.0})
        for leave in leaves:
            by_status[leave.status.value] += 1
            by_type[leave.leave_type.value]["count"] += 1
            if leave.status == LeaveStatus.APPROVED:
                by_type[leave.leave_type.value]["total_days"] += leave.number_of_days

        return {
            "year": year,
            "total": len(leaves),
            "by_status": by_status,
            "by_type": [{"leave_type": t, **v} for t, v in sorted(by_type.items())],
        }


_CONFIG_FIELDS = frozenset(LeaveConfiguration.__dataclass_fields__) - {"config_id"}


class LeaveConfigurationService:
    """Use case: admin-managed leave policies."""

    def __init__(self, configurations: LeaveConfigurationRepository):
        self._configurations = configurations

    def _validate(self, config: LeaveConfiguration) -> LeaveConfiguration:
        require_non_empty(config.name, "Name")
        require_non_negative(config.max_days_per_year, "Max days per year")
        require_non_negative(config.minimum_notice_days, "Minimum notice days")
        require_non_negative(config.max_backdating_days, "Max backdating days")
        if config.max_consecutive_days is not None and config.max_consecutive_days <= 0:
            raise ValidationError("Max consecutive days must be positive")
        return replace(
            config,
            applicable_positions=tuple(config.applicable_positions) or ("all",),
            applicable_employment_types=tuple(config.applicable_employment_types) or ("all",),
        )

    def list_configurations(self, *, active_only: bool = False) -> list[LeaveConfiguration]:
        return list(self._configurations.list(active_only=active_only))

    def get_configuration(self, config_id: int) -> LeaveConfiguration:
        config = self._configurations.get_by_id(config_id)
        if not config:
            raise NotFoundError("Leave configuration not found")
        return config

    def create_configuration(self, **fields: Any) -> LeaveConfiguration:
        unknown = set(fields) - _CONFIG_FIELDS
        if unknown:
            raise ValidationError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")
        missing = {"name", "leave_type", "max_days_per_year"} - set(fields)
        if missing:
            raise ValidationError(f"Missing configuration fields: {', '.join(sorted(missing))}")
        config = self._validate(LeaveConfiguration(config_id=0, **fields))
        return replace(config, config_id=self._configurations.create(config))

    def update_configuration(self, config_id: int, changes: dict[str, Any]) -> LeaveConfiguration:
        config = self.get_configuration(config_id)
        updates = {k: v for k, v in changes.items() if k in _CONFIG_FIELDS}
        updated = self._validate(replace(config, **updates))
        self._configurations.update(updated)
        return updated
