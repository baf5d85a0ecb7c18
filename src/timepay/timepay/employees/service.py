from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..branches.repository import BranchRepository
from ..common.validators import require_non_empty, require_non_negative
from ..core.constants import DEFAULT_LEAVE_BALANCE, EMPLOYEE_CODE_DIGITS, EMPLOYEE_CODE_PREFIX
from ..core.enums import EmployeeStatus, LeaveType, Position
from ..core.exceptions import NotFoundError, ValidationError
from .model import Compensation, Employee, EmploymentInfo, LeaveHistoryEntry, PersonalInfo
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmployeeChanges:
    """Allow-listed update: each section replaces the stored one when given."""

    personal: Optional[PersonalInfo] = None
    employment: Optional[EmploymentInfo] = None
    compensation: Optional[Compensation] = None
    leave_balance: Optional[dict[str, float]] = None


def format_employee_code(sequence: int) -> str:
    return f"{EMPLOYEE_CODE_PREFIX}{sequence:0{EMPLOYEE_CODE_DIGITS}d}"


class EmployeeService:
    """Use case: employee master data (HR)."""

    def __init__(self, employees: EmployeeRepository, branches: Optional[BranchRepository] = None):
        self._employees = employees
        self._branches = branches

    def _validate(
        self,
        personal: PersonalInfo,
        employment: EmploymentInfo,
        compensation: Compensation,
        leave_balance: dict[str, float],
    ) -> PersonalInfo:
        personal = replace(
            personal,
            first_name=require_non_empty(personal.first_name, "First name"),
            last_name=require_non_empty(personal.last_name, "Last name"),
        )
        require_non_empty(employment.department, "Department")
        require_non_negative(compensation.base_salary, "Base salary")
        if employment.working_hours_per_day <= 0:
            raise ValidationError("Working hours per day must be positive")
        if employment.overtime_rate < 0:
            raise ValidationError("Overtime rate cannot be negative")
        for component in compensation.allowances + compensation.deductions:
            require_non_empty(component.name, "Component name")
            require_non_negative(component.amount, f"Amount of {component.name}")
        for leave_type, days in leave_balance.items():
            if leave_type not in {t.value for t in LeaveType}:
                raise ValidationError(f"Unknown leave type: {leave_type}")
            require_non_negative(days, f"Leave balance for {leave_type}")

        if employment.branch_id is not None and self._branches is not None:
            if not self._branches.get_by_id(employment.branch_id):
                raise ValidationError("Branch not found")
        return personal

    def next_employee_code(self) -> str:
        return format_employee_code(self._employees.last_code_sequence() + 1)

    def create_employee(
        self,
        *,
        personal: PersonalInfo,
        employment: EmploymentInfo,
        compensation: Compensation,
        leave_balance: Optional[dict[str, float]] = None,
        now: datetime | None = None,
    ) -> Employee:
        balance = dict(DEFAULT_LEAVE_BALANCE)
        balance.update(leave_balance or {})
        personal = self._validate(personal, employment, compensation, balance)

        employee = Employee(
            employee_id=0,
            employee_code=self.next_employee_code(),
            personal=personal,
            employment=employment,
            compensation=compensation,
            leave_balance=balance,
            created_at=now or datetime.now(),
        )
        employee_id = self._employees.create(employee)
        logger.info("employee %s created (id=%s)", employee.employee_code, employee_id)
        return replace(employee, employee_id=employee_id)

    def get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def list_employees(
        self,
        *,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        branch_id: Optional[int] = None,
        position: Optional[Position] = None,
        search: Optional[str] = None,
    ) -> list[Employee]:
        return list(
            self._employees.list(
                status=status,
                department=department,
                branch_id=branch_id,
                position=position,
                search=search,
            )
        )

    def update_employee(self, employee_id: int, changes: EmployeeChanges) -> Employee:
        employee = self.get_employee(employee_id)
        balance = dict(employee.leave_balance)
        if changes.leave_balance is not None:
            balance.update(changes.leave_balance)

        updated = replace(
            employee,
            personal=changes.personal or employee.personal,
            employment=changes.employment or employee.employment,
            compensation=changes.compensation or employee.compensation,
            leave_balance=balance,
        )
        personal = self._validate(updated.personal, updated.employment, updated.compensation, balance)
        updated = replace(updated, personal=personal)
        self._employees.update(updated)
        return updated

    def update_status(self, employee_id: int, status: EmployeeStatus) -> Employee:
        employee = self.get_employee(employee_id)
        updated = replace(employee, employment=replace(employee.employment, status=status))
        self._employees.update(updated)
        logger.info("employee %s status -> %s", employee.employee_code, status.value)
        return updated

    def link_user(self, employee_id: int, user_id: Optional[int]) -> None:
        self._employees.link_user(employee_id=employee_id, user_id=user_id)

    def delete_employee(self, employee_id: int) -> Employee:
        employee = self.get_employee(employee_id)
        self._employees.delete(employee_id)
        logger.info("employee %s deleted", employee.employee_code)
        return employee

    def leave_history(self, employee_id: int) -> list[LeaveHistoryEntry]:
        self.get_employee(employee_id)
        return list(self._employees.list_leave_history(employee_id))

    def departments(self) -> list[str]:
        return sorted({e.employment.department for e in self._employees.list()})
