from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import Any

from ..common.validators import require_non_empty
from ..core.enums import EmployeeStatus
from ..core.exceptions import DuplicateError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import Branch
from .repository import BranchRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {
        "name",
        "code",
        "address",
        "phone",
        "email",
        "manager_id",
        "departments",
        "is_active",
        "opening_time",
        "closing_time",
        "working_days",
    }
)


class BranchService:
    """Use case: branch directory and per-branch work schedule."""

    def __init__(self, branches: BranchRepository, employees: EmployeeRepository):
        self._branches = branches
        self._employees = employees

    def _validate(self, branch: Branch) -> Branch:
        name = require_non_empty(branch.name, "Branch name")
        code = require_non_empty(branch.code, "Branch code").upper()
        if branch.closing_time <= branch.opening_time:
            raise ValidationError("Closing time must be after opening time")
        return replace(
            branch,
            name=name,
            code=code,
            departments=tuple(branch.departments),
            working_days=tuple(d.lower() for d in branch.working_days),
        )

    def create_branch(self, **fields: Any) -> Branch:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown branch fields: {', '.join(sorted(unknown))}")
        branch = self._validate(Branch(branch_id=0, **{"name": "", "code": "", **fields}))
        if self._branches.get_by_code(branch.code):
            raise DuplicateError("Branch code already exists")

        branch_id = self._branches.create(branch)
        logger.info("branch %s created (id=%s)", branch.code, branch_id)
        return replace(branch, branch_id=branch_id)

    def list_branches(self, *, active_only: bool = False) -> list[Branch]:
        return list(self._branches.list(active_only=active_only))

    def get_branch(self, branch_id: int) -> Branch:
        branch = self._branches.get_by_id(branch_id)
        if not branch:
            raise NotFoundError("Branch not found")
        return branch

    def update_branch(self, branch_id: int, changes: dict[str, Any]) -> Branch:
        branch = self.get_branch(branch_id)
        updates = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS}
        updated = self._validate(replace(branch, **updates))

        if updated.code != branch.code:
            other = self._branches.get_by_code(updated.code)
            if other and other.branch_id != branch_id:
                raise DuplicateError("Branch code already exists")

        self._branches.update(updated)
        return updated

    def delete_branch(self, branch_id: int) -> None:
        self.get_branch(branch_id)
        if self._employees.list(branch_id=branch_id):
            raise ValidationError("Cannot delete branch with active employees")
        self._branches.delete(branch_id)
        logger.info("branch %s deleted", branch_id)

    def branch_employees(self, branch_id: int):
        self.get_branch(branch_id)
        return list(self._employees.list(branch_id=branch_id))

    def branch_stats(self, branch_id: int) -> dict:
        employees = self.branch_employees(branch_id)
        active = sum(1 for e in employees if e.employment.status == EmployeeStatus.ACTIVE)
        by_position = Counter(e.employment.position.value for e in employees)
        return {
            "total_employees": len(employees),
            "active_employees": active,
            "inactive_employees": len(employees) - active,
            "employees_by_position": [
                {"position": position, "count": count} for position, count in sorted(by_position.items())
            ],
        }
