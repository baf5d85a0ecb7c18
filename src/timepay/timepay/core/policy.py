"""Capability table: which roles may perform which action.

Routes name an action (``"payroll.approve"``) instead of repeating role lists, so a
permission change happens in exactly one place.
"""

from __future__ import annotations

from .enums import Role
from .exceptions import AuthorizationError

ALL_ROLES = frozenset(Role)

_ADMIN = frozenset({Role.ADMIN})
_ADMIN_OWNER = frozenset({Role.ADMIN, Role.OWNER})
_HR = frozenset({Role.ADMIN, Role.HR_MANAGER})
_FINANCE = frozenset({Role.ADMIN, Role.OWNER, Role.ACCOUNTANT})
_PAYROLL = _FINANCE | {Role.HR_MANAGER}
_ATTENDANCE_VIEW = _PAYROLL | {Role.BRANCH_MANAGER}
_SUPERVISION = frozenset(
    {Role.ADMIN, Role.OWNER, Role.HR_MANAGER, Role.BRANCH_MANAGER, Role.SUPERVISOR}
)

POLICY: dict[str, frozenset[Role]] = {
    # self service
    "self.attendance": ALL_ROLES,
    "self.leaves": ALL_ROLES,
    "self.payslips": ALL_ROLES,
    "self.payments": ALL_ROLES,
    "self.notifications": ALL_ROLES,
    "self.profile": ALL_ROLES,
    # directory
    "employees.view": _HR,
    "employees.manage": _HR,
    "employees.delete": _ADMIN,
    "branches.view": ALL_ROLES,
    "branches.manage": _ADMIN_OWNER,
    # attendance
    "attendance.view": _ATTENDANCE_VIEW,
    "attendance.manage": _SUPERVISION,
    # leaves
    "leaves.view": _SUPERVISION,
    "leaves.decide": _SUPERVISION,
    "leaves.stats": _ATTENDANCE_VIEW,
    "leaves.configurations.view": frozenset({Role.ADMIN, Role.OWNER, Role.HR_MANAGER}),
    "leaves.configurations.manage": _ADMIN_OWNER,
    # payroll
    "payroll.view": _PAYROLL,
    "payroll.manage": _PAYROLL,
    "payroll.approve": _FINANCE,
    "payroll.pay": _FINANCE,
    # payments
    "payments.view": _FINANCE,
    "payments.manage": _FINANCE,
    # notifications
    "notifications.send": _HR,
    "notifications.broadcast": _ADMIN,
    # reports
    "reports.view": _HR,
    # accounts
    "roles.manage": _ADMIN,
}


def roles_for(action: str) -> frozenset[Role]:
    try:
        return POLICY[action]
    except KeyError:
        raise KeyError(f"Unknown action: {action}") from None


def is_allowed(role: Role | str, action: str) -> bool:
    return Role(role) in roles_for(action)


def ensure_allowed(role: Role | str, action: str) -> None:
    if not is_allowed(role, action):
        raise AuthorizationError("Not authorized to access this resource")


def actions_for(role: Role | str) -> list[str]:
    role = Role(role)
    return sorted(action for action, roles in POLICY.items() if role in roles)
