from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from fakes import (
    InMemoryAttendance,
    InMemoryBranches,
    InMemoryEmployees,
    InMemoryLeaveConfigurations,
    InMemoryLeaves,
    InMemoryNotifications,
    InMemoryPayments,
    InMemoryPayrolls,
    InMemoryUsers,
)
from timepay.container import wire


@pytest.fixture
def fixed_now() -> datetime:
    # a Monday
    return datetime(2025, 3, 10, 9, 0, 0)


@pytest.fixture
def repos() -> SimpleNamespace:
    return SimpleNamespace(
        users=InMemoryUsers(),
        employees=InMemoryEmployees(),
        branches=InMemoryBranches(),
        attendance=InMemoryAttendance(),
        leaves=InMemoryLeaves(),
        leave_configurations=InMemoryLeaveConfigurations(),
        payrolls=InMemoryPayrolls(),
        payments=InMemoryPayments(),
        notifications=InMemoryNotifications(),
    )


@pytest.fixture
def container(repos):
    return wire(
        users_repo=repos.users,
        employees_repo=repos.employees,
        branches_repo=repos.branches,
        attendance_repo=repos.attendance,
        leaves_repo=repos.leaves,
        leave_configurations_repo=repos.leave_configurations,
        payrolls_repo=repos.payrolls,
        payments_repo=repos.payments,
        notifications_repo=repos.notifications,
        jwt_secret="test-jwt-secret",
    )
