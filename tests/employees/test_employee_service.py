from __future__ import annotations

from dataclasses import replace
from datetime import datetime, time

import pytest

from builders import add_employee, allowance, compensation, employment, personal
from timepay.branches.model import Branch
from timepay.core.enums import EmployeeStatus, Position
from timepay.core.exceptions import DuplicateError, NotFoundError, ValidationError
from timepay.employees.service import EmployeeChanges, format_employee_code


def _create(svc, first_name="Nimal", **kwargs):
    return svc.create_employee(
        personal=personal(first_name, "Perera", f"{first_name.lower()}@example.com"),
        employment=kwargs.pop("employment", employment()),
        compensation=kwargs.pop("compensation", compensation(60000)),
        **kwargs,
    )


def test_employee_codes_are_sequential(container):
    svc = container.employee_service

    first = _create(svc, "Amal")
    second = _create(svc, "Bimal")

    assert first.employee_code == "EMP00001"
    assert second.employee_code == "EMP00002"
    assert format_employee_code(123) == "EMP00123"


def test_code_follows_highest_existing_suffix(container, repos):
    add_employee(repos)
    repos.employees.delete(1)
    add_employee(repos)

    assert container.employee_service.next_employee_code() == "EMP00002"


def test_create_applies_default_leave_balance(container):
    emp = _create(container.employee_service, leave_balance={"annual": 14})

    assert emp.leave_balance["annual"] == 14
    assert emp.leave_balance["sick"] == 10
    assert emp.employee_id > 0


def test_create_trims_names(container):
    emp = container.employee_service.create_employee(
        personal=personal("  Kasun ", " Silva "),
        employment=employment(),
        compensation=compensation(),
        now=datetime(2025, 1, 2, 8, 0),
    )

    assert emp.full_name == "Kasun Silva"
    assert emp.created_at == datetime(2025, 1, 2, 8, 0)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"compensation": compensation(-1)}, "Base salary cannot be negative"),
        ({"employment": employment(department=" ")}, "Department is required"),
        ({"leave_balance": {"sabbatical": 3}}, "Unknown leave type: sabbatical"),
        ({"leave_balance": {"annual": -2}}, "Leave balance for annual cannot be negative"),
        ({"compensation": compensation(allowances=(allowance("Fuel", -5),))}, "Amount of Fuel cannot be negative"),
        ({"employment": employment(branch_id=77)}, "Branch not found"),
    ],
)
def test_create_validation(container, kwargs, message):
    with pytest.raises(ValidationError, match=message):
        _create(container.employee_service, **kwargs)


def test_create_requires_names(container):
    with pytest.raises(ValidationError, match="First name is required"):
        container.employee_service.create_employee(
            personal=personal("", "Perera"), employment=employment(), compensation=compensation()
        )


def test_working_hours_must_be_positive(container):
    with pytest.raises(ValidationError, match="Working hours per day must be positive"):
        _create(container.employee_service, employment=replace(employment(), working_hours_per_day=0))


def test_update_replaces_sections_and_merges_balance(container, repos):
    emp = add_employee(repos, base_salary=50000)
    svc = container.employee_service

    updated = svc.update_employee(
        emp.employee_id,
        EmployeeChanges(compensation=compensation(65000), leave_balance={"casual": 3}),
    )

    assert updated.compensation.base_salary == 65000
    assert updated.leave_balance["casual"] == 3
    assert updated.leave_balance["annual"] == emp.leave_balance["annual"]
    assert updated.personal == emp.personal
    assert repos.employees.get_by_id(emp.employee_id) == updated


def test_update_unknown_employee(container):
    with pytest.raises(NotFoundError, match="Employee not found"):
        container.employee_service.update_employee(9, EmployeeChanges())


def test_status_change(container, repos):
    emp = add_employee(repos)

    updated = container.employee_service.update_status(emp.employee_id, EmployeeStatus.TERMINATED)

    assert updated.employment.status == EmployeeStatus.TERMINATED


def test_list_filters_and_departments(container, repos):
    add_employee(repos, first_name="Amal", department="Sales")
    add_employee(repos, first_name="Bimal", department="Finance", position=Position.ACCOUNTANT)
    add_employee(repos, first_name="Chamal", department="Sales", status=EmployeeStatus.INACTIVE)
    svc = container.employee_service

    assert [e.personal.first_name for e in svc.list_employees(department="Sales")] == ["Amal", "Chamal"]
    assert [e.personal.first_name for e in svc.list_employees(position=Position.ACCOUNTANT)] == ["Bimal"]
    assert [e.personal.first_name for e in svc.list_employees(status=EmployeeStatus.ACTIVE, search="mal")] == [
        "Amal",
        "Bimal",
    ]
    assert svc.departments() == ["Finance", "Sales"]


def test_delete_employee(container, repos):
    emp = add_employee(repos)
    svc = container.employee_service

    svc.delete_employee(emp.employee_id)

    assert repos.employees.get_by_id(emp.employee_id) is None
    with pytest.raises(NotFoundError):
        svc.get_employee(emp.employee_id)


def test_duplicate_code_from_repository(repos):
    emp = add_employee(repos)

    with pytest.raises(DuplicateError):
        repos.employees.create(replace(emp, employee_id=0))


def test_leave_history_requires_employee(container):
    with pytest.raises(NotFoundError):
        container.employee_service.leave_history(5)


# branches


def test_create_branch_normalises_code(container):
    branch = container.branch_service.create_branch(
        name="Galle", code="gle", opening_time=time(8, 30), closing_time=time(17, 30), working_days=("Monday",)
    )

    assert branch.branch_id > 0
    assert branch.code == "GLE"
    assert branch.working_days == ("monday",)


def test_branch_validation(container):
    svc = container.branch_service
    svc.create_branch(name="Galle", code="GLE")

    with pytest.raises(DuplicateError, match="Branch code already exists"):
        svc.create_branch(name="Galle 2", code="gle")
    with pytest.raises(ValidationError, match="Closing time must be after opening time"):
        svc.create_branch(name="Night", code="NGT", opening_time=time(18, 0), closing_time=time(9, 0))
    with pytest.raises(ValidationError, match="Unknown branch fields: colour"):
        svc.create_branch(name="X", code="X", colour="red")
    with pytest.raises(ValidationError, match="Branch name is required"):
        svc.create_branch(code="EMPTY")


def test_update_branch_code_must_stay_unique(container):
    svc = container.branch_service
    a = svc.create_branch(name="A", code="AAA")
    svc.create_branch(name="B", code="BBB")

    with pytest.raises(DuplicateError):
        svc.update_branch(a.branch_id, {"code": "bbb"})

    renamed = svc.update_branch(a.branch_id, {"name": "Alpha", "unknown": 1})
    assert renamed.name == "Alpha"


def test_branch_with_employees_cannot_be_deleted(container, repos):
    svc = container.branch_service
    branch = svc.create_branch(name="Kandy", code="KDY")
    empty = svc.create_branch(name="Matara", code="MTR")
    add_employee(repos, branch_id=branch.branch_id)

    with pytest.raises(ValidationError, match="Cannot delete branch with active employees"):
        svc.delete_branch(branch.branch_id)

    svc.delete_branch(empty.branch_id)
    with pytest.raises(NotFoundError, match="Branch not found"):
        svc.get_branch(empty.branch_id)


def test_branch_stats(container, repos):
    svc = container.branch_service
    branch = svc.create_branch(name="Kandy", code="KDY")
    add_employee(repos, first_name="Amal", branch_id=branch.branch_id)
    add_employee(repos, first_name="Bimal", branch_id=branch.branch_id, position=Position.DRIVER)
    add_employee(repos, first_name="Chamal", branch_id=branch.branch_id, status=EmployeeStatus.INACTIVE)

    stats = svc.branch_stats(branch.branch_id)

    assert stats["total_employees"] == 3
    assert stats["active_employees"] == 2
    assert stats["inactive_employees"] == 1
    assert stats["employees_by_position"] == [
        {"position": "driver", "count": 1},
        {"position": "salesman", "count": 2},
    ]
