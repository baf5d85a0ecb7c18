from __future__ import annotations

from datetime import date, datetime

import pytest

from builders import add_employee, add_user
from timepay.core.enums import (
    EmploymentType,
    HalfDayPeriod,
    LeavePriority,
    LeaveStatus,
    LeaveType,
    NotificationType,
    Position,
    Role,
)
from timepay.core.exceptions import (
    BackdatingNotAllowed,
    ConfigurationNotApplicable,
    InsufficientBalance,
    InsufficientNotice,
    MaxConsecutiveDaysExceeded,
    NotFoundError,
    ValidationError,
)
from timepay.leaves.days import business_days, leave_days
from timepay.leaves.model import LeaveConfiguration

NOW = datetime(2025, 3, 10, 9, 0)  # Monday


def add_config(repos, leave_type=LeaveType.ANNUAL, **overrides) -> LeaveConfiguration:
    fields = dict(
        config_id=0,
        name=f"{leave_type.value.title()} Leave",
        leave_type=leave_type,
        max_days_per_year=21,
        minimum_notice_days=1,
    )
    fields.update(overrides)
    config_id = repos.leave_configurations.create(LeaveConfiguration(**fields))
    return repos.leave_configurations.get_by_id(config_id)


def apply(container, employee, *, start, end, leave_type=LeaveType.ANNUAL, **kwargs):
    return container.leave_service.apply_leave(
        employee.employee_id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        reason=kwargs.pop("reason", "Family trip"),
        now=kwargs.pop("now", NOW),
        **kwargs,
    )


def test_business_days_skip_weekends():
    # Saturday through the following Sunday
    assert business_days(date(2025, 3, 15), date(2025, 3, 23)) == 5
    assert business_days(date(2025, 3, 15), date(2025, 3, 16)) == 0
    assert business_days(date(2025, 3, 20), date(2025, 3, 19)) == 0


def test_half_day_always_counts_half():
    assert leave_days(date(2025, 3, 17), date(2025, 3, 17), is_half_day=True) == 0.5


def test_apply_creates_pending_request(container, repos):
    add_config(repos)
    emp = add_employee(repos)

    leave = apply(container, emp, start=date(2025, 3, 15), end=date(2025, 3, 23))

    assert leave.status == LeaveStatus.PENDING
    assert leave.number_of_days == 5
    assert repos.leaves.get_by_id(leave.leave_id) == leave


def test_apply_half_day(container, repos):
    add_config(repos)
    emp = add_employee(repos)

    leave = apply(
        container,
        emp,
        start=date(2025, 3, 17),
        end=date(2025, 3, 17),
        is_half_day=True,
        half_day_period=HalfDayPeriod.AFTERNOON,
    )

    assert leave.number_of_days == 0.5
    assert leave.half_day_period == HalfDayPeriod.AFTERNOON


def test_half_day_must_be_single_day(container, repos):
    add_config(repos)
    emp = add_employee(repos)

    with pytest.raises(ValidationError, match="same day"):
        apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 18), is_half_day=True)


def test_half_day_rejected_when_not_allowed(container, repos):
    add_config(repos, allow_half_day=False)
    emp = add_employee(repos)

    with pytest.raises(ValidationError, match="Half-day leave is not allowed"):
        apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17), is_half_day=True)


def test_missing_configuration_is_rejected_first(container, repos):
    emp = add_employee(repos)

    # also has start > end; the configuration check comes first
    with pytest.raises(ConfigurationNotApplicable):
        apply(container, emp, start=date(2025, 3, 20), end=date(2025, 3, 19))


def test_configuration_must_apply_to_position_and_employment_type(container, repos):
    add_config(
        repos,
        applicable_positions=(Position.MANAGER.value,),
        applicable_employment_types=(EmploymentType.FULL_TIME.value,),
    )
    emp = add_employee(repos, position=Position.SALESMAN)

    with pytest.raises(ConfigurationNotApplicable):
        apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))


def test_inactive_configuration_is_ignored(container, repos):
    add_config(repos, is_active=False)
    emp = add_employee(repos)

    with pytest.raises(ConfigurationNotApplicable):
        apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))


def test_start_after_end_is_rejected(container, repos):
    add_config(repos)
    emp = add_employee(repos)

    with pytest.raises(ValidationError, match="Start date cannot be after end date"):
        apply(container, emp, start=date(2025, 3, 20), end=date(2025, 3, 19))


def test_weekend_only_period_is_rejected(container, repos):
    add_config(repos)
    emp = add_employee(repos)

    with pytest.raises(ValidationError, match="Leave period 2025-03-15 to 2025-03-16 contains no working days"):
        apply(container, emp, start=date(2025, 3, 15), end=date(2025, 3, 16))


def test_notice_period_is_enforced(container, repos):
    add_config(repos, minimum_notice_days=7)
    emp = add_employee(repos)

    with pytest.raises(InsufficientNotice, match="Minimum 7 days notice"):
        apply(container, emp, start=date(2025, 3, 14), end=date(2025, 3, 14))

    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))
    assert leave.status == LeaveStatus.PENDING


def test_backdating_requires_permission(container, repos):
    add_config(repos, leave_type=LeaveType.SICK)
    emp = add_employee(repos)

    with pytest.raises(BackdatingNotAllowed, match="Backdating not allowed"):
        apply(container, emp, leave_type=LeaveType.SICK, start=date(2025, 3, 7), end=date(2025, 3, 7))


def test_backdating_window_is_enforced(container, repos):
    add_config(repos, leave_type=LeaveType.SICK, allow_backdating=True, max_backdating_days=3)
    emp = add_employee(repos)

    with pytest.raises(BackdatingNotAllowed, match="more than 3 days"):
        apply(container, emp, leave_type=LeaveType.SICK, start=date(2025, 3, 5), end=date(2025, 3, 5))

    leave = apply(container, emp, leave_type=LeaveType.SICK, start=date(2025, 3, 7), end=date(2025, 3, 7))
    assert leave.number_of_days == 1


def test_balance_counts_only_approved_leave(container, repos):
    add_config(repos, leave_type=LeaveType.CASUAL)
    emp = add_employee(repos, leave_balance={LeaveType.CASUAL.value: 3})
    svc = container.leave_service

    first = apply(container, emp, leave_type=LeaveType.CASUAL, start=date(2025, 3, 17), end=date(2025, 3, 18))
    svc.approve_leave(first.leave_id, actor_user_id=1, now=NOW)
    # pending requests do not consume balance
    apply(container, emp, leave_type=LeaveType.CASUAL, start=date(2025, 3, 24), end=date(2025, 3, 24))

    with pytest.raises(InsufficientBalance) as exc:
        apply(container, emp, leave_type=LeaveType.CASUAL, start=date(2025, 3, 25), end=date(2025, 3, 26))

    assert exc.value.available == 1
    assert exc.value.requested == 2
    assert "Insufficient leave balance" in str(exc.value)


def test_max_consecutive_days(container, repos):
    add_config(repos, max_consecutive_days=3)
    emp = add_employee(repos)

    with pytest.raises(MaxConsecutiveDaysExceeded):
        apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 20))


def test_apply_notifies_approvers(container, repos):
    add_config(repos)
    emp = add_employee(repos, first_name="Sunil")
    manager = add_employee(repos, first_name="Mala", department="HR")
    add_user(repos, manager, role=Role.HR_MANAGER)
    add_user(repos, emp, role=Role.EMPLOYEE)

    apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17), priority=LeavePriority.URGENT)

    inbox = repos.notifications.list_for_recipient(manager.employee_id, limit=50)
    assert len(inbox) == 1
    assert inbox[0].type == NotificationType.LEAVE_REQUEST
    assert "Sunil Perera has applied for annual leave" in inbox[0].message
    assert repos.notifications.count_for_recipient(emp.employee_id) == 0


def test_approve_records_history_and_notifies(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 18))

    approved = container.leave_service.approve_leave(leave.leave_id, actor_user_id=9, comments="ok", now=NOW)

    assert approved.status == LeaveStatus.APPROVED
    assert approved.approved_by == 9
    history = repos.employees.list_leave_history(emp.employee_id)
    assert [h.status for h in history] == [LeaveStatus.APPROVED]
    assert history[0].days == 2
    inbox = repos.notifications.list_for_recipient(emp.employee_id, limit=50)
    assert inbox[0].type == NotificationType.LEAVE_APPROVED


def test_reject_includes_reason(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))

    rejected = container.leave_service.reject_leave(leave.leave_id, actor_user_id=9, reason="Busy season", now=NOW)

    assert rejected.status == LeaveStatus.REJECTED
    assert rejected.rejection_reason == "Busy season"
    inbox = repos.notifications.list_for_recipient(emp.employee_id, limit=50)
    assert inbox[0].message.endswith("Reason: Busy season")


def test_decided_leave_cannot_be_decided_again(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))
    container.leave_service.approve_leave(leave.leave_id, actor_user_id=9, now=NOW)

    with pytest.raises(ValidationError, match="already processed"):
        container.leave_service.reject_leave(leave.leave_id, actor_user_id=9, now=NOW)


def test_cancel_only_own_and_not_started(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    other = add_employee(repos, first_name="Ruwan")
    svc = container.leave_service
    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17))
    svc.approve_leave(leave.leave_id, actor_user_id=9, now=NOW)

    with pytest.raises(NotFoundError):
        svc.cancel_leave(leave.leave_id, employee_id=other.employee_id, now=NOW)
    with pytest.raises(ValidationError, match="already started"):
        svc.cancel_leave(leave.leave_id, employee_id=emp.employee_id, now=datetime(2025, 3, 17, 8, 0))

    cancelled = svc.cancel_leave(leave.leave_id, employee_id=emp.employee_id, now=NOW)
    assert cancelled.status == LeaveStatus.CANCELLED
    with pytest.raises(ValidationError, match="already cancelled"):
        svc.cancel_leave(leave.leave_id, employee_id=emp.employee_id, now=NOW)


def test_leave_balance_report(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    svc = container.leave_service
    leave = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 19))
    svc.approve_leave(leave.leave_id, actor_user_id=9, now=NOW)

    balance = svc.leave_balance(emp.employee_id, year=2025)

    assert balance["annual"].total == 21
    assert balance["annual"].taken == 3
    assert balance["annual"].balance == 18
    assert balance["sick"].taken == 0


def test_pending_leaves_sorted_by_priority(container, repos):
    add_config(repos)
    emp = add_employee(repos)
    low = apply(container, emp, start=date(2025, 3, 17), end=date(2025, 3, 17), priority=LeavePriority.LOW)
    urgent = apply(container, emp, start=date(2025, 3, 18), end=date(2025, 3, 18), priority=LeavePriority.URGENT)

    pending = container.leave_service.pending_leaves()

    assert [l.leave_id for l in pending] == [urgent.leave_id, low.leave_id]


def test_configuration_service_validates(container):
    svc = container.leave_configuration_service

    with pytest.raises(ValidationError, match="Missing configuration fields"):
        svc.create_configuration(name="Study Leave")
    with pytest.raises(ValidationError, match="Unknown configuration fields"):
        svc.create_configuration(name="Study", leave_type=LeaveType.PERSONAL, max_days_per_year=5, colour="red")

    config = svc.create_configuration(name="Study Leave", leave_type=LeaveType.PERSONAL, max_days_per_year=5)
    assert config.config_id > 0
    assert config.applicable_positions == ("all",)

    updated = svc.update_configuration(config.config_id, {"max_days_per_year": 8, "config_id": 99})
    assert updated.max_days_per_year == 8
    assert updated.config_id == config.config_id
