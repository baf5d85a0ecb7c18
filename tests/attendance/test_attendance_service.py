from __future__ import annotations

from datetime import date, datetime, time

import pytest

from builders import add_employee
from timepay.attendance.calculator.standard_calculator import StandardWorkHoursCalculator
from timepay.attendance.model import AttendancePatch
from timepay.branches.model import Branch
from timepay.core.enums import AttendanceStatus, WorkType
from timepay.core.exceptions import NotFoundError, ValidationError


def test_clock_in_after_opening_records_late_minutes(container, repos):
    emp = add_employee(repos)

    rec = container.attendance_service.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 15))

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.late_minutes == 15
    assert rec.total_hours == 0
    assert repos.attendance.get_for_employee_and_date(emp.employee_id, date(2025, 3, 10)) is not None


def test_clock_in_before_opening_is_not_late(container, repos):
    emp = add_employee(repos)

    rec = container.attendance_service.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 8, 45))

    assert rec.late_minutes == 0


def test_clock_out_before_closing_records_early_leave_and_hours(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 0))

    rec = svc.clock_out(emp.employee_id, break_minutes=60, now=datetime(2025, 3, 10, 17, 30))

    assert rec.early_leave_minutes == 30
    assert rec.total_hours == 7.5
    assert rec.regular_hours == 7.5
    assert rec.overtime_hours == 0


def test_hours_past_standard_day_are_overtime(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 8, 0))

    rec = svc.clock_out(emp.employee_id, break_minutes=60, now=datetime(2025, 3, 10, 19, 0))

    assert rec.total_hours == 10
    assert rec.regular_hours == 8
    assert rec.overtime_hours == 2
    assert rec.regular_hours + rec.overtime_hours == rec.total_hours
    assert rec.early_leave_minutes == 0


def test_default_break_is_one_hour(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 0))

    rec = svc.clock_out(emp.employee_id, now=datetime(2025, 3, 10, 18, 0))

    assert rec.break_minutes == 60
    assert rec.total_hours == 8


def test_branch_hours_drive_lateness(container, repos):
    branch_id = repos.branches.create(
        Branch(branch_id=0, name="Kandy", code="KDY", opening_time=time(8, 0), closing_time=time(17, 0))
    )
    emp = add_employee(repos, branch_id=branch_id)

    rec = container.attendance_service.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 8, 20))

    assert rec.late_minutes == 20
    assert rec.branch_id == branch_id


def test_second_clock_in_same_day_is_rejected(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 0))

    with pytest.raises(ValidationError, match="Already clocked in today"):
        svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 10, 0))


def test_clock_out_without_clock_in_is_rejected(container, repos):
    emp = add_employee(repos)

    with pytest.raises(ValidationError, match="No clock in found for today"):
        container.attendance_service.clock_out(emp.employee_id, now=datetime(2025, 3, 10, 18, 0))


def test_second_clock_out_is_rejected(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 0))
    svc.clock_out(emp.employee_id, now=datetime(2025, 3, 10, 18, 0))

    with pytest.raises(ValidationError, match="Already clocked out today"):
        svc.clock_out(emp.employee_id, now=datetime(2025, 3, 10, 18, 5))


def test_negative_break_is_rejected(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.clock_in(emp.employee_id, now=datetime(2025, 3, 10, 9, 0))

    with pytest.raises(ValidationError):
        svc.clock_out(emp.employee_id, break_minutes=-5, now=datetime(2025, 3, 10, 18, 0))


def test_clock_in_unknown_employee(container):
    with pytest.raises(NotFoundError):
        container.attendance_service.clock_in(999, now=datetime(2025, 3, 10, 9, 0))


def test_mark_attendance_rejects_duplicate_date(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    svc.mark_attendance(employee_id=emp.employee_id, work_date=date(2025, 3, 3), status=AttendanceStatus.ABSENT)

    with pytest.raises(ValidationError, match="Attendance already marked for this date"):
        svc.mark_attendance(employee_id=emp.employee_id, work_date=date(2025, 3, 3), status=AttendanceStatus.PRESENT)


def test_mark_attendance_derives_hours_from_times(container, repos):
    emp = add_employee(repos)

    rec = container.attendance_service.mark_attendance(
        employee_id=emp.employee_id,
        work_date=date(2025, 3, 3),
        status=AttendanceStatus.PRESENT,
        clock_in=datetime(2025, 3, 3, 9, 30),
        clock_out=datetime(2025, 3, 3, 20, 0),
        break_minutes=30,
        work_type=WorkType.REMOTE,
        actor_user_id=7,
    )

    assert rec.late_minutes == 30
    assert rec.total_hours == 10
    assert rec.overtime_hours == 2
    assert rec.approved_by == 7


def test_update_attendance_recomputes_when_times_change(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    rec = svc.mark_attendance(
        employee_id=emp.employee_id,
        work_date=date(2025, 3, 3),
        status=AttendanceStatus.PRESENT,
        clock_in=datetime(2025, 3, 3, 9, 0),
        clock_out=datetime(2025, 3, 3, 18, 0),
    )

    updated = svc.update_attendance(rec.attendance_id, AttendancePatch(clock_in=datetime(2025, 3, 3, 9, 45)))

    assert updated.late_minutes == 45
    assert updated.total_hours == 7.25


def test_update_attendance_without_changes_is_rejected(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    rec = svc.mark_attendance(employee_id=emp.employee_id, work_date=date(2025, 3, 3), status=AttendanceStatus.ABSENT)

    with pytest.raises(ValidationError, match="Nothing to update"):
        svc.update_attendance(rec.attendance_id, AttendancePatch())


def test_update_attendance_rejects_clock_out_before_clock_in(container, repos):
    emp = add_employee(repos)
    svc = container.attendance_service
    rec = svc.mark_attendance(
        employee_id=emp.employee_id,
        work_date=date(2025, 3, 3),
        status=AttendanceStatus.PRESENT,
        clock_in=datetime(2025, 3, 3, 9, 0),
        clock_out=datetime(2025, 3, 3, 18, 0),
    )

    with pytest.raises(ValidationError):
        svc.update_attendance(rec.attendance_id, AttendancePatch(clock_out=datetime(2025, 3, 3, 8, 0)))


def test_monthly_report_groups_by_employee(container, repos):
    a = add_employee(repos, first_name="Amal")
    b = add_employee(repos, first_name="Kamal", department="Finance")
    svc = container.attendance_service
    svc.mark_attendance(employee_id=a.employee_id, work_date=date(2025, 3, 3), status=AttendanceStatus.PRESENT)
    svc.mark_attendance(employee_id=a.employee_id, work_date=date(2025, 3, 4), status=AttendanceStatus.ABSENT)
    svc.mark_attendance(employee_id=b.employee_id, work_date=date(2025, 3, 3), status=AttendanceStatus.PRESENT)

    rows = svc.monthly_report(month=3, year=2025)
    assert [r["employee_id"] for r in rows] == [a.employee_id, b.employee_id]
    assert rows[0]["present"] == 1 and rows[0]["absent"] == 1

    finance = svc.monthly_report(month=3, year=2025, department="Finance")
    assert [r["employee_id"] for r in finance] == [b.employee_id]


def test_standard_calculator_never_goes_negative():
    hours = StandardWorkHoursCalculator().derive(
        clock_in=datetime(2025, 1, 1, 9, 0),
        clock_out=datetime(2025, 1, 1, 9, 30),
        break_minutes=60,
        standard_hours=8,
    )

    assert hours.total == 0
    assert hours.regular == 0
    assert hours.overtime == 0
