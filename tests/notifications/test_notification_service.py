from __future__ import annotations

from datetime import datetime

import pytest

from builders import add_employee, add_user
from timepay.core.enums import EmployeeStatus, NotificationPriority, NotificationType, Role
from timepay.core.exceptions import NotFoundError, ValidationError

NOW = datetime(2025, 3, 10, 9, 0)


def _notify(svc, recipient_id: int, title: str = "Hello"):
    return svc.notify(
        recipient_id=recipient_id,
        type=NotificationType.SYSTEM,
        title=title,
        message=f"{title} message",
        now=NOW,
    )


def test_notify_stores_related_entity(container, repos):
    emp = add_employee(repos)

    note = container.notification_service.notify(
        recipient_id=emp.employee_id,
        type=NotificationType.LEAVE_APPROVED,
        title="Leave Approved",
        message="Your annual leave has been approved",
        priority=NotificationPriority.HIGH,
        related=("leave", 12),
        now=NOW,
    )

    stored = repos.notifications.get_by_id(note.notification_id)
    assert stored.related_model == "leave"
    assert stored.related_id == 12
    assert stored.priority == NotificationPriority.HIGH
    assert not stored.is_read


def test_my_notifications_pages_newest_first(container, repos):
    emp = add_employee(repos)
    svc = container.notification_service
    for i in range(5):
        _notify(svc, emp.employee_id, title=f"N{i}")

    first = svc.my_notifications(emp.employee_id, limit=2)
    assert [n.title for n in first.items] == ["N4", "N3"]
    assert first.total == 5
    assert first.unread == 5
    assert first.has_more

    last = svc.my_notifications(emp.employee_id, limit=2, offset=4)
    assert [n.title for n in last.items] == ["N0"]
    assert not last.has_more


def test_mark_read_only_for_owner(container, repos):
    owner = add_employee(repos, first_name="Owner")
    other = add_employee(repos, first_name="Other")
    svc = container.notification_service
    note = _notify(svc, owner.employee_id)

    with pytest.raises(NotFoundError, match="Notification not found"):
        svc.mark_read(note.notification_id, employee_id=other.employee_id)

    svc.mark_read(note.notification_id, employee_id=owner.employee_id, now=NOW)
    stored = repos.notifications.get_by_id(note.notification_id)
    assert stored.is_read
    assert stored.read_at == NOW
    assert svc.unread_count(owner.employee_id) == 0


def test_mark_all_read_and_unread_filter(container, repos):
    emp = add_employee(repos)
    svc = container.notification_service
    for i in range(3):
        _notify(svc, emp.employee_id, title=f"N{i}")

    assert svc.mark_all_read(emp.employee_id, now=NOW) == 3
    assert svc.mark_all_read(emp.employee_id, now=NOW) == 0
    assert svc.my_notifications(emp.employee_id, unread_only=True).items == []


def test_delete_checks_ownership(container, repos):
    owner = add_employee(repos, first_name="Owner")
    other = add_employee(repos, first_name="Other")
    svc = container.notification_service
    note = _notify(svc, owner.employee_id)

    with pytest.raises(NotFoundError):
        svc.delete(note.notification_id, employee_id=other.employee_id)

    svc.delete(note.notification_id, employee_id=owner.employee_id)
    assert repos.notifications.get_by_id(note.notification_id) is None


def test_send_to_explicit_recipients(container, repos):
    a = add_employee(repos, first_name="Amal")
    b = add_employee(repos, first_name="Bimal")
    svc = container.notification_service

    sent = svc.send(
        recipient_ids=[a.employee_id, b.employee_id, a.employee_id],
        title="Stock take",
        message="Stock take on Friday",
        sender_id=99,
        now=NOW,
    )

    assert sent == 2
    note = repos.notifications.list_for_recipient(b.employee_id, limit=1)[0]
    assert note.type == NotificationType.ANNOUNCEMENT
    assert note.sender_id == 99


def test_send_rejects_bad_input(container, repos):
    a = add_employee(repos)
    svc = container.notification_service

    with pytest.raises(ValidationError, match="At least one recipient is required"):
        svc.send(recipient_ids=[], title="T", message="M")
    with pytest.raises(ValidationError, match="Title is required"):
        svc.send(recipient_ids=[a.employee_id], title=" ", message="M")
    with pytest.raises(NotFoundError, match="Employee 404 not found"):
        svc.send(recipient_ids=[a.employee_id, 404], title="T", message="M")
    # nothing delivered when any recipient is unknown
    assert repos.notifications.count_for_recipient(a.employee_id) == 0


def test_broadcast_by_department_skips_inactive(container, repos):
    a = add_employee(repos, first_name="Amal", department="Sales")
    add_employee(repos, first_name="Bimal", department="Finance")
    c = add_employee(repos, first_name="Chamal", department="Sales", status=EmployeeStatus.INACTIVE)
    svc = container.notification_service

    sent = svc.broadcast(title="Target", message="Monthly target reached", department="Sales", now=NOW)

    assert sent == 1
    assert svc.unread_count(a.employee_id) == 1
    assert svc.unread_count(c.employee_id) == 0


def test_broadcast_by_role(container, repos):
    hr = add_employee(repos, first_name="Hiru", department="HR")
    staff = add_employee(repos, first_name="Sunil")
    add_user(repos, hr, role=Role.HR_MANAGER)
    add_user(repos, staff, role=Role.EMPLOYEE)
    svc = container.notification_service

    assert svc.broadcast(title="Policy", message="New leave policy", role=Role.HR_MANAGER, now=NOW) == 1
    assert svc.unread_count(hr.employee_id) == 1
    assert svc.unread_count(staff.employee_id) == 0


def test_notify_roles_reaches_linked_employees(container, repos):
    hr = add_employee(repos, first_name="Hiru")
    add_user(repos, hr, role=Role.HR_MANAGER)
    add_user(repos, None, role=Role.ADMIN)

    count = container.notification_service.notify_roles(
        [Role.HR_MANAGER, Role.ADMIN],
        type=NotificationType.SYSTEM,
        title="Backup",
        message="Backup completed",
    )

    assert count == 1
