from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import EmployeeStatus, NotificationPriority, NotificationType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..users.repository import UserRepository
from .model import Notification, NotificationPage
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Fan-out messaging. Delivery is best effort: nothing retries."""

    def __init__(
        self,
        notifications: NotificationRepository,
        employees: EmployeeRepository,
        users: Optional[UserRepository] = None,
    ):
        self._notifications = notifications
        self._employees = employees
        self._users = users

    def notify(
        self,
        *,
        recipient_id: int,
        type: NotificationType,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        sender_id: Optional[int] = None,
        related: Optional[tuple[str, int]] = None,
        now: datetime | None = None,
    ) -> Notification:
        notification = Notification(
            notification_id=0,
            recipient_id=int(recipient_id),
            type=type,
            title=title,
            message=message,
            priority=priority,
            sender_id=sender_id,
            related_model=related[0] if related else None,
            related_id=related[1] if related else None,
            created_at=now or datetime.now(),
        )
        notification_id = self._notifications.create(notification)
        logger.debug("notification %s (%s) -> employee %s", notification_id, type.value, recipient_id)
        return replace(notification, notification_id=notification_id)

    def notify_roles(self, roles: Iterable[Role], **kwargs) -> int:
        """Notify every employee whose linked account holds one of ``roles``."""

        if self._users is None:
            return 0
        recipients = {u.employee_id for u in self._users.list_by_roles(roles) if u.employee_id is not None}
        for recipient_id in sorted(recipients):
            self.notify(recipient_id=recipient_id, **kwargs)
        return len(recipients)

    def my_notifications(
        self,
        employee_id: int,
        *,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
        offset: int = 0,
        unread_only: bool = False,
    ) -> NotificationPage:
        limit = max(1, int(limit))
        offset = max(0, int(offset))
        items = list(
            self._notifications.list_for_recipient(employee_id, limit=limit, offset=offset, unread_only=unread_only)
        )
        total = self._notifications.count_for_recipient(employee_id, unread_only=unread_only)
        unread = self._notifications.count_for_recipient(employee_id, unread_only=True)
        return NotificationPage(items=items, total=total, unread=unread, has_more=offset + len(items) < total)

    def _owned(self, notification_id: int, employee_id: int) -> Notification:
        notification = self._notifications.get_by_id(notification_id)
        if not notification or notification.recipient_id != employee_id:
            raise NotFoundError("Notification not found")
        return notification

    def mark_read(self, notification_id: int, *, employee_id: int, now: datetime | None = None) -> None:
        notification = self._owned(notification_id, employee_id)
        if not notification.is_read:
            self._notifications.mark_read(notification_id=notification_id, read_at=now or datetime.now())

    def mark_all_read(self, employee_id: int, *, now: datetime | None = None) -> int:
        return self._notifications.mark_all_read(recipient_id=employee_id, read_at=now or datetime.now())

    def delete(self, notification_id: int, *, employee_id: int) -> None:
        self._owned(notification_id, employee_id)
        self._notifications.delete(notification_id)

    def unread_count(self, employee_id: int) -> int:
        return self._notifications.count_for_recipient(employee_id, unread_only=True)

    def send(
        self,
        *,
        recipient_ids: Iterable[int],
        title: str,
        message: str,
        type: NotificationType = NotificationType.ANNOUNCEMENT,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        sender_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> int:
        title = require_non_empty(title, "Title")
        message = require_non_empty(message, "Message")
        recipients = sorted({int(r) for r in recipient_ids})
        if not recipients:
            raise ValidationError("At least one recipient is required")
        for recipient_id in recipients:
            if not self._employees.get_by_id(recipient_id):
                raise NotFoundError(f"Employee {recipient_id} not found")

        for recipient_id in recipients:
            self.notify(
                recipient_id=recipient_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                sender_id=sender_id,
                now=now,
            )
        return len(recipients)

    def broadcast(
        self,
        *,
        title: str,
        message: str,
        department: Optional[str] = None,
        role: Optional[Role] = None,
        type: NotificationType = NotificationType.ANNOUNCEMENT,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        sender_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> int:
        title = require_non_empty(title, "Title")
        message = require_non_empty(message, "Message")
        targets = self._employees.list(status=EmployeeStatus.ACTIVE, department=department or None)

        if role is not None:
            if self._users is None:
                raise ValidationError("Role filtering is not available")
            with_role = {u.employee_id for u in self._users.list_by_roles([role])}
            targets = [e for e in targets if e.employee_id in with_role]

        for employee in targets:
            self.notify(
                recipient_id=employee.employee_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                sender_id=sender_id,
                now=now,
            )
        logger.info("broadcast %r sent to %d employees", title, len(targets))
        return len(targets)
