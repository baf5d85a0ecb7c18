from __future__ import annotations

from flask import Flask

from ..api.http import arg_bool, arg_enum, arg_int, body, ok
from ..api.security import build_guard, current_employee_id, current_user
from ..common.validators import require_enum
from ..container import Container
from ..core.constants import DEFAULT_NOTIFICATION_LIMIT
from ..core.enums import NotificationPriority, NotificationType, Role
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    guard = build_guard(container.auth_service)
    notifications = container.notification_service

    def _kind(data: dict) -> tuple[NotificationType, NotificationPriority]:
        return (
            require_enum(NotificationType, data.get("type", NotificationType.ANNOUNCEMENT.value), "notification type"),
            require_enum(NotificationPriority, data.get("priority", NotificationPriority.MEDIUM.value), "priority"),
        )

    @app.route("/api/notifications/my-notifications", methods=["GET"], endpoint="notifications_mine")
    @guard("self.notifications")
    def my_notifications():
        page = notifications.my_notifications(
            current_employee_id(),
            limit=arg_int("limit") or DEFAULT_NOTIFICATION_LIMIT,
            offset=arg_int("offset") or 0,
            unread_only=bool(arg_bool("unread_only")),
        )
        return ok(page.items, total=page.total, unread=page.unread, has_more=page.has_more)

    @app.route("/api/notifications/unread-count", methods=["GET"], endpoint="notifications_unread_count")
    @guard("self.notifications")
    def unread_count():
        return ok({"count": notifications.unread_count(current_employee_id())})

    @app.route("/api/notifications/mark-all-read", methods=["PUT"], endpoint="notifications_mark_all_read")
    @guard("self.notifications")
    def mark_all_read():
        count = notifications.mark_all_read(current_employee_id())
        return ok({"updated": count}, message="All notifications marked as read")

    @app.route("/api/notifications/<int:notification_id>/read", methods=["PUT"], endpoint="notifications_mark_read")
    @guard("self.notifications")
    def mark_read(notification_id: int):
        notifications.mark_read(notification_id, employee_id=current_employee_id())
        return ok(message="Notification marked as read")

    @app.route("/api/notifications/<int:notification_id>", methods=["DELETE"], endpoint="notifications_delete")
    @guard("self.notifications")
    def delete(notification_id: int):
        notifications.delete(notification_id, employee_id=current_employee_id())
        return ok(message="Notification deleted")

    @app.route("/api/notifications/send", methods=["POST"], endpoint="notifications_send")
    @guard("notifications.send")
    def send():
        data = body()
        recipients = data.get("recipients") or []
        if not isinstance(recipients, list):
            raise ValidationError("recipients must be a list of employee ids")
        kind, priority = _kind(data)
        count = notifications.send(
            recipient_ids=recipients,
            title=data.get("title", ""),
            message=data.get("message", ""),
            type=kind,
            priority=priority,
            sender_id=current_user().employee_id,
        )
        return ok({"sent": count}, message=f"Notification sent to {count} employees", status=201)

    @app.route("/api/notifications/broadcast", methods=["POST"], endpoint="notifications_broadcast")
    @guard("notifications.broadcast")
    def broadcast():
        data = body()
        kind, priority = _kind(data)
        count = notifications.broadcast(
            title=data.get("title", ""),
            message=data.get("message", ""),
            department=data.get("department") or None,
            role=arg_enum(Role, "role", source=data),
            type=kind,
            priority=priority,
            sender_id=current_user().employee_id,
        )
        return ok({"sent": count}, message=f"Broadcast sent to {count} employees", status=201)
