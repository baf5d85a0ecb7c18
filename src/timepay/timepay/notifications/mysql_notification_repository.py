from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import NotificationPriority, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = """
    notification_id, recipient_id, sender_id, type, title, message, priority,
    related_model, related_id, is_read, read_at, created_at
"""


def _to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        recipient_id=int(r["recipient_id"]),
        sender_id=r.get("sender_id"),
        type=NotificationType(r["type"]),
        title=r["title"],
        message=r["message"],
        priority=NotificationPriority(r.get("priority") or "medium"),
        related_model=r.get("related_model"),
        related_id=r.get("related_id"),
        is_read=bool(r.get("is_read", False)),
        read_at=r.get("read_at"),
        created_at=r.get("created_at"),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, notification: Notification) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(
                    recipient_id, sender_id, type, title, message, priority,
                    related_model, related_id, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    notification.recipient_id,
                    notification.sender_id,
                    notification.type.value,
                    notification.title,
                    notification.message,
                    notification.priority.value,
                    notification.related_model,
                    notification.related_id,
                    notification.created_at or datetime.now(),
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE notification_id=%s", (notification_id,))
            r = fetchone(cur)
            return _to_notification(r) if r else None

    def list_for_recipient(
        self,
        recipient_id: int,
        *,
        limit: int,
        offset: int = 0,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        sql = f"SELECT {_COLUMNS} FROM notifications WHERE recipient_id=%s"
        if unread_only:
            sql += " AND is_read=0"
        sql += " ORDER BY created_at DESC, notification_id DESC LIMIT %s OFFSET %s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (recipient_id, int(limit), int(offset)))
            return [_to_notification(r) for r in fetchall(cur)]

    def count_for_recipient(self, recipient_id: int, *, unread_only: bool = False) -> int:
        sql = "SELECT COUNT(*) AS n FROM notifications WHERE recipient_id=%s"
        if unread_only:
            sql += " AND is_read=0"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (recipient_id,))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def mark_read(self, *, notification_id: int, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE notification_id=%s",
                (read_at, notification_id),
            )
            return cur.rowcount > 0

    def mark_all_read(self, *, recipient_id: int, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE recipient_id=%s AND is_read=0",
                (read_at, recipient_id),
            )
            return int(cur.rowcount)

    def delete(self, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notifications WHERE notification_id=%s", (notification_id,))
            return cur.rowcount > 0
