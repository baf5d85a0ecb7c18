from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationPriority, NotificationType


@dataclass(frozen=True)
class Notification:
    """Fire-and-forget message to one employee."""

    notification_id: int
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority = NotificationPriority.MEDIUM
    sender_id: Optional[int] = None
    related_model: Optional[str] = None
    related_id: Optional[int] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NotificationPage:
    items: list[Notification]
    total: int
    unread: int
    has_more: bool
