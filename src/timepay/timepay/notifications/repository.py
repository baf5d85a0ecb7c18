from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(self, notification: Notification) -> int:
        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_recipient(
        self,
        recipient_id: int,
        *,
        limit: int,
        offset: int = 0,
        unread_only: bool = False,
    ) -> Sequence[Notification]:
        """Newest first."""

        raise NotImplementedError

    def count_for_recipient(self, recipient_id: int, *, unread_only: bool = False) -> int:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, read_at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, *, recipient_id: int, read_at: datetime) -> int:
        raise NotImplementedError

    def delete(self, notification_id: int) -> bool:
        raise NotImplementedError
