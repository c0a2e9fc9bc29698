"""
Notification feed for the active user.

Expired notifications are hidden whether or not they were read. The
remaining ones are ordered urgent first, then unread, then newest.
"""

from typing import Optional

import structlog

from falusy.models.records import Notification, now_millis
from falusy.services.remote import Collection, RemoteDataService, RemoteError
from falusy.sync.live import LiveCollection
from falusy.sync.ordering import sort_notifications
from falusy.toasts import ToastSink


logger = structlog.get_logger(__name__)


def visible_notifications(
    notifications: list[Notification],
    now_ms: Optional[int] = None,
) -> list[Notification]:
    now_ms = now_ms if now_ms is not None else now_millis()
    return sort_notifications([n for n in notifications if not n.is_expired(now_ms)])


class NotificationFeed(LiveCollection[Notification]):
    def __init__(self, remote: RemoteDataService, toasts: ToastSink):
        super().__init__(
            Collection.NOTIFICATIONS,
            remote,
            toasts,
            Notification,
            arrange=visible_notifications,
        )

    @property
    def items(self) -> list[Notification]:
        # Re-filter on read: an item can expire between two snapshots
        return visible_notifications(self._items)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items if not n.read)

    def _report(self, event: str, error: RemoteError, notification_id: Optional[str] = None) -> None:
        if error.is_permission_error:
            logger.debug(event, notification_id=notification_id, kind=error.kind.value)
            return
        logger.error(event, notification_id=notification_id, kind=error.kind.value, error=str(error))
        self._toasts.error("notification_action_failed")

    async def mark_as_read(self, notification_id: str) -> bool:
        try:
            await self._remote.update(Collection.NOTIFICATIONS, notification_id, {"read": True})
        except RemoteError as e:
            self._report("notification_mark_read_failed", e, notification_id)
            return False
        return True

    async def mark_all_as_read(self) -> bool:
        unread = [n for n in self.items if not n.read]
        try:
            for notification in unread:
                await self._remote.update(Collection.NOTIFICATIONS, notification.id, {"read": True})
        except RemoteError as e:
            self._report("notification_mark_all_read_failed", e)
            return False
        self._toasts.success("notifications_marked_read")
        return True

    async def delete(self, notification_id: str) -> bool:
        try:
            await self._remote.delete(Collection.NOTIFICATIONS, notification_id)
        except RemoteError as e:
            self._report("notification_delete_failed", e, notification_id)
            return False
        self._toasts.success("notification_deleted")
        return True
