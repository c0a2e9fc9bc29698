"""Tests for the notification feed."""

import asyncio

import pytest

from conftest import USER, settle
from falusy.models import Notification, now_millis
from falusy.services.remote import Collection, PermissionDeniedError, ServiceUnavailableError
from falusy.sync import NotificationFeed, visible_notifications
from falusy.toasts import ToastLevel


HOUR = 60 * 60 * 1000


def notification(doc_id, created_at=1000, read=False, urgent=False, expires_at=None) -> Notification:
    return Notification(
        id=doc_id,
        user_id=USER,
        created_at=created_at,
        read=read,
        urgent=urgent,
        expires_at=expires_at,
    )


class TestVisibility:
    @pytest.mark.parametrize("read", [False, True])
    def test_expired_notifications_are_hidden(self, read):
        """Test past expiresAt hides a notification whatever its read state."""
        now = 10_000
        items = [
            notification("expired", read=read, expires_at=now - 1),
            notification("live", expires_at=now + 1),
            notification("forever"),
        ]
        assert {n.id for n in visible_notifications(items, now_ms=now)} == {"live", "forever"}

    def test_order_urgent_then_unread_then_newest(self):
        items = [
            notification("old-unread", created_at=1),
            notification("new-read", created_at=5, read=True),
            notification("urgent-read", created_at=0, read=True, urgent=True),
            notification("new-unread", created_at=4),
        ]
        assert [n.id for n in visible_notifications(items, now_ms=0)] == [
            "urgent-read",
            "new-unread",
            "old-unread",
            "new-read",
        ]


class TestNotificationFeed:
    async def seed(self, remote):
        now = now_millis()
        await remote.set(Collection.NOTIFICATIONS, "n1", {"userId": USER, "title": {"en": "Hi"}, "createdAt": now})
        await remote.set(Collection.NOTIFICATIONS, "n2", {"userId": USER, "read": True, "expiresAt": now - HOUR})
        await remote.set(Collection.NOTIFICATIONS, "n3", {"userId": USER, "urgent": True, "createdAt": now - HOUR})
        await remote.set(Collection.NOTIFICATIONS, "x1", {"userId": "someone-else"})

    def test_feed_lists_visible_user_notifications(self, remote, toasts):
        feed = NotificationFeed(remote, toasts)

        async def scenario():
            await self.seed(remote)
            await feed.activate(USER)
            await settle()
            listed = [n.id for n in feed.items]
            unread = feed.unread_count
            await feed.deactivate()
            return listed, unread

        listed, unread = asyncio.run(scenario())
        assert listed == ["n3", "n1"]
        assert unread == 2

    def test_mark_all_as_read(self, remote, toasts):
        feed = NotificationFeed(remote, toasts)

        async def scenario():
            await self.seed(remote)
            await feed.activate(USER)
            await settle()
            assert await feed.mark_all_as_read() is True
            await settle()
            unread = feed.unread_count
            await feed.deactivate()
            return unread

        assert asyncio.run(scenario()) == 0
        assert toasts.keys(ToastLevel.SUCCESS) == ["notifications_marked_read"]

    def test_mark_as_read_and_delete(self, remote, toasts):
        feed = NotificationFeed(remote, toasts)

        async def scenario():
            await self.seed(remote)
            await feed.activate(USER)
            await settle()
            await feed.mark_as_read("n1")
            await feed.delete("n3")
            await settle()
            items = feed.items
            await feed.deactivate()
            return items

        items = asyncio.run(scenario())
        assert [n.id for n in items] == ["n1"]
        assert items[0].read is True

    def test_action_failures_toast_unless_permission(self, remote, toasts):
        feed = NotificationFeed(remote, toasts)
        remote.fail_on("delete", Collection.NOTIFICATIONS, PermissionDeniedError(), doc_id="denied")
        remote.fail_on("delete", Collection.NOTIFICATIONS, ServiceUnavailableError("offline"), doc_id="down")

        assert asyncio.run(feed.delete("denied")) is False
        assert toasts.toasts == []
        assert asyncio.run(feed.delete("down")) is False
        assert toasts.keys(ToastLevel.ERROR) == ["notification_action_failed"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
