"""
Sync Package

Live, display-ordered lists of the active user's documents:
- LiveCollection: generic live query consumer
- SyncController: LiveCollection mirrored into the offline store
- NotificationFeed: notifications with expiry filtering
"""

from falusy.sync.controller import SyncController
from falusy.sync.live import LiveCollection
from falusy.sync.notifications import NotificationFeed, visible_notifications
from falusy.sync.ordering import (
    compare_transactions,
    sort_by_created,
    sort_notifications,
    sort_transactions,
)

__all__ = [
    "LiveCollection",
    "NotificationFeed",
    "SyncController",
    "compare_transactions",
    "sort_by_created",
    "sort_notifications",
    "sort_transactions",
    "visible_notifications",
]
