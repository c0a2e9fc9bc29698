"""
Sync Controller

Keeps one user's expenses, revenues or projects live in memory and
mirrors them into the local offline store.

Order of operations for every snapshot:
1. Publish to listeners (the UI must not wait on disk)
2. Replace the user's rows in the mirror

On activation the mirror is read first so a cold start shows the last
known list before the remote answers. When the live query fails for a
reason other than permissions, the mirror becomes the data source until
the next snapshot arrives.
"""

import asyncio
from typing import Optional

import structlog

from falusy.models.records import Expense, Project, Revenue, TimestampedRecord
from falusy.services.mirror import MirrorStore
from falusy.services.remote import Collection, RemoteDataService, RemoteError
from falusy.services.mirror.interface import require_mirrored
from falusy.sync.live import LiveCollection
from falusy.sync.ordering import sort_by_created, sort_transactions
from falusy.toasts import ToastSink


logger = structlog.get_logger(__name__)

RECORD_TYPES: dict[Collection, type[TimestampedRecord]] = {
    Collection.EXPENSES: Expense,
    Collection.REVENUES: Revenue,
    Collection.PROJECTS: Project,
}

ORDERINGS = {
    Collection.EXPENSES: sort_transactions,
    Collection.REVENUES: sort_transactions,
    Collection.PROJECTS: sort_by_created,
}

DEFAULT_FLUSH_INTERVAL = 0.5


class SyncController(LiveCollection):
    """Live list of one mirrored collection for the active user."""

    def __init__(
        self,
        collection: Collection,
        remote: RemoteDataService,
        mirror: MirrorStore,
        toasts: ToastSink,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL,
    ):
        collection = Collection(collection)
        require_mirrored(collection)
        super().__init__(
            collection,
            remote,
            toasts,
            RECORD_TYPES[collection],
            arrange=ORDERINGS[collection],
        )
        self._mirror = mirror
        self._flush_interval = flush_interval

    async def _before_subscribe(self, user_id: str) -> None:
        cached = self.to_records(await self._mirror.load(self.collection, user_id))
        if cached:
            logger.debug(
                "mirror_preloaded",
                collection=self.collection.value,
                user_id=user_id,
                record_count=len(cached),
            )
            self._publish(cached)
        self._start_task(self._flush_periodically())

    async def _on_snapshot(self, records: list) -> None:
        self._publish(records)
        await self._mirror.save(self.collection, records, self._user_id)

    async def _on_error(self, error: RemoteError) -> None:
        if error.is_permission_error:
            logger.debug("live_query_denied", collection=self.collection.value, user_id=self._user_id)
            return

        logger.warning(
            "live_query_failed",
            collection=self.collection.value,
            user_id=self._user_id,
            kind=error.kind.value,
            error=str(error),
        )
        cached = self.to_records(await self._mirror.load(self.collection, self._user_id))
        if cached:
            self._publish(cached)
            self._toasts.info("offline_cache_used")
        else:
            self._toasts.error("load_failed", blocking=True)

    async def flush(self) -> bool:
        """Write the current list to the mirror now."""
        user_id: Optional[str] = self._user_id
        if user_id is None or not self._items:
            return False
        return await self._mirror.save(self.collection, self._items, user_id)

    async def _flush_periodically(self) -> None:
        while True:
            await asyncio.sleep(self._flush_interval)
            await self.flush()
