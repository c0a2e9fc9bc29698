"""
Live Collections

A LiveCollection keeps an in-memory, display-ordered list of one user's
records in one remote collection, fed by a live query.

Flow:
1. activate(user_id) opens remote.subscribe(collection, userId == user_id)
2. A consumer task applies events in delivery order
3. Every Snapshot is mapped to records, arranged, and published to listeners
4. deactivate() closes the query, cancels the tasks and publishes []

Errors never escape to callers: permission errors are expected while a
session is (re)authenticating and are only logged at debug level; other
errors are logged and shown as a toast.
"""

import asyncio
import contextlib
from typing import Any, Callable, Coroutine, Generic, Optional, Sequence, TypeVar

import structlog
from pydantic import ValidationError

from falusy.models.records import TimestampedRecord
from falusy.services.remote import (
    Collection,
    LiveQuery,
    RemoteDataService,
    RemoteError,
    Snapshot,
)
from falusy.toasts import ToastSink


logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=TimestampedRecord)
Listener = Callable[[list], None]


class LiveCollection(Generic[R]):
    """In-memory view of one user's documents in one collection."""

    def __init__(
        self,
        collection: Collection,
        remote: RemoteDataService,
        toasts: ToastSink,
        record_type: type[R],
        arrange: Optional[Callable[[Sequence[R]], list[R]]] = None,
    ):
        self.collection = collection
        self._remote = remote
        self._toasts = toasts
        self._record_type = record_type
        self._arrange = arrange
        self._items: list[R] = []
        self._listeners: list[Listener] = []
        self._user_id: Optional[str] = None
        self._live: Optional[LiveQuery] = None
        self._tasks: list[asyncio.Task] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def items(self) -> list[R]:
        return list(self._items)

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def active(self) -> bool:
        return self._user_id is not None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _publish(self, records: Sequence[R]) -> None:
        self._items = list(records)
        for listener in list(self._listeners):
            listener(list(self._items))

    def to_records(self, documents: Sequence[dict[str, Any]]) -> list[R]:
        """Map raw documents to records and put them in display order."""
        records = []
        for document in documents:
            try:
                records.append(self._record_type.model_validate(document))
            except ValidationError as e:
                logger.warning(
                    "malformed_document_skipped",
                    collection=self.collection.value,
                    doc_id=document.get("id"),
                    errors=e.error_count(),
                )
        return self._arrange(records) if self._arrange else records

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def activate(self, user_id: str) -> None:
        """Start following a user's documents."""
        if self._user_id == user_id:
            return
        if self.active:
            await self.deactivate()

        self._user_id = user_id
        await self._before_subscribe(user_id)
        self._live = self._remote.subscribe(self.collection, {"userId": user_id})
        self._start_task(self._consume(self._live))
        logger.debug("live_collection_activated", collection=self.collection.value, user_id=user_id)

    async def deactivate(self) -> None:
        """Stop following; drops the in-memory list."""
        live, self._live = self._live, None
        tasks, self._tasks = self._tasks, []
        if live is not None:
            await live.close()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if self._user_id is not None:
            logger.debug("live_collection_deactivated", collection=self.collection.value, user_id=self._user_id)
        self._user_id = None
        self._publish([])

    def _start_task(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.append(task)
        return task

    async def _consume(self, live: LiveQuery) -> None:
        async for event in live:
            try:
                if isinstance(event, Snapshot):
                    await self._on_snapshot(self.to_records(event.documents))
                else:
                    await self._on_error(event.error)
            except Exception:
                logger.exception("live_event_failed", collection=self.collection.value)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _before_subscribe(self, user_id: str) -> None:
        """Runs after the user is set and before the live query opens."""

    async def _on_snapshot(self, records: list[R]) -> None:
        self._publish(records)

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
        self._toasts.error("load_failed")
