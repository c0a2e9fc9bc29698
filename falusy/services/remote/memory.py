"""
In-Memory Remote Data Service

A process-local implementation of RemoteDataService with real push
subscriptions. Used by the test suite and for offline demos.

Every write re-evaluates the live queries of the written collection and
pushes a fresh Snapshot to each, so consumers see the same behaviour as
with a hosted backend. Failures can be injected per operation to exercise
the error paths (permission errors, outages, mid-cascade failures).
"""

import asyncio
import copy
from typing import Any, Optional
from uuid import uuid4

import structlog

from falusy.services.remote.interface import (
    Collection,
    LiveQuery,
    NotFoundError,
    QueryEvent,
    RemoteDataService,
    RemoteError,
    Snapshot,
    SubscriptionError,
    matches,
)


logger = structlog.get_logger(__name__)

_CLOSED = object()


class QueueLiveQuery(LiveQuery):
    """Live query fed through an asyncio queue."""

    def __init__(
        self,
        owner: "InMemoryRemoteDataService",
        collection: Collection,
        where: Optional[dict[str, Any]],
    ):
        self.collection = collection
        self.where = dict(where or {})
        self._owner = owner
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, event: QueryEvent) -> None:
        if not self._closed:
            self._queue.put_nowait(event)

    async def __aiter__(self):
        while True:
            event = await self._queue.get()
            if event is _CLOSED:
                return
            yield event

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._owner._detach(self)
        self._queue.put_nowait(_CLOSED)


class InMemoryRemoteDataService(RemoteDataService):
    """
    Dict-backed document store.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state by accident.
    """

    def __init__(self):
        self._documents: dict[Collection, dict[str, dict[str, Any]]] = {
            collection: {} for collection in Collection
        }
        self._subscriptions: dict[Collection, list[QueueLiveQuery]] = {
            collection: [] for collection in Collection
        }
        self._failures: list[tuple[str, Collection, Optional[str], RemoteError]] = []

    # ------------------------------------------------------------------
    # Failure injection
    # ------------------------------------------------------------------

    def fail_on(
        self,
        operation: str,
        collection: Collection,
        error: RemoteError,
        doc_id: Optional[str] = None,
    ) -> None:
        """
        Make an operation fail until clear_failures() is called.

        Args:
            operation: create, set, update, delete, get or query
            collection: Collection the failure applies to
            error: The error to raise
            doc_id: Restrict the failure to one document
        """
        self._failures.append((operation, collection, doc_id, error))

    def clear_failures(self) -> None:
        self._failures.clear()

    def emit_error(self, collection: Collection, error: RemoteError) -> None:
        """Push a SubscriptionError to every live query on a collection."""
        for subscription in list(self._subscriptions[collection]):
            subscription.push(SubscriptionError(error))

    def _check_failure(self, operation: str, collection: Collection, doc_id: Optional[str] = None) -> None:
        for failed_op, failed_collection, failed_id, error in self._failures:
            if failed_op != operation or failed_collection != collection:
                continue
            if failed_id is not None and failed_id != doc_id:
                continue
            raise error

    # ------------------------------------------------------------------
    # RemoteDataService
    # ------------------------------------------------------------------

    async def create(self, collection: Collection, data: dict[str, Any]) -> str:
        self._check_failure("create", collection)
        doc_id = uuid4().hex
        self._store(collection, doc_id, data)
        return doc_id

    async def set(self, collection: Collection, doc_id: str, data: dict[str, Any]) -> None:
        self._check_failure("set", collection, doc_id)
        self._store(collection, doc_id, data)

    async def update(self, collection: Collection, doc_id: str, changes: dict[str, Any]) -> None:
        self._check_failure("update", collection, doc_id)
        existing = self._documents[collection].get(doc_id)
        if existing is None:
            raise NotFoundError(f"{collection.value}/{doc_id} does not exist")
        merged = {**existing, **copy.deepcopy(changes), "id": doc_id}
        self._documents[collection][doc_id] = merged
        self._publish(collection)

    async def delete(self, collection: Collection, doc_id: str) -> None:
        self._check_failure("delete", collection, doc_id)
        if self._documents[collection].pop(doc_id, None) is not None:
            self._publish(collection)

    async def get(self, collection: Collection, doc_id: str) -> Optional[dict[str, Any]]:
        self._check_failure("get", collection, doc_id)
        document = self._documents[collection].get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def query(self, collection: Collection, **equals: Any) -> list[dict[str, Any]]:
        self._check_failure("query", collection)
        return self._select(collection, equals)

    def subscribe(
        self,
        collection: Collection,
        where: Optional[dict[str, Any]] = None,
    ) -> LiveQuery:
        subscription = QueueLiveQuery(self, collection, where)
        self._subscriptions[collection].append(subscription)
        subscription.push(Snapshot(self._select(collection, subscription.where)))
        logger.debug(
            "live_query_opened",
            collection=collection.value,
            where=subscription.where,
        )
        return subscription

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def subscriber_count(self, collection: Collection) -> int:
        return len(self._subscriptions[collection])

    def _store(self, collection: Collection, doc_id: str, data: dict[str, Any]) -> None:
        document = copy.deepcopy(data)
        document["id"] = doc_id
        self._documents[collection][doc_id] = document
        self._publish(collection)

    def _select(self, collection: Collection, where: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
        return [
            copy.deepcopy(document)
            for document in self._documents[collection].values()
            if matches(document, where)
        ]

    def _publish(self, collection: Collection) -> None:
        for subscription in list(self._subscriptions[collection]):
            subscription.push(Snapshot(self._select(collection, subscription.where)))

    def _detach(self, subscription: QueueLiveQuery) -> None:
        subscribers = self._subscriptions[subscription.collection]
        if subscription in subscribers:
            subscribers.remove(subscription)
