"""
Abstract Remote Data Service Interface

DESIGN DECISION: The hosted document database is an external collaborator.
We define an abstract interface for the operations we use so that:
1. The hosted backend can be swapped (Google Sheets today)
2. Tests and offline demos run against an in-memory implementation
3. Sync and domain code never see backend-specific exceptions

The interface is intentionally small - equality queries, CRUD and live
queries. Live queries are explicit event streams rather than callbacks:
consumers iterate them, and closing the handle is the cancellation.

Errors are classified ONCE, inside each adapter, into RemoteErrorKind.
Callers branch on the kind, never on message text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Optional, Union


class Collection(str, Enum):
    """Remote collections used by the tracker."""
    EXPENSES = "expenses"
    REVENUES = "revenues"
    PROJECTS = "projects"
    CUSTOM_CATEGORIES = "customCategories"
    NOTIFICATIONS = "notifications"
    ACTIVITY_LOGS = "activityLogs"
    BUDGETS = "budgets"
    BACKUPS = "backups"
    USERS = "users"
    USERNAMES = "usernames"
    SYSTEM = "system"


# Collections mirrored into the local offline store
MIRRORED_COLLECTIONS = (
    Collection.EXPENSES,
    Collection.REVENUES,
    Collection.PROJECTS,
)

SITE_STATUS_DOCUMENT = "siteStatus"


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class RemoteErrorKind(str, Enum):
    """Structured classification of remote failures."""
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    UNKNOWN = "unknown"


class RemoteError(StorageError):
    """A failure reported by the remote data service."""

    def __init__(self, message: str, kind: RemoteErrorKind = RemoteErrorKind.UNKNOWN):
        super().__init__(message)
        self.kind = kind

    @property
    def is_permission_error(self) -> bool:
        return self.kind is RemoteErrorKind.PERMISSION_DENIED


class PermissionDeniedError(RemoteError):
    """The current credentials may not read or write this data."""

    def __init__(self, message: str = "Missing or insufficient permissions"):
        super().__init__(message, RemoteErrorKind.PERMISSION_DENIED)


class NotFoundError(RemoteError):
    """Document not found in the remote store."""

    def __init__(self, message: str):
        super().__init__(message, RemoteErrorKind.NOT_FOUND)


class ServiceUnavailableError(RemoteError):
    """The remote service could not be reached."""

    def __init__(self, message: str):
        super().__init__(message, RemoteErrorKind.UNAVAILABLE)


@dataclass
class Snapshot:
    """Full current result set of a live query."""
    documents: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class SubscriptionError:
    """A live query failed; the stream may still deliver later snapshots."""
    error: RemoteError


QueryEvent = Union[Snapshot, SubscriptionError]


class LiveQuery(ABC):
    """
    Handle on a live query.

    Async-iterate it to receive QueryEvents in delivery order.
    Iteration ends after close().
    """

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[QueryEvent]:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering events and release backend resources."""
        pass


class RemoteDataService(ABC):
    """
    Abstract interface for the remote document service.

    Documents are plain dicts; every document returned includes its "id".
    Timestamps are written as datetimes (the backend's native type) and
    may come back as datetimes, ISO strings or epoch numbers.
    """

    @abstractmethod
    async def create(self, collection: Collection, data: dict[str, Any]) -> str:
        """
        Create a document with a generated ID.

        Returns:
            The new document ID

        Raises:
            RemoteError: If the write fails
        """
        pass

    @abstractmethod
    async def set(self, collection: Collection, doc_id: str, data: dict[str, Any]) -> None:
        """
        Create or fully replace a document with a known ID.

        Raises:
            RemoteError: If the write fails
        """
        pass

    @abstractmethod
    async def update(self, collection: Collection, doc_id: str, changes: dict[str, Any]) -> None:
        """
        Merge the given fields into an existing document.

        Raises:
            NotFoundError: If the document doesn't exist
            RemoteError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, collection: Collection, doc_id: str) -> None:
        """
        Delete a document. Deleting a missing document is not an error.

        Raises:
            RemoteError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, collection: Collection, doc_id: str) -> Optional[dict[str, Any]]:
        """
        Read one document.

        Returns:
            The document if found, None otherwise
        """
        pass

    @abstractmethod
    async def query(self, collection: Collection, **equals: Any) -> list[dict[str, Any]]:
        """
        One-shot equality query, e.g. query(EXPENSES, userId=uid, projectId=pid).

        Returns:
            Matching documents in backend order
        """
        pass

    @abstractmethod
    def subscribe(
        self,
        collection: Collection,
        where: Optional[dict[str, Any]] = None,
    ) -> LiveQuery:
        """
        Open a live query filtered by field equality.

        The first event is the current result set; a new Snapshot follows
        every change that affects it.
        """
        pass


def matches(document: dict[str, Any], where: Optional[dict[str, Any]]) -> bool:
    """Equality filter shared by the adapters."""
    if not where:
        return True
    return all(document.get(key) == value for key, value in where.items())
