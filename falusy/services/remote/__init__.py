"""
Remote Data Service Package

Abstract interface for the hosted document store plus two implementations:
an in-memory store with push subscriptions and a Google Sheets adapter.
"""

from falusy.services.remote.interface import (
    MIRRORED_COLLECTIONS,
    SITE_STATUS_DOCUMENT,
    Collection,
    LiveQuery,
    NotFoundError,
    PermissionDeniedError,
    QueryEvent,
    RemoteDataService,
    RemoteError,
    RemoteErrorKind,
    ServiceUnavailableError,
    Snapshot,
    StorageError,
    SubscriptionError,
)
from falusy.services.remote.memory import InMemoryRemoteDataService

__all__ = [
    # Interface
    "Collection",
    "LiveQuery",
    "MIRRORED_COLLECTIONS",
    "QueryEvent",
    "RemoteDataService",
    "SITE_STATUS_DOCUMENT",
    "Snapshot",
    "SubscriptionError",
    # Exceptions
    "NotFoundError",
    "PermissionDeniedError",
    "RemoteError",
    "RemoteErrorKind",
    "ServiceUnavailableError",
    "StorageError",
    # Implementations
    "InMemoryRemoteDataService",
]
