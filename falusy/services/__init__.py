"""Services package."""

from falusy.services.mirror import (
    JsonFileMirrorBackend,
    MirrorBackend,
    MirrorBackendError,
    MirrorStore,
    SqliteMirrorBackend,
)
from falusy.services.remote import (
    Collection,
    InMemoryRemoteDataService,
    LiveQuery,
    NotFoundError,
    PermissionDeniedError,
    RemoteDataService,
    RemoteError,
    RemoteErrorKind,
    ServiceUnavailableError,
    StorageError,
)

__all__ = [
    # Mirror
    "JsonFileMirrorBackend",
    "MirrorBackend",
    "MirrorBackendError",
    "MirrorStore",
    "SqliteMirrorBackend",
    # Remote
    "Collection",
    "InMemoryRemoteDataService",
    "LiveQuery",
    "NotFoundError",
    "PermissionDeniedError",
    "RemoteDataService",
    "RemoteError",
    "RemoteErrorKind",
    "ServiceUnavailableError",
    "StorageError",
]
