"""
Abstract Mirror Backend Interface

DESIGN DECISION: The offline mirror has one storage interface with two
interchangeable implementations:
1. SQLite - the primary key-value engine
2. Flat JSON files - the fallback when SQLite cannot be opened

MirrorStore picks the backend at initialization and owns the fallback
policy, so backends just raise MirrorBackendError and never decide
anything themselves.

A backend mirrors whole per-user lists. It is not a bounded cache:
there is no eviction and no indexing beyond the record id.
"""

from abc import ABC, abstractmethod
from typing import Any

from falusy.services.remote.interface import MIRRORED_COLLECTIONS, Collection


class MirrorBackendError(Exception):
    """A mirror backend could not complete an operation."""
    pass


def require_mirrored(collection: Collection) -> str:
    """Validate a collection name and return its store name."""
    collection = Collection(collection)
    if collection not in MIRRORED_COLLECTIONS:
        raise ValueError(f"{collection.value} is not mirrored locally")
    return collection.value


class MirrorBackend(ABC):
    """
    Abstract interface for one mirror storage engine.

    Records are camelCase dicts carrying at least "id" and "userId".
    """

    name: str = "backend"

    @abstractmethod
    def open(self) -> None:
        """
        Prepare the backend for use.

        Raises:
            MirrorBackendError: If the engine is unavailable
        """
        pass

    @abstractmethod
    def replace_user_records(
        self,
        collection: Collection,
        user_id: str,
        records: list[dict[str, Any]],
    ) -> None:
        """
        Delete the user's rows in a collection, then insert the given records.

        Other users' rows and other collections are left untouched.

        Raises:
            MirrorBackendError: If the write fails
        """
        pass

    @abstractmethod
    def load_user_records(self, collection: Collection, user_id: str) -> list[dict[str, Any]]:
        """
        Return every row of the user in a collection.

        Raises:
            MirrorBackendError: If the read fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """
        Wipe all mirrored collections for all users.

        Raises:
            MirrorBackendError: If the wipe fails
        """
        pass
