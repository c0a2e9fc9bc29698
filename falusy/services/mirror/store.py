"""
Local Mirror Store

The offline copy of a user's expenses, revenues and projects.

Contract:
- save() replaces one user's rows in one collection
- load() returns one user's rows, or [] when there are none
- clear() wipes every collection in every backend
- Nothing here raises for storage failures: the mirror is a convenience,
  so failures are logged and reported through return values

The primary backend is chosen at initialization. If it later fails, the
store demotes itself to the next backend for the rest of its life.
"""

from typing import Any, Iterable, Optional, Union

import structlog

from falusy.models.records import RecordModel
from falusy.services.mirror.interface import (
    MirrorBackend,
    MirrorBackendError,
    require_mirrored,
)
from falusy.services.remote.interface import Collection


logger = structlog.get_logger(__name__)

MirrorRecord = Union[RecordModel, dict[str, Any]]


class MirrorStore:
    """Per-collection, per-user full mirror over an ordered backend chain."""

    def __init__(self, primary: MirrorBackend, fallback: Optional[MirrorBackend] = None):
        self._backends = [backend for backend in (primary, fallback) if backend is not None]
        self._active_index: Optional[int] = self._select_backend(0)

    @property
    def active_backend(self) -> Optional[MirrorBackend]:
        if self._active_index is None:
            return None
        return self._backends[self._active_index]

    def _select_backend(self, start: int) -> Optional[int]:
        for index in range(start, len(self._backends)):
            backend = self._backends[index]
            try:
                backend.open()
            except MirrorBackendError as e:
                logger.warning(
                    "mirror_backend_unavailable",
                    backend=backend.name,
                    error=str(e),
                )
                continue
            logger.info("mirror_backend_selected", backend=backend.name)
            return index
        logger.error("mirror_unavailable", backends=[b.name for b in self._backends])
        return None

    def _demote(self, failed: MirrorBackend, error: MirrorBackendError) -> None:
        logger.warning("mirror_backend_failed", backend=failed.name, error=str(error))
        self._active_index = self._select_backend(self._active_index + 1)

    @staticmethod
    def _to_documents(records: Iterable[MirrorRecord], user_id: str) -> list[dict[str, Any]]:
        documents = []
        for record in records:
            document = record.to_document() if isinstance(record, RecordModel) else dict(record)
            document.setdefault("userId", user_id)
            documents.append(document)
        return documents

    async def save(
        self,
        collection: Collection,
        records: Iterable[MirrorRecord],
        user_id: str,
    ) -> bool:
        """
        Replace a user's mirrored rows in one collection.

        Returns:
            True if some backend stored the records
        """
        require_mirrored(collection)
        documents = self._to_documents(records, user_id)

        while self.active_backend is not None:
            backend = self.active_backend
            try:
                backend.replace_user_records(collection, user_id, documents)
                return True
            except MirrorBackendError as e:
                self._demote(backend, e)

        logger.error(
            "mirror_save_failed",
            collection=Collection(collection).value,
            user_id=user_id,
            record_count=len(documents),
        )
        return False

    async def load(self, collection: Collection, user_id: str) -> list[dict[str, Any]]:
        """
        Read a user's mirrored rows in one collection.

        Returns:
            The rows, or [] if none are stored or no backend works
        """
        require_mirrored(collection)

        while self.active_backend is not None:
            backend = self.active_backend
            try:
                return [
                    record
                    for record in backend.load_user_records(collection, user_id)
                    if record.get("userId") == user_id
                ]
            except MirrorBackendError as e:
                self._demote(backend, e)

        logger.error(
            "mirror_load_failed",
            collection=Collection(collection).value,
            user_id=user_id,
        )
        return []

    async def clear(self) -> bool:
        """
        Wipe every mirrored collection in every backend.

        Returns:
            True if all backends were wiped
        """
        cleared = True
        for backend in self._backends:
            try:
                backend.open()
                backend.clear()
            except MirrorBackendError as e:
                cleared = False
                logger.error("mirror_clear_failed", backend=backend.name, error=str(e))
        return cleared
