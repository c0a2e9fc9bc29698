"""
Backup export, import and remote snapshots.

Export produces a pretty-printed JSON document. Import only validates the
shape of a document; nothing is written back to the remote service.
"""

import json
from typing import Any, Sequence, Union

import structlog
from pydantic import ValidationError

from falusy.domain.base import DomainService
from falusy.domain.errors import InvalidBackupError
from falusy.models.activity import EntityType
from falusy.models.backup import BackupDocument
from falusy.models.records import RecordModel, utc_now
from falusy.services.remote import Collection


logger = structlog.get_logger(__name__)

BackupRecord = Union[RecordModel, dict[str, Any]]


def _documents(records: Sequence[BackupRecord]) -> list[dict[str, Any]]:
    return [r.to_document() if isinstance(r, RecordModel) else dict(r) for r in records]


def build_backup(
    expenses: Sequence[BackupRecord],
    revenues: Sequence[BackupRecord],
    projects: Sequence[BackupRecord] = (),
) -> BackupDocument:
    return BackupDocument(
        expenses=_documents(expenses),
        revenues=_documents(revenues),
        projects=_documents(projects),
    )


def parse_backup(text: str) -> BackupDocument:
    """
    Validate backup text.

    Raises:
        InvalidBackupError: Not JSON, or expenses/revenues lists missing
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidBackupError(f"Backup is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidBackupError("Backup must be a JSON object")
    try:
        return BackupDocument.model_validate(raw)
    except ValidationError as e:
        raise InvalidBackupError(f"Backup is missing required data: {e.error_count()} error(s)") from e


class BackupService(DomainService):
    def export_backup(
        self,
        expenses: Sequence[BackupRecord],
        revenues: Sequence[BackupRecord],
        projects: Sequence[BackupRecord] = (),
    ) -> str:
        """Serialize the user's data to backup JSON text."""
        backup = build_backup(expenses, revenues, projects)
        text = json.dumps(
            backup.model_dump(mode="json", by_alias=True),
            ensure_ascii=False,
            indent=2,
        )
        logger.info("backup_exported", user_id=self.user_id, record_count=backup.record_count)
        self._toasts.success("backup_exported")
        return text

    def import_backup(self, text: str) -> BackupDocument:
        try:
            backup = parse_backup(text)
        except InvalidBackupError as e:
            logger.warning("backup_import_rejected", user_id=self.user_id, error=str(e))
            self._toasts.error("backup_import_failed")
            raise
        logger.info("backup_imported", user_id=self.user_id, record_count=backup.record_count)
        self._toasts.success("backup_imported")
        return backup

    async def create_backup(
        self,
        expenses: Sequence[BackupRecord],
        revenues: Sequence[BackupRecord],
        projects: Sequence[BackupRecord] = (),
    ) -> str:
        """Store a snapshot in the backups collection."""
        backup = build_backup(expenses, revenues, projects)
        document = {
            "userId": self.user_id,
            "createdAt": utc_now(),
            "recordCount": backup.record_count,
            "data": backup.model_dump(mode="json", by_alias=True),
        }
        backup_id = await self._remote_call(
            self._remote.create(Collection.BACKUPS, document),
            "backup_create_failed",
            "backup_create_failed",
        )
        await self._activity.log_added(
            self.user_id,
            EntityType.BACKUP,
            backup_id,
            {"recordCount": backup.record_count},
        )
        self._toasts.success("backup_created")
        return backup_id
