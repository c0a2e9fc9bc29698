"""
Activity Logger

DESIGN DECISION: Every create/update/delete is recorded as an ActivityLog
entry in the remote activityLogs collection. This provides:
1. A user-visible history of changes
2. Debugging capability
3. Admin oversight

The activity logger:
- Is async so it runs inside the same cooperative flow as the write
- Is best-effort: a failed log write is logged locally and swallowed,
  it never fails or blocks the user action
- Stays quiet about permission errors, which are expected while a
  session is still authenticating
"""

import logging
from typing import Optional

import structlog
from pydantic import ValidationError

from falusy.models.activity import (
    ActivityAction,
    ActivityLog,
    ActivityLogBuilder,
    EntityType,
)
from falusy.models.records import to_epoch_millis
from falusy.services.remote import Collection, RemoteDataService, RemoteError


HISTORY_LIMIT = 500


def configure_logging(debug: bool = False) -> None:
    """Configure structlog on top of stdlib logging (JSON lines)."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """
    Central activity logging service.

    Logs entries both to:
    1. Structured local log (for debugging)
    2. The remote activityLogs collection (for persistence and user visibility)
    """

    def __init__(
        self,
        remote: Optional[RemoteDataService] = None,
    ):
        """
        Initialize activity logger.

        Args:
            remote: Remote service for persistence.
                    If None, only logs locally.
        """
        self._remote = remote
        self._logger = structlog.get_logger(__name__)

    async def log(self, entry: ActivityLog) -> bool:
        """
        Record an activity entry.

        Always logs locally. Persists remotely if available.

        Returns True if the remote write succeeded (or no remote configured).
        """
        self._logger.info("activity", **entry.to_log_dict())

        if self._remote is None:
            return True

        try:
            await self._remote.create(Collection.ACTIVITY_LOGS, entry.to_remote_document())
            return True
        except RemoteError as e:
            if e.is_permission_error:
                self._logger.debug("activity_log_denied", user_id=entry.user_id)
            else:
                self._logger.error(
                    "activity_log_failed",
                    error=str(e),
                    kind=e.kind.value,
                    user_id=entry.user_id,
                )
            return False
        except Exception as e:
            # Logging must never break the main flow
            self._logger.error(
                "activity_log_failed",
                error=str(e),
                user_id=entry.user_id,
            )
            return False

    async def log_added(
        self,
        user_id: str,
        entity_type: EntityType,
        entity_id: Optional[str],
        details: Optional[dict] = None,
    ) -> None:
        """Log a record creation."""
        await self.log(ActivityLogBuilder.added(user_id, entity_type, entity_id, details))

    async def log_edited(
        self,
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
        changes: Optional[dict] = None,
    ) -> None:
        """Log a record update."""
        await self.log(ActivityLogBuilder.edited(user_id, entity_type, entity_id, changes))

    async def log_deleted(
        self,
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log a record deletion."""
        await self.log(ActivityLogBuilder.deleted(user_id, entity_type, entity_id, details))

    async def log_login(self, user_id: str) -> None:
        await self.log(ActivityLogBuilder.login(user_id))

    async def log_logout(self, user_id: str) -> None:
        await self.log(ActivityLogBuilder.logout(user_id))

    async def history(
        self,
        user_id: str,
        action: Optional[ActivityAction] = None,
        entity_type: Optional[EntityType] = None,
        search: str = "",
        limit: int = HISTORY_LIMIT,
    ) -> list[ActivityLog]:
        """
        A user's own activity, newest first.

        Unlike writes, reads are not best-effort: a RemoteError propagates
        so the caller can show that the history could not be loaded.

        Args:
            user_id: Whose history to read
            action: Only entries with this action
            entity_type: Only entries about this kind of record
            search: Case-insensitive match on action, entity type or
                    details["description"]
            limit: Maximum number of entries returned
        """
        if self._remote is None:
            return []

        documents = await self._remote.query(Collection.ACTIVITY_LOGS, userId=user_id)
        entries = []
        for document in documents:
            try:
                entries.append(ActivityLog.model_validate(document))
            except ValidationError as e:
                self._logger.warning(
                    "malformed_activity_log",
                    doc_id=document.get("id"),
                    errors=e.error_count(),
                )

        needle = search.strip().lower()
        entries = [
            entry for entry in entries
            if (action is None or entry.action is action)
            and (entity_type is None or entry.entity_type is entity_type)
            and (not needle or needle in _searchable_text(entry))
        ]
        entries.sort(key=lambda entry: to_epoch_millis(entry.timestamp), reverse=True)
        return entries[:limit]


def _searchable_text(entry: ActivityLog) -> str:
    description = entry.details.get("description")
    parts = [entry.action.value, entry.entity_type.value]
    if isinstance(description, str):
        parts.append(description)
    return " ".join(parts).lower()
