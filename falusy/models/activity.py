"""
Activity Log Models for Falusy

Every create/update/delete a user performs leaves one ActivityLog entry.
This gives the user (and admins) a readable history of what changed.

DESIGN DECISION: Activity logs are append-only and best-effort.
Writing them must never block or fail the action being logged.
"""

import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from falusy.models.records import RecordModel, utc_now


class ActivityAction(str, Enum):
    """What the user did."""
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    VIEW = "view"
    LOGIN = "login"
    LOGOUT = "logout"


class EntityType(str, Enum):
    """What the action was performed on."""
    EXPENSE = "expense"
    REVENUE = "revenue"
    PROJECT = "project"
    CATEGORY = "category"
    BUDGET = "budget"
    NOTIFICATION = "notification"
    BACKUP = "backup"
    ACCOUNT = "account"


class ActivityLog(RecordModel):
    """
    A single activity log entry.

    Stored in the remote activityLogs collection, one document per entry.
    """

    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the activity"
    )
    action: ActivityAction
    entity_type: EntityType
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the affected record, if any"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Action-specific data"
    )
    timestamp: dt.datetime = Field(
        default_factory=utc_now,
        description="When the action happened (UTC)"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "user_id": self.user_id,
            "action": self.action.value,
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_remote_document(self) -> dict[str, Any]:
        """
        Convert to the remote document shape.

        The timestamp stays a datetime so the backend stores its native
        timestamp type.
        """
        return {
            "userId": self.user_id,
            "action": self.action.value,
            "entityType": self.entity_type.value,
            "entityId": self.entity_id,
            "details": self.details,
            "timestamp": self.timestamp,
            "createdAt": self.timestamp,
        }


class ActivityLogBuilder:
    """
    Helper class to build activity entries with common patterns.

    Usage:
        entry = ActivityLogBuilder.added(user_id, EntityType.EXPENSE, expense_id)
        entry = ActivityLogBuilder.login(user_id)
    """

    @staticmethod
    def added(
        user_id: str,
        entity_type: EntityType,
        entity_id: Optional[str],
        details: Optional[dict] = None,
    ) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action=ActivityAction.ADD,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )

    @staticmethod
    def edited(
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
        changes: Optional[dict] = None,
    ) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action=ActivityAction.EDIT,
            entity_type=entity_type,
            entity_id=entity_id,
            details={"changes": changes or {}},
        )

    @staticmethod
    def deleted(
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
        details: Optional[dict] = None,
    ) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action=ActivityAction.DELETE,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )

    @staticmethod
    def login(user_id: str) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action=ActivityAction.LOGIN,
            entity_type=EntityType.ACCOUNT,
            entity_id=user_id,
        )

    @staticmethod
    def logout(user_id: str) -> ActivityLog:
        return ActivityLog(
            user_id=user_id,
            action=ActivityAction.LOGOUT,
            entity_type=EntityType.ACCOUNT,
            entity_id=user_id,
        )
