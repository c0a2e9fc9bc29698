"""
Admin Service

Account management and notification broadcasting for administrators.

Every operation first re-reads the acting user's profile and refuses to
run unless it carries isAdmin == true. Disabling an account here is what
the access gate later turns into the disabled view.
"""

import datetime as dt
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from falusy.domain.base import DomainService
from falusy.domain.errors import AdminRequiredError
from falusy.domain.profiles import load_profile
from falusy.models.activity import EntityType
from falusy.models.records import (
    NotificationInput,
    UserProfile,
    UserUpdate,
    now_millis,
    utc_now,
)
from falusy.services.remote import Collection


logger = structlog.get_logger(__name__)

NEW_USER_WINDOW = dt.timedelta(days=30)


class NotificationAudience(str, Enum):
    """Recipient groups offered when composing a notification."""
    ALL = "all"
    NEW = "new"
    INACTIVE = "inactive"
    SPECIFIC = "specific"


def search_users(users: Iterable[UserProfile], term: str) -> list[UserProfile]:
    """Case-insensitive match on username, email or display name."""
    needle = term.strip().lower()
    if not needle:
        return list(users)
    return [
        user for user in users
        if any(
            needle in (value or "").lower()
            for value in (user.username, user.email, user.display_name)
        )
    ]


def select_recipients(
    users: Iterable[UserProfile],
    audience: NotificationAudience,
    selected: Optional[Iterable[str]] = None,
    now_ms: Optional[int] = None,
) -> list[str]:
    """
    User ids targeted by an audience choice.

    NEW means registered within the last 30 days; users without a
    creation time are not new. SPECIFIC keeps the selected ids that exist.
    """
    users = list(users)
    if audience is NotificationAudience.ALL:
        return [u.user_id for u in users]
    if audience is NotificationAudience.INACTIVE:
        return [u.user_id for u in users if u.disabled]
    if audience is NotificationAudience.NEW:
        now_ms = now_ms if now_ms is not None else now_millis()
        cutoff = now_ms - int(NEW_USER_WINDOW.total_seconds() * 1000)
        return [u.user_id for u in users if u.created_at is not None and u.created_at >= cutoff]
    wanted = set(selected or ())
    return [u.user_id for u in users if u.user_id in wanted]


class AdminService(DomainService):
    """Admin-only operations, bound to the acting admin's user id."""

    async def _require_admin(self) -> UserProfile:
        profile = await self._remote_call(
            load_profile(self._remote, self.user_id),
            "load_failed",
            "admin_lookup_failed",
        )
        if profile is None or not profile.admin:
            logger.warning("admin_required", user_id=self.user_id)
            self._toasts.warning("admin_required")
            raise AdminRequiredError(self.user_id)
        return profile

    async def list_users(self) -> list[UserProfile]:
        await self._require_admin()
        documents = await self._remote_call(
            self._remote.query(Collection.USERS),
            "users_load_failed",
            "users_load_failed",
        )
        users = []
        for document in documents:
            try:
                users.append(UserProfile.model_validate({**document, "userId": document["id"]}))
            except ValidationError as e:
                logger.warning("malformed_profile", target_user_id=document["id"], errors=e.error_count())
        return users

    async def set_user_active(self, user_id: str, active: bool) -> None:
        await self._require_admin()
        await self._write_status(user_id, active)

    async def toggle_user_status(self, user_id: str) -> bool:
        """Flip isActive (absent counts as active). Returns the new value."""
        await self._require_admin()
        target = await self._remote_call(
            load_profile(self._remote, user_id),
            "user_update_failed",
            "user_lookup_failed",
            target_user_id=user_id,
        )
        active = target is not None and target.disabled
        await self._write_status(user_id, active)
        return active

    async def _write_status(self, user_id: str, active: bool) -> None:
        await self._remote_call(
            self._remote.update(Collection.USERS, user_id, {"isActive": active, "updatedAt": utc_now()}),
            "user_update_failed",
            "user_status_update_failed",
            target_user_id=user_id,
        )
        logger.info("user_status_changed", admin_id=self.user_id, target_user_id=user_id, active=active)

        await self._activity.log_edited(self.user_id, EntityType.ACCOUNT, user_id, {"isActive": active})
        self._toasts.success("user_status_updated")

    async def update_user(self, user_id: str, data: Union[UserUpdate, Mapping[str, Any]]) -> None:
        payload = self._validate(UserUpdate, data)
        await self._require_admin()
        changes = {"displayName": payload.display_name, "updatedAt": utc_now()}
        await self._remote_call(
            self._remote.update(Collection.USERS, user_id, changes),
            "user_update_failed",
            "user_update_failed",
            target_user_id=user_id,
        )
        logger.info("user_updated", admin_id=self.user_id, target_user_id=user_id)

        await self._activity.log_edited(
            self.user_id, EntityType.ACCOUNT, user_id, {"displayName": payload.display_name}
        )
        self._toasts.success("user_updated")

    async def delete_user(self, user_id: str) -> None:
        """Delete the user's profile document. Their records are left in place."""
        await self._require_admin()
        await self._remote_call(
            self._remote.delete(Collection.USERS, user_id),
            "user_delete_failed",
            "user_delete_failed",
            target_user_id=user_id,
        )
        logger.info("user_deleted", admin_id=self.user_id, target_user_id=user_id)

        await self._activity.log_deleted(self.user_id, EntityType.ACCOUNT, user_id)
        self._toasts.success("user_deleted")

    async def send_notification(self, data: Union[NotificationInput, Mapping[str, Any]]) -> list[str]:
        """
        Write one notification per recipient.

        Raises:
            ValidationError: No title, no message or no recipients
            AdminRequiredError: The acting user is not an admin
            RemoteError: A write failed; notifications already written stay
        """
        payload = self._validate(NotificationInput, data, self._notification_failure_key(data))
        await self._require_admin()

        base = payload.to_document()
        recipients = base.pop("userIds")
        base.update({
            "read": False,
            "createdAt": utc_now(),
            "createdBy": self.user_id,
            "expiresAt": payload.expires_at,
        })

        notification_ids = []
        for recipient in recipients:
            notification_id = await self._remote_call(
                self._remote.create(Collection.NOTIFICATIONS, {**base, "userId": recipient}),
                "notification_send_failed",
                "notification_send_failed",
                recipient=recipient,
                sent=len(notification_ids),
            )
            notification_ids.append(notification_id)

        logger.info("notification_sent", admin_id=self.user_id, recipients=len(recipients), urgent=payload.urgent)
        await self._activity.log_added(
            self.user_id,
            EntityType.NOTIFICATION,
            None,
            {"recipients": len(recipients), "urgent": payload.urgent},
        )
        self._toasts.success("notification_sent")
        return notification_ids

    @staticmethod
    def _notification_failure_key(data: Union[NotificationInput, Mapping[str, Any]]) -> str:
        """Most specific toast for an invalid notification payload."""
        if not isinstance(data, Mapping):
            return "validation_failed"

        def blank(field: str) -> bool:
            texts = data.get(field)
            if not isinstance(texts, Mapping):
                return True
            return not any(isinstance(t, str) and t.strip() for t in texts.values())

        if blank("title"):
            return "notification_title_required"
        if blank("message"):
            return "notification_message_required"
        recipients = data.get("user_ids", data.get("userIds"))
        if not recipients or not any(isinstance(r, str) and r.strip() for r in recipients):
            return "notification_recipients_required"
        return "validation_failed"
