"""
Access Gate

Decides whether the signed-in user may use the application.

Decision order:
1. Still loading (profile or site status not received yet) -> LOADING
2. No profile -> REDIRECT_LOGIN
3. Account disabled and not admin -> DENIED_DISABLED
4. Site in maintenance/development and not admin -> DENIED_MAINTENANCE
5. Otherwise -> ALLOWED

The gate follows two live documents: system/siteStatus and the user's
profile. A missing or unreadable site status counts as normal so an
outage of that one document never locks everybody out.
"""

import asyncio
import contextlib
from enum import Enum
from typing import Any, Callable, Optional

import structlog
from pydantic import ValidationError

from falusy.models.records import SiteStatus, UserProfile
from falusy.services.remote import (
    SITE_STATUS_DOCUMENT,
    Collection,
    LiveQuery,
    RemoteDataService,
    Snapshot,
)


logger = structlog.get_logger(__name__)


class GateState(str, Enum):
    LOADING = "loading"
    REDIRECT_LOGIN = "redirect_login"
    DENIED_DISABLED = "denied_disabled"
    DENIED_MAINTENANCE = "denied_maintenance"
    ALLOWED = "allowed"


LOCKED_SITE_STATUSES = (SiteStatus.MAINTENANCE, SiteStatus.DEVELOPMENT)


def evaluate_gate(
    profile: Optional[UserProfile],
    site_status: SiteStatus,
    loading: bool = False,
) -> GateState:
    """Pure gate decision. Admins bypass both denials."""
    if loading:
        return GateState.LOADING
    if profile is None:
        return GateState.REDIRECT_LOGIN
    if profile.admin:
        return GateState.ALLOWED
    if profile.disabled:
        return GateState.DENIED_DISABLED
    if site_status in LOCKED_SITE_STATUSES:
        return GateState.DENIED_MAINTENANCE
    return GateState.ALLOWED


def parse_site_status(document: Optional[dict[str, Any]]) -> SiteStatus:
    """Status field of the siteStatus document; anything unknown is normal."""
    if not document:
        return SiteStatus.NORMAL
    try:
        return SiteStatus(document.get("status"))
    except ValueError:
        return SiteStatus.NORMAL


def _register(listeners: list, listener: Callable) -> Callable[[], None]:
    listeners.append(listener)

    def remove() -> None:
        if listener in listeners:
            listeners.remove(listener)

    return remove


class AccessGate:
    """Reactive gate over the site status and the user's profile."""

    def __init__(self, remote: RemoteDataService):
        self._remote = remote
        self._state = GateState.LOADING
        self._listeners: list[Callable[[GateState], None]] = []
        self._profile_listeners: list[Callable[[Optional[UserProfile]], None]] = []
        self._user_id: Optional[str] = None
        self._profile: Optional[UserProfile] = None
        self._site_status = SiteStatus.NORMAL
        self._profile_loaded = False
        self._status_loaded = False
        self._queries: list[LiveQuery] = []
        self._tasks: list[asyncio.Task] = []

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._profile

    @property
    def site_status(self) -> SiteStatus:
        return self._site_status

    def add_listener(self, listener: Callable[[GateState], None]) -> Callable[[], None]:
        return _register(self._listeners, listener)

    def add_profile_listener(
        self,
        listener: Callable[[Optional[UserProfile]], None],
    ) -> Callable[[], None]:
        """Called with the new profile whenever the live profile document changes."""
        return _register(self._profile_listeners, listener)

    async def activate(self, user_id: Optional[str]) -> None:
        """Follow the site status and the given user's profile."""
        await self._close()
        self._user_id = user_id
        self._profile = None
        self._site_status = SiteStatus.NORMAL
        self._profile_loaded = user_id is None
        self._status_loaded = user_id is None

        self._reevaluate()
        if user_id is None:
            return

        status_query = self._remote.subscribe(Collection.SYSTEM, {"id": SITE_STATUS_DOCUMENT})
        profile_query = self._remote.subscribe(Collection.USERS, {"id": user_id})
        self._queries = [status_query, profile_query]
        self._tasks = [
            asyncio.create_task(self._follow_status(status_query)),
            asyncio.create_task(self._follow_profile(profile_query, user_id)),
        ]

    async def deactivate(self) -> None:
        await self.activate(None)

    async def _close(self) -> None:
        queries, self._queries = self._queries, []
        tasks, self._tasks = self._tasks, []
        for query in queries:
            await query.close()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _follow_status(self, query: LiveQuery) -> None:
        async for event in query:
            if isinstance(event, Snapshot):
                document = event.documents[0] if event.documents else None
                self._site_status = parse_site_status(document)
            else:
                logger.warning(
                    "site_status_unavailable",
                    kind=event.error.kind.value,
                    error=str(event.error),
                )
                self._site_status = SiteStatus.NORMAL
            self._status_loaded = True
            self._reevaluate()

    async def _follow_profile(self, query: LiveQuery, user_id: str) -> None:
        async for event in query:
            if isinstance(event, Snapshot):
                profile = self._parse_profile(event.documents, user_id)
                if profile != self._profile:
                    self._profile = profile
                    for listener in list(self._profile_listeners):
                        listener(profile)
            elif event.error.is_permission_error:
                logger.debug("profile_denied", user_id=user_id)
            else:
                logger.warning(
                    "profile_unavailable",
                    user_id=user_id,
                    kind=event.error.kind.value,
                    error=str(event.error),
                )
            self._profile_loaded = True
            self._reevaluate()

    @staticmethod
    def _parse_profile(documents: list[dict[str, Any]], user_id: str) -> Optional[UserProfile]:
        if not documents:
            return None
        try:
            return UserProfile.model_validate({**documents[0], "userId": user_id})
        except ValidationError as e:
            logger.warning("malformed_profile", user_id=user_id, errors=e.error_count())
            return None

    def _reevaluate(self) -> None:
        state = evaluate_gate(
            self._profile,
            self._site_status,
            loading=not (self._profile_loaded and self._status_loaded),
        )
        if state is self._state:
            return
        logger.info("access_gate_changed", user_id=self._user_id, old=self._state.value, new=state.value)
        self._state = state
        for listener in list(self._listeners):
            listener(state)
