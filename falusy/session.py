"""
Application wiring and the per-user session lifecycle.

create_app_components() builds the long-lived collaborators once:
- the remote data service (in-memory or Google Sheets, per config)
- the local mirror (SQLite primary, JSON files as fallback)
- the activity logger and the toast sink

UserSession binds them to one signed-in user:
1. start(user_id): load profile, open the access gate and every live list,
   log a login activity
2. stop(clear_cache): close everything, log a logout activity and
   optionally wipe the local mirror

AppContext is the immutable UI-facing state (user, language, theme,
currency); changing it means building a new one.
"""

from dataclasses import dataclass
from typing import Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from falusy.access import AccessGate, GateState
from falusy.activity import ActivityLogger, configure_logging
from falusy.config import Settings, get_settings
from falusy.domain import (
    AdminService,
    BackupService,
    BudgetService,
    CategoryService,
    ProfileService,
    ProjectService,
    TransactionService,
)
from falusy.i18n import SUPPORTED_LANGUAGES
from falusy.models.records import Budget, CustomCategory, UserProfile
from falusy.services.mirror import JsonFileMirrorBackend, MirrorStore, SqliteMirrorBackend
from falusy.services.remote import (
    Collection,
    InMemoryRemoteDataService,
    RemoteDataService,
    RemoteError,
)
from falusy.services.remote.google_sheets import GoogleSheetsRemoteDataService
from falusy.sync import LiveCollection, NotificationFeed, SyncController, sort_by_created
from falusy.toasts import LogToastSink, ToastSink


logger = structlog.get_logger(__name__)

THEMES = ("light", "dark")


class AppContext(BaseModel):
    """Immutable display context of the running app."""

    model_config = ConfigDict(frozen=True)

    user: Optional[UserProfile] = None
    language: Literal["ar", "en"] = "ar"
    theme: Literal["light", "dark"] = "dark"
    currency: str = "SAR"

    def with_user(self, user: Optional[UserProfile]) -> "AppContext":
        return self.model_copy(update={"user": user})

    def with_language(self, language: str) -> "AppContext":
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        return self.model_copy(update={"language": language})

    def with_theme(self, theme: str) -> "AppContext":
        if theme not in THEMES:
            raise ValueError(f"Unsupported theme: {theme}")
        return self.model_copy(update={"theme": theme})

    def with_currency(self, currency: str) -> "AppContext":
        currency = currency.strip().upper()
        if not currency:
            raise ValueError("Currency is required")
        return self.model_copy(update={"currency": currency})


@dataclass
class AppComponents:
    """Long-lived collaborators shared by every session."""

    remote: RemoteDataService
    mirror: MirrorStore
    activity: ActivityLogger
    toasts: ToastSink
    context: AppContext
    flush_interval: float = 0.5


def create_remote(settings: Settings) -> RemoteDataService:
    if settings.remote.backend == "google_sheets":
        return GoogleSheetsRemoteDataService(poll_interval=settings.remote.poll_interval_seconds)
    return InMemoryRemoteDataService()


def create_app_components(
    settings: Optional[Settings] = None,
    remote: Optional[RemoteDataService] = None,
    toasts: Optional[ToastSink] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to get_settings()
        remote: Pre-built remote service (tests, demos)
        toasts: Toast sink; defaults to logging toasts

    Returns:
        AppComponents
    """
    settings = settings or get_settings()
    app_settings = settings.app
    mirror_settings = settings.mirror

    configure_logging(debug=app_settings.debug_mode)

    remote = remote or create_remote(settings)
    mirror = MirrorStore(
        SqliteMirrorBackend(mirror_settings.database_path),
        JsonFileMirrorBackend(mirror_settings.fallback_dir, mirror_settings.key_prefix),
    )
    context = AppContext(
        language=app_settings.default_language,
        theme=app_settings.default_theme,
        currency=app_settings.default_currency,
    )

    logger.info(
        "app_components_created",
        environment=app_settings.app_environment,
        remote=type(remote).__name__,
        mirror=mirror.active_backend.name if mirror.active_backend else None,
    )
    return AppComponents(
        remote=remote,
        mirror=mirror,
        activity=ActivityLogger(remote),
        toasts=toasts or LogToastSink(context.language),
        context=context,
        flush_interval=mirror_settings.flush_interval_seconds,
    )


class UserSession:
    """Everything bound to one signed-in user."""

    def __init__(self, components: AppComponents):
        self._components = components
        remote, toasts = components.remote, components.toasts

        self.context = components.context
        self.user_id: Optional[str] = None
        self.gate = AccessGate(remote)
        self.gate.add_profile_listener(self._refresh_user)

        self.expenses = SyncController(
            Collection.EXPENSES, remote, components.mirror, toasts, components.flush_interval
        )
        self.revenues = SyncController(
            Collection.REVENUES, remote, components.mirror, toasts, components.flush_interval
        )
        self.projects = SyncController(
            Collection.PROJECTS, remote, components.mirror, toasts, components.flush_interval
        )
        self.categories: LiveCollection[CustomCategory] = LiveCollection(
            Collection.CUSTOM_CATEGORIES, remote, toasts, CustomCategory, arrange=sort_by_created
        )
        self.budgets: LiveCollection[Budget] = LiveCollection(
            Collection.BUDGETS, remote, toasts, Budget, arrange=sort_by_created
        )
        self.notifications = NotificationFeed(remote, toasts)

        self.transaction_service: Optional[TransactionService] = None
        self.project_service: Optional[ProjectService] = None
        self.category_service: Optional[CategoryService] = None
        self.budget_service: Optional[BudgetService] = None
        self.backup_service: Optional[BackupService] = None
        self.profile_service: Optional[ProfileService] = None
        self.admin_service: Optional[AdminService] = None

    @property
    def live_collections(self) -> list[LiveCollection]:
        return [
            self.expenses,
            self.revenues,
            self.projects,
            self.categories,
            self.budgets,
            self.notifications,
        ]

    @property
    def state(self) -> GateState:
        return self.gate.state

    async def start(self, user_id: str) -> None:
        if self.user_id is not None:
            await self.stop()

        c = self._components
        args = (c.remote, user_id, c.activity, c.toasts)
        self.transaction_service = TransactionService(*args)
        self.project_service = ProjectService(*args)
        self.category_service = CategoryService(*args)
        self.budget_service = BudgetService(*args)
        self.backup_service = BackupService(*args)
        self.profile_service = ProfileService(*args)
        self.admin_service = AdminService(*args)

        try:
            profile = await self.profile_service.load_profile()
        except RemoteError as e:
            logger.warning("profile_load_failed", user_id=user_id, kind=e.kind.value, error=str(e))
            profile = None

        self.user_id = user_id
        self.context = self.context.with_user(profile)

        await self.gate.activate(user_id)
        for live in self.live_collections:
            await live.activate(user_id)

        await c.activity.log_login(user_id)
        logger.info("session_started", user_id=user_id)

    async def stop(self, clear_cache: bool = False) -> None:
        user_id = self.user_id
        for live in self.live_collections:
            await live.deactivate()
        await self.gate.deactivate()

        if user_id is not None:
            await self._components.activity.log_logout(user_id)
        if clear_cache:
            await self._components.mirror.clear()

        self.user_id = None
        self.context = self.context.with_user(None)
        logger.info("session_stopped", user_id=user_id, cache_cleared=clear_cache)

    def _refresh_user(self, profile: Optional[UserProfile]) -> None:
        if self.user_id is None:
            return
        self.context = self.context.with_user(profile)

    def set_language(self, language: str) -> None:
        self.context = self.context.with_language(language)
        self._components.toasts.language = language

    def set_theme(self, theme: str) -> None:
        self.context = self.context.with_theme(theme)

    def set_currency(self, currency: str) -> None:
        self.context = self.context.with_currency(currency)
