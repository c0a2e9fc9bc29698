"""Tests for configuration, component wiring and the user session."""

import asyncio
import datetime as dt

import pytest
from pydantic import ValidationError

from conftest import USER, settle
from falusy.access import GateState
from falusy.config import get_settings, validate_all_settings
from falusy.services.remote import Collection, InMemoryRemoteDataService
from falusy.services.remote.google_sheets import GoogleSheetsRemoteDataService
from falusy.session import AppContext, UserSession, create_app_components, create_remote
from falusy.toasts import RecordingToastSink


@pytest.fixture
def components(remote):
    return create_app_components(remote=remote, toasts=RecordingToastSink("en"))


class TestSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.remote.backend == "memory"
        assert settings.app.default_language == "ar"
        assert settings.app.default_theme == "dark"
        assert settings.mirror.key_prefix == "falusy"
        assert settings.mirror.flush_interval_seconds == 0.5

    def test_validate_all_settings_skips_unused_backend(self):
        results = validate_all_settings()
        assert results["remote"] and results["mirror"] and results["app"]
        assert "google_sheets" not in results

    def test_google_sheets_backend_is_selectable(self, tmp_path, monkeypatch):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        monkeypatch.setenv("FALUSY_REMOTE_BACKEND", "google_sheets")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-id")

        assert isinstance(create_remote(get_settings()), GoogleSheetsRemoteDataService)
        assert validate_all_settings()["google_sheets"] is True


class TestAppContext:
    def test_context_is_immutable(self):
        context = AppContext()
        with pytest.raises(ValidationError):
            context.language = "en"

    def test_with_methods_return_new_contexts(self):
        context = AppContext()
        changed = context.with_language("en").with_theme("light").with_currency(" usd ")
        assert (changed.language, changed.theme, changed.currency) == ("en", "light", "USD")
        assert (context.language, context.theme, context.currency) == ("ar", "dark", "SAR")

    @pytest.mark.parametrize("call", [
        lambda c: c.with_language("fr"),
        lambda c: c.with_theme("blue"),
        lambda c: c.with_currency("  "),
    ])
    def test_invalid_values_are_rejected(self, call):
        with pytest.raises(ValueError):
            call(AppContext())


class TestComponents:
    def test_defaults_from_settings(self, tmp_path):
        components = create_app_components(toasts=RecordingToastSink())
        assert isinstance(components.remote, InMemoryRemoteDataService)
        assert components.mirror.active_backend.name == "sqlite"
        assert components.context.currency == "SAR"
        assert (tmp_path / "settings" / "offline.db").exists()


class TestUserSession:
    def test_start_and_stop(self, remote, components):
        session = UserSession(components)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam", "isActive": True})
            await remote.set(Collection.EXPENSES, "e1", {"userId": USER, "amount": 5, "category": "Food", "date": "2024-01-01"})
            await session.start(USER)
            await settle()
            started = {
                "state": session.state,
                "user": session.context.user.username,
                "expenses": [e.id for e in session.expenses.items],
                "mirrored": await components.mirror.load(Collection.EXPENSES, USER),
            }
            await session.stop(clear_cache=True)
            stopped = {
                "state": session.state,
                "user": session.context.user,
                "mirrored": await components.mirror.load(Collection.EXPENSES, USER),
                "subscribers": sum(remote.subscriber_count(c) for c in Collection),
                "logs": await remote.query(Collection.ACTIVITY_LOGS, userId=USER),
            }
            return started, stopped

        started, stopped = asyncio.run(scenario())
        assert started["state"] is GateState.ALLOWED
        assert started["user"] == "sam"
        assert started["expenses"] == ["e1"]
        assert [r["id"] for r in started["mirrored"]] == ["e1"]

        assert stopped["state"] is GateState.REDIRECT_LOGIN
        assert stopped["user"] is None
        assert stopped["mirrored"] == []
        assert stopped["subscribers"] == 0
        assert sorted(log["action"] for log in stopped["logs"]) == ["login", "logout"]

    def test_writes_show_up_in_live_lists(self, remote, components):
        session = UserSession(components)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam"})
            await session.start(USER)
            await settle()
            project_id = await session.project_service.add_project("Trip")
            await session.transaction_service.add_expense({
                "amount": 12,
                "category": "Food",
                "date": dt.date(2024, 5, 1),
                "projectId": project_id,
            })
            await session.category_service.add_category({"name": "Pets", "icon": "🐶", "color": "#abc"})
            await settle()
            result = (
                [p.name for p in session.projects.items],
                [e.project_id for e in session.expenses.items],
                [c.name for c in session.categories.items],
            )
            await session.stop()
            return project_id, result

        project_id, (projects, expense_projects, categories) = asyncio.run(scenario())
        assert projects == ["Trip"]
        assert expense_projects == [project_id]
        assert categories == ["Pets"]

    def test_disabled_user_is_gated(self, remote, components):
        session = UserSession(components)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam", "isActive": False})
            await session.start(USER)
            await settle()
            state = session.state
            await session.stop()
            return state

        assert asyncio.run(scenario()) is GateState.DENIED_DISABLED

    def test_live_profile_changes_reach_the_context(self, remote, components):
        session = UserSession(components)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam"})
            await session.start(USER)
            await settle()
            await remote.update(Collection.USERS, USER, {"displayName": "Sam S", "projectLimit": 3})
            await settle()
            user = session.context.user
            await session.stop()
            return user, session.context.user

        live, after_stop = asyncio.run(scenario())
        assert live.display_name == "Sam S"
        assert live.project_limit == 3
        assert after_stop is None

    def test_language_switch_reaches_toasts(self, components):
        session = UserSession(components)
        session.set_language("ar")
        assert session.context.language == "ar"
        assert components.toasts.language == "ar"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
