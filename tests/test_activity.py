"""Tests for the best-effort activity logger."""

import asyncio
import datetime as dt

import pytest

from conftest import OTHER_USER, USER
from falusy.activity import ActivityLogger
from falusy.models import ActivityAction, ActivityLogBuilder, EntityType
from falusy.services.remote import (
    Collection,
    PermissionDeniedError,
    RemoteError,
    RemoteErrorKind,
    ServiceUnavailableError,
)


class TestActivityLogger:
    def test_local_only_logger_succeeds(self):
        logger = ActivityLogger()
        assert asyncio.run(logger.log(ActivityLogBuilder.login(USER))) is True

    def test_entry_is_persisted(self, remote, activity):
        async def scenario():
            await activity.log_added(USER, EntityType.EXPENSE, "e1", {"amount": 5})
            return await remote.query(Collection.ACTIVITY_LOGS, userId=USER)

        logs = asyncio.run(scenario())
        assert len(logs) == 1
        assert logs[0]["action"] == "add"
        assert logs[0]["entityId"] == "e1"
        assert logs[0]["details"] == {"amount": 5}
        assert "timestamp" in logs[0] and "createdAt" in logs[0]

    @pytest.mark.parametrize("error", [
        PermissionDeniedError(),
        RemoteError("boom", RemoteErrorKind.UNAVAILABLE),
    ])
    def test_remote_failures_are_swallowed(self, remote, activity, error):
        """Test a failed log write reports False instead of raising."""
        remote.fail_on("create", Collection.ACTIVITY_LOGS, error)
        assert asyncio.run(activity.log(ActivityLogBuilder.logout(USER))) is False

    def test_login_and_logout_helpers(self, remote, activity):
        async def scenario():
            await activity.log_login(USER)
            await activity.log_logout(USER)
            return await remote.query(Collection.ACTIVITY_LOGS, entityType="account")

        assert sorted(log["action"] for log in asyncio.run(scenario())) == ["login", "logout"]


class TestActivityHistory:
    def seed(self, remote):
        async def scenario():
            base = dt.datetime(2024, 5, 1, tzinfo=dt.timezone.utc)
            entries = [
                ("add", "expense", {"description": "Lunch"}, 1),
                ("edit", "expense", {"changes": {"amount": 3}}, 2),
                ("add", "project", {"name": "Trip"}, 3),
                ("login", "account", {}, 0),
            ]
            for action, entity_type, details, hours in entries:
                await remote.create(Collection.ACTIVITY_LOGS, {
                    "userId": USER,
                    "action": action,
                    "entityType": entity_type,
                    "details": details,
                    "timestamp": base + dt.timedelta(hours=hours),
                })
            await remote.create(Collection.ACTIVITY_LOGS, {
                "userId": OTHER_USER,
                "action": "add",
                "entityType": "expense",
                "timestamp": base.isoformat(),
            })
            await remote.create(Collection.ACTIVITY_LOGS, {"userId": USER, "action": "bogus"})

        asyncio.run(scenario())

    def test_own_entries_newest_first(self, remote, activity):
        self.seed(remote)
        entries = asyncio.run(activity.history(USER))
        assert [(e.action.value, e.entity_type.value) for e in entries] == [
            ("add", "project"),
            ("edit", "expense"),
            ("add", "expense"),
            ("login", "account"),
        ]

    def test_filters_and_limit(self, remote, activity):
        self.seed(remote)

        async def scenario():
            return (
                await activity.history(USER, action=ActivityAction.ADD),
                await activity.history(USER, entity_type=EntityType.EXPENSE),
                await activity.history(USER, search="lunch"),
                await activity.history(USER, limit=1),
            )

        added, expenses, searched, limited = asyncio.run(scenario())
        assert [e.entity_type for e in added] == [EntityType.PROJECT, EntityType.EXPENSE]
        assert [e.action for e in expenses] == [ActivityAction.EDIT, ActivityAction.ADD]
        assert [e.details for e in searched] == [{"description": "Lunch"}]
        assert [e.entity_type for e in limited] == [EntityType.PROJECT]

    def test_read_failures_propagate(self, remote, activity):
        remote.fail_on("query", Collection.ACTIVITY_LOGS, ServiceUnavailableError("offline"))
        with pytest.raises(ServiceUnavailableError):
            asyncio.run(activity.history(USER))

    def test_local_only_logger_has_no_history(self):
        assert asyncio.run(ActivityLogger().history(USER)) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
