"""
Tests for the Sync Controller

Covers the mirror-first activation, snapshot write-through, error
degradation, periodic flush and teardown.
"""

import asyncio
import datetime as dt

import pytest

from conftest import OTHER_USER, USER, settle
from falusy.services.remote import Collection, PermissionDeniedError, ServiceUnavailableError
from falusy.sync import LiveCollection, SyncController, sort_transactions
from falusy.models import CustomCategory, Expense
from falusy.toasts import ToastLevel


def expense_doc(doc_id: str, day: str = None, user_id: str = USER, **fields) -> dict:
    document = {"userId": user_id, "amount": 10, "category": "Food", **fields}
    if day:
        document["date"] = day
    return document


async def seed(remote, collection: Collection, documents: dict[str, dict]) -> None:
    for doc_id, document in documents.items():
        await remote.set(collection, doc_id, document)


class TestOrdering:
    """Display order of transactions and projects."""

    def test_transactions_sorted_by_date_descending(self, remote, mirror, toasts):
        """Test [01-05, 03-01, 02-10] displays as [03-01, 02-10, 01-05]."""
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await seed(remote, Collection.EXPENSES, {
                "a": expense_doc("a", "2024-01-05"),
                "b": expense_doc("b", "2024-03-01"),
                "c": expense_doc("c", "2024-02-10"),
            })
            await controller.activate(USER)
            await settle()
            dates = [e.date for e in controller.items]
            await controller.deactivate()
            return dates

        assert asyncio.run(scenario()) == [
            dt.date(2024, 3, 1),
            dt.date(2024, 2, 10),
            dt.date(2024, 1, 5),
        ]

    def test_missing_dates_fall_back_to_created_at(self):
        """Test createdAt decides when a date is missing; otherwise order is kept."""
        newer = Expense(id="n", user_id=USER, created_at=2000)
        older = Expense(id="o", user_id=USER, created_at=1000)
        bare_1 = Expense(id="x", user_id=USER)
        bare_2 = Expense(id="y", user_id=USER)

        assert [e.id for e in sort_transactions([older, newer])] == ["n", "o"]
        assert [e.id for e in sort_transactions([bare_1, bare_2])] == ["x", "y"]

    def test_projects_sorted_by_created_at_descending(self, remote, mirror, toasts):
        controller = SyncController(Collection.PROJECTS, remote, mirror, toasts)

        async def scenario():
            await seed(remote, Collection.PROJECTS, {
                "p1": {"userId": USER, "name": "Old", "createdAt": "2024-01-01T00:00:00Z"},
                "p2": {"userId": USER, "name": "New", "createdAt": dt.datetime(2024, 6, 1, tzinfo=dt.timezone.utc)},
            })
            await controller.activate(USER)
            await settle()
            names = [p.name for p in controller.items]
            await controller.deactivate()
            return names

        assert asyncio.run(scenario()) == ["New", "Old"]


class TestSnapshots:
    """Live snapshots and the mirror."""

    def test_only_the_users_documents_are_listed(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await seed(remote, Collection.EXPENSES, {
                "mine": expense_doc("mine", "2024-01-01"),
                "theirs": expense_doc("theirs", "2024-01-01", user_id=OTHER_USER),
            })
            await controller.activate(USER)
            await settle()
            listed = [e.id for e in controller.items]
            await controller.deactivate()
            return listed

        assert asyncio.run(scenario()) == ["mine"]

    def test_snapshot_is_written_through_to_mirror(self, remote, mirror, toasts):
        """Test every snapshot replaces the user's mirrored rows."""
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await mirror.save(Collection.EXPENSES, [{"id": "x", "userId": OTHER_USER}], OTHER_USER)
            await controller.activate(USER)
            await remote.set(Collection.EXPENSES, "e1", expense_doc("e1", "2024-01-01"))
            await settle()
            await remote.delete(Collection.EXPENSES, "e1")
            await remote.set(Collection.EXPENSES, "e2", expense_doc("e2", "2024-01-02"))
            await settle()
            mine = await mirror.load(Collection.EXPENSES, USER)
            theirs = await mirror.load(Collection.EXPENSES, OTHER_USER)
            await controller.deactivate()
            return mine, theirs

        mine, theirs = asyncio.run(scenario())
        assert [r["id"] for r in mine] == ["e2"]
        assert [r["id"] for r in theirs] == ["x"]

    def test_mirror_is_published_before_remote_answers(self, remote, mirror, toasts):
        """Test a cold start shows the cached list immediately."""
        controller = SyncController(Collection.REVENUES, remote, mirror, toasts)
        published = []
        controller.add_listener(lambda items: published.append([r.id for r in items]))

        async def scenario():
            await mirror.save(Collection.REVENUES, [{"id": "cached", "userId": USER, "amount": 5}], USER)
            await remote.set(Collection.REVENUES, "live", {"userId": USER, "amount": 7})
            await controller.activate(USER)
            first = [r.id for r in controller.items]
            await settle()
            await controller.deactivate()
            return first

        assert asyncio.run(scenario()) == ["cached"]
        assert published[:2] == [["cached"], ["live"]]

    def test_malformed_documents_are_skipped(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await seed(remote, Collection.EXPENSES, {
                "good": expense_doc("good", "2024-01-01"),
                "bad": expense_doc("bad", "2024-01-01", amount="not-a-number"),
            })
            await controller.activate(USER)
            await settle()
            listed = [e.id for e in controller.items]
            await controller.deactivate()
            return listed

        assert asyncio.run(scenario()) == ["good"]

    def test_non_mirrored_collection_is_rejected(self, remote, mirror, toasts):
        with pytest.raises(ValueError):
            SyncController(Collection.NOTIFICATIONS, remote, mirror, toasts)


class TestErrors:
    """Subscription errors degrade, never raise."""

    def test_permission_errors_are_silent(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await remote.set(Collection.EXPENSES, "e1", expense_doc("e1", "2024-01-01"))
            await controller.activate(USER)
            await settle()
            remote.emit_error(Collection.EXPENSES, PermissionDeniedError())
            await settle()
            listed = [e.id for e in controller.items]
            await controller.deactivate()
            return listed

        assert asyncio.run(scenario()) == ["e1"]
        assert toasts.toasts == []

    def test_outage_serves_mirror_with_info_toast(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await mirror.save(Collection.EXPENSES, [{"id": "cached", "userId": USER, "amount": 3}], USER)
            await controller.activate(USER)
            await settle()
            # The live snapshot was empty, so it replaced the cached rows
            await mirror.save(Collection.EXPENSES, [{"id": "cached", "userId": USER, "amount": 3}], USER)
            remote.emit_error(Collection.EXPENSES, ServiceUnavailableError("offline"))
            await settle()
            listed = [e.id for e in controller.items]
            await controller.deactivate()
            return listed

        assert asyncio.run(scenario()) == ["cached"]
        assert toasts.keys(ToastLevel.INFO) == ["offline_cache_used"]
        assert all(not t.blocking for t in toasts.toasts)

    def test_outage_with_empty_mirror_blocks(self, remote, mirror, toasts):
        controller = SyncController(Collection.PROJECTS, remote, mirror, toasts)

        async def scenario():
            await controller.activate(USER)
            await settle()
            remote.emit_error(Collection.PROJECTS, ServiceUnavailableError("offline"))
            await settle()
            await controller.deactivate()

        asyncio.run(scenario())
        assert toasts.keys(ToastLevel.ERROR) == ["load_failed"]
        assert toasts.toasts[-1].blocking is True


class TestLifecycle:
    """Periodic flush and teardown."""

    def test_periodic_flush_rewrites_mirror(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts, flush_interval=0.01)

        async def scenario():
            await remote.set(Collection.EXPENSES, "e1", expense_doc("e1", "2024-01-01"))
            await controller.activate(USER)
            await settle()
            await mirror.clear()
            await settle(0.05)
            restored = await mirror.load(Collection.EXPENSES, USER)
            await controller.deactivate()
            return restored

        assert [r["id"] for r in asyncio.run(scenario())] == ["e1"]

    def test_deactivate_unsubscribes_and_clears(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)
        published = []
        controller.add_listener(published.append)

        async def scenario():
            await remote.set(Collection.EXPENSES, "e1", expense_doc("e1", "2024-01-01"))
            await controller.activate(USER)
            await settle()
            subscribed = remote.subscriber_count(Collection.EXPENSES)
            await controller.deactivate()
            await remote.set(Collection.EXPENSES, "e2", expense_doc("e2", "2024-01-02"))
            await settle()
            return subscribed, remote.subscriber_count(Collection.EXPENSES)

        subscribed, remaining = asyncio.run(scenario())
        assert subscribed == 1
        assert remaining == 0
        assert controller.items == []
        assert controller.active is False
        assert published[-1] == []

    def test_switching_users_reopens_the_query(self, remote, mirror, toasts):
        controller = SyncController(Collection.EXPENSES, remote, mirror, toasts)

        async def scenario():
            await seed(remote, Collection.EXPENSES, {
                "mine": expense_doc("mine", "2024-01-01"),
                "theirs": expense_doc("theirs", "2024-01-01", user_id=OTHER_USER),
            })
            await controller.activate(USER)
            await settle()
            await controller.activate(OTHER_USER)
            await settle()
            listed = [e.id for e in controller.items]
            count = remote.subscriber_count(Collection.EXPENSES)
            await controller.deactivate()
            return listed, count

        listed, count = asyncio.run(scenario())
        assert listed == ["theirs"]
        assert count == 1


class TestLiveCollection:
    """The unmirrored base used for categories and budgets."""

    def test_error_toast_without_mirror(self, remote, toasts):
        categories = LiveCollection(Collection.CUSTOM_CATEGORIES, remote, toasts, CustomCategory)

        async def scenario():
            await remote.set(Collection.CUSTOM_CATEGORIES, "c1", {"userId": USER, "name": "Pets", "icon": "🐶", "color": "#abc"})
            await categories.activate(USER)
            await settle()
            names = [c.name for c in categories.items]
            remote.emit_error(Collection.CUSTOM_CATEGORIES, ServiceUnavailableError("offline"))
            await settle()
            await categories.deactivate()
            return names

        assert asyncio.run(scenario()) == ["Pets"]
        assert toasts.keys(ToastLevel.ERROR) == ["load_failed"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
