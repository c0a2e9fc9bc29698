"""Tests for the access gate decision and its live wiring."""

import asyncio

import pytest

from conftest import USER, settle
from falusy.access import AccessGate, GateState, evaluate_gate, parse_site_status
from falusy.models import SiteStatus, UserProfile
from falusy.services.remote import SITE_STATUS_DOCUMENT, Collection, ServiceUnavailableError


def profile(**flags) -> UserProfile:
    return UserProfile(user_id=USER, username="sam", **flags)


class TestEvaluateGate:
    def test_loading_first(self):
        assert evaluate_gate(None, SiteStatus.NORMAL, loading=True) is GateState.LOADING

    def test_no_user_redirects_to_login(self):
        assert evaluate_gate(None, SiteStatus.MAINTENANCE) is GateState.REDIRECT_LOGIN

    @pytest.mark.parametrize("status", list(SiteStatus))
    @pytest.mark.parametrize("is_admin", [None, False])
    def test_disabled_non_admin_is_always_denied(self, status, is_admin):
        """Test a disabled account sees the disabled view in every site state."""
        state = evaluate_gate(profile(is_active=False, is_admin=is_admin), status)
        assert state is GateState.DENIED_DISABLED

    @pytest.mark.parametrize("status", list(SiteStatus))
    def test_admin_bypasses_disabled_and_maintenance(self, status):
        assert evaluate_gate(profile(is_active=False, is_admin=True), status) is GateState.ALLOWED

    @pytest.mark.parametrize("status", [SiteStatus.MAINTENANCE, SiteStatus.DEVELOPMENT])
    def test_maintenance_denies_regular_users(self, status):
        assert evaluate_gate(profile(), status) is GateState.DENIED_MAINTENANCE

    def test_regular_user_allowed_when_normal(self):
        assert evaluate_gate(profile(is_active=True), SiteStatus.NORMAL) is GateState.ALLOWED

    @pytest.mark.parametrize("document", [None, {}, {"status": "unknown"}, {"status": None}])
    def test_unreadable_site_status_is_normal(self, document):
        assert parse_site_status(document) is SiteStatus.NORMAL


class TestAccessGate:
    def test_follows_profile_and_site_status(self, remote):
        gate = AccessGate(remote)
        states = []
        gate.add_listener(states.append)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam", "isActive": True})
            await gate.activate(USER)
            await settle()
            await remote.set(Collection.SYSTEM, SITE_STATUS_DOCUMENT, {"status": "maintenance"})
            await settle()
            await remote.update(Collection.USERS, USER, {"isAdmin": True})
            await settle()
            await remote.update(Collection.USERS, USER, {"isAdmin": False, "isActive": False})
            await settle()
            await gate.deactivate()

        asyncio.run(scenario())
        assert states == [
            GateState.ALLOWED,
            GateState.DENIED_MAINTENANCE,
            GateState.ALLOWED,
            GateState.DENIED_DISABLED,
            GateState.REDIRECT_LOGIN,
        ]

    def test_listeners_only_hear_changes(self, remote):
        gate = AccessGate(remote)
        states = []
        gate.add_listener(states.append)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam"})
            await gate.activate(USER)
            await settle()
            await remote.update(Collection.USERS, USER, {"displayName": "Sam"})
            await remote.set(Collection.SYSTEM, SITE_STATUS_DOCUMENT, {"status": "normal"})
            await settle()
            await gate.deactivate()

        asyncio.run(scenario())
        assert states == [GateState.ALLOWED, GateState.REDIRECT_LOGIN]

    def test_profile_listeners_hear_profile_changes(self, remote):
        gate = AccessGate(remote)
        profiles = []
        gate.add_profile_listener(profiles.append)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam"})
            await gate.activate(USER)
            await settle()
            await remote.set(Collection.SYSTEM, SITE_STATUS_DOCUMENT, {"status": "normal"})
            await settle()
            await remote.update(Collection.USERS, USER, {"displayName": "Sam"})
            await settle()
            await gate.deactivate()

        asyncio.run(scenario())
        assert [p.display_name for p in profiles] == [None, "Sam"]

    def test_missing_profile_redirects(self, remote):
        gate = AccessGate(remote)

        async def scenario():
            await gate.activate(USER)
            await settle()
            state = gate.state
            await gate.deactivate()
            return state

        assert asyncio.run(scenario()) is GateState.REDIRECT_LOGIN

    def test_site_status_error_counts_as_normal(self, remote):
        gate = AccessGate(remote)

        async def scenario():
            await remote.set(Collection.USERS, USER, {"username": "sam"})
            await remote.set(Collection.SYSTEM, SITE_STATUS_DOCUMENT, {"status": "maintenance"})
            await gate.activate(USER)
            await settle()
            denied = gate.state
            remote.emit_error(Collection.SYSTEM, ServiceUnavailableError("offline"))
            await settle()
            state = gate.state
            await gate.deactivate()
            return denied, state

        denied, state = asyncio.run(scenario())
        assert denied is GateState.DENIED_MAINTENANCE
        assert state is GateState.ALLOWED

    def test_deactivate_closes_subscriptions(self, remote):
        gate = AccessGate(remote)

        async def scenario():
            await gate.activate(USER)
            await settle()
            opened = remote.subscriber_count(Collection.SYSTEM) + remote.subscriber_count(Collection.USERS)
            await gate.deactivate()
            return opened, remote.subscriber_count(Collection.SYSTEM) + remote.subscriber_count(Collection.USERS)

        assert asyncio.run(scenario()) == (2, 0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
