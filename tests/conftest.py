"""Shared fixtures: in-memory remote, temp-dir mirror, recording toasts."""

import asyncio

import pytest

from falusy.activity import ActivityLogger
from falusy.services.mirror import JsonFileMirrorBackend, MirrorStore, SqliteMirrorBackend
from falusy.services.remote import InMemoryRemoteDataService
from falusy.toasts import RecordingToastSink


USER = "user-1"
OTHER_USER = "user-2"


async def settle(seconds: float = 0.02) -> None:
    """Let consumer tasks drain their queues."""
    await asyncio.sleep(seconds)


@pytest.fixture
def remote():
    return InMemoryRemoteDataService()


@pytest.fixture
def toasts():
    return RecordingToastSink(language="en")


@pytest.fixture
def activity(remote):
    return ActivityLogger(remote)


@pytest.fixture
def mirror(tmp_path):
    return MirrorStore(
        SqliteMirrorBackend(tmp_path / "offline.db"),
        JsonFileMirrorBackend(tmp_path / "fallback"),
    )


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point every setting at the test's temp dir."""
    monkeypatch.setenv("FALUSY_MIRROR_DATABASE_PATH", str(tmp_path / "settings" / "offline.db"))
    monkeypatch.setenv("FALUSY_MIRROR_FALLBACK_DIR", str(tmp_path / "settings" / "fallback"))
    monkeypatch.setenv("FALUSY_REMOTE_BACKEND", "memory")
    from falusy.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
