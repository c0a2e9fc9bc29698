"""
Local Mirror Package

Offline copy of remote collections: SQLite primary backend, flat JSON
fallback, and the MirrorStore that chooses between them.
"""

from falusy.services.mirror.interface import MirrorBackend, MirrorBackendError
from falusy.services.mirror.json_backend import JsonFileMirrorBackend
from falusy.services.mirror.sqlite_backend import SqliteMirrorBackend
from falusy.services.mirror.store import MirrorStore

__all__ = [
    "JsonFileMirrorBackend",
    "MirrorBackend",
    "MirrorBackendError",
    "MirrorStore",
    "SqliteMirrorBackend",
]
