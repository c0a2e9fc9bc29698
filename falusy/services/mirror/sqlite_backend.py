"""SQLite mirror backend - one table per mirrored collection."""

import json
import sqlite3
from pathlib import Path
from typing import Any, Optional

from falusy.services.mirror.interface import (
    MirrorBackend,
    MirrorBackendError,
    require_mirrored,
)
from falusy.services.remote.interface import MIRRORED_COLLECTIONS, Collection


class SqliteMirrorBackend(MirrorBackend):
    """
    Primary mirror engine.

    Each collection gets a table keyed by record id with a user_id column
    for scoping and the record itself as a JSON payload.
    """

    name = "sqlite"

    def __init__(self, db_path: Path):
        self._db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    def open(self) -> None:
        if self._conn is not None:
            return
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._db_path)
            for collection in MIRRORED_COLLECTIONS:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {collection.value} (
                        id TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL,
                        payload TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    f"CREATE INDEX IF NOT EXISTS idx_{collection.value}_user "
                    f"ON {collection.value} (user_id)"
                )
            conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise MirrorBackendError(f"Cannot open mirror database {self._db_path}: {e}")
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.open()
        return self._conn

    def replace_user_records(
        self,
        collection: Collection,
        user_id: str,
        records: list[dict[str, Any]],
    ) -> None:
        table = require_mirrored(collection)
        conn = self._connection()
        try:
            with conn:
                conn.execute(f"DELETE FROM {table} WHERE user_id = ?", (user_id,))
                conn.executemany(
                    f"INSERT OR REPLACE INTO {table} (id, user_id, payload) VALUES (?, ?, ?)",
                    [
                        (str(record["id"]), user_id, json.dumps(record, ensure_ascii=False))
                        for record in records
                    ],
                )
        except (KeyError, TypeError, ValueError, sqlite3.Error) as e:
            raise MirrorBackendError(f"Failed to save {table} for {user_id}: {e}")

    def load_user_records(self, collection: Collection, user_id: str) -> list[dict[str, Any]]:
        table = require_mirrored(collection)
        conn = self._connection()
        try:
            rows = conn.execute(
                f"SELECT payload FROM {table} WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
            return [json.loads(row[0]) for row in rows]
        except (ValueError, sqlite3.Error) as e:
            raise MirrorBackendError(f"Failed to load {table} for {user_id}: {e}")

    def clear(self) -> None:
        conn = self._connection()
        try:
            with conn:
                for collection in MIRRORED_COLLECTIONS:
                    conn.execute(f"DELETE FROM {collection.value}")
        except sqlite3.Error as e:
            raise MirrorBackendError(f"Failed to clear mirror database: {e}")
