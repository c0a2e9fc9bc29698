"""Flat-file mirror backend - one JSON blob per collection and user."""

import json
from pathlib import Path
from typing import Any

from falusy.services.mirror.interface import (
    MirrorBackend,
    MirrorBackendError,
    require_mirrored,
)
from falusy.services.remote.interface import MIRRORED_COLLECTIONS, Collection


class JsonFileMirrorBackend(MirrorBackend):
    """
    Fallback mirror engine.

    Files are named "<prefix>_<collection>_<userId>.json" inside one
    directory, so replacing a user's rows is a single file write.
    """

    name = "json"

    def __init__(self, directory: Path, prefix: str = "falusy"):
        self._directory = Path(directory)
        self._prefix = prefix

    def path_for(self, collection: Collection, user_id: str) -> Path:
        return self._directory / f"{self._prefix}_{require_mirrored(collection)}_{user_id}.json"

    def open(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MirrorBackendError(f"Cannot create fallback directory {self._directory}: {e}")

    def replace_user_records(
        self,
        collection: Collection,
        user_id: str,
        records: list[dict[str, Any]],
    ) -> None:
        path = self.path_for(collection, user_id)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            raise MirrorBackendError(f"Failed to write {path}: {e}")

    def load_user_records(self, collection: Collection, user_id: str) -> list[dict[str, Any]]:
        path = self.path_for(collection, user_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise MirrorBackendError(f"Failed to read {path}: {e}")
        return data if isinstance(data, list) else []

    def clear(self) -> None:
        if not self._directory.exists():
            return
        try:
            for collection in MIRRORED_COLLECTIONS:
                for path in self._directory.glob(f"{self._prefix}_{collection.value}_*.json"):
                    path.unlink()
        except OSError as e:
            raise MirrorBackendError(f"Failed to clear {self._directory}: {e}")
