"""
Backup document model.

A backup is a JSON file with the user's expenses, revenues and projects.
Import only checks the shape; records inside are kept as plain dicts.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from falusy.models.records import utc_now


BACKUP_FORMAT_VERSION = "1.0"


class BackupDocument(BaseModel):
    """Exported snapshot of one user's data."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = BACKUP_FORMAT_VERSION
    export_date: dt.datetime = Field(default_factory=utc_now, alias="exportDate")
    expenses: list[dict[str, Any]]
    revenues: list[dict[str, Any]]
    projects: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def record_count(self) -> int:
        return len(self.expenses) + len(self.revenues) + len(self.projects)
