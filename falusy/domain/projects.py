"""
Project Service

Projects group transactions. Rules enforced before any remote write:
- Name is required (after stripping)
- Names are unique per user, compared case-insensitively
- add_project respects the profile's projectLimit when one is set

delete_project cascades: every expense and revenue pointing at the
project is deleted first, then the project itself. The cascade is NOT
atomic. A failure part-way leaves the already-deleted transactions
deleted; the error is logged with progress and re-raised.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from falusy.domain.base import DomainService
from falusy.domain.errors import DuplicateProjectNameError, ProjectLimitReachedError
from falusy.domain.profiles import load_profile
from falusy.models.activity import EntityType
from falusy.models.records import Project, ProjectInput, utc_now
from falusy.services.remote import Collection, RemoteError


logger = structlog.get_logger(__name__)


def _name_key(name: str) -> str:
    return name.strip().casefold()


class ProjectService(DomainService):
    """CRUD facade over the projects collection."""

    async def _existing_projects(self) -> list[Project]:
        documents = await self._remote.query(Collection.PROJECTS, userId=self.user_id)
        return [Project.model_validate(d) for d in documents]

    def _validate_name(self, name: str) -> ProjectInput:
        try:
            return ProjectInput(name=name)
        except ValidationError:
            self._toasts.warning("project_name_required")
            raise

    def _ensure_unique(self, name: str, projects: list[Project], exclude_id: Optional[str] = None) -> None:
        key = _name_key(name)
        for project in projects:
            if project.id != exclude_id and _name_key(project.name) == key:
                self._toasts.warning("project_name_taken")
                raise DuplicateProjectNameError(name)

    async def add_project(self, name: str) -> str:
        payload = self._validate_name(name)
        projects = await self._remote_call(
            self._existing_projects(),
            "project_add_failed",
            "project_lookup_failed",
        )
        self._ensure_unique(payload.name, projects)

        profile = await self._remote_call(
            load_profile(self._remote, self.user_id),
            "project_add_failed",
            "profile_lookup_failed",
        )
        limit = profile.project_limit if profile is not None else None
        if limit is not None and len(projects) >= limit:
            self._toasts.warning("project_limit_reached")
            raise ProjectLimitReachedError(limit)

        document = payload.to_document()
        document["userId"] = self.user_id
        document["createdAt"] = utc_now()
        project_id = await self._remote_call(
            self._remote.create(Collection.PROJECTS, document),
            "project_add_failed",
            "project_add_failed",
        )
        logger.info("project_added", project_id=project_id, user_id=self.user_id)

        await self._activity.log_added(self.user_id, EntityType.PROJECT, project_id, {"name": payload.name})
        self._toasts.success("project_added")
        return project_id

    async def update_project(self, project_id: str, name: str) -> None:
        payload = self._validate_name(name)
        projects = await self._remote_call(
            self._existing_projects(),
            "project_update_failed",
            "project_lookup_failed",
            project_id=project_id,
        )
        self._ensure_unique(payload.name, projects, exclude_id=project_id)

        await self._remote_call(
            self._remote.update(Collection.PROJECTS, project_id, {"name": payload.name}),
            "project_update_failed",
            "project_update_failed",
            project_id=project_id,
        )
        logger.info("project_updated", project_id=project_id)

        await self._activity.log_edited(self.user_id, EntityType.PROJECT, project_id, {"name": payload.name})
        self._toasts.success("project_updated")

    async def delete_project(self, project_id: str) -> None:
        """Delete a project and every transaction assigned to it."""
        deleted = {"expenses": 0, "revenues": 0}
        try:
            for collection, counter in (
                (Collection.EXPENSES, "expenses"),
                (Collection.REVENUES, "revenues"),
            ):
                linked = await self._remote.query(
                    collection,
                    userId=self.user_id,
                    projectId=project_id,
                )
                for document in linked:
                    await self._remote.delete(collection, document["id"])
                    deleted[counter] += 1
            await self._remote.delete(Collection.PROJECTS, project_id)
        except RemoteError as e:
            logger.error(
                "project_cascade_delete_failed",
                project_id=project_id,
                user_id=self.user_id,
                kind=e.kind.value,
                error=str(e),
                **deleted,
            )
            self._toasts.error("project_delete_failed")
            raise

        logger.info("project_deleted", project_id=project_id, **deleted)
        await self._activity.log_deleted(self.user_id, EntityType.PROJECT, project_id, deleted)
        self._toasts.success("project_deleted")
