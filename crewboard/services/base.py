"""
Shared loading for the resource services.

Every pipeline starts by loading its target and the ancestors the permission
table needs. A missing target is a 404; a missing ancestor of an existing
target is tolerated where the predicates can still decide without it.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from uuid import UUID

from crewboard.core.documents import (
    Assignment,
    ProjectDocument,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.exceptions import NotFound
from crewboard.core.permissions import Ancestry
from crewboard.repositories import DocumentRepository
from crewboard.services.cascade import CascadeCoordinator


def count_statuses(assignments: Iterable[Assignment]) -> dict[str, int]:
    """Assignment count per status value; statuses with no entries are omitted."""
    return dict(Counter(a.status.value for a in assignments))


class DocumentService:
    """Base for the per-resource mutation pipelines."""

    def __init__(self, repository: DocumentRepository) -> None:
        self.repository = repository
        self.cascade = CascadeCoordinator(repository)

    async def require_user(self, user_id: UUID) -> UserDocument:
        user = await self.repository.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def require_team(self, team_id: UUID) -> TeamDocument:
        team = await self.repository.get_team(team_id)
        if team is None:
            raise NotFound("Team not found")
        return team

    async def require_project(self, project_id: UUID) -> ProjectDocument:
        project = await self.repository.get_project(project_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    async def require_task(self, task_id: UUID) -> TaskDocument:
        task = await self.repository.get_task(task_id)
        if task is None:
            raise NotFound("Task not found")
        return task

    async def project_ancestry(self, project: ProjectDocument) -> Ancestry:
        return Ancestry(team=await self.repository.get_team(project.team), project=project)

    async def task_ancestry(self, task: TaskDocument) -> Ancestry:
        project = await self.repository.get_project(task.project)
        if project is None:
            return Ancestry()
        return await self.project_ancestry(project)
