"""
Project business logic.

Handles project CRUD and stats. Project members must stay within the members
of the owning team.
"""

from __future__ import annotations

import logging
from uuid import UUID

from crewboard.core.documents import Actor, Collection
from crewboard.core.exceptions import NotFound
from crewboard.core.idset import IdSet
from crewboard.core.permissions import Action, Ancestry, Resource, ensure_allowed
from crewboard.schemas.project import (
    ProjectCreateRequest,
    ProjectResponse,
    ProjectStatsResponse,
    ProjectUpdateRequest,
)
from crewboard.services.base import DocumentService, count_statuses
from crewboard.services.cascade import MembershipDelta
from crewboard.services.membership import validate_project_members

logger = logging.getLogger(__name__)


class ProjectService(DocumentService):

    async def list_projects(self, actor: Actor) -> list[ProjectResponse]:
        ensure_allowed(actor, Action.read_many, Resource.project)
        if actor.is_admin:
            projects = await self.repository.find_projects()
        else:
            projects = await self.repository.find_projects(member=actor.id)
        return [ProjectResponse.from_document(p) for p in projects]

    async def list_team_projects(self, actor: Actor, team_id: UUID) -> list[ProjectResponse]:
        team = await self.require_team(team_id)
        ensure_allowed(actor, Action.read_one, Resource.team, team)
        projects = await self.repository.find_projects(team=team.id)
        return [ProjectResponse.from_document(p) for p in projects]

    async def list_user_projects(self, actor: Actor, user_id: UUID) -> list[ProjectResponse]:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.read_many, Resource.user, user)
        projects = await self.repository.find_projects(member=user.id)
        return [ProjectResponse.from_document(p) for p in projects]

    async def get_project(self, actor: Actor, project_id: UUID) -> ProjectResponse:
        project = await self.require_project(project_id)
        ensure_allowed(actor, Action.read_one, Resource.project, project, await self.project_ancestry(project))
        return ProjectResponse.from_document(project)

    async def project_stats(self, actor: Actor, project_id: UUID) -> ProjectStatsResponse:
        project = await self.require_project(project_id)
        ensure_allowed(actor, Action.read_one, Resource.project, project, await self.project_ancestry(project))
        tasks = await self.repository.find_tasks(project=project.id)
        return ProjectStatsResponse(
            member_count=len(project.members),
            task_count=len(tasks),
            task_stats=count_statuses(a for t in tasks for a in t.assigned_members),
        )

    async def create_project(self, actor: Actor, data: ProjectCreateRequest) -> ProjectResponse:
        team = await self.require_team(data.team)
        ensure_allowed(actor, Action.create, Resource.project, ancestry=Ancestry(team=team))
        members = IdSet(data.members)
        validate_project_members(members, team)

        project = await self.repository.create_project(
            name=data.name,
            description=data.description,
            team=team.id,
            created_by=actor.id,
            members=members,
        )
        await self.cascade.project_created(project)
        logger.info("Project created: id=%s team=%s by=%s", project.id, team.id, actor.id)
        return ProjectResponse.from_document(project)

    async def update_project(
        self, actor: Actor, project_id: UUID, data: ProjectUpdateRequest
    ) -> ProjectResponse:
        project = await self.require_project(project_id)
        ancestry = await self.project_ancestry(project)
        fields = data.model_dump(exclude_none=True, exclude={"members"})
        if fields or data.members is None:
            ensure_allowed(actor, Action.update, Resource.project, project, ancestry)

        members: IdSet | None = None
        if data.members is not None:
            ensure_allowed(actor, Action.update_members, Resource.project, project, ancestry)
            if ancestry.team is None:
                logger.warning("Project %s references missing team %s", project.id, project.team)
                raise NotFound("Team not found")
            members = IdSet(data.members)
            validate_project_members(members, ancestry.team)

        await self.repository.update_fields(Collection.projects, project.id, fields)
        if members is not None:
            await self.repository.replace_set(Collection.projects, project.id, "members", members)
            delta = MembershipDelta.between(project.members, members)
            if delta:
                await self.cascade.project_members_changed(project, delta)
                logger.info(
                    "Project members changed: id=%s added=%d removed=%d",
                    project.id, len(delta.added), len(delta.removed),
                )
        return ProjectResponse.from_document(await self.require_project(project.id))

    async def delete_project(self, actor: Actor, project_id: UUID) -> None:
        project = await self.require_project(project_id)
        ensure_allowed(actor, Action.delete, Resource.project, project, await self.project_ancestry(project))
        await self.cascade.delete_project(project)
        logger.info("Project deleted: id=%s by=%s", project.id, actor.id)

