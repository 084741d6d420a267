"""
Cascade coordination.

Propagates one structural change (create, delete, membership change) to every
document that holds a reference to the changed one. Each propagation step is a
separate, idempotent repository call: re-running a protocol after a partial
failure converges, but the sequence as a whole is not atomic.

These protocols are only ever called by the services after the primary write.
None of the repository calls made here trigger further propagation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from uuid import UUID

from crewboard.core.documents import (
    Collection,
    ProjectDocument,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.idset import IdSet
from crewboard.repositories import DocumentRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipDelta:
    added: IdSet
    removed: IdSet

    @classmethod
    def between(cls, old: IdSet, new: IdSet, keep: UUID | None = None) -> MembershipDelta:
        removed = old - new
        if keep is not None:
            removed = removed.without([keep])
        return cls(added=new - old, removed=removed)

    def __bool__(self) -> bool:
        return bool(self.added or self.removed)


class CascadeCoordinator:
    """Applies back-reference updates and cascaded deletes."""

    def __init__(self, repository: DocumentRepository) -> None:
        self.repository = repository

    async def _apply(self, step: str, operation: Awaitable[None]) -> None:
        logger.debug("cascade: %s", step)
        try:
            await operation
        except Exception:
            logger.error("cascade step failed, back-references may be inconsistent: %s", step)
            raise

    # -----------------------------------------------------------------------
    # Creates
    # -----------------------------------------------------------------------

    async def team_created(self, team: TeamDocument) -> None:
        await self._apply(
            f"add team {team.id} to users.teams",
            self.repository.add_to_set_many(Collection.users, team.members, "teams", [team.id]),
        )

    async def project_created(self, project: ProjectDocument) -> None:
        await self._apply(
            f"add project {project.id} to team {project.team}",
            self.repository.add_to_set(Collection.teams, project.team, "projects", [project.id]),
        )
        await self._apply(
            f"add project {project.id} to users.projects",
            self.repository.add_to_set_many(Collection.users, project.members, "projects", [project.id]),
        )

    async def task_created(self, task: TaskDocument) -> None:
        await self._apply(
            f"add task {task.id} to project {task.project}",
            self.repository.add_to_set(Collection.projects, task.project, "tasks", [task.id]),
        )
        await self._apply(
            f"add task {task.id} to users.tasks",
            self.repository.add_to_set_many(Collection.users, task.assignees, "tasks", [task.id]),
        )

    # -----------------------------------------------------------------------
    # Membership changes
    # -----------------------------------------------------------------------

    async def team_members_changed(self, team: TeamDocument, delta: MembershipDelta) -> None:
        """Propagate a team membership change.

        Removed members also leave every project of the team, and those
        projects leave the removed users' back-references. Their task
        assignments under the team are left alone.
        """
        await self._apply(
            f"add team {team.id} to {len(delta.added)} users",
            self.repository.add_to_set_many(Collection.users, delta.added, "teams", [team.id]),
        )
        if not delta.removed:
            return
        await self._apply(
            f"remove team {team.id} from {len(delta.removed)} users",
            self.repository.remove_from_set_many(Collection.users, delta.removed, "teams", [team.id]),
        )
        projects = await self.repository.find_projects(team=team.id)
        project_ids = IdSet(p.id for p in projects)
        await self._apply(
            f"remove {len(delta.removed)} users from projects of team {team.id}",
            self.repository.remove_from_set_many(Collection.projects, project_ids, "members", delta.removed),
        )
        await self._apply(
            f"remove projects of team {team.id} from removed users",
            self.repository.remove_from_set_many(Collection.users, delta.removed, "projects", project_ids),
        )

    async def project_members_changed(self, project: ProjectDocument, delta: MembershipDelta) -> None:
        await self._apply(
            f"add project {project.id} to {len(delta.added)} users",
            self.repository.add_to_set_many(Collection.users, delta.added, "projects", [project.id]),
        )
        await self._apply(
            f"remove project {project.id} from {len(delta.removed)} users",
            self.repository.remove_from_set_many(Collection.users, delta.removed, "projects", [project.id]),
        )

    async def task_assignees_changed(self, task: TaskDocument, delta: MembershipDelta) -> None:
        await self._apply(
            f"add task {task.id} to {len(delta.added)} users",
            self.repository.add_to_set_many(Collection.users, delta.added, "tasks", [task.id]),
        )
        await self._apply(
            f"remove task {task.id} from {len(delta.removed)} users",
            self.repository.remove_from_set_many(Collection.users, delta.removed, "tasks", [task.id]),
        )

    # -----------------------------------------------------------------------
    # Deletes
    # -----------------------------------------------------------------------

    async def delete_task(self, task: TaskDocument) -> None:
        await self._apply(
            f"remove task {task.id} from project {task.project}",
            self.repository.remove_from_set(Collection.projects, task.project, "tasks", [task.id]),
        )
        await self._apply(
            f"remove task {task.id} from users.tasks",
            self.repository.remove_from_set_many(Collection.users, task.assignees, "tasks", [task.id]),
        )
        await self._apply(f"delete task {task.id}", self.repository.delete(Collection.tasks, task.id))

    async def delete_project(self, project: ProjectDocument) -> None:
        await self._apply(
            f"remove project {project.id} from team {project.team}",
            self.repository.remove_from_set(Collection.teams, project.team, "projects", [project.id]),
        )
        await self._apply(
            f"remove project {project.id} from users.projects",
            self.repository.remove_from_set_many(Collection.users, project.members, "projects", [project.id]),
        )
        for task in await self.repository.find_tasks(project=project.id):
            await self.delete_task(task)
        await self._apply(f"delete project {project.id}", self.repository.delete(Collection.projects, project.id))

    async def delete_team(self, team: TeamDocument) -> None:
        await self._apply(
            f"remove team {team.id} from users.teams",
            self.repository.remove_from_set_many(Collection.users, team.members, "teams", [team.id]),
        )
        for project in await self.repository.find_projects(team=team.id):
            await self.delete_project(project)
        await self._apply(f"delete team {team.id}", self.repository.delete(Collection.teams, team.id))

    async def delete_user(self, user: UserDocument) -> None:
        """Scrub the user from every member list; entities they created stay."""
        await self._apply(
            f"remove user {user.id} from teams.members",
            self.repository.pull_everywhere(Collection.teams, "members", user.id),
        )
        await self._apply(
            f"remove user {user.id} from projects.members",
            self.repository.pull_everywhere(Collection.projects, "members", user.id),
        )
        await self._apply(
            f"remove user {user.id} from task assignments",
            self.repository.pull_assignee_everywhere(user.id),
        )
        await self._apply(f"delete user {user.id}", self.repository.delete(Collection.users, user.id))
