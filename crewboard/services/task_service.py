"""
Task business logic.

Handles task CRUD, per-assignee status updates and stats.

Assignees are validated against the members of the team that owns the task's
project. A member listed twice keeps its first entry.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from uuid import UUID

from crewboard.core.documents import Actor, Assignment, AssignmentStatus, Collection, TaskDocument
from crewboard.core.exceptions import NotFound
from crewboard.core.idset import IdSet
from crewboard.core.permissions import Action, Ancestry, Resource, ensure_allowed
from crewboard.schemas.task import (
    AssignmentRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskStatsResponse,
    TaskStatusRequest,
    TaskUpdateRequest,
)
from crewboard.services.base import DocumentService, count_statuses
from crewboard.services.cascade import MembershipDelta
from crewboard.services.membership import validate_assignees

logger = logging.getLogger(__name__)


def build_assignments(
    requested: Sequence[AssignmentRequest],
    current: TaskDocument | None = None,
) -> list[Assignment]:
    """Turn request entries into assignments.

    On create every status is 'to-do'. On update an entry without a status
    keeps the member's current status, or 'to-do' for a new assignee.
    """
    seen: set[UUID] = set()
    assignments: list[Assignment] = []
    for entry in requested:
        if entry.member in seen:
            continue
        seen.add(entry.member)
        if current is None:
            status = AssignmentStatus.to_do
        elif entry.status is not None:
            status = entry.status
        else:
            existing = current.assignment_for(entry.member)
            status = existing.status if existing else AssignmentStatus.to_do
        assignments.append(Assignment(member=entry.member, status=status))
    return assignments


class TaskService(DocumentService):

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def list_tasks(self, actor: Actor) -> list[TaskResponse]:
        """Admins see every task; others see tasks assigned to them or in their projects."""
        ensure_allowed(actor, Action.read_many, Resource.task)
        if actor.is_admin:
            tasks = await self.repository.find_tasks()
        else:
            projects = await self.repository.find_projects(member=actor.id)
            tasks = await self.repository.find_tasks(
                assignee_or_projects=(actor.id, [p.id for p in projects])
            )
        return [TaskResponse.from_document(t) for t in tasks]

    async def list_project_tasks(self, actor: Actor, project_id: UUID) -> list[TaskResponse]:
        project = await self.require_project(project_id)
        ensure_allowed(actor, Action.read_one, Resource.project, project, await self.project_ancestry(project))
        tasks = await self.repository.find_tasks(project=project.id)
        return [TaskResponse.from_document(t) for t in tasks]

    async def list_user_tasks(self, actor: Actor, user_id: UUID) -> list[TaskResponse]:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.read_many, Resource.user, user)
        tasks = await self.repository.find_tasks(assignee=user.id)
        return [TaskResponse.from_document(t) for t in tasks]

    async def get_task(self, actor: Actor, task_id: UUID) -> TaskResponse:
        task = await self.require_task(task_id)
        ensure_allowed(actor, Action.read_one, Resource.task, task, await self.task_ancestry(task))
        return TaskResponse.from_document(task)

    async def task_stats(self, actor: Actor, task_id: UUID) -> TaskStatsResponse:
        task = await self.require_task(task_id)
        ensure_allowed(actor, Action.read_one, Resource.task, task, await self.task_ancestry(task))
        return TaskStatsResponse(
            total_assigned=len(task.assigned_members),
            status_counts=count_statuses(task.assigned_members),
            overdue=task.is_overdue(),
        )

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    async def create_task(self, actor: Actor, data: TaskCreateRequest) -> TaskResponse:
        project = await self.require_project(data.project)
        team = await self.require_team(project.team)
        ensure_allowed(actor, Action.create, Resource.task, ancestry=Ancestry(team=team, project=project))
        assignments = build_assignments(data.assigned_members)
        validate_assignees(IdSet(a.member for a in assignments), team)

        task = await self.repository.create_task(
            title=data.title,
            description=data.description,
            deadline=data.deadline,
            project=project.id,
            created_by=actor.id,
            assignments=assignments,
        )
        await self.cascade.task_created(task)
        logger.info(
            "Task created: id=%s project=%s by=%s assignees=%d",
            task.id, project.id, actor.id, len(task.assigned_members),
        )
        return TaskResponse.from_document(task)

    async def update_task(self, actor: Actor, task_id: UUID, data: TaskUpdateRequest) -> TaskResponse:
        task = await self.require_task(task_id)
        ancestry = await self.task_ancestry(task)
        fields = data.model_dump(exclude_none=True, exclude={"assigned_members"})
        if fields or data.assigned_members is None:
            ensure_allowed(actor, Action.update, Resource.task, task, ancestry)

        assignments: list[Assignment] | None = None
        if data.assigned_members is not None:
            ensure_allowed(actor, Action.update_members, Resource.task, task, ancestry)
            if ancestry.team is None:
                logger.warning("Task %s has no resolvable team (project=%s)", task.id, task.project)
                raise NotFound("Team not found")
            assignments = build_assignments(data.assigned_members, current=task)
            validate_assignees(IdSet(a.member for a in assignments), ancestry.team)

        await self.repository.update_fields(Collection.tasks, task.id, fields)
        if assignments is not None:
            await self.repository.replace_assignments(task.id, assignments)
            delta = MembershipDelta.between(task.assignees, IdSet(a.member for a in assignments))
            if delta:
                await self.cascade.task_assignees_changed(task, delta)
                logger.info(
                    "Task assignees changed: id=%s added=%d removed=%d",
                    task.id, len(delta.added), len(delta.removed),
                )
        return TaskResponse.from_document(await self.require_task(task.id))

    async def update_status(self, actor: Actor, task_id: UUID, data: TaskStatusRequest) -> TaskResponse:
        """Change the actor's own assignment entry. Other entries are never touched."""
        task = await self.require_task(task_id)
        ensure_allowed(actor, Action.update_status, Resource.task, task, await self.task_ancestry(task))
        if not await self.repository.set_assignment_status(task.id, actor.id, data.status):
            # Assignment vanished between the load and the write.
            raise NotFound("Assignment not found")
        logger.info("Task status updated: id=%s member=%s status=%s", task.id, actor.id, data.status.value)
        return TaskResponse.from_document(await self.require_task(task.id))

    async def delete_task(self, actor: Actor, task_id: UUID) -> None:
        task = await self.require_task(task_id)
        ensure_allowed(actor, Action.delete, Resource.task, task, await self.task_ancestry(task))
        await self.cascade.delete_task(task)
        logger.info("Task deleted: id=%s by=%s", task.id, actor.id)
