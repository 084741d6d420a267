"""
Task schemas.

Request/response models for task CRUD and per-assignee status updates.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from crewboard.core.documents import AssignmentStatus, TaskDocument


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class AssignmentRequest(BaseModel):
    member: UUID
    status: AssignmentStatus | None = None


class TaskCreateRequest(BaseModel):
    """Request body for POST /task. Every assignee starts at 'to-do'."""

    title: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    deadline: datetime
    project: UUID
    assigned_members: list[AssignmentRequest] = Field(default_factory=list)


class TaskUpdateRequest(BaseModel):
    """Request body for PUT /task/{id}. ``assigned_members`` replaces the whole list."""

    title: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    deadline: datetime | None = None
    assigned_members: list[AssignmentRequest] | None = None


class TaskStatusRequest(BaseModel):
    """Request body for PATCH /task/{id}/status."""

    status: AssignmentStatus


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class AssignmentResponse(BaseModel):
    member: UUID
    status: AssignmentStatus


class TaskResponse(BaseModel):
    id: UUID
    title: str
    description: str | None
    deadline: datetime
    project: UUID
    created_by: UUID
    assigned_members: list[AssignmentResponse]
    is_overdue: bool
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_document(cls, task: TaskDocument) -> TaskResponse:
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            deadline=task.deadline,
            project=task.project,
            created_by=task.created_by,
            assigned_members=[
                AssignmentResponse(member=a.member, status=a.status) for a in task.assigned_members
            ],
            is_overdue=task.is_overdue(),
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskStatsResponse(BaseModel):
    total_assigned: int
    status_counts: dict[str, int]
    overdue: bool
