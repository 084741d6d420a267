from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from crewboard.core.documents import ProjectDocument


class ProjectCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    team: UUID
    members: list[UUID] = Field(default_factory=list)


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    members: list[UUID] | None = None


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    team: UUID
    created_by: UUID
    members: list[UUID]
    tasks: list[UUID]
    task_count: int
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_document(cls, project: ProjectDocument) -> ProjectResponse:
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            team=project.team,
            created_by=project.created_by,
            members=project.members.as_list(),
            tasks=project.tasks.as_list(),
            task_count=len(project.tasks),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )


class ProjectStatsResponse(BaseModel):
    member_count: int
    task_count: int
    task_stats: dict[str, int]
