"""
Team schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from crewboard.core.documents import TeamDocument


class TeamCreateRequest(BaseModel):
    """Request body for POST /team. The creator is always added to ``members``."""

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    members: list[UUID] = Field(default_factory=list)


class TeamUpdateRequest(BaseModel):
    """Request body for PATCH /team/{id}. ``members`` replaces the whole list."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    members: list[UUID] | None = None


class TeamResponse(BaseModel):
    id: UUID
    name: str
    description: str | None
    created_by: UUID
    members: list[UUID]
    projects: list[UUID]
    member_count: int
    project_count: int
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_document(cls, team: TeamDocument) -> TeamResponse:
        return cls(
            id=team.id,
            name=team.name,
            description=team.description,
            created_by=team.created_by,
            members=team.members.as_list(),
            projects=team.projects.as_list(),
            member_count=len(team.members),
            project_count=len(team.projects),
            created_at=team.created_at,
            updated_at=team.updated_at,
        )


class TeamStatsResponse(BaseModel):
    project_count: int
    member_count: int
    task_stats: dict[str, int]
