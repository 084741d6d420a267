"""
User schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from crewboard.core.documents import Role, UserDocument


class SignupRequest(BaseModel):
    """Request body for POST /user/signup."""

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    designation: str = Field(min_length=1, max_length=100)
    role: Role | None = None


class LoginRequest(BaseModel):
    """Request body for POST /user/login."""

    email: EmailStr
    password: str = Field(min_length=1)


class UserUpdateRequest(BaseModel):
    """Request body for PUT /user/{id}. ``role`` is admin-only."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    email: EmailStr | None = None
    designation: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    designation: str
    role: Role
    teams: list[UUID]
    projects: list[UUID]
    tasks: list[UUID]
    task_count: int
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_document(cls, user: UserDocument) -> UserResponse:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            designation=user.designation,
            role=user.role,
            teams=user.teams.as_list(),
            projects=user.projects.as_list(),
            tasks=user.tasks.as_list(),
            task_count=len(user.tasks),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class TokenResponse(BaseModel):
    """Response for signup and login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")
    user: UserResponse


class UserStatsResponse(BaseModel):
    team_count: int
    project_count: int
    task_stats: dict[str, int]
