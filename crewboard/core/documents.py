"""
Document types handed between the repository and the services.

A document is the full picture of one stored entity: its scalar fields plus
every id-set attached to it. Documents are snapshots; the services never
mutate them, they issue repository calls and reload.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID

from crewboard.core.idset import IdSet


class Role(str, enum.Enum):
    """User role enumeration."""

    admin = "admin"
    manager = "manager"
    employee = "employee"


class AssignmentStatus(str, enum.Enum):
    """Per-assignee progress on a task."""

    to_do = "to-do"
    in_progress = "in-progress"
    done = "done"
    cancelled = "cancelled"


class Collection(str, enum.Enum):
    """Stored document kinds; values double as the id-set owner tag."""

    users = "users"
    teams = "teams"
    projects = "projects"
    tasks = "tasks"


@dataclass(frozen=True)
class Actor:
    """The authenticated identity attempting an operation."""

    id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin

    @property
    def is_manager(self) -> bool:
        return self.role is Role.manager


@dataclass(frozen=True)
class Assignment:
    member: UUID
    status: AssignmentStatus = AssignmentStatus.to_do


@dataclass(frozen=True)
class UserDocument:
    id: UUID
    name: str
    email: str
    designation: str
    role: Role
    password_hash: str
    teams: IdSet = field(default_factory=IdSet)
    projects: IdSet = field(default_factory=IdSet)
    tasks: IdSet = field(default_factory=IdSet)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TeamDocument:
    id: UUID
    name: str
    description: str | None
    created_by: UUID
    members: IdSet = field(default_factory=IdSet)
    projects: IdSet = field(default_factory=IdSet)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ProjectDocument:
    id: UUID
    name: str
    description: str | None
    team: UUID
    created_by: UUID
    members: IdSet = field(default_factory=IdSet)
    tasks: IdSet = field(default_factory=IdSet)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class TaskDocument:
    id: UUID
    title: str
    description: str | None
    deadline: datetime
    project: UUID
    created_by: UUID
    assigned_members: tuple[Assignment, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def assignees(self) -> IdSet:
        return IdSet(a.member for a in self.assigned_members)

    def assignment_for(self, member: UUID) -> Assignment | None:
        for assignment in self.assigned_members:
            if assignment.member == member:
                return assignment
        return None

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Deadline passed while some assignee is neither done nor cancelled."""
        now = now or datetime.now(UTC)
        deadline = self.deadline
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=UTC)
        return deadline < now and any(
            a.status not in (AssignmentStatus.done, AssignmentStatus.cancelled)
            for a in self.assigned_members
        )


Document = UserDocument | TeamDocument | ProjectDocument | TaskDocument
