"""
Task and TaskAssignment ORM models.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from crewboard.core.documents import AssignmentStatus
from crewboard.models.base import Base, DocumentMixin


class Task(Base, DocumentMixin):
    """A unit of work inside a project."""

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    deadline: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    project_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    created_by: Mapped[UUID] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r} project_id={self.project_id}>"


class TaskAssignment(Base):
    """One entry of a task's ordered assignedMembers list."""

    __tablename__ = "task_assignments"

    task_id: Mapped[UUID] = mapped_column(primary_key=True)
    member_id: Mapped[UUID] = mapped_column(primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[AssignmentStatus] = mapped_column(
        Enum(
            AssignmentStatus,
            name="assignment_status",
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AssignmentStatus.to_do,
    )

    def __repr__(self) -> str:
        return f"<TaskAssignment task_id={self.task_id} member_id={self.member_id} status={self.status}>"
