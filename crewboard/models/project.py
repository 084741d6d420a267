"""
Project ORM model.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from crewboard.models.base import Base, DocumentMixin


class Project(Base, DocumentMixin):
    """Belongs to exactly one team for its whole life."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    team_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    created_by: Mapped[UUID] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r} team_id={self.team_id}>"
