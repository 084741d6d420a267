"""
Team ORM model.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from crewboard.models.base import Base, DocumentMixin


class Team(Base, DocumentMixin):
    """A group of users. Members and projects are id-sets."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_by: Mapped[UUID] = mapped_column(nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Team id={self.id} name={self.name!r}>"
