"""
Declarative base and the column set shared by every document table.

Users, teams, projects and tasks are stored as documents: a UUID id, their
scalar fields and two timestamps. Id-set fields live in ``id_set_entries``
and are never columns of the owning table.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class DocumentMixin:
    """
    Id and timestamps for a document table.

    References to other documents are plain UUID columns, never foreign keys,
    so deleting a document never cascades at the database level.
    """

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Bumped by update_fields; id-set changes do not touch it.
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
