"""
IdSetEntry ORM model.

One row per (document, array field, referenced id). Every id-set field of every
collection is stored here, so add-to-set is an insert that ignores duplicates
and remove-from-set is a delete.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from crewboard.models.base import Base


class IdSetEntry(Base):
    __tablename__ = "id_set_entries"

    collection: Mapped[str] = mapped_column(String(16), primary_key=True)
    owner_id: Mapped[UUID] = mapped_column(primary_key=True)
    field: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[UUID] = mapped_column(primary_key=True)

    __table_args__ = (
        Index("ix_id_set_entries_lookup", "collection", "field", "value"),
    )

    def __repr__(self) -> str:
        return f"<IdSetEntry {self.collection}.{self.field} owner={self.owner_id} value={self.value}>"
