"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
"""

from crewboard.models.base import Base, DocumentMixin
from crewboard.models.id_set import IdSetEntry
from crewboard.models.project import Project
from crewboard.models.task import Task, TaskAssignment
from crewboard.models.team import Team
from crewboard.models.user import User

__all__ = [
    "Base",
    "DocumentMixin",
    "IdSetEntry",
    "Project",
    "Task",
    "TaskAssignment",
    "Team",
    "User",
]
