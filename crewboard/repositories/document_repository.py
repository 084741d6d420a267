"""
Document repository.

Point lookups, filtered queries, field writes, deletes and atomic
add-to-set / remove-from-set over the four collections. Every write method is
one independently committed step; callers sequence steps themselves and there
is no transaction spanning two calls.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Table, delete, insert, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from crewboard.core.documents import (
    Assignment,
    AssignmentStatus,
    Collection,
    ProjectDocument,
    Role,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.idset import IdSet
from crewboard.models import IdSetEntry, Project, Task, TaskAssignment, Team, User

logger = logging.getLogger(__name__)

_MODELS: dict[Collection, type[User | Team | Project | Task]] = {
    Collection.users: User,
    Collection.teams: Team,
    Collection.projects: Project,
    Collection.tasks: Task,
}

SET_FIELDS: dict[Collection, tuple[str, ...]] = {
    Collection.users: ("teams", "projects", "tasks"),
    Collection.teams: ("members", "projects"),
    Collection.projects: ("members", "tasks"),
    Collection.tasks: (),
}

_BULK = {"synchronize_session": False}


def _check_field(collection: Collection, field: str) -> None:
    if field not in SET_FIELDS[collection]:
        raise ValueError(f"{collection.value} has no id-set field {field!r}")


class DocumentRepository:
    """Persistence for users, teams, projects and tasks."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Step and dialect helpers
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def _step(self) -> AsyncIterator[None]:
        """Commit on success, roll back on failure. One step, one commit."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    def _insert_ignore(self, table: Table) -> Any:
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(table).on_conflict_do_nothing()
        if dialect == "sqlite":
            return sqlite_insert(table).on_conflict_do_nothing()
        raise NotImplementedError(f"add-to-set is not supported on {dialect}")

    async def _insert_entries(self, rows: list[dict[str, Any]]) -> None:
        if rows:
            await self.db.execute(self._insert_ignore(IdSetEntry.__table__), rows)

    async def _insert_assignments(self, task_id: UUID, assignments: Sequence[Assignment]) -> None:
        # Core insert keeps assignment rows out of the identity map, so a later
        # replace of the same (task, member) key cannot collide with a stale object.
        if assignments:
            await self.db.execute(
                insert(TaskAssignment.__table__),
                [
                    {"task_id": task_id, "member_id": a.member, "position": i, "status": a.status}
                    for i, a in enumerate(assignments)
                ],
            )

    # -----------------------------------------------------------------------
    # Loading documents
    # -----------------------------------------------------------------------

    async def _load_sets(
        self, collection: Collection, owner_ids: Sequence[UUID]
    ) -> dict[UUID, dict[str, list[UUID]]]:
        grouped: dict[UUID, dict[str, list[UUID]]] = defaultdict(lambda: defaultdict(list))
        if not owner_ids:
            return grouped
        result = await self.db.execute(
            select(IdSetEntry.owner_id, IdSetEntry.field, IdSetEntry.value).where(
                IdSetEntry.collection == collection.value,
                IdSetEntry.owner_id.in_(owner_ids),
            )
        )
        for owner_id, field, value in result.all():
            grouped[owner_id][field].append(value)
        return grouped

    async def _load_assignments(self, task_ids: Sequence[UUID]) -> dict[UUID, list[Assignment]]:
        grouped: dict[UUID, list[Assignment]] = defaultdict(list)
        if not task_ids:
            return grouped
        result = await self.db.execute(
            select(TaskAssignment.task_id, TaskAssignment.member_id, TaskAssignment.status)
            .where(TaskAssignment.task_id.in_(task_ids))
            .order_by(TaskAssignment.task_id, TaskAssignment.position)
        )
        for task_id, member_id, status in result.all():
            grouped[task_id].append(Assignment(member=member_id, status=AssignmentStatus(status)))
        return grouped

    async def _users(self, rows: Sequence[User]) -> list[UserDocument]:
        sets = await self._load_sets(Collection.users, [r.id for r in rows])
        return [
            UserDocument(
                id=r.id,
                name=r.name,
                email=r.email,
                designation=r.designation,
                role=r.role,
                password_hash=r.password_hash,
                teams=IdSet(sets[r.id]["teams"]),
                projects=IdSet(sets[r.id]["projects"]),
                tasks=IdSet(sets[r.id]["tasks"]),
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]

    async def _teams(self, rows: Sequence[Team]) -> list[TeamDocument]:
        sets = await self._load_sets(Collection.teams, [r.id for r in rows])
        return [
            TeamDocument(
                id=r.id,
                name=r.name,
                description=r.description,
                created_by=r.created_by,
                members=IdSet(sets[r.id]["members"]),
                projects=IdSet(sets[r.id]["projects"]),
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]

    async def _projects(self, rows: Sequence[Project]) -> list[ProjectDocument]:
        sets = await self._load_sets(Collection.projects, [r.id for r in rows])
        return [
            ProjectDocument(
                id=r.id,
                name=r.name,
                description=r.description,
                team=r.team_id,
                created_by=r.created_by,
                members=IdSet(sets[r.id]["members"]),
                tasks=IdSet(sets[r.id]["tasks"]),
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]

    async def _tasks(self, rows: Sequence[Task]) -> list[TaskDocument]:
        assignments = await self._load_assignments([r.id for r in rows])
        return [
            TaskDocument(
                id=r.id,
                title=r.title,
                description=r.description,
                deadline=r.deadline,
                project=r.project_id,
                created_by=r.created_by,
                assigned_members=tuple(assignments[r.id]),
                created_at=r.created_at,
                updated_at=r.updated_at,
            )
            for r in rows
        ]

    async def _rows(self, stmt: Any) -> list[Any]:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().all())

    @staticmethod
    def _owners_with(collection: Collection, field: str, value: UUID) -> Any:
        """Subquery: ids of documents whose ``field`` contains ``value``."""
        return select(IdSetEntry.owner_id).where(
            IdSetEntry.collection == collection.value,
            IdSetEntry.field == field,
            IdSetEntry.value == value,
        )

    @staticmethod
    def _assigned_to(member: UUID) -> Any:
        return select(TaskAssignment.task_id).where(TaskAssignment.member_id == member)

    # -----------------------------------------------------------------------
    # Point lookups
    # -----------------------------------------------------------------------

    async def get_user(self, user_id: UUID) -> UserDocument | None:
        docs = await self._users(await self._rows(select(User).where(User.id == user_id)))
        return docs[0] if docs else None

    async def get_user_by_email(self, email: str) -> UserDocument | None:
        docs = await self._users(await self._rows(select(User).where(User.email == email.lower())))
        return docs[0] if docs else None

    async def get_team(self, team_id: UUID) -> TeamDocument | None:
        docs = await self._teams(await self._rows(select(Team).where(Team.id == team_id)))
        return docs[0] if docs else None

    async def get_project(self, project_id: UUID) -> ProjectDocument | None:
        docs = await self._projects(await self._rows(select(Project).where(Project.id == project_id)))
        return docs[0] if docs else None

    async def get_task(self, task_id: UUID) -> TaskDocument | None:
        docs = await self._tasks(await self._rows(select(Task).where(Task.id == task_id)))
        return docs[0] if docs else None

    # -----------------------------------------------------------------------
    # Filtered queries
    # -----------------------------------------------------------------------

    async def find_users(self, ids: Iterable[UUID] | None = None) -> list[UserDocument]:
        stmt = select(User).order_by(User.created_at, User.id)
        if ids is not None:
            stmt = stmt.where(User.id.in_(list(ids)))
        return await self._users(await self._rows(stmt))

    async def existing_ids(self, collection: Collection, ids: Iterable[UUID]) -> IdSet:
        model = _MODELS[collection]
        wanted = list(IdSet(ids))
        if not wanted:
            return IdSet()
        result = await self.db.execute(select(model.id).where(model.id.in_(wanted)))
        return IdSet(result.scalars().all())

    async def find_teams(
        self,
        *,
        member: UUID | None = None,
        member_or_creator: UUID | None = None,
    ) -> list[TeamDocument]:
        stmt = select(Team).order_by(Team.created_at, Team.id)
        if member is not None:
            stmt = stmt.where(Team.id.in_(self._owners_with(Collection.teams, "members", member)))
        if member_or_creator is not None:
            stmt = stmt.where(
                or_(
                    Team.id.in_(self._owners_with(Collection.teams, "members", member_or_creator)),
                    Team.created_by == member_or_creator,
                )
            )
        return await self._teams(await self._rows(stmt))

    async def find_projects(
        self,
        *,
        team: UUID | None = None,
        member: UUID | None = None,
    ) -> list[ProjectDocument]:
        stmt = select(Project).order_by(Project.created_at, Project.id)
        if team is not None:
            stmt = stmt.where(Project.team_id == team)
        if member is not None:
            stmt = stmt.where(
                Project.id.in_(self._owners_with(Collection.projects, "members", member))
            )
        return await self._projects(await self._rows(stmt))

    async def find_tasks(
        self,
        *,
        project: UUID | None = None,
        projects: Iterable[UUID] | None = None,
        assignee: UUID | None = None,
        assignee_or_projects: tuple[UUID, Iterable[UUID]] | None = None,
    ) -> list[TaskDocument]:
        stmt = select(Task).order_by(Task.created_at, Task.id)
        if project is not None:
            stmt = stmt.where(Task.project_id == project)
        if projects is not None:
            stmt = stmt.where(Task.project_id.in_(list(projects)))
        if assignee is not None:
            stmt = stmt.where(Task.id.in_(self._assigned_to(assignee)))
        if assignee_or_projects is not None:
            uid, project_ids = assignee_or_projects
            stmt = stmt.where(
                or_(Task.id.in_(self._assigned_to(uid)), Task.project_id.in_(list(project_ids)))
            )
        return await self._tasks(await self._rows(stmt))

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    async def create_user(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        designation: str,
        role: Role = Role.employee,
    ) -> UserDocument:
        user = User(
            name=name,
            email=email.lower(),
            password_hash=password_hash,
            designation=designation,
            role=role,
        )
        async with self._step():
            self.db.add(user)
            await self.db.flush()
            await self.db.refresh(user)
        return (await self._users([user]))[0]

    async def create_team(
        self, *, name: str, description: str | None, created_by: UUID, members: IdSet
    ) -> TeamDocument:
        team = Team(name=name, description=description, created_by=created_by)
        async with self._step():
            self.db.add(team)
            await self.db.flush()
            await self._insert_entries(
                [
                    {"collection": Collection.teams.value, "owner_id": team.id, "field": "members", "value": uid}
                    for uid in members
                ]
            )
            await self.db.refresh(team)
        return (await self._teams([team]))[0]

    async def create_project(
        self,
        *,
        name: str,
        description: str | None,
        team: UUID,
        created_by: UUID,
        members: IdSet,
    ) -> ProjectDocument:
        project = Project(name=name, description=description, team_id=team, created_by=created_by)
        async with self._step():
            self.db.add(project)
            await self.db.flush()
            await self._insert_entries(
                [
                    {"collection": Collection.projects.value, "owner_id": project.id, "field": "members", "value": uid}
                    for uid in members
                ]
            )
            await self.db.refresh(project)
        return (await self._projects([project]))[0]

    async def create_task(
        self,
        *,
        title: str,
        description: str | None,
        deadline: datetime,
        project: UUID,
        created_by: UUID,
        assignments: Sequence[Assignment],
    ) -> TaskDocument:
        task = Task(
            title=title,
            description=description,
            deadline=deadline,
            project_id=project,
            created_by=created_by,
        )
        async with self._step():
            self.db.add(task)
            await self.db.flush()
            await self._insert_assignments(task.id, assignments)
            await self.db.refresh(task)
        return (await self._tasks([task]))[0]

    # -----------------------------------------------------------------------
    # Field writes
    # -----------------------------------------------------------------------

    async def update_fields(self, collection: Collection, doc_id: UUID, values: dict[str, Any]) -> None:
        if not values:
            return
        model = _MODELS[collection]
        async with self._step():
            await self.db.execute(
                update(model).where(model.id == doc_id).values(**values).execution_options(**_BULK)
            )

    async def replace_set(self, collection: Collection, doc_id: UUID, field: str, values: IdSet) -> None:
        """Overwrite one id-set field of one document."""
        _check_field(collection, field)
        async with self._step():
            await self.db.execute(
                delete(IdSetEntry)
                .where(
                    IdSetEntry.collection == collection.value,
                    IdSetEntry.owner_id == doc_id,
                    IdSetEntry.field == field,
                )
                .execution_options(**_BULK)
            )
            await self._insert_entries(
                [
                    {"collection": collection.value, "owner_id": doc_id, "field": field, "value": uid}
                    for uid in values
                ]
            )

    async def replace_assignments(self, task_id: UUID, assignments: Sequence[Assignment]) -> None:
        async with self._step():
            await self.db.execute(
                delete(TaskAssignment).where(TaskAssignment.task_id == task_id).execution_options(**_BULK)
            )
            await self._insert_assignments(task_id, assignments)

    async def set_assignment_status(self, task_id: UUID, member: UUID, status: AssignmentStatus) -> bool:
        async with self._step():
            result = await self.db.execute(
                update(TaskAssignment)
                .where(TaskAssignment.task_id == task_id, TaskAssignment.member_id == member)
                .values(status=status)
                .execution_options(**_BULK)
            )
        return result.rowcount > 0

    # -----------------------------------------------------------------------
    # Set operations
    # -----------------------------------------------------------------------

    async def add_to_set(
        self, collection: Collection, doc_id: UUID, field: str, values: Iterable[UUID]
    ) -> None:
        await self.add_to_set_many(collection, [doc_id], field, values)

    async def remove_from_set(
        self, collection: Collection, doc_id: UUID, field: str, values: Iterable[UUID]
    ) -> None:
        await self.remove_from_set_many(collection, [doc_id], field, values)

    async def add_to_set_many(
        self, collection: Collection, doc_ids: Iterable[UUID], field: str, values: Iterable[UUID]
    ) -> None:
        """Add every value to ``field`` of every listed document, skipping ones already present."""
        _check_field(collection, field)
        owners, members = IdSet(doc_ids), IdSet(values)
        if not owners or not members:
            return
        async with self._step():
            await self._insert_entries(
                [
                    {"collection": collection.value, "owner_id": owner, "field": field, "value": value}
                    for owner in owners
                    for value in members
                ]
            )
        logger.debug("add_to_set %s.%s owners=%d values=%d", collection.value, field, len(owners), len(members))

    async def remove_from_set_many(
        self, collection: Collection, doc_ids: Iterable[UUID], field: str, values: Iterable[UUID]
    ) -> None:
        """Remove every value from ``field`` of every listed document, where present."""
        _check_field(collection, field)
        owners, members = IdSet(doc_ids), IdSet(values)
        if not owners or not members:
            return
        async with self._step():
            await self.db.execute(
                delete(IdSetEntry)
                .where(
                    IdSetEntry.collection == collection.value,
                    IdSetEntry.field == field,
                    IdSetEntry.owner_id.in_(owners.as_list()),
                    IdSetEntry.value.in_(members.as_list()),
                )
                .execution_options(**_BULK)
            )
        logger.debug("remove_from_set %s.%s owners=%d values=%d", collection.value, field, len(owners), len(members))

    async def pull_everywhere(self, collection: Collection, field: str, value: UUID) -> None:
        """Remove ``value`` from ``field`` of every document in ``collection``."""
        _check_field(collection, field)
        async with self._step():
            await self.db.execute(
                delete(IdSetEntry)
                .where(
                    IdSetEntry.collection == collection.value,
                    IdSetEntry.field == field,
                    IdSetEntry.value == value,
                )
                .execution_options(**_BULK)
            )

    async def pull_assignee_everywhere(self, member: UUID) -> None:
        async with self._step():
            await self.db.execute(
                delete(TaskAssignment).where(TaskAssignment.member_id == member).execution_options(**_BULK)
            )

    # -----------------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------------

    async def delete(self, collection: Collection, doc_id: UUID) -> None:
        """Delete one document together with the id-sets it owns."""
        model = _MODELS[collection]
        async with self._step():
            await self.db.execute(
                delete(IdSetEntry)
                .where(IdSetEntry.collection == collection.value, IdSetEntry.owner_id == doc_id)
                .execution_options(**_BULK)
            )
            if collection is Collection.tasks:
                await self.db.execute(
                    delete(TaskAssignment).where(TaskAssignment.task_id == doc_id).execution_options(**_BULK)
                )
            await self.db.execute(delete(model).where(model.id == doc_id).execution_options(**_BULK))
