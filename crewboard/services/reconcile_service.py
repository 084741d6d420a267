"""
Consistency scan and repair.

Cascades are sequences of independently committed steps, so a failure part way
through leaves back-references out of step with the forward references. The
reconciler walks every document, treats the forward references as canonical
(Team.members, Project.team, Project.members, Task.project, Task assignees),
and reports each disagreement as a Finding.

``repair()`` fixes back-references and missing team creators using the same
idempotent add/remove calls as the cascades. Members outside their team and
references to deleted documents are reported only: choosing which side is
wrong needs a person.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from uuid import UUID

from crewboard.core.documents import (
    Collection,
    ProjectDocument,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.idset import IdSet
from crewboard.repositories import DocumentRepository

logger = logging.getLogger(__name__)


class FindingKind(str, enum.Enum):
    missing_back_reference = "missing_back_reference"
    stale_back_reference = "stale_back_reference"
    creator_not_member = "creator_not_member"
    member_outside_team = "member_outside_team"
    assignee_outside_team = "assignee_outside_team"
    dangling_reference = "dangling_reference"


REPAIRABLE = frozenset(
    {
        FindingKind.missing_back_reference,
        FindingKind.stale_back_reference,
        FindingKind.creator_not_member,
    }
)


@dataclass(frozen=True)
class Finding:
    """One disagreement: ``value`` is (or should be) in ``collection[document].field``."""

    kind: FindingKind
    collection: Collection
    document: UUID
    field: str
    value: UUID

    @property
    def repairable(self) -> bool:
        return self.kind in REPAIRABLE


@dataclass(frozen=True)
class Snapshot:
    users: list[UserDocument]
    teams: list[TeamDocument]
    projects: list[ProjectDocument]
    tasks: list[TaskDocument]


def _diff(
    collection: Collection, document: UUID, field: str, actual: IdSet, expected: IdSet
) -> Iterator[Finding]:
    for value in expected - actual:
        yield Finding(FindingKind.missing_back_reference, collection, document, field, value)
    for value in actual - expected:
        yield Finding(FindingKind.stale_back_reference, collection, document, field, value)


def _effective_members(team: TeamDocument, user_ids: IdSet) -> IdSet:
    """Team members as they should be: the creator is always in."""
    if team.created_by in user_ids:
        return team.members.with_id(team.created_by)
    return team.members


def find_inconsistencies(snapshot: Snapshot) -> list[Finding]:
    """Pure comparison of forward and backward references over one snapshot."""
    users = IdSet(u.id for u in snapshot.users)
    teams = {t.id: t for t in snapshot.teams}
    projects = {p.id: p for p in snapshot.projects}
    members_of = {t.id: _effective_members(t, users) for t in snapshot.teams}
    findings: list[Finding] = []

    # Forward references
    for team in snapshot.teams:
        if team.created_by in users and team.created_by not in team.members:
            findings.append(
                Finding(FindingKind.creator_not_member, Collection.teams, team.id, "members", team.created_by)
            )
        for uid in team.members:
            if uid not in users:
                findings.append(Finding(FindingKind.dangling_reference, Collection.teams, team.id, "members", uid))

    for project in snapshot.projects:
        if project.team not in teams:
            findings.append(
                Finding(FindingKind.dangling_reference, Collection.projects, project.id, "team", project.team)
            )
        allowed = members_of.get(project.team, IdSet())
        for uid in project.members:
            if uid not in users:
                kind = FindingKind.dangling_reference
            elif uid not in allowed:
                kind = FindingKind.member_outside_team
            else:
                continue
            findings.append(Finding(kind, Collection.projects, project.id, "members", uid))

    for task in snapshot.tasks:
        project = projects.get(task.project)
        if project is None:
            findings.append(
                Finding(FindingKind.dangling_reference, Collection.tasks, task.id, "project", task.project)
            )
        allowed = members_of.get(project.team, IdSet()) if project else IdSet()
        for uid in task.assignees:
            if uid not in users:
                kind = FindingKind.dangling_reference
            elif uid not in allowed:
                kind = FindingKind.assignee_outside_team
            else:
                continue
            findings.append(Finding(kind, Collection.tasks, task.id, "assigned_members", uid))

    # Back-references
    for user in snapshot.users:
        findings.extend(
            _diff(
                Collection.users, user.id, "teams", user.teams,
                IdSet(tid for tid, members in members_of.items() if user.id in members),
            )
        )
        findings.extend(
            _diff(
                Collection.users, user.id, "projects", user.projects,
                IdSet(p.id for p in snapshot.projects if user.id in p.members),
            )
        )
        findings.extend(
            _diff(
                Collection.users, user.id, "tasks", user.tasks,
                IdSet(t.id for t in snapshot.tasks if user.id in t.assignees),
            )
        )
    for team in snapshot.teams:
        findings.extend(
            _diff(
                Collection.teams, team.id, "projects", team.projects,
                IdSet(p.id for p in snapshot.projects if p.team == team.id),
            )
        )
    for project in snapshot.projects:
        findings.extend(
            _diff(
                Collection.projects, project.id, "tasks", project.tasks,
                IdSet(t.id for t in snapshot.tasks if t.project == project.id),
            )
        )
    return findings


class Reconciler:
    """Detects and repairs back-reference drift."""

    def __init__(self, repository: DocumentRepository) -> None:
        self.repository = repository

    async def snapshot(self) -> Snapshot:
        return Snapshot(
            users=await self.repository.find_users(),
            teams=await self.repository.find_teams(),
            projects=await self.repository.find_projects(),
            tasks=await self.repository.find_tasks(),
        )

    async def scan(self) -> list[Finding]:
        findings = find_inconsistencies(await self.snapshot())
        if findings:
            logger.warning("Consistency scan found %d issue(s)", len(findings))
        else:
            logger.info("Consistency scan found no issues")
        return findings

    async def repair(self) -> tuple[list[Finding], int]:
        """Scan, then apply every repairable finding. Returns (findings, repaired count)."""
        findings = await self.scan()
        repaired = 0
        for finding in findings:
            if not finding.repairable:
                continue
            if finding.kind is FindingKind.stale_back_reference:
                await self.repository.remove_from_set(
                    finding.collection, finding.document, finding.field, [finding.value]
                )
            else:
                await self.repository.add_to_set(
                    finding.collection, finding.document, finding.field, [finding.value]
                )
            repaired += 1
        logger.info("Consistency repair applied %d of %d finding(s)", repaired, len(findings))
        return findings, repaired
