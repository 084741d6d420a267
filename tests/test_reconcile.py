"""
Consistency scan and repair tests.
"""

import uuid
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from crewboard.core.documents import (
    Assignment,
    Collection,
    ProjectDocument,
    Role,
    TaskDocument,
    TeamDocument,
    UserDocument,
)
from crewboard.core.idset import IdSet
from crewboard.services.reconcile_service import (
    FindingKind,
    Reconciler,
    Snapshot,
    find_inconsistencies,
)


def user(uid, teams=(), projects=(), tasks=()) -> UserDocument:
    return UserDocument(
        id=uid, name="u", email=f"{uid.hex}@example.com", designation="d", role=Role.employee,
        password_hash="x", teams=IdSet(teams), projects=IdSet(projects), tasks=IdSet(tasks),
    )


def kinds(findings) -> set[FindingKind]:
    return {f.kind for f in findings}


# ---------------------------------------------------------------------------
# Pure scan
# ---------------------------------------------------------------------------

def test_consistent_snapshot_has_no_findings():
    u1, u2 = uuid.uuid4(), uuid.uuid4()
    team = TeamDocument(id=uuid.uuid4(), name="t", description=None, created_by=u1, members=IdSet([u1, u2]))
    project = ProjectDocument(
        id=uuid.uuid4(), name="p", description=None, team=team.id, created_by=u1, members=IdSet([u2])
    )
    task = TaskDocument(
        id=uuid.uuid4(), title="t", description=None, deadline=datetime.now(UTC),
        project=project.id, created_by=u1, assigned_members=(Assignment(u2),),
    )
    team = replace(team, projects=IdSet([project.id]))
    project = replace(project, tasks=IdSet([task.id]))
    snapshot = Snapshot(
        users=[user(u1, teams=[team.id]), user(u2, teams=[team.id], projects=[project.id], tasks=[task.id])],
        teams=[team],
        projects=[project],
        tasks=[task],
    )
    assert find_inconsistencies(snapshot) == []


def test_scan_reports_each_invariant():
    creator, member, outsider = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    ghost = uuid.uuid4()
    team = TeamDocument(
        id=uuid.uuid4(), name="t", description=None, created_by=creator, members=IdSet([member, ghost])
    )
    project = ProjectDocument(
        id=uuid.uuid4(), name="p", description=None, team=team.id, created_by=creator,
        members=IdSet([outsider]),
    )
    task = TaskDocument(
        id=uuid.uuid4(), title="t", description=None, deadline=datetime.now(UTC),
        project=uuid.uuid4(), created_by=creator, assigned_members=(Assignment(outsider),),
    )
    snapshot = Snapshot(
        users=[user(creator), user(member, teams=[uuid.uuid4()]), user(outsider)],
        teams=[team], projects=[project], tasks=[task],
    )

    findings = find_inconsistencies(snapshot)
    by_kind = {k: [f for f in findings if f.kind is k] for k in FindingKind}

    assert [f.value for f in by_kind[FindingKind.creator_not_member]] == [creator]
    assert [f.value for f in by_kind[FindingKind.member_outside_team]] == [outsider]
    assert [f.value for f in by_kind[FindingKind.assignee_outside_team]] == [outsider]
    dangling = {(f.collection, f.field, f.value) for f in by_kind[FindingKind.dangling_reference]}
    assert (Collection.teams, "members", ghost) in dangling
    assert (Collection.tasks, "project", task.project) in dangling
    missing = {(f.document, f.field) for f in by_kind[FindingKind.missing_back_reference]}
    # The creator counts as a member when computing back-references.
    assert (creator, "teams") in missing
    assert (member, "teams") in missing
    assert (outsider, "projects") in missing
    assert (team.id, "projects") in missing
    stale = by_kind[FindingKind.stale_back_reference]
    assert [(f.document, f.field) for f in stale] == [(member, "teams")]


def test_missing_creator_is_repairable_but_outside_member_is_not():
    creator, outsider = uuid.uuid4(), uuid.uuid4()
    team = TeamDocument(id=uuid.uuid4(), name="t", description=None, created_by=creator, members=IdSet())
    project = ProjectDocument(
        id=uuid.uuid4(), name="p", description=None, team=team.id, created_by=creator,
        members=IdSet([outsider]),
    )
    findings = find_inconsistencies(
        Snapshot(users=[user(creator), user(outsider)], teams=[team], projects=[project], tasks=[])
    )
    repairable = {f.kind for f in findings if f.repairable}
    assert FindingKind.creator_not_member in repairable
    assert FindingKind.member_outside_team not in repairable
    assert FindingKind.member_outside_team in kinds(findings)


# ---------------------------------------------------------------------------
# Repair against the repository
# ---------------------------------------------------------------------------

async def test_repair_restores_back_references_after_partial_cascade(repository, make_user):
    creator = await make_user(Role.manager)
    member = await make_user()
    team = await repository.create_team(
        name="Drift", description=None, created_by=creator.id, members=IdSet([creator.id, member.id])
    )
    # Simulate a crash right after the primary write: no cascade ran.
    project = await repository.create_project(
        name="Drift project", description=None, team=team.id, created_by=creator.id,
        members=IdSet([member.id]),
    )
    task = await repository.create_task(
        title="Drift task", description=None, deadline=datetime.now(UTC) + timedelta(days=2),
        project=project.id, created_by=creator.id, assignments=[Assignment(member.id)],
    )
    # And a stale entry left behind by an interrupted delete.
    stale_team = uuid.uuid4()
    await repository.add_to_set(Collection.users, member.id, "teams", [stale_team])

    reconciler = Reconciler(repository)
    findings, repaired = await reconciler.repair()

    assert repaired == len(findings) > 0
    assert await reconciler.scan() == []
    member_now = await repository.get_user(member.id)
    assert member_now.teams == IdSet([team.id])
    assert member_now.projects == IdSet([project.id])
    assert member_now.tasks == IdSet([task.id])
    assert (await repository.get_team(team.id)).projects == IdSet([project.id])
    assert (await repository.get_project(project.id)).tasks == IdSet([task.id])


async def test_repair_readds_missing_creator(repository, make_user):
    creator = await make_user(Role.manager)
    team = await repository.create_team(name="Lost", description=None, created_by=creator.id, members=IdSet())

    await Reconciler(repository).repair()

    assert creator.id in (await repository.get_team(team.id)).members
    assert team.id in (await repository.get_user(creator.id)).teams


async def test_repair_leaves_member_outside_team(repository, make_user):
    creator = await make_user(Role.manager)
    outsider = await make_user()
    team = await repository.create_team(
        name="Strict", description=None, created_by=creator.id, members=IdSet([creator.id])
    )
    project = await repository.create_project(
        name="Strict project", description=None, team=team.id, created_by=creator.id,
        members=IdSet([outsider.id]),
    )

    findings, _ = await Reconciler(repository).repair()

    assert FindingKind.member_outside_team in kinds(findings)
    assert (await repository.get_project(project.id)).members == IdSet([outsider.id])
    remaining = await Reconciler(repository).scan()
    assert kinds(remaining) == {FindingKind.member_outside_team}
