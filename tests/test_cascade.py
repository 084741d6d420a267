"""
Cascade coordinator tests.

Drives the coordinator directly against the repository and checks both sides
of every reference afterwards.
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from crewboard.core.documents import Assignment, AssignmentStatus, Collection, Role
from crewboard.core.idset import IdSet
from crewboard.services.cascade import CascadeCoordinator, MembershipDelta


@pytest.fixture
def cascade(repository) -> CascadeCoordinator:
    return CascadeCoordinator(repository)


async def build_hierarchy(repository, cascade, make_user):
    """Creator + two members; one project with both members; one task assigned to both."""
    creator = await make_user(Role.manager)
    alice = await make_user()
    bob = await make_user()

    team = await repository.create_team(
        name="Team A", description=None, created_by=creator.id,
        members=IdSet([creator.id, alice.id, bob.id]),
    )
    await cascade.team_created(team)
    project = await repository.create_project(
        name="Project A", description=None, team=team.id, created_by=creator.id,
        members=IdSet([alice.id, bob.id]),
    )
    await cascade.project_created(project)
    task = await repository.create_task(
        title="Task A", description=None, deadline=datetime.now(UTC) + timedelta(days=1),
        project=project.id, created_by=creator.id,
        assignments=[Assignment(alice.id), Assignment(bob.id)],
    )
    await cascade.task_created(task)
    return creator, alice, bob, team, project, task


# ---------------------------------------------------------------------------
# MembershipDelta
# ---------------------------------------------------------------------------

def test_delta_between():
    a, b, c = (uuid.uuid4() for _ in range(3))
    delta = MembershipDelta.between(IdSet([a, b]), IdSet([b, c]))
    assert delta.added == IdSet([c])
    assert delta.removed == IdSet([a])
    assert delta


def test_delta_keeps_protected_id():
    creator, other = uuid.uuid4(), uuid.uuid4()
    delta = MembershipDelta.between(IdSet([creator, other]), IdSet(), keep=creator)
    assert delta.removed == IdSet([other])


def test_identical_sets_give_empty_delta():
    ids = IdSet([uuid.uuid4()])
    assert not MembershipDelta.between(ids, ids)


# ---------------------------------------------------------------------------
# Creates
# ---------------------------------------------------------------------------

async def test_creates_write_every_back_reference(repository, cascade, make_user):
    creator, alice, bob, team, project, task = await build_hierarchy(repository, cascade, make_user)

    for user in (creator, alice, bob):
        assert team.id in (await repository.get_user(user.id)).teams
    for user in (alice, bob):
        reloaded = await repository.get_user(user.id)
        assert project.id in reloaded.projects
        assert task.id in reloaded.tasks
    assert project.id not in (await repository.get_user(creator.id)).projects
    assert (await repository.get_team(team.id)).projects == IdSet([project.id])
    assert (await repository.get_project(project.id)).tasks == IdSet([task.id])


async def test_replaying_a_create_protocol_is_idempotent(repository, cascade, make_user):
    _, alice, _, team, _, _ = await build_hierarchy(repository, cascade, make_user)
    await cascade.team_created(team)
    await cascade.team_created(team)
    assert (await repository.get_user(alice.id)).teams == IdSet([team.id])


# ---------------------------------------------------------------------------
# Membership changes
# ---------------------------------------------------------------------------

async def test_team_member_removal_reaches_projects(repository, cascade, make_user):
    creator, alice, bob, team, project, task = await build_hierarchy(repository, cascade, make_user)

    new_members = IdSet([creator.id, alice.id])
    await repository.replace_set(Collection.teams, team.id, "members", new_members)
    await cascade.team_members_changed(team, MembershipDelta.between(team.members, new_members))

    bob_now = await repository.get_user(bob.id)
    assert team.id not in bob_now.teams
    assert project.id not in bob_now.projects
    assert (await repository.get_project(project.id)).members == IdSet([alice.id])
    # Task assignments under the team are left as they were.
    assert bob.id in (await repository.get_task(task.id)).assignees


async def test_project_member_change(repository, cascade, make_user):
    creator, alice, bob, team, project, _ = await build_hierarchy(repository, cascade, make_user)

    new_members = IdSet([alice.id, creator.id])
    await repository.replace_set(Collection.projects, project.id, "members", new_members)
    await cascade.project_members_changed(project, MembershipDelta.between(project.members, new_members))

    assert project.id in (await repository.get_user(creator.id)).projects
    assert project.id not in (await repository.get_user(bob.id)).projects
    assert project.id in (await repository.get_user(alice.id)).projects


async def test_task_assignee_change(repository, cascade, make_user):
    creator, alice, bob, _, _, task = await build_hierarchy(repository, cascade, make_user)

    await repository.replace_assignments(task.id, [Assignment(creator.id), Assignment(alice.id)])
    await cascade.task_assignees_changed(
        task, MembershipDelta.between(task.assignees, IdSet([creator.id, alice.id]))
    )

    assert task.id in (await repository.get_user(creator.id)).tasks
    assert task.id not in (await repository.get_user(bob.id)).tasks
    assert (await repository.get_task(task.id)).assignees.as_list() == [creator.id, alice.id]


# ---------------------------------------------------------------------------
# Deletes
# ---------------------------------------------------------------------------

async def test_delete_task(repository, cascade, make_user):
    _, alice, bob, _, project, task = await build_hierarchy(repository, cascade, make_user)

    await cascade.delete_task(task)

    assert await repository.get_task(task.id) is None
    assert task.id not in (await repository.get_project(project.id)).tasks
    for user in (alice, bob):
        assert task.id not in (await repository.get_user(user.id)).tasks


async def test_delete_team_cascades_through_hierarchy(repository, cascade, make_user):
    creator, alice, bob, team, project, task = await build_hierarchy(repository, cascade, make_user)

    await cascade.delete_team(team)

    assert await repository.get_team(team.id) is None
    assert await repository.get_project(project.id) is None
    assert await repository.get_task(task.id) is None
    for user in (creator, alice, bob):
        reloaded = await repository.get_user(user.id)
        assert team.id not in reloaded.teams
        assert project.id not in reloaded.projects
        assert task.id not in reloaded.tasks


async def test_delete_team_leaves_other_teams_alone(repository, cascade, make_user):
    creator, alice, _, team, _, _ = await build_hierarchy(repository, cascade, make_user)
    other = await repository.create_team(
        name="Team B", description=None, created_by=creator.id, members=IdSet([creator.id, alice.id])
    )
    await cascade.team_created(other)

    await cascade.delete_team(team)

    assert (await repository.get_user(alice.id)).teams == IdSet([other.id])
    assert await repository.get_team(other.id) is not None


async def test_delete_user_scrubs_member_lists(repository, cascade, make_user):
    creator, alice, bob, team, project, task = await build_hierarchy(repository, cascade, make_user)

    await cascade.delete_user(await repository.get_user(bob.id))

    assert await repository.get_user(bob.id) is None
    assert bob.id not in (await repository.get_team(team.id)).members
    assert bob.id not in (await repository.get_project(project.id)).members
    remaining = await repository.get_task(task.id)
    assert remaining.assignees == IdSet([alice.id])
    assert remaining.assignment_for(alice.id).status is AssignmentStatus.to_do


async def test_deleting_a_creator_keeps_their_entities(repository, cascade, make_user):
    creator, _, _, team, project, task = await build_hierarchy(repository, cascade, make_user)

    await cascade.delete_user(await repository.get_user(creator.id))

    assert (await repository.get_team(team.id)).created_by == creator.id
    assert await repository.get_project(project.id) is not None
    assert await repository.get_task(task.id) is not None


async def test_failed_step_is_logged_and_reraised(repository, cascade, make_user, caplog, monkeypatch):
    _, _, _, team, _, _ = await build_hierarchy(repository, cascade, make_user)

    async def broken(*args, **kwargs):
        raise RuntimeError("connection lost")

    monkeypatch.setattr(repository, "remove_from_set_many", broken)
    with pytest.raises(RuntimeError):
        await cascade.delete_team(team)
    assert "cascade step failed" in caplog.text
    # The team itself was not deleted: the failing step came first.
    assert await repository.get_team(team.id) is not None
