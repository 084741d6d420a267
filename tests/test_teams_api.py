"""
Team endpoint tests.

Verifies that:
- Only managers and admins create teams, and the creator is always a member
- Member lists are validated and back-references follow every change
- Membership updates are idempotent and never drop the creator
- Deleting a team removes its projects and tasks
"""

import uuid

import pytest

from crewboard.core.documents import Role
from tests.helpers import API, auth, create_project, create_task, create_team, unique_name


# ---------------------------------------------------------------------------
# 1. Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_employee_cannot_create_team(client, make_user):
    employee = await make_user(Role.employee)
    resp = await client.post(f"{API}/team", json={"name": "Nope", "members": []}, headers=auth(employee))
    assert resp.status_code == 403
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_manager_creates_team_and_is_included(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()

    resp = await client.post(
        f"{API}/team",
        json={"name": "Platform", "description": "Infra", "members": [str(alice.id)]},
        headers=auth(manager),
    )
    assert resp.status_code == 201
    team = resp.json()["data"]
    assert resp.json()["success"] is True
    assert set(team["members"]) == {str(alice.id), str(manager.id)}
    assert team["created_by"] == str(manager.id)

    for user in (manager, alice):
        assert uuid.UUID(team["id"]) in (await read("get_user", user.id)).teams


@pytest.mark.asyncio
async def test_admin_can_create_team(client, make_user):
    admin = await make_user(Role.admin)
    resp = await client.post(f"{API}/team", json={"name": unique_name("Admins")}, headers=auth(admin))
    assert resp.status_code == 201
    assert resp.json()["data"]["members"] == [str(admin.id)]


@pytest.mark.asyncio
async def test_create_with_unknown_member_is_rejected(client, make_user, read):
    manager = await make_user(Role.manager)
    ghost = str(uuid.uuid4())
    resp = await client.post(
        f"{API}/team", json={"name": "Ghosts", "members": [ghost]}, headers=auth(manager)
    )
    assert resp.status_code == 400
    assert resp.json()["details"] == {"invalid": [ghost]}
    assert await read("find_teams") == []


@pytest.mark.asyncio
async def test_invalid_body_is_400(client, make_user):
    manager = await make_user(Role.manager)
    resp = await client.post(f"{API}/team", json={"name": "x"}, headers=auth(manager))
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_duplicate_name_surfaces_as_internal_error(client, make_user):
    manager = await make_user(Role.manager)
    first = await client.post(f"{API}/team", json={"name": "Twins"}, headers=auth(manager))
    assert first.status_code == 201
    second = await client.post(f"{API}/team", json={"name": "Twins"}, headers=auth(manager))
    assert second.status_code == 500
    assert second.json()["success"] is False


@pytest.mark.asyncio
async def test_missing_token_is_401(client):
    resp = await client.get(f"{API}/team")
    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# 2. Read
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_is_filtered_per_actor(client, make_user):
    manager = await make_user(Role.manager)
    member = await make_user()
    outsider = await make_user()
    admin = await make_user(Role.admin)
    team = await create_team(client, manager, [member])

    for user in (manager, member):
        resp = await client.get(f"{API}/team", headers=auth(user))
        assert [t["id"] for t in resp.json()["data"]] == [team["id"]]
    resp = await client.get(f"{API}/team", headers=auth(outsider))
    assert resp.json()["data"] == []
    resp = await client.get(f"{API}/team", headers=auth(admin))
    assert [t["id"] for t in resp.json()["data"]] == [team["id"]]


@pytest.mark.asyncio
async def test_get_team_requires_membership(client, make_user):
    manager = await make_user(Role.manager)
    member = await make_user()
    outsider = await make_user()
    team = await create_team(client, manager, [member])

    assert (await client.get(f"{API}/team/{team['id']}", headers=auth(member))).status_code == 200
    assert (await client.get(f"{API}/team/{team['id']}", headers=auth(outsider))).status_code == 403
    assert (await client.get(f"{API}/team/{uuid.uuid4()}", headers=auth(member))).status_code == 404


@pytest.mark.asyncio
async def test_teams_of_user_is_self_or_admin(client, make_user):
    manager = await make_user(Role.manager)
    member = await make_user()
    other = await make_user()
    admin = await make_user(Role.admin)
    team = await create_team(client, manager, [member])

    resp = await client.get(f"{API}/team/user/{member.id}", headers=auth(member))
    assert [t["id"] for t in resp.json()["data"]] == [team["id"]]
    assert (await client.get(f"{API}/team/user/{member.id}", headers=auth(other))).status_code == 403
    assert (await client.get(f"{API}/team/user/{member.id}", headers=auth(admin))).status_code == 200


@pytest.mark.asyncio
async def test_team_stats(client, make_user):
    manager = await make_user(Role.manager)
    alice = await make_user()
    bob = await make_user()
    team = await create_team(client, manager, [alice, bob])
    project = await create_project(client, manager, team, [alice, bob])
    task = await create_task(client, manager, project, [alice, bob])
    await create_task(client, manager, project, [alice])
    resp = await client.patch(
        f"{API}/task/{task['id']}/status", json={"status": "done"}, headers=auth(bob)
    )
    assert resp.status_code == 200

    resp = await client.get(f"{API}/team/stats/{team['id']}", headers=auth(alice))
    assert resp.status_code == 200
    assert resp.json()["data"] == {
        "project_count": 1,
        "member_count": 3,
        "task_stats": {"to-do": 2, "done": 1},
    }


# ---------------------------------------------------------------------------
# 3. Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_membership_update_is_idempotent(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    bob = await make_user()
    team = await create_team(client, manager, [alice])
    payload = {"members": [str(alice.id), str(bob.id)]}

    first = await client.patch(f"{API}/team/{team['id']}", json=payload, headers=auth(manager))
    second = await client.patch(f"{API}/team/{team['id']}", json=payload, headers=auth(manager))

    assert first.status_code == second.status_code == 200
    assert set(first.json()["data"]["members"]) == set(second.json()["data"]["members"])
    assert (await read("get_user", bob.id)).teams.as_list() == [uuid.UUID(team["id"])]


@pytest.mark.asyncio
async def test_creator_cannot_be_removed(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    team = await create_team(client, manager, [alice])

    resp = await client.patch(
        f"{API}/team/{team['id']}", json={"members": [str(alice.id)]}, headers=auth(manager)
    )
    assert resp.status_code == 200
    assert str(manager.id) in resp.json()["data"]["members"]
    assert uuid.UUID(team["id"]) in (await read("get_user", manager.id)).teams


@pytest.mark.asyncio
async def test_removed_member_leaves_team_projects(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    bob = await make_user()
    team = await create_team(client, manager, [alice, bob])
    project = await create_project(client, manager, team, [alice, bob])

    resp = await client.patch(
        f"{API}/team/{team['id']}", json={"members": [str(alice.id)]}, headers=auth(manager)
    )
    assert resp.status_code == 200

    bob_now = await read("get_user", bob.id)
    assert bob_now.teams.as_list() == []
    assert bob_now.projects.as_list() == []
    assert (await read("get_project", uuid.UUID(project["id"]))).members.as_list() == [alice.id]


@pytest.mark.asyncio
async def test_rename_without_touching_members(client, make_user):
    manager = await make_user(Role.manager)
    alice = await make_user()
    team = await create_team(client, manager, [alice])

    resp = await client.patch(
        f"{API}/team/{team['id']}", json={"name": "Renamed team"}, headers=auth(manager)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Renamed team"
    assert set(resp.json()["data"]["members"]) == set(team["members"])


@pytest.mark.asyncio
async def test_only_creator_or_admin_updates(client, make_user):
    manager = await make_user(Role.manager)
    other_manager = await make_user(Role.manager)
    member = await make_user()
    admin = await make_user(Role.admin)
    team = await create_team(client, manager, [member])

    for user in (other_manager, member):
        resp = await client.patch(f"{API}/team/{team['id']}", json={"name": "Taken over"}, headers=auth(user))
        assert resp.status_code == 403
    resp = await client.patch(f"{API}/team/{team['id']}", json={"name": "Admin edit"}, headers=auth(admin))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_update_with_unknown_member_changes_nothing(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    team = await create_team(client, manager, [alice])

    resp = await client.patch(
        f"{API}/team/{team['id']}",
        json={"name": "Should not stick", "members": [str(uuid.uuid4())]},
        headers=auth(manager),
    )
    assert resp.status_code == 400
    stored = await read("get_team", uuid.UUID(team["id"]))
    assert stored.name == team["name"]
    assert set(stored.members) == {manager.id, alice.id}


# ---------------------------------------------------------------------------
# 4. Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_team_cascades(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    team = await create_team(client, manager, [alice])
    project = await create_project(client, manager, team, [alice])
    task = await create_task(client, manager, project, [alice])

    resp = await client.delete(f"{API}/team/{team['id']}", headers=auth(manager))
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Team deleted"}

    assert (await client.get(f"{API}/project/{project['id']}", headers=auth(manager))).status_code == 404
    assert (await client.get(f"{API}/task/{task['id']}", headers=auth(manager))).status_code == 404
    alice_now = await read("get_user", alice.id)
    assert not alice_now.teams and not alice_now.projects and not alice_now.tasks


@pytest.mark.asyncio
async def test_member_cannot_delete_team(client, make_user):
    manager = await make_user(Role.manager)
    alice = await make_user()
    team = await create_team(client, manager, [alice])
    resp = await client.delete(f"{API}/team/{team['id']}", headers=auth(alice))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_members_still_editable_after_creator_deleted(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    bob = await make_user()
    admin = await make_user(Role.admin)
    team = await create_team(client, manager, [alice])
    assert (await client.delete(f"{API}/user/{manager.id}", headers=auth(manager))).status_code == 200

    resp = await client.patch(
        f"{API}/team/{team['id']}",
        json={"members": [str(alice.id), str(bob.id)]},
        headers=auth(admin),
    )
    assert resp.status_code == 200
    assert set(resp.json()["data"]["members"]) == {str(alice.id), str(bob.id)}
    assert uuid.UUID(team["id"]) in (await read("get_user", bob.id)).teams


@pytest.mark.asyncio
async def test_forbidden_update_with_unknown_member_is_403(client, make_user, read):
    manager = await make_user(Role.manager)
    alice = await make_user()
    outsider = await make_user()
    team = await create_team(client, manager, [alice])

    resp = await client.patch(
        f"{API}/team/{team['id']}", json={"members": [str(uuid.uuid4())]}, headers=auth(outsider)
    )
    assert resp.status_code == 403
    assert set((await read("get_team", uuid.UUID(team["id"]))).members) == {manager.id, alice.id}
