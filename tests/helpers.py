"""
Shared helpers for the API tests.
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import httpx

from crewboard.core.documents import UserDocument
from crewboard.core.security import create_access_token

API = "/api/v1"
PASSWORD = "secret123"


def auth(user: UserDocument) -> dict[str, str]:
    token = create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}


def future(days: int = 7) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


def past(days: int = 1) -> str:
    return (datetime.now(UTC) - timedelta(days=days)).isoformat()


def unique_name(prefix: str) -> str:
    return f"{prefix} {uuid.uuid4().hex[:6]}"


async def create_team(
    client: httpx.AsyncClient, owner: UserDocument, members: Sequence[UserDocument] = ()
) -> dict:
    resp = await client.post(
        f"{API}/team",
        json={"name": unique_name("Team"), "members": [str(m.id) for m in members]},
        headers=auth(owner),
    )
    assert resp.status_code == 201, f"Create team failed: {resp.text}"
    return resp.json()["data"]


async def create_project(
    client: httpx.AsyncClient, owner: UserDocument, team: dict, members: Sequence[UserDocument] = ()
) -> dict:
    resp = await client.post(
        f"{API}/project",
        json={
            "name": unique_name("Project"),
            "team": team["id"],
            "members": [str(m.id) for m in members],
        },
        headers=auth(owner),
    )
    assert resp.status_code == 201, f"Create project failed: {resp.text}"
    return resp.json()["data"]


async def create_task(
    client: httpx.AsyncClient,
    owner: UserDocument,
    project: dict,
    assignees: Sequence[UserDocument] = (),
    deadline: str | None = None,
) -> dict:
    resp = await client.post(
        f"{API}/task",
        json={
            "title": unique_name("Task"),
            "deadline": deadline or future(),
            "project": project["id"],
            "assigned_members": [{"member": str(a.id)} for a in assignees],
        },
        headers=auth(owner),
    )
    assert resp.status_code == 201, f"Create task failed: {resp.text}"
    return resp.json()["data"]
