"""
Team business logic.

Handles team CRUD, membership changes and stats. Member lists are validated
against the user collection and the creator can never be removed.
"""

from __future__ import annotations

import logging
from uuid import UUID

from crewboard.core.documents import Actor, Collection
from crewboard.core.idset import IdSet
from crewboard.core.permissions import Action, Resource, ensure_allowed
from crewboard.schemas.team import (
    TeamCreateRequest,
    TeamResponse,
    TeamStatsResponse,
    TeamUpdateRequest,
)
from crewboard.services.base import DocumentService, count_statuses
from crewboard.services.cascade import MembershipDelta
from crewboard.services.membership import validate_team_members

logger = logging.getLogger(__name__)


class TeamService(DocumentService):

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def list_teams(self, actor: Actor) -> list[TeamResponse]:
        """Admins see every team; everyone else sees teams they belong to or created."""
        ensure_allowed(actor, Action.read_many, Resource.team)
        if actor.is_admin:
            teams = await self.repository.find_teams()
        else:
            teams = await self.repository.find_teams(member_or_creator=actor.id)
        return [TeamResponse.from_document(t) for t in teams]

    async def list_user_teams(self, actor: Actor, user_id: UUID) -> list[TeamResponse]:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.read_many, Resource.user, user)
        teams = await self.repository.find_teams(member=user.id)
        return [TeamResponse.from_document(t) for t in teams]

    async def get_team(self, actor: Actor, team_id: UUID) -> TeamResponse:
        team = await self.require_team(team_id)
        ensure_allowed(actor, Action.read_one, Resource.team, team)
        return TeamResponse.from_document(team)

    async def team_stats(self, actor: Actor, team_id: UUID) -> TeamStatsResponse:
        team = await self.require_team(team_id)
        ensure_allowed(actor, Action.read_one, Resource.team, team)
        projects = await self.repository.find_projects(team=team.id)
        tasks = await self.repository.find_tasks(projects=[p.id for p in projects])
        # Tasks carry no status of their own; the counts are over assignments.
        return TeamStatsResponse(
            project_count=len(projects),
            member_count=len(team.members),
            task_stats=count_statuses(a for t in tasks for a in t.assigned_members),
        )

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    async def create_team(self, actor: Actor, data: TeamCreateRequest) -> TeamResponse:
        ensure_allowed(actor, Action.create, Resource.team)
        members = IdSet(data.members).with_id(actor.id)
        await validate_team_members(members, self.repository)

        team = await self.repository.create_team(
            name=data.name,
            description=data.description,
            created_by=actor.id,
            members=members,
        )
        await self.cascade.team_created(team)
        logger.info("Team created: id=%s by=%s members=%d", team.id, actor.id, len(team.members))
        return TeamResponse.from_document(team)

    async def update_team(self, actor: Actor, team_id: UUID, data: TeamUpdateRequest) -> TeamResponse:
        team = await self.require_team(team_id)
        fields = data.model_dump(exclude_none=True, exclude={"members"})
        if fields or data.members is None:
            ensure_allowed(actor, Action.update, Resource.team, team)
        if data.members is not None:
            ensure_allowed(actor, Action.update_members, Resource.team, team)

        members: IdSet | None = None
        if data.members is not None:
            requested = IdSet(data.members)
            await validate_team_members(requested, self.repository)
            # A deleted creator is not written back.
            creator = await self.repository.existing_ids(Collection.users, [team.created_by])
            members = requested | creator

        await self.repository.update_fields(Collection.teams, team.id, fields)
        if members is not None:
            await self.repository.replace_set(Collection.teams, team.id, "members", members)
            delta = MembershipDelta.between(team.members, members, keep=team.created_by)
            if delta:
                await self.cascade.team_members_changed(team, delta)
                logger.info(
                    "Team members changed: id=%s added=%d removed=%d",
                    team.id, len(delta.added), len(delta.removed),
                )
        return TeamResponse.from_document(await self.require_team(team.id))

    async def delete_team(self, actor: Actor, team_id: UUID) -> None:
        team = await self.require_team(team_id)
        ensure_allowed(actor, Action.delete, Resource.team, team)
        await self.cascade.delete_team(team)
        logger.info("Team deleted: id=%s by=%s", team.id, actor.id)
