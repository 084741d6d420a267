"""
Team endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from crewboard.core.dependencies import get_current_actor, get_repository
from crewboard.core.documents import Actor
from crewboard.repositories import DocumentRepository
from crewboard.schemas.common import ApiResponse, MessageResponse
from crewboard.schemas.team import (
    TeamCreateRequest,
    TeamResponse,
    TeamStatsResponse,
    TeamUpdateRequest,
)
from crewboard.services.team_service import TeamService

router = APIRouter()


def get_team_service(repository: DocumentRepository = Depends(get_repository)) -> TeamService:
    return TeamService(repository)


@router.get(
    "",
    response_model=ApiResponse[list[TeamResponse]],
    summary="List teams visible to the current user",
)
async def list_teams(
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[list[TeamResponse]]:
    return ApiResponse(data=await service.list_teams(actor))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[TeamResponse]],
    summary="List teams a user belongs to",
)
async def list_user_teams(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[list[TeamResponse]]:
    return ApiResponse(data=await service.list_user_teams(actor, user_id))


@router.get(
    "/stats/{team_id}",
    response_model=ApiResponse[TeamStatsResponse],
    summary="Project, member and assignment counts for a team",
)
async def team_stats(
    team_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[TeamStatsResponse]:
    return ApiResponse(data=await service.team_stats(actor, team_id))


@router.get(
    "/{team_id}",
    response_model=ApiResponse[TeamResponse],
    summary="Get team detail",
)
async def get_team(
    team_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[TeamResponse]:
    return ApiResponse(data=await service.get_team(actor, team_id))


@router.post(
    "",
    response_model=ApiResponse[TeamResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a team",
)
async def create_team(
    data: TeamCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[TeamResponse]:
    """Managers and admins only. The creator is always a member."""
    return ApiResponse(data=await service.create_team(actor, data))


@router.patch(
    "/{team_id}",
    response_model=ApiResponse[TeamResponse],
    summary="Update team details or replace its member list",
)
async def update_team(
    team_id: UUID,
    data: TeamUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> ApiResponse[TeamResponse]:
    return ApiResponse(data=await service.update_team(actor, team_id, data))


@router.delete(
    "/{team_id}",
    response_model=MessageResponse,
    summary="Delete a team with its projects and tasks",
)
async def delete_team(
    team_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TeamService = Depends(get_team_service),
) -> MessageResponse:
    await service.delete_team(actor, team_id)
    return MessageResponse(message="Team deleted")
