"""
Project endpoints.

CRUD operations and stats for projects.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from crewboard.core.dependencies import get_current_actor, get_repository
from crewboard.core.documents import Actor
from crewboard.repositories import DocumentRepository
from crewboard.schemas.common import ApiResponse, MessageResponse
from crewboard.schemas.project import (
    ProjectCreateRequest,
    ProjectResponse,
    ProjectStatsResponse,
    ProjectUpdateRequest,
)
from crewboard.services.project_service import ProjectService

router = APIRouter()


def get_project_service(repository: DocumentRepository = Depends(get_repository)) -> ProjectService:
    return ProjectService(repository)


@router.get(
    "",
    response_model=ApiResponse[list[ProjectResponse]],
    summary="List projects visible to the current user",
)
async def list_projects(
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[list[ProjectResponse]]:
    return ApiResponse(data=await service.list_projects(actor))


@router.get(
    "/team/{team_id}",
    response_model=ApiResponse[list[ProjectResponse]],
    summary="List projects of a team",
)
async def list_team_projects(
    team_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[list[ProjectResponse]]:
    return ApiResponse(data=await service.list_team_projects(actor, team_id))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[ProjectResponse]],
    summary="List projects a user belongs to",
)
async def list_user_projects(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[list[ProjectResponse]]:
    return ApiResponse(data=await service.list_user_projects(actor, user_id))


@router.get(
    "/stats/{project_id}",
    response_model=ApiResponse[ProjectStatsResponse],
    summary="Member, task and assignment counts for a project",
)
async def project_stats(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectStatsResponse]:
    return ApiResponse(data=await service.project_stats(actor, project_id))


@router.get(
    "/{project_id}",
    response_model=ApiResponse[ProjectResponse],
    summary="Get project detail",
)
async def get_project(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    return ApiResponse(data=await service.get_project(actor, project_id))


@router.post(
    "",
    response_model=ApiResponse[ProjectResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a new project",
)
async def create_project(
    data: ProjectCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    """Members must already belong to the project's team."""
    return ApiResponse(data=await service.create_project(actor, data))


@router.put(
    "/{project_id}",
    response_model=ApiResponse[ProjectResponse],
    summary="Update project",
)
async def update_project(
    project_id: UUID,
    data: ProjectUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> ApiResponse[ProjectResponse]:
    return ApiResponse(data=await service.update_project(actor, project_id, data))


@router.delete(
    "/{project_id}",
    response_model=MessageResponse,
    summary="Delete a project and its tasks",
)
async def delete_project(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: ProjectService = Depends(get_project_service),
) -> MessageResponse:
    await service.delete_project(actor, project_id)
    return MessageResponse(message="Project deleted")
