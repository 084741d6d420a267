"""
Task endpoints.

CRUD, per-assignee status updates and stats for tasks.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from crewboard.core.dependencies import get_current_actor, get_repository
from crewboard.core.documents import Actor
from crewboard.repositories import DocumentRepository
from crewboard.schemas.common import ApiResponse, MessageResponse
from crewboard.schemas.task import (
    TaskCreateRequest,
    TaskResponse,
    TaskStatsResponse,
    TaskStatusRequest,
    TaskUpdateRequest,
)
from crewboard.services.task_service import TaskService

router = APIRouter()


def get_task_service(repository: DocumentRepository = Depends(get_repository)) -> TaskService:
    return TaskService(repository)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ApiResponse[list[TaskResponse]],
    summary="List tasks visible to the current user",
)
async def list_tasks(
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[list[TaskResponse]]:
    return ApiResponse(data=await service.list_tasks(actor))


@router.get(
    "/project/{project_id}",
    response_model=ApiResponse[list[TaskResponse]],
    summary="List tasks of a project",
)
async def list_project_tasks(
    project_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[list[TaskResponse]]:
    return ApiResponse(data=await service.list_project_tasks(actor, project_id))


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[list[TaskResponse]],
    summary="List tasks assigned to a user",
)
async def list_user_tasks(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[list[TaskResponse]]:
    return ApiResponse(data=await service.list_user_tasks(actor, user_id))


@router.get(
    "/stats/{task_id}",
    response_model=ApiResponse[TaskStatsResponse],
    summary="Assignment counts and overdue flag for a task",
)
async def task_stats(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskStatsResponse]:
    return ApiResponse(data=await service.task_stats(actor, task_id))


@router.get(
    "/{task_id}",
    response_model=ApiResponse[TaskResponse],
    summary="Get task detail",
)
async def get_task(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    return ApiResponse(data=await service.get_task(actor, task_id))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ApiResponse[TaskResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    data: TaskCreateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    """Assignees must belong to the team owning the project; all start at 'to-do'."""
    return ApiResponse(data=await service.create_task(actor, data))


@router.put(
    "/{task_id}",
    response_model=ApiResponse[TaskResponse],
    summary="Update task fields or replace its assignees",
)
async def update_task(
    task_id: UUID,
    data: TaskUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    return ApiResponse(data=await service.update_task(actor, task_id, data))


@router.patch(
    "/{task_id}/status",
    response_model=ApiResponse[TaskResponse],
    summary="Update your own assignment status",
)
async def update_task_status(
    task_id: UUID,
    data: TaskStatusRequest,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> ApiResponse[TaskResponse]:
    return ApiResponse(data=await service.update_status(actor, task_id, data))


@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete a task",
)
async def delete_task(
    task_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    await service.delete_task(actor, task_id)
    return MessageResponse(message="Task deleted")
