"""
User endpoints.

Signup, login, logout, auth status, profile CRUD and stats.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status

from crewboard.core.dependencies import (
    get_access_token,
    get_current_actor,
    get_redis,
    get_repository,
)
from crewboard.core.documents import Actor
from crewboard.core.security import AccessClaims
from crewboard.repositories import DocumentRepository
from crewboard.schemas.common import ApiResponse, MessageResponse
from crewboard.schemas.user import (
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
    UserStatsResponse,
    UserUpdateRequest,
)
from crewboard.services.user_service import UserService

router = APIRouter()


def get_user_service(
    repository: DocumentRepository = Depends(get_repository),
    redis: aioredis.Redis = Depends(get_redis),
) -> UserService:
    """Dependency that constructs UserService."""
    return UserService(repository=repository, redis=redis)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

@router.post(
    "/signup",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def signup(
    data: SignupRequest,
    service: UserService = Depends(get_user_service),
) -> ApiResponse[TokenResponse]:
    """
    Create a new user account.

    - Email must be globally unique
    - Password must be at least 6 characters
    - The role is 'employee' unless signup roles are enabled
    """
    return ApiResponse(data=await service.signup(data))


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    summary="Login with email and password",
)
async def login(
    data: LoginRequest,
    service: UserService = Depends(get_user_service),
) -> ApiResponse[TokenResponse]:
    return ApiResponse(data=await service.login(data))


@router.get(
    "/auth-status",
    response_model=ApiResponse[UserResponse],
    summary="Get the authenticated user",
)
async def auth_status(
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    return ApiResponse(data=await service.current_user(actor))


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Revoke the current access token",
)
async def logout(
    claims: AccessClaims = Depends(get_access_token),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.logout(claims)
    return MessageResponse(message="Logged out")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=ApiResponse[list[UserResponse]],
    summary="List all users (admin)",
)
async def list_users(
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[list[UserResponse]]:
    return ApiResponse(data=await service.list_users(actor))


@router.get(
    "/stats/{user_id}",
    response_model=ApiResponse[UserStatsResponse],
    summary="Team, project and assignment counts for a user",
)
async def user_stats(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserStatsResponse]:
    return ApiResponse(data=await service.user_stats(actor, user_id))


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Get user detail",
)
async def get_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    return ApiResponse(data=await service.get_user(actor, user_id))


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Edit a user",
)
async def update_user(
    user_id: UUID,
    data: UserUpdateRequest,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    """Users edit themselves; only an admin may change a role."""
    return ApiResponse(data=await service.update_user(actor, user_id, data))


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete a user and remove them from every member list",
)
async def delete_user(
    user_id: UUID,
    actor: Actor = Depends(get_current_actor),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await service.delete_user(actor, user_id)
    return MessageResponse(message="User deleted")
