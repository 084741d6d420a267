"""
User business logic.

Handles signup, login, logout, profile edits, deletion and stats.
All business logic lives here; routers only handle HTTP concerns.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import redis.asyncio as aioredis

from crewboard.core.config import settings
from crewboard.core.documents import Actor, Collection, Role, UserDocument
from crewboard.core.exceptions import Conflict, Unauthenticated
from crewboard.core.permissions import Action, Resource, ensure_allowed
from crewboard.core.security import (
    AccessClaims,
    access_token_ttl_seconds,
    blacklist_redis_key,
    create_access_token,
    hash_password,
    verify_password,
)
from crewboard.repositories import DocumentRepository
from crewboard.schemas.user import (
    LoginRequest,
    SignupRequest,
    TokenResponse,
    UserResponse,
    UserStatsResponse,
    UserUpdateRequest,
)
from crewboard.services.base import DocumentService, count_statuses

logger = logging.getLogger(__name__)


class UserService(DocumentService):
    """Handles accounts and authentication."""

    def __init__(self, repository: DocumentRepository, redis: aioredis.Redis) -> None:
        super().__init__(repository)
        self.redis = redis

    # -----------------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------------

    async def signup(self, data: SignupRequest) -> TokenResponse:
        """
        Register a new user.

        - Validates email uniqueness
        - Hashes password
        - Creates user record
        - Issues an access token

        The requested role is only honoured when ALLOW_SIGNUP_ROLE is set.
        """
        if await self.repository.get_user_by_email(data.email) is not None:
            raise Conflict("Email is already registered")

        role = data.role if settings.ALLOW_SIGNUP_ROLE and data.role else Role.employee
        user = await self.repository.create_user(
            name=data.name,
            email=data.email,
            password_hash=hash_password(data.password),
            designation=data.designation,
            role=role,
        )
        logger.info("User signed up: id=%s role=%s", user.id, user.role.value)
        return self._issue_token(user)

    async def login(self, data: LoginRequest) -> TokenResponse:
        """Raises 401 for invalid credentials (never reveals which field is wrong)."""
        user = await self.repository.get_user_by_email(data.email)
        if user is None or not verify_password(data.password, user.password_hash):
            raise Unauthenticated("Invalid email or password")
        return self._issue_token(user)

    async def logout(self, claims: AccessClaims) -> None:
        """Blacklist the access token JTI for the rest of its lifetime."""
        await self.redis.setex(blacklist_redis_key(claims.jti), claims.remaining_seconds(), "1")
        logger.info("User logged out: id=%s", claims.user_id)

    async def current_user(self, actor: Actor) -> UserResponse:
        user = await self.repository.get_user(actor.id)
        if user is None:
            raise Unauthenticated("User not found")
        return UserResponse.from_document(user)

    def _issue_token(self, user: UserDocument) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(user.id, user.role),
            expires_in=access_token_ttl_seconds(),
            user=UserResponse.from_document(user),
        )

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    async def list_users(self, actor: Actor) -> list[UserResponse]:
        ensure_allowed(actor, Action.read_many, Resource.user)
        return [UserResponse.from_document(u) for u in await self.repository.find_users()]

    async def get_user(self, actor: Actor, user_id: UUID) -> UserResponse:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.read_one, Resource.user, user)
        return UserResponse.from_document(user)

    async def user_stats(self, actor: Actor, user_id: UUID) -> UserStatsResponse:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.read_many, Resource.user, user)
        teams = await self.repository.find_teams(member=user.id)
        projects = await self.repository.find_projects(member=user.id)
        tasks = await self.repository.find_tasks(assignee=user.id)
        own = (t.assignment_for(user.id) for t in tasks)
        return UserStatsResponse(
            team_count=len(teams),
            project_count=len(projects),
            task_stats=count_statuses(a for a in own if a is not None),
        )

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    async def update_user(self, actor: Actor, user_id: UUID, data: UserUpdateRequest) -> UserResponse:
        user = await self.require_user(user_id)
        fields: dict[str, Any] = data.model_dump(exclude_none=True, exclude={"role"})
        role_change = data.role is not None and data.role is not user.role
        if fields or not role_change:
            ensure_allowed(actor, Action.update, Resource.user, user)
        if role_change:
            ensure_allowed(actor, Action.update_role, Resource.user, user)
            fields["role"] = data.role

        if "email" in fields:
            fields["email"] = fields["email"].lower()
            other = await self.repository.get_user_by_email(fields["email"])
            if other is not None and other.id != user.id:
                raise Conflict("Email is already registered")

        await self.repository.update_fields(Collection.users, user.id, fields)
        if role_change:
            logger.info("User role changed: id=%s %s -> %s by=%s", user.id, user.role.value, fields["role"].value, actor.id)
        return UserResponse.from_document(await self.require_user(user.id))

    async def delete_user(self, actor: Actor, user_id: UUID) -> None:
        user = await self.require_user(user_id)
        ensure_allowed(actor, Action.delete, Resource.user, user)
        await self.cascade.delete_user(user)
        logger.info("User deleted: id=%s by=%s", user.id, actor.id)
