"""
FastAPI dependency injection functions.

Provides database sessions, the document repository, Redis connections and
the authenticated actor.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from crewboard.core.config import settings
from crewboard.core.database import get_db
from crewboard.core.documents import Actor, Role
from crewboard.core.exceptions import Forbidden, Unauthenticated
from crewboard.core.security import AccessClaims, blacklist_redis_key, decode_access_token
from crewboard.repositories import DocumentRepository

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

async def get_repository(db: AsyncSession = Depends(get_db)) -> DocumentRepository:
    return DocumentRepository(db)


# ---------------------------------------------------------------------------
# Current actor
# ---------------------------------------------------------------------------

async def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    redis: aioredis.Redis = Depends(get_redis),
) -> AccessClaims:
    """
    Validate the Bearer JWT and return its claims.

    Raises 401 if:
    - No token provided
    - Token is invalid or expired
    - JTI is blacklisted
    """
    if credentials is None:
        raise Unauthenticated("Authorization header required")

    try:
        claims = decode_access_token(credentials.credentials)
    except JWTError:
        raise Unauthenticated("Token is invalid or expired")

    if await redis.exists(blacklist_redis_key(claims.jti)):
        raise Unauthenticated("Token has been revoked")
    return claims


async def get_current_actor(
    claims: AccessClaims = Depends(get_access_token),
    repository: DocumentRepository = Depends(get_repository),
) -> Actor:
    """
    Return the authenticated Actor.

    The role comes from the stored user, not the token. Raises 401 if the
    user no longer exists.
    """
    user = await repository.get_user(claims.user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return Actor(id=user.id, role=user.role)


# ---------------------------------------------------------------------------
# Role enforcement
# ---------------------------------------------------------------------------

def require_role(*roles: Role):
    """
    Dependency factory for endpoints outside the permission table.

    Usage:
        @router.post("/...")
        async def endpoint(actor: Actor = Depends(require_role(Role.admin))):
            ...
    """
    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            raise Forbidden(f"Required role: {[r.value for r in roles]}")
        return actor

    return role_checker
