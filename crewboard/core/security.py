"""
Password hashing and bearer tokens.

Tokens are short JWTs carrying the user id, a unique ``jti`` for revocation
and the role at issue time. The role claim is for clients only: every request
re-reads the role from the user record.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt as _bcrypt
from jose import JWTError, jwt

from crewboard.core.config import settings
from crewboard.core.documents import Role

# bcrypt ignores everything past 72 bytes.
_BCRYPT_MAX_BYTES = 72
_BCRYPT_ROUNDS = 12


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return _bcrypt.hashpw(_password_bytes(password), _bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return _bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AccessClaims:
    """The verified contents of an access token."""

    user_id: uuid.UUID
    jti: str
    role: str
    expires_at: datetime

    def remaining_seconds(self) -> int:
        """Seconds until expiry, at least 1 so a Redis TTL is always valid."""
        return max(int((self.expires_at - datetime.now(UTC)).total_seconds()), 1)


def access_token_ttl_seconds() -> int:
    return settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60


def create_access_token(user_id: uuid.UUID, role: Role, jti: str | None = None) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "jti": jti or uuid.uuid4().hex,
        "type": "access",
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(seconds=access_token_ttl_seconds()),
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> AccessClaims:
    """
    Verify signature, expiry and token type.

    Raises:
        JWTError: If the token is invalid, expired, not an access token or
            missing a usable ``sub``/``jti``.
    """
    payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
        jti = str(payload["jti"])
    except (KeyError, ValueError) as exc:
        raise JWTError("Malformed access token") from exc
    return AccessClaims(
        user_id=user_id,
        jti=jti,
        role=str(payload.get("role", "")),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
    )


def blacklist_redis_key(jti: str) -> str:
    """Redis key for a revoked access token. Format: blacklist:{jti}"""
    return f"blacklist:{jti}"
