"""
Domain errors.

Services raise these; ``crewboard.main`` maps them onto the
``{"success": false, "message": ...}`` envelope with the matching status code.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class CrewboardError(Exception):
    """Base class for errors that terminate a request pipeline."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(CrewboardError):
    """Target or a required ancestor does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class Forbidden(CrewboardError):
    """The permission table denied the actor."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ValidationFailed(CrewboardError):
    """A proposed member list or field value was rejected."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_FAILED"


class Unauthenticated(CrewboardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"


class Conflict(CrewboardError):
    """Only raised for signup; unique names on teams and projects are not pre-checked."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
