"""
Response envelope shared by every endpoint.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """``{"success": true, "data": ...}``"""

    success: bool = True
    data: DataT


class MessageResponse(BaseModel):
    """``{"success": bool, "message": ...}``, also the shape of every error."""

    success: bool = True
    message: str
