"""Pydantic DTOs (Data Transfer Objects) for the User feature.

Input DTOs only enforce JSON types; range, length and enum constraints are
checked by ``dualstore.domain.validation`` so every failed constraint is
reported with its own message.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from dualstore.application.schemas.common import ApiModel
from dualstore.domain.entities import UserStatus


class UserCreate(ApiModel):
    """Schema for creating a new user."""

    name: str | None = Field(None, examples=["Ada Lovelace"])
    email: str | None = Field(None, examples=["ada@example.com"])
    age: int | None = Field(None, examples=[36])
    status: str | None = Field(None, examples=["active"])
    metadata: dict[str, Any] | None = None


class UserUpdate(ApiModel):
    """Schema for a partial update — only the fields sent are changed."""

    name: str | None = None
    email: str | None = None
    age: int | None = None
    status: str | None = None
    metadata: dict[str, Any] | None = None


class UserResponse(ApiModel):
    """Schema returned to the client."""

    id: str
    name: str
    email: str
    age: int | None
    status: UserStatus
    metadata: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class UserStatsResponse(ApiModel):
    status: str
    count: int
    avg_age: float | None
