"""Shared DTOs — response envelopes and pagination metadata."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for every DTO: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationSchema(ApiModel):
    total: int
    page: int
    limit: int
    pages: int


class DataResponse(ApiModel, Generic[T]):
    """``{"success": true, "data": ...}`` envelope."""

    success: bool = True
    data: T


class PaginatedResponse(ApiModel, Generic[T]):
    success: bool = True
    data: list[T]
    pagination: PaginationSchema


class DeletedResponse(ApiModel, Generic[T]):
    success: bool = True
    data: T
    message: str


class BulkCreateResponse(ApiModel, Generic[T]):
    success: bool = True
    data: list[T]
    count: int


class ConnectionTestResponse(ApiModel):
    success: bool = True
    message: str
    timestamp: str
