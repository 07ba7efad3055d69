from .common import (
    ApiModel,
    BulkCreateResponse,
    ConnectionTestResponse,
    DataResponse,
    DeletedResponse,
    PaginatedResponse,
    PaginationSchema,
)
from .user import UserCreate, UserUpdate, UserResponse, UserStatsResponse
from .product import ProductCreate, ProductUpdate, ProductResponse, ProductStatsResponse

__all__ = [
    "ApiModel",
    "BulkCreateResponse",
    "ConnectionTestResponse",
    "DataResponse",
    "DeletedResponse",
    "PaginatedResponse",
    "PaginationSchema",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserStatsResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductStatsResponse",
]
