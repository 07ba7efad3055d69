"""User CRUD endpoints backed by MongoDB."""

from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, Query, status

from dualstore.application.schemas import (
    BulkCreateResponse,
    ConnectionTestResponse,
    DataResponse,
    DeletedResponse,
    PaginatedResponse,
    PaginationSchema,
    UserCreate,
    UserResponse,
    UserStatsResponse,
    UserUpdate,
)
from dualstore.application.services import UserService
from dualstore.config import get_settings
from dualstore.infrastructure.dependencies import get_user_service

settings = get_settings()

router = APIRouter(prefix="/mongo", tags=["MongoDB Users"])


@router.get("/test", response_model=ConnectionTestResponse)
async def test_connection(
    service: UserService = Depends(get_user_service),
) -> ConnectionTestResponse:
    """Round-trip a ping to MongoDB."""
    await service.check_connection()
    return ConnectionTestResponse(
        message="MongoDB connection successful",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post(
    "/users",
    response_model=DataResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    user = await service.create_record(data.model_dump(exclude_unset=True))
    return DataResponse(data=UserResponse.model_validate(user))


@router.post(
    "/users/bulk",
    response_model=BulkCreateResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def bulk_create_users(
    items: list[UserCreate] = Body(...),
    service: UserService = Depends(get_user_service),
) -> BulkCreateResponse[UserResponse]:
    """Create many users in one request; the body is a JSON array."""
    users = await service.bulk_create_records(
        [item.model_dump(exclude_unset=True) for item in items]
    )
    return BulkCreateResponse(
        data=[UserResponse.model_validate(u) for u in users],
        count=len(users),
    )


@router.get("/users", response_model=PaginatedResponse[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    status_filter: str | None = Query(None, alias="status"),
    service: UserService = Depends(get_user_service),
) -> PaginatedResponse[UserResponse]:
    """Retrieve a page of users, newest first."""
    result = await service.list_records(
        page=page, limit=limit, filters={"status": status_filter}
    )
    return PaginatedResponse(
        data=[UserResponse.model_validate(u) for u in result.items],
        pagination=PaginationSchema(
            total=result.total, page=result.page, limit=result.limit, pages=result.pages
        ),
    )


@router.get("/users/search", response_model=DataResponse[list[UserResponse]])
async def search_users(
    q: str | None = None,
    service: UserService = Depends(get_user_service),
) -> DataResponse[list[UserResponse]]:
    """Case-insensitive substring search over name and email."""
    users = await service.search_records(q)
    return DataResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get("/users/stats", response_model=DataResponse[list[UserStatsResponse]])
async def user_stats(
    service: UserService = Depends(get_user_service),
) -> DataResponse[list[UserStatsResponse]]:
    stats = await service.get_stats()
    return DataResponse(data=[UserStatsResponse.model_validate(s) for s in stats])


@router.get("/users/{user_id}", response_model=DataResponse[UserResponse])
async def get_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    user = await service.get_record(user_id)
    return DataResponse(data=UserResponse.model_validate(user))


@router.api_route(
    "/users/{user_id}",
    methods=["PUT", "PATCH"],
    response_model=DataResponse[UserResponse],
)
async def update_user(
    user_id: str,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> DataResponse[UserResponse]:
    """Apply only the fields present in the body."""
    user = await service.update_record(user_id, data.model_dump(exclude_unset=True))
    return DataResponse(data=UserResponse.model_validate(user))


@router.delete("/users/{user_id}", response_model=DeletedResponse[UserResponse])
async def delete_user(
    user_id: str,
    service: UserService = Depends(get_user_service),
) -> DeletedResponse[UserResponse]:
    user = await service.delete_record(user_id)
    return DeletedResponse(
        data=UserResponse.model_validate(user),
        message="User deleted successfully",
    )
