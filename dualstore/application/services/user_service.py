"""Application service (use case) for User operations."""

from collections.abc import Mapping
from typing import Any

from dualstore.application.interfaces import UserRepository
from dualstore.application.services.record_service import RecordService
from dualstore.domain.entities import User, UserStatus, UserStatusStats
from dualstore.domain.exceptions import DuplicateEntityError, FieldError
from dualstore.domain.validation import validate_user


class UserService(RecordService[User]):
    """User CRUD plus per-status statistics."""

    entity_name = "User"
    filter_fields = ("status",)
    enum_filters = {"status": UserStatus}
    search_fields = ("name", "email")

    def __init__(self, repository: UserRepository, *, search_limit: int = 50):
        super().__init__(repository, search_limit=search_limit)
        self._users = repository

    def _validate(
        self, data: Mapping[str, Any], *, partial: bool
    ) -> tuple[dict[str, Any], list[FieldError]]:
        return validate_user(data, partial=partial)

    def _build(self, cleaned: dict[str, Any]) -> User:
        return User(**cleaned)

    async def create_record(self, data: Mapping[str, Any]) -> User:
        # The unique index still guards against concurrent inserts.
        email = data.get("email")
        if isinstance(email, str) and email.strip():
            normalized = email.strip().lower()
            if await self._users.get_by_email(normalized) is not None:
                raise DuplicateEntityError(self.entity_name, "email", normalized)
        return await super().create_record(data)

    async def get_stats(self) -> list[UserStatusStats]:
        return await self._users.stats_by_status()
