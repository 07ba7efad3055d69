"""Domain entity — a user record stored in MongoDB."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


@dataclass
class User:
    """Core domain entity for an application user.

    ``id`` is assigned by the datastore on insert; it stays ``None`` until then.
    """

    name: str
    email: str
    age: int | None = None
    status: UserStatus = UserStatus.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Fields a client may set on create or update.
    WRITABLE_FIELDS = ("name", "email", "age", "status", "metadata")

    def update(self, changes: dict[str, Any]) -> None:
        """Apply already-validated field changes and refresh updated_at."""
        for name, value in changes.items():
            if name in self.WRITABLE_FIELDS:
                setattr(self, name, value)
        self.updated_at = datetime.now(timezone.utc)


@dataclass
class UserStatusStats:
    """Aggregate figures for all users sharing one status."""

    status: str
    count: int
    avg_age: float | None = None
