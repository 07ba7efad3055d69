"""Paginated result container shared by every list query."""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One slice of a filtered, ordered result set.

    ``total`` counts every record matching the filter, not just this slice.
    """

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
