"""Storage-neutral query description — filter, search, sort and paginate.

A ``RecordQuery`` is built once in the application layer and translated by
each datastore adapter (SQLAlchemy WHERE clause, MongoDB filter document).
``RecordQuery.matches`` evaluates the same query against plain Python
values so in-memory fakes behave like the real backends.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from dualstore.domain.exceptions import FieldError, RecordValidationError


class Operator(str, Enum):
    EQUALS = "equals"
    GTE = "gte"
    LTE = "lte"
    CONTAINS = "contains"  # case-insensitive literal substring


@dataclass(frozen=True)
class Condition:
    """A single ``field <operator> value`` predicate."""

    field_name: str
    operator: Operator
    value: Any

    def matches(self, candidate: Any) -> bool:
        if isinstance(candidate, Enum):
            candidate = candidate.value
        target = self.value.value if isinstance(self.value, Enum) else self.value

        if self.operator is Operator.EQUALS:
            return candidate == target
        if candidate is None:
            return False
        if self.operator is Operator.GTE:
            return candidate >= target
        if self.operator is Operator.LTE:
            return candidate <= target
        return str(target).casefold() in str(candidate).casefold()


@dataclass(frozen=True)
class RecordQuery:
    """Conjunction of ``conditions``, optionally AND-ed with one OR group.

    ``any_of`` holds the keyword-search predicates: a record matches when at
    least one of them holds. ``limit=None`` means unbounded.
    """

    conditions: tuple[Condition, ...] = ()
    any_of: tuple[Condition, ...] = ()
    sort_field: str | None = "created_at"
    descending: bool = True
    offset: int = 0
    limit: int | None = None

    def where(self, field_name: str, operator: Operator, value: Any) -> "RecordQuery":
        return replace(self, conditions=self.conditions + (Condition(field_name, operator, value),))

    def where_equal(self, field_name: str, value: Any) -> "RecordQuery":
        return self.where(field_name, Operator.EQUALS, value)

    def paginate(self, page: int, limit: int) -> "RecordQuery":
        """Restrict to one page; ``page`` and ``limit`` are 1-based and positive."""
        return replace(self, offset=(page - 1) * limit, limit=limit)

    def unpaginated(self) -> "RecordQuery":
        """Same filter without offset/limit/sort — used for counting."""
        return replace(self, offset=0, limit=None, sort_field=None)

    def matches(self, record: Any) -> bool:
        """Evaluate the filter part against an object or mapping."""
        if not all(c.matches(_read(record, c.field_name)) for c in self.conditions):
            return False
        if self.any_of:
            return any(c.matches(_read(record, c.field_name)) for c in self.any_of)
        return True


def _read(record: Any, field_name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field_name)
    return getattr(record, field_name, None)


def equality_filter(filters: Mapping[str, Any], allowed_fields: Iterable[str]) -> RecordQuery:
    """Build an AND of equality predicates over whitelisted fields.

    Unknown fields and empty values (``None`` or ``""``) are ignored.
    """
    allowed = set(allowed_fields)
    query = RecordQuery()
    for name, value in filters.items():
        if name not in allowed or value is None or value == "":
            continue
        query = query.where_equal(name, value)
    return query


def keyword_search(text: str | None, fields: Iterable[str], limit: int) -> RecordQuery:
    """Case-insensitive substring search across ``fields`` (logical OR).

    Raises RecordValidationError for an empty query instead of matching everything.
    """
    term = (text or "").strip()
    if not term:
        raise RecordValidationError([FieldError("q", "Search query is required")])
    return RecordQuery(
        any_of=tuple(Condition(name, Operator.CONTAINS, term) for name in fields),
        sort_field=None,
        limit=limit,
    )
