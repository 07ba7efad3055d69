"""Translate a storage-neutral RecordQuery into MongoDB filter and sort specs."""

import re
from enum import Enum
from typing import Any

from pymongo import ASCENDING, DESCENDING

from dualstore.domain.query import Condition, Operator, RecordQuery

# Entity attribute → document key
_FIELD_MAP = {"id": "_id"}


def _key(field_name: str) -> str:
    return _FIELD_MAP.get(field_name, field_name)


def condition_filter(condition: Condition) -> dict[str, Any]:
    key = _key(condition.field_name)
    value = condition.value.value if isinstance(condition.value, Enum) else condition.value

    if condition.operator is Operator.EQUALS:
        return {key: value}
    if condition.operator is Operator.GTE:
        return {key: {"$gte": value}}
    if condition.operator is Operator.LTE:
        return {key: {"$lte": value}}
    # contains: the term is matched literally, not as a pattern
    return {key: {"$regex": re.escape(str(value)), "$options": "i"}}


def to_mongo_filter(query: RecordQuery) -> dict[str, Any]:
    clauses = [condition_filter(c) for c in query.conditions]
    if query.any_of:
        clauses.append({"$or": [condition_filter(c) for c in query.any_of]})
    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def to_mongo_sort(query: RecordQuery) -> list[tuple[str, int]] | None:
    """Sort spec with ``_id`` as tie-breaker, or None for natural order."""
    if not query.sort_field:
        return None
    direction = DESCENDING if query.descending else ASCENDING
    key = _key(query.sort_field)
    if key == "_id":
        return [(key, direction)]
    return [(key, direction), ("_id", direction)]
