"""Translate a storage-neutral RecordQuery into SQLAlchemy clauses."""

from typing import Any

from sqlalchemy import Select, and_, or_
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from dualstore.domain.query import Condition, Operator, RecordQuery


def _column(model: type, field_name: str) -> InstrumentedAttribute:
    column = getattr(model, field_name, None)
    if not isinstance(column, InstrumentedAttribute):
        raise ValueError(f"{model.__name__} has no column '{field_name}'")
    return column


def condition_clause(model: type, condition: Condition) -> ColumnElement[bool]:
    column = _column(model, condition.field_name)
    value: Any = condition.value

    if condition.operator is Operator.EQUALS:
        return column.is_(None) if value is None else column == value
    if condition.operator is Operator.GTE:
        return column >= value
    if condition.operator is Operator.LTE:
        return column <= value
    # contains: case-insensitive, % and _ in the term are matched literally
    return column.icontains(str(value), autoescape=True)


def where_clause(model: type, query: RecordQuery) -> ColumnElement[bool] | None:
    clauses = [condition_clause(model, c) for c in query.conditions]
    if query.any_of:
        clauses.append(or_(*(condition_clause(model, c) for c in query.any_of)))
    if not clauses:
        return None
    return and_(*clauses)


def apply_query(stmt: Select, model: type, query: RecordQuery) -> Select:
    """Apply WHERE, ORDER BY, OFFSET and LIMIT from ``query`` to ``stmt``."""
    clause = where_clause(model, query)
    if clause is not None:
        stmt = stmt.where(clause)
    if query.sort_field:
        # id breaks ties so pages never overlap or skip rows
        columns = [_column(model, query.sort_field)]
        if query.sort_field != "id":
            columns.append(_column(model, "id"))
        stmt = stmt.order_by(
            *(c.desc() if query.descending else c.asc() for c in columns)
        )
    if query.offset:
        stmt = stmt.offset(query.offset)
    if query.limit is not None:
        stmt = stmt.limit(query.limit)
    return stmt
