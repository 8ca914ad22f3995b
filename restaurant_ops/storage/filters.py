"""Composable query filters compiled to parameterised SQLite WHERE clauses.

Filters mirror the operations the application layers need from the record
store: equality, inequality, ranges, set membership, case-insensitive
substring match, and overlap tests on JSON array columns. Column names are
checked against the table's known columns; values are always bound.
"""

import json
from collections.abc import Collection, Sequence
from enum import Enum, StrEnum
from typing import Any

from pydantic import BaseModel

from restaurant_ops.storage.resilience import InvalidQueryError


class FilterOp(StrEnum):
    EQ = "eq"
    NEQ = "neq"
    GTE = "gte"
    LTE = "lte"
    IN = "in"
    ILIKE = "ilike"
    OVERLAPS = "overlaps"
    NOT_OVERLAPS = "not_overlaps"


class Filter(BaseModel):
    column: str
    op: FilterOp
    value: Any = None


class AnyOf(BaseModel):
    """OR-group of filters; matches when at least one member matches."""

    filters: list[Filter]


def eq(column: str, value: Any) -> Filter:
    return Filter(column=column, op=FilterOp.EQ, value=value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column=column, op=FilterOp.NEQ, value=value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column=column, op=FilterOp.GTE, value=value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column=column, op=FilterOp.LTE, value=value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column=column, op=FilterOp.IN, value=list(values))


def ilike(column: str, text: str) -> Filter:
    return Filter(column=column, op=FilterOp.ILIKE, value=text)


def overlaps(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column=column, op=FilterOp.OVERLAPS, value=list(values))


def not_overlaps(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column=column, op=FilterOp.NOT_OVERLAPS, value=list(values))


def any_of(*filters: Filter) -> AnyOf:
    return AnyOf(filters=list(filters))


def to_db_value(value: Any) -> Any:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=_json_default)
    return value


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Cannot serialise {type(value).__name__}")


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _compile_one(f: Filter, columns: Collection[str]) -> tuple[str, list[Any]]:
    if f.column not in columns:
        raise InvalidQueryError(f"Unknown column '{f.column}'")
    col = f.column

    if f.op == FilterOp.EQ:
        if f.value is None:
            return f"{col} IS NULL", []
        return f"{col} = ?", [to_db_value(f.value)]
    if f.op == FilterOp.NEQ:
        if f.value is None:
            return f"{col} IS NOT NULL", []
        return f"{col} != ?", [to_db_value(f.value)]
    if f.op == FilterOp.GTE:
        return f"{col} >= ?", [to_db_value(f.value)]
    if f.op == FilterOp.LTE:
        return f"{col} <= ?", [to_db_value(f.value)]
    if f.op == FilterOp.ILIKE:
        return (
            f"LOWER({col}) LIKE LOWER(?) ESCAPE '\\'",
            [f"%{_escape_like(str(f.value))}%"],
        )

    values = [to_db_value(v) for v in f.value]
    if f.op == FilterOp.IN:
        if not values:
            return "0", []
        return f"{col} IN ({_placeholders(len(values))})", values

    # Array overlap on JSON-encoded list columns
    if not values:
        return ("0", []) if f.op == FilterOp.OVERLAPS else ("1", [])
    exists = (
        f"EXISTS (SELECT 1 FROM json_each({col}) "
        f"WHERE json_each.value IN ({_placeholders(len(values))}))"
    )
    if f.op == FilterOp.NOT_OVERLAPS:
        return f"NOT {exists}", values
    return exists, values


def compile_filters(
    filters: Sequence[Filter | AnyOf], columns: Collection[str]
) -> tuple[str, list[Any]]:
    """Compile filters into a WHERE clause (without the keyword) and params.

    Args:
        filters: Filters to AND together. ``AnyOf`` groups are OR-ed internally.
        columns: Column names the table accepts.

    Returns:
        ``(sql, params)``. ``sql`` is ``"1"`` when there are no filters.

    Raises:
        InvalidQueryError: If a filter references an unknown column.
    """
    clauses: list[str] = []
    params: list[Any] = []
    for f in filters:
        if isinstance(f, AnyOf):
            parts = [_compile_one(member, columns) for member in f.filters]
            if not parts:
                continue
            clauses.append("(" + " OR ".join(sql for sql, _ in parts) + ")")
            for _, member_params in parts:
                params.extend(member_params)
        else:
            sql, member_params = _compile_one(f, columns)
            clauses.append(sql)
            params.extend(member_params)
    if not clauses:
        return "1", []
    return " AND ".join(clauses), params


def compile_order(order_by: Sequence[str], columns: Collection[str]) -> str:
    """Compile ``["a", "-b"]`` into ``"a ASC, b DESC, rowid ASC"``.

    Insertion order (``rowid``) is always the final tie-breaker.
    """
    parts: list[str] = []
    for term in order_by:
        descending = term.startswith("-")
        col = term.lstrip("-")
        if col not in columns:
            raise InvalidQueryError(f"Unknown order column '{col}'")
        parts.append(f"{col} {'DESC' if descending else 'ASC'}")
    parts.append("rowid ASC")
    return ", ".join(parts)
