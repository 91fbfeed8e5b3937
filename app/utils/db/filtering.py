"""Translate filter dicts into SQLAlchemy criteria.

A filter dict maps column names to either a plain value (equality), a list or
tuple (IN), None (IS NULL) or ``{"operator": op, "value": v}`` for anything
else. The "range" operator takes a (start, end) pair.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Type

from sqlalchemy import and_
from sqlalchemy.orm import Query

_OPERATORS = {
    "=": lambda col, v: col == v,
    "==": lambda col, v: col == v,
    "!=": lambda col, v: col != v,
    "<": lambda col, v: col < v,
    "<=": lambda col, v: col <= v,
    ">": lambda col, v: col > v,
    ">=": lambda col, v: col >= v,
    "in": lambda col, v: col.in_(list(v)),
    "not in": lambda col, v: col.not_in(list(v)),
    "like": lambda col, v: col.like(v),
    "ilike": lambda col, v: col.ilike(v),
    "is null": lambda col, v: col.is_(None) if v else col.is_not(None),
    # half-open [start, end)
    "range": lambda col, v: and_(col >= v[0], col < v[1]),
}


def _column(model: Type[Any], name: str):
    column = getattr(model, name, None)
    if column is None or not hasattr(column, "property"):
        raise ValueError(f"{model.__name__} has no column {name!r}")
    return column


def build_criteria(model: Type[Any], filters: Optional[Mapping[str, Any]]) -> list:
    criteria = []
    for name, condition in (filters or {}).items():
        column = _column(model, name)
        if isinstance(condition, dict) and "operator" in condition:
            op = str(condition["operator"]).lower()
            if op not in _OPERATORS:
                raise ValueError(f"Unsupported filter operator: {op}")
            criteria.append(_OPERATORS[op](column, condition.get("value")))
        elif condition is None:
            criteria.append(column.is_(None))
        elif isinstance(condition, (list, tuple, set)):
            criteria.append(column.in_(list(condition)))
        else:
            criteria.append(column == condition)
    return criteria


def apply_filters(
    query: Query, model: Type[Any], filters: Optional[Dict[str, Any]]
) -> Query:
    for criterion in build_criteria(model, filters):
        query = query.filter(criterion)
    return query


def apply_ordering(
    query: Query, model: Type[Any], order_by: Optional[Sequence[str] | str]
) -> Query:
    """Order by column names; a leading '-' means descending."""
    if not order_by:
        return query
    if isinstance(order_by, str):
        order_by = [order_by]
    for name in order_by:
        descending = name.startswith("-")
        column = _column(model, name.lstrip("-"))
        query = query.order_by(column.desc() if descending else column.asc())
    return query
