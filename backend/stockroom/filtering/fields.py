"""
Field builders for the query translator.

Every filterable, searchable or sortable field is declared as a path of
mapped attribute names starting at the listed model, e.g.
("incoming_transaction", "supplier", "name"). Relationship hops become
EXISTS (has) clauses when filtering and correlated scalar subqueries when
sorting, so list queries never need explicit joins and the count query
stays a plain SELECT COUNT over the listed table.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from sqlalchemy import String, and_, func, literal, not_, or_, select
from sqlalchemy.sql.elements import ColumnElement

from stockroom.time_utils import parse_filter_date
from stockroom.validation import MAX_INTEGER, parse_record_id
from .conditions import (
    COMPARISON_OPERATORS,
    CONTAINS,
    ENDS_WITH,
    EQ,
    GT,
    GTE,
    LT,
    LTE,
    NE,
    NOT_CONTAINS,
    STARTS_WITH,
    TEXT_OPERATORS,
    FilterCondition,
)

Path = tuple[str, ...]
Leaf = Callable[[ColumnElement], Optional[ColumnElement]]


def resolve_clause(model, path: Path, leaf: Leaf) -> Optional[ColumnElement]:
    """Apply `leaf` to the column at the end of `path`, wrapping each relationship hop in has()."""
    head, *rest = path
    attr = getattr(model, head)
    if not rest:
        return leaf(attr)
    target = attr.property.mapper.class_
    inner = resolve_clause(target, tuple(rest), leaf)
    if inner is None:
        return None
    return attr.has(inner)


def resolve_scalar(model, path: Path) -> ColumnElement:
    """Column at the end of `path` as a value expression usable in ORDER BY."""
    head, *rest = path
    attr = getattr(model, head)
    if not rest:
        return attr
    prop = attr.property
    target = prop.mapper.class_
    return (
        select(resolve_scalar(target, tuple(rest)))
        .where(prop.primaryjoin)
        .correlate(model)
        .scalar_subquery()
    )


def relation_count(model, relationship: str) -> ColumnElement:
    prop = getattr(model, relationship).property
    target = prop.mapper.class_
    return (
        select(func.count())
        .select_from(target)
        .where(prop.primaryjoin)
        .correlate(model)
        .scalar_subquery()
    )


def _coerce_number(value):
    """int/float for numeric-looking input, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if abs(value) <= MAX_INTEGER else None
    if isinstance(value, float):
        return value
    text = str(value).strip()
    try:
        number = int(text)
    except ValueError:
        pass
    else:
        # Out-of-range integers compare as the raw string
        return number if abs(number) <= MAX_INTEGER else None
    try:
        number = float(text)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _compare(column, operator: str, operand) -> Optional[ColumnElement]:
    if operator == EQ:
        return column == operand
    if operator == NE:
        return column != operand
    if operator == GT:
        return column > operand
    if operator == LT:
        return column < operand
    if operator == GTE:
        return column >= operand
    if operator == LTE:
        return column <= operand
    return None


@dataclass(frozen=True)
class TextField:
    path: Path

    def clause(self, model, condition: FilterCondition) -> Optional[ColumnElement]:
        if condition.operator not in TEXT_OPERATORS:
            return None
        term = str(condition.value)
        op = condition.operator

        def leaf(column):
            if op == CONTAINS:
                return column.icontains(term, autoescape=True)
            if op == NOT_CONTAINS:
                return or_(column.is_(None), not_(column.icontains(term, autoescape=True)))
            if op == STARTS_WITH:
                return column.istartswith(term, autoescape=True)
            if op == ENDS_WITH:
                return column.iendswith(term, autoescape=True)
            return func.lower(column) == term.lower()

        return resolve_clause(model, self.path, leaf)


@dataclass(frozen=True)
class NumberField:
    """
    Numeric comparison.

    Values that do not parse as numbers are compared as the raw string
    literal instead of being rejected; the database decides what that
    comparison means.
    """
    path: Path

    def clause(self, model, condition: FilterCondition) -> Optional[ColumnElement]:
        if condition.operator not in COMPARISON_OPERATORS:
            return None
        number = _coerce_number(condition.value)
        if number is None:
            operand = literal(str(condition.value), String)
        else:
            operand = number
        return resolve_clause(model, self.path, lambda column: _compare(column, condition.operator, operand))


@dataclass(frozen=True)
class DateField:
    """
    Calendar-date comparison.

    with_time marks DateTime columns (created_at/updated_at); a date then
    stands for the whole day [d, d+1).
    """
    path: Path
    with_time: bool = False

    def clause(self, model, condition: FilterCondition) -> Optional[ColumnElement]:
        if condition.operator not in COMPARISON_OPERATORS:
            return None
        day = parse_filter_date(condition.value if isinstance(condition.value, str) else None)
        if day is None:
            return None
        op = condition.operator

        if not self.with_time:
            return resolve_clause(model, self.path, lambda column: _compare(column, op, day))

        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)

        def leaf(column):
            if op == EQ:
                return and_(column >= start, column < end)
            if op == NE:
                return or_(column < start, column >= end)
            if op == GT:
                return column >= end
            if op == GTE:
                return column >= start
            if op == LT:
                return column < start
            return column < end

        return resolve_clause(model, self.path, leaf)


@dataclass(frozen=True)
class EnumField:
    path: Path

    def clause(self, model, condition: FilterCondition) -> Optional[ColumnElement]:
        if condition.operator not in (EQ, NE):
            return None
        value = str(condition.value)
        return resolve_clause(model, self.path, lambda column: _compare(column, condition.operator, value))


@dataclass(frozen=True)
class RelationField:
    """
    Many-to-one reference picked from an option list.

    All-digit values select by primary key; anything else matches the
    related record's display name by substring.
    """
    path: Path
    label: str = "name"

    def clause(self, model, condition: FilterCondition) -> Optional[ColumnElement]:
        if condition.operator != EQ:
            return None
        value = condition.value
        if isinstance(value, bool):
            return None
        target_id = parse_record_id(value)
        if target_id is not None:
            return resolve_clause(model, self.path + ("id",), lambda column: column == target_id)
        term = str(value)
        return resolve_clause(
            model,
            self.path + (self.label,),
            lambda column: column.icontains(term, autoescape=True),
        )


@dataclass(frozen=True)
class SortPath:
    """Order by the column at `path` (may cross relationships)."""
    path: Path

    def expression(self, model) -> ColumnElement:
        return resolve_scalar(model, self.path)


@dataclass(frozen=True)
class CountSort:
    """Order by the number of related rows, e.g. products per category."""
    relationship: str

    def expression(self, model) -> ColumnElement:
        return relation_count(model, self.relationship)
