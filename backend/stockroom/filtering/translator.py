"""
Query translator.

Turns (filters, search, sortField, sortOrder) from a list screen into a
SQLAlchemy WHERE clause and ORDER BY list for one entity.

CONTRACT:
- All filter conditions are ANDed.
- Search is ORed across the entity's searchable fields, then ANDed with
  the filters: where = AND(filterWhere, searchWhere).
- Fields and sorts come from a closed per-entity table (EntityQuery);
  client strings are only ever used as lookup keys.
- Never raises for client input. Unknown fields, operators and
  unparsable values drop that one condition; unknown sorts use the
  entity default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Union

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from stockroom.validation import parse_record_id

from .conditions import FilterCondition
from .fields import (
    CountSort,
    DateField,
    EnumField,
    NumberField,
    Path,
    RelationField,
    SortPath,
    TextField,
    resolve_clause,
)

FieldBuilder = Union[TextField, NumberField, DateField, EnumField, RelationField]
SortBuilder = Union[SortPath, CountSort]

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class SearchFields:
    """Free-text search targets: text paths, plus the id when the term is all digits."""
    paths: Sequence[Path] = ()
    match_id: bool = False


@dataclass(frozen=True)
class EntityQuery:
    name: str
    model: type
    filters: Mapping[str, FieldBuilder]
    sorts: Mapping[str, SortBuilder]
    default_sort: str
    default_order: str = DESC
    search: SearchFields = field(default_factory=SearchFields)

    def __post_init__(self):
        if self.default_sort not in self.sorts:
            raise ValueError(f"{self.name}: default sort {self.default_sort!r} is not sortable")


@dataclass(frozen=True)
class QueryPlan:
    where: ColumnElement
    order_by: list
    sort_field: str
    sort_order: str


def filter_clauses(entity: EntityQuery, filters: Sequence[FilterCondition]) -> list[ColumnElement]:
    clauses = []
    for condition in filters or ():
        builder = entity.filters.get(condition.field)
        if builder is None:
            continue
        clause = builder.clause(entity.model, condition)
        if clause is not None:
            clauses.append(clause)
    return clauses


def search_clause(entity: EntityQuery, search: Optional[str]) -> Optional[ColumnElement]:
    term = (search or "").strip()
    if not term:
        return None

    options = [
        resolve_clause(entity.model, path, lambda column: column.icontains(term, autoescape=True))
        for path in entity.search.paths
    ]
    record_id = parse_record_id(term) if entity.search.match_id else None
    if record_id is not None:
        options.append(entity.model.id == record_id)
    if not options:
        return None
    return or_(*options)


def build_where(
    entity: EntityQuery,
    filters: Sequence[FilterCondition] = (),
    search: Optional[str] = None,
) -> ColumnElement:
    clauses = filter_clauses(entity, filters)
    searched = search_clause(entity, search)
    if searched is not None:
        clauses.append(searched)
    if not clauses:
        return true()
    return and_(*clauses)


def resolve_sort(entity: EntityQuery, sort_field: Optional[str], sort_order: Optional[str]) -> tuple[str, str]:
    """
    Validate the requested sort against the entity allowlist.

    An unknown field resets both field and direction to the entity default,
    so every unrecognized request orders exactly like the default listing.
    """
    if not sort_field or sort_field not in entity.sorts:
        return entity.default_sort, entity.default_order
    order = (sort_order or "").lower()
    if order not in (ASC, DESC):
        order = entity.default_order
    return sort_field, order


def build_order_by(
    entity: EntityQuery,
    sort_field: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> tuple[list, str, str]:
    field_name, order = resolve_sort(entity, sort_field, sort_order)
    expression = entity.sorts[field_name].expression(entity.model)
    pk = entity.model.id

    if order == ASC:
        clauses = [expression.asc()]
        tie_breaker = pk.asc()
    else:
        clauses = [expression.desc()]
        tie_breaker = pk.desc()

    # Stable paging when the sort key repeats
    if expression is not pk:
        clauses.append(tie_breaker)
    return clauses, field_name, order


def translate(
    entity: EntityQuery,
    *,
    filters: Sequence[FilterCondition] = (),
    search: Optional[str] = None,
    sort_field: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> QueryPlan:
    order_by, field_name, order = build_order_by(entity, sort_field, sort_order)
    return QueryPlan(
        where=build_where(entity, filters, search),
        order_by=order_by,
        sort_field=field_name,
        sort_order=order,
    )
