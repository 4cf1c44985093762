from .conditions import FilterCondition, OPERATORS, parse_filters
from .translator import (
    ASC,
    DESC,
    EntityQuery,
    QueryPlan,
    SearchFields,
    build_order_by,
    build_where,
    resolve_sort,
    translate,
)

__all__ = [
    'FilterCondition', 'OPERATORS', 'parse_filters',
    'ASC', 'DESC', 'EntityQuery', 'QueryPlan', 'SearchFields',
    'build_order_by', 'build_where', 'resolve_sort', 'translate',
]
