"""
Filter condition model.

A condition is the (field, operator, value) triple the list screens send
in the `filters` query parameter as a JSON array. Parsing is forgiving:
anything malformed is dropped here so the query layer only ever sees
conditions it can act on.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union


EQ = "="
NE = "!="
GT = ">"
LT = "<"
GTE = ">="
LTE = "<="
CONTAINS = "contains"
NOT_CONTAINS = "not contains"
STARTS_WITH = "startsWith"
ENDS_WITH = "endsWith"

COMPARISON_OPERATORS = frozenset({EQ, NE, GT, LT, GTE, LTE})
TEXT_OPERATORS = frozenset({CONTAINS, NOT_CONTAINS, STARTS_WITH, ENDS_WITH, EQ})
OPERATORS = COMPARISON_OPERATORS | TEXT_OPERATORS

Scalar = Union[str, int, float, bool]


@dataclass(frozen=True)
class FilterCondition:
    field: str
    operator: str
    value: Scalar

    @classmethod
    def from_dict(cls, data: Any) -> "FilterCondition | None":
        """Build a condition, or None when it is not fully specified."""
        if not isinstance(data, dict):
            return None
        field = data.get("field")
        operator = data.get("operator")
        value = data.get("value")

        if not isinstance(field, str) or not field.strip():
            return None
        if operator not in OPERATORS:
            return None
        if value is None or isinstance(value, (list, dict)):
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        return cls(field=field.strip(), operator=operator, value=value)


def parse_filters(raw: Any) -> list[FilterCondition]:
    """
    Decode the `filters` parameter.

    Accepts the JSON text from the query string or an already-decoded list.
    Invalid JSON, non-list payloads and unspecified entries all collapse to
    "no condition"; this never raises.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    conditions = []
    for entry in raw:
        condition = FilterCondition.from_dict(entry)
        if condition is not None:
            conditions.append(condition)
    return conditions
