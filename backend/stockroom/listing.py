# Overview: Shared paginated list plumbing; query-string parsing, filtered count + page fetch, envelope.

"""
List endpoint contract

Every list route reads the same query-string shape:
    page, limit, search, sortField, sortOrder, filters (JSON array)

Malformed numbers fall back to defaults and malformed filters are
dropped, so a list screen with stale client state still renders.

The count and the page are two statements over the same predicate with
no transaction around them; under concurrent writes they can disagree
slightly, which list screens tolerate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from flask import current_app, jsonify, request

from .filtering import FilterCondition, parse_filters, translate
from .filtering.translator import EntityQuery, QueryPlan

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 500


@dataclass
class ListParams:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    search: str = ""
    sort_field: Optional[str] = None
    sort_order: Optional[str] = None
    filters: list[FilterCondition] = field(default_factory=list)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @classmethod
    def from_args(
        cls,
        args,
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> "ListParams":
        page = args.get("page", 1, type=int)
        limit = args.get("limit", default_limit, type=int)

        # Clamp
        if page < 1:
            page = 1
        if limit < 1:
            limit = default_limit
        if limit > max_limit:
            limit = max_limit

        return cls(
            page=page,
            limit=limit,
            search=(args.get("search") or "").strip(),
            sort_field=args.get("sortField") or None,
            sort_order=args.get("sortOrder") or None,
            filters=parse_filters(args.get("filters")),
        )


def list_params_from_request() -> ListParams:
    params = ListParams.from_args(
        request.args,
        default_limit=current_app.config.get("DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        max_limit=current_app.config.get("MAX_PAGE_SIZE", MAX_PAGE_SIZE),
    )
    raw_filters = request.args.get("filters")
    if raw_filters and raw_filters.strip() not in ("[]", "") and not params.filters:
        current_app.logger.warning("Ignoring unusable filters on %s: %.200s", request.path, raw_filters)
    return params


@dataclass
class Page:
    items: list
    total: int
    plan: QueryPlan


def fetch_page(query, entity: EntityQuery, params: ListParams) -> Page:
    """
    Apply the translated predicate and order to `query` (a Query over
    entity.model) and return one page plus the unpaginated total.
    """
    plan = translate(
        entity,
        filters=params.filters,
        search=params.search,
        sort_field=params.sort_field,
        sort_order=params.sort_order,
    )
    query = query.filter(plan.where)

    total = query.count()
    items = (
        query.order_by(*plan.order_by)
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return Page(items=items, total=total, plan=plan)


def list_response(page: Page, params: ListParams, row: Callable[[Any], dict], **extra):
    payload = {
        "success": True,
        "data": [row(item) for item in page.items],
        "totalCount": page.total,
        "page": params.page,
        "limit": params.limit,
        "sortField": page.plan.sort_field,
        "sortOrder": page.plan.sort_order,
    }
    payload.update(extra)
    return jsonify(payload)
